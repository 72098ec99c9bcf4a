from __future__ import annotations

from dataclasses import dataclass
import datetime as dt
import logging
from typing import Any, Callable, Optional, Union
import uuid

from pydantic import BaseModel, TypeAdapter, ValidationError

from .scheduler import MidnightScheduler, TimerFactory
from .storage.defaults import DefaultsStore
from .utils.time import days_until, days_until_text, local_day, parse_month_day

logger = logging.getLogger(__name__)

DEADLINES_KEY = "SavedDeadlines"
OVERDUE_CLEANUP_THRESHOLD_DAYS = -7
SAMPLE_DEADLINES = (
    ("Project Alpha", 3),
    ("Submit Report", 10),
    ("Conference", 24),
)


class Deadline(BaseModel):
    id: str
    name: str
    date: dt.date


_DEADLINE_LIST = TypeAdapter(list[Deadline])


@dataclass(frozen=True)
class DeadlineView:
    id: str
    name: str
    date: dt.date
    days_until: int
    label: str


ViewSubscriber = Callable[[list[DeadlineView]], None]
IdFactory = Callable[[], str]


def _new_id() -> str:
    return str(uuid.uuid4())


def _clean_name(name: Optional[str]) -> str:
    return (name or "").strip()


class DeadlineStore:
    """Owns the deadline list and keeps it in the defaults file.

    Every mutation writes the whole list under one key. Write failures are
    logged and the in-memory list stays authoritative for this process.
    """

    def __init__(
        self,
        defaults: Optional[DefaultsStore] = None,
        clock: Callable[[], dt.datetime] = dt.datetime.now,
        id_factory: IdFactory = _new_id,
        autoload: bool = True,
    ) -> None:
        self._defaults = defaults or DefaultsStore.default()
        self._clock = clock
        self._id_factory = id_factory
        self._deadlines: list[Deadline] = []
        self._subscribers: dict[int, ViewSubscriber] = {}
        self._next_subscriber_id = 1
        self._scheduler: Optional[MidnightScheduler] = None
        self.last_sweep: list[Deadline] = []
        if autoload:
            self.load()

    @property
    def deadlines(self) -> list[Deadline]:
        return [d.model_copy() for d in self._deadlines]

    def __len__(self) -> int:
        return len(self._deadlines)

    def get(self, deadline_id: str) -> Optional[Deadline]:
        index = self._index_of(deadline_id)
        if index is None:
            return None
        return self._deadlines[index].model_copy()

    def today(self) -> dt.date:
        return local_day(self._clock())

    def sorted_view(self) -> list[DeadlineView]:
        today = self.today()
        rows = [(days_until(today, d.date), d) for d in self._deadlines]
        # list.sort is stable: names equal under casefold keep insertion order.
        rows.sort(key=lambda row: (row[0], row[1].name.casefold()))
        return [
            DeadlineView(
                id=d.id,
                name=d.name,
                date=d.date,
                days_until=days,
                label=days_until_text(days),
            )
            for days, d in rows
        ]

    def subscribe(self, callback: ViewSubscriber, emit_initial: bool = True) -> int:
        token = self._next_subscriber_id
        self._next_subscriber_id += 1
        self._subscribers[token] = callback
        if emit_initial:
            callback(self.sorted_view())
        return token

    def unsubscribe(self, token: int) -> None:
        self._subscribers.pop(token, None)

    def _emit(self) -> None:
        if not self._subscribers:
            return
        view = self.sorted_view()
        for callback in list(self._subscribers.values()):
            try:
                callback(list(view))
            except Exception:
                logger.exception("Deadline subscriber failed")
                continue

    def load(self) -> list[Deadline]:
        """Replace the list from storage and sweep it; returns what the sweep removed."""
        raw: Any = self._defaults.get(DEADLINES_KEY)
        loaded = self._parse_persisted(raw) if raw is not None else None
        if loaded is None:
            logger.info("No usable saved deadlines; starting with sample data")
            self._deadlines = self._sample_deadlines()
            # Saved so ids stay stable across runs; a corrupt blob is kept untouched.
            if raw is None:
                self._persist()
        else:
            self._deadlines = loaded
        self.last_sweep = self.cleanup_overdue()
        if not self.last_sweep:
            self._emit()
        return list(self.last_sweep)

    def add(self, name: str, date: Union[dt.date, dt.datetime]) -> Optional[Deadline]:
        clean = _clean_name(name)
        if not clean:
            return None
        deadline = Deadline(id=self._fresh_id(), name=clean, date=local_day(date))
        self._deadlines.append(deadline)
        self._persist()
        self._emit()
        return deadline.model_copy()

    def add_month_day(
        self,
        name: str,
        month: Union[int, str, None],
        day: Union[int, str, None],
    ) -> Optional[Deadline]:
        if not _clean_name(name):
            return None
        target = parse_month_day(month, day, today=self.today())
        if target is None:
            return None
        return self.add(name, target)

    def remove(self, target: Union[str, Deadline]) -> bool:
        deadline_id = target.id if isinstance(target, Deadline) else str(target)
        index = self._index_of(deadline_id)
        if index is None:
            return False
        del self._deadlines[index]
        self._persist()
        self._emit()
        return True

    def rename(self, deadline_id: str, new_name: str) -> bool:
        clean = _clean_name(new_name)
        index = self._index_of(deadline_id)
        if index is None or not clean:
            return False
        self._deadlines[index].name = clean
        self._persist()
        self._emit()
        return True

    def cleanup_overdue(self) -> list[Deadline]:
        today = self.today()
        kept: list[Deadline] = []
        removed: list[Deadline] = []
        for deadline in self._deadlines:
            if days_until(today, deadline.date) < OVERDUE_CLEANUP_THRESHOLD_DAYS:
                removed.append(deadline)
            else:
                kept.append(deadline)
        if removed:
            self._deadlines = kept
            logger.info(
                "Removed %d stale deadline(s): %s",
                len(removed),
                ", ".join(d.name for d in removed),
            )
            self._persist()
            self._emit()
        return removed

    def on_day_changed(self) -> None:
        logger.debug("Day changed; refreshing deadlines")
        removed = self.cleanup_overdue()
        if not removed:
            self._emit()

    def start_day_watch(self, timer_factory: Optional[TimerFactory] = None) -> MidnightScheduler:
        """Start the midnight tick that calls ``on_day_changed``.

        Without ``timer_factory`` the tick fires on a background thread, so
        hosts with an event loop should pass a factory bound to that loop.
        """
        if self._scheduler is None:
            self._scheduler = MidnightScheduler(
                self.on_day_changed,
                clock=self._clock,
                timer_factory=timer_factory,
            )
        self._scheduler.start()
        return self._scheduler

    def shutdown(self) -> None:
        scheduler, self._scheduler = self._scheduler, None
        if scheduler is not None:
            scheduler.stop()

    def _index_of(self, deadline_id: str) -> Optional[int]:
        for index, deadline in enumerate(self._deadlines):
            if deadline.id == deadline_id:
                return index
        return None

    def _fresh_id(self) -> str:
        while True:
            candidate = str(self._id_factory())
            if self._index_of(candidate) is None:
                return candidate

    def _sample_deadlines(self) -> list[Deadline]:
        today = self.today()
        return [
            Deadline(id=self._fresh_id(), name=name, date=today + dt.timedelta(days=offset))
            for name, offset in SAMPLE_DEADLINES
        ]

    def _parse_persisted(self, raw: Any) -> Optional[list[Deadline]]:
        try:
            records = _DEADLINE_LIST.validate_python(raw)
        except ValidationError as exc:
            logger.warning("Saved deadlines are unreadable, using sample data: %s", exc)
            return None
        seen: set[str] = set()
        unique: list[Deadline] = []
        for record in records:
            if record.id in seen:
                logger.warning("Dropping duplicate deadline id %s", record.id)
                continue
            seen.add(record.id)
            unique.append(record)
        return unique

    def _persist(self) -> None:
        payload = [d.model_dump(mode="json") for d in self._deadlines]
        try:
            self._defaults.set(DEADLINES_KEY, payload)
        except OSError as exc:
            logger.warning("Could not save deadlines: %s", exc)
