from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


class DefaultsStore:
    """Per-user key-value settings kept as one JSON object on disk."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    @staticmethod
    def default() -> "DefaultsStore":
        return DefaultsStore(Path.home() / ".deadlines" / "defaults.json")

    def get(self, key: str) -> Optional[Any]:
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        payload = self._read()
        payload[key] = value
        self._write(payload)

    def remove(self, key: str) -> None:
        payload = self._read()
        if key in payload:
            del payload[key]
            self._write(payload)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable defaults file %s: %s", self.path, exc)
            return {}
        if not isinstance(payload, dict):
            logger.warning("Ignoring defaults file %s: expected a JSON object", self.path)
            return {}
        return payload

    def _write(self, payload: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
