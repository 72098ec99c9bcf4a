from __future__ import annotations

import argparse
from pathlib import Path

from .deadline_store import DeadlineStore
from .settings import AppSettings, load_settings
from .storage.defaults import DefaultsStore
from .utils.log import setup_logger
from .utils.time import parse_date


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="deadlines",
        description="Keep a short list of deadlines and count the days left.",
    )
    p.add_argument("--config", default=None, help="Path to a YAML settings file.")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("list", help="Show deadlines, soonest first")

    p_add = sub.add_parser("add", help="Add a deadline")
    p_add.add_argument("--name", required=True)
    p_add.add_argument("--date", default=None, help="Date YYYY-MM-DD")
    p_add.add_argument("--month", default=None, help="Month 1-12 (current year)")
    p_add.add_argument("--day", default=None, help="Day of month, used with --month")

    p_rename = sub.add_parser("rename", help="Rename a deadline")
    p_rename.add_argument("--id", required=True, dest="deadline_id")
    p_rename.add_argument("--name", required=True)

    p_remove = sub.add_parser("remove", help="Delete a deadline")
    p_remove.add_argument("--id", required=True, dest="deadline_id")

    sub.add_parser("cleanup", help="Drop deadlines more than a week overdue")
    sub.add_parser("desktop", help="Open the desktop window")

    return p


def open_store(settings: AppSettings) -> DeadlineStore:
    return DeadlineStore(defaults=DefaultsStore(settings.data_path))


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)

    settings = load_settings(Path(args.config) if args.config else None)
    setup_logger(settings.log_level, log_file=settings.log_file)
    store = open_store(settings)

    if args.cmd == "list":
        rows = store.sorted_view()
        if not rows:
            print("No deadlines.")
        for row in rows:
            print(f"{row.name}  {row.label}  ({row.id})")
        return 0

    if args.cmd == "add":
        if args.date is not None:
            target = parse_date(args.date)
            if target is None:
                print(f"Invalid date: {args.date} (expected YYYY-MM-DD)")
                return 2
            created = store.add(args.name, target)
        elif args.month is not None and args.day is not None:
            created = store.add_month_day(args.name, args.month, args.day)
        else:
            print("Pass --date, or --month together with --day.")
            return 2
        if created is None:
            print("Deadline not added: name must not be blank and the date must exist.")
            return 2
        print(created.id)
        return 0

    if args.cmd == "rename":
        if store.rename(args.deadline_id, args.name):
            print(f"Renamed {args.deadline_id}")
            return 0
        print(f"No deadline renamed for id {args.deadline_id}")
        return 1

    if args.cmd == "remove":
        if store.remove(args.deadline_id):
            print(f"Removed {args.deadline_id}")
            return 0
        print(f"No deadline with id {args.deadline_id}")
        return 1

    if args.cmd == "cleanup":
        removed = store.last_sweep + store.cleanup_overdue()
        print(f"Removed {len(removed)} overdue deadline(s)")
        return 0

    if args.cmd == "desktop":
        from .ui.menu_app import run_menu_app

        run_menu_app(store)
        return 0

    return 2
