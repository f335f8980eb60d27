"""
End-of-day attendance classification, meant to run from cron after the work day.

Users without a check-in past the morning absent cutoff are recorded absent;
open days are auto checked out once the work end has passed. Safe to re-run.
Team membership lives in the identity service, so user ids are passed in.

Usage:
  python scripts/close_attendance_day.py 101 102 103
  python scripts/close_attendance_day.py --date 2026-03-10 --users-file team.txt
"""
import argparse
import logging
import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.core.logging import setup_logging
from app.db.session import SessionLocal
from app.services.attendance_service import close_day_for_users
from app.utils.datetime_utils import work_date_for

logger = logging.getLogger("close_attendance_day")


def _read_user_ids(args) -> list:
    user_ids = list(args.user_ids)
    if args.users_file:
        for line in Path(args.users_file).read_text().splitlines():
            line = line.strip()
            if line and not line.startswith("#"):
                user_ids.append(int(line))
    return sorted(set(user_ids))


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("user_ids", nargs="*", type=int, help="User ids to close the day for")
    parser.add_argument("--date", type=date.fromisoformat, default=None, help="Work date (default today)")
    parser.add_argument("--users-file", default=None, help="File with one user id per line")
    args = parser.parse_args(argv)

    setup_logging()
    user_ids = _read_user_ids(args)
    if not user_ids:
        parser.error("no user ids given")
    work_date = args.date or work_date_for()

    db = SessionLocal()
    try:
        tally = close_day_for_users(db, user_ids, work_date)
    finally:
        db.close()

    logger.info("Closed %s for %s users: %s", work_date, len(user_ids), tally)
    print(f"{work_date}: " + ", ".join(f"{k}={v}" for k, v in sorted(tally.items())))
    return 0


if __name__ == "__main__":
    sys.exit(main())
