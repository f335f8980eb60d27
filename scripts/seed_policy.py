"""
Seed the default attendance policy (09:00-18:00, break 13:00-14:00, late 30 min,
absent 2 h, half day 4 h, full day 8 h). An existing policy is left unchanged.
Run from the project root with .env loaded.

Usage:
  python scripts/seed_policy.py
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.core.logging import setup_logging
from app.db.init_db import init_db
from app.db.session import SessionLocal
from app.services.time_window_service import policy_metrics


def main():
    setup_logging()
    db = SessionLocal()
    try:
        policy = init_db(db)
        metrics = policy_metrics(policy)
        print(
            f"Policy version {policy.id}: {metrics['work_start']}-{metrics['work_end']}, "
            f"late after {metrics['morning_late_time']}/{metrics['afternoon_late_time']}, "
            f"absent after {metrics['morning_absent_time']}/{metrics['afternoon_absent_time']}, "
            f"net work {metrics['total_work_duration']}"
        )
    finally:
        db.close()


if __name__ == "__main__":
    main()
