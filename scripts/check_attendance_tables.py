#!/usr/bin/env python3
"""
Check whether the attendance tables exist in the configured database.
Uses the same DATABASE_URL as the app (from app.core.config.settings).
Run from project root: python scripts/check_attendance_tables.py
"""
import sys
import os

# Ensure app is importable when run from the project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

REQUIRED_TABLES = (
    "attendance_policies",
    "shifts",
    "attendance_records",
    "attendance_badges",
    "audit_logs",
)


def main() -> int:
    from sqlalchemy import create_engine, inspect
    from app.core.config import settings

    url = settings.DATABASE_URL
    print(f"DATABASE_URL: {url if url.startswith('sqlite') else url.split('@')[-1]}")
    engine = create_engine(url)
    existing = set(inspect(engine).get_table_names())

    missing = [name for name in REQUIRED_TABLES if name not in existing]
    for name in REQUIRED_TABLES:
        print(f"{name:<22} {'exists' if name in existing else 'MISSING'}")
    if missing:
        print("Run: alembic upgrade head (from the project root)", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
