"""
Tests for streak counters
"""
from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

from app.models.attendance import AttendanceStatus as S
from app.services.streak_service import (
    StreakCache,
    compute_streak,
    current_streak,
    get_streak_summary,
    history_version,
    longest_streak,
    summarize,
)
from app.services import attendance_service as svc

START = date(2026, 3, 2)
STAMP = datetime(2026, 3, 31, tzinfo=timezone.utc)


def history(*statuses, early=()):
    """One record per day from START; indexes in ``early`` checked in before the scheduled start"""
    records = []
    for i, status in enumerate(statuses):
        scheduled = datetime(2026, 3, 2, 3, 30, tzinfo=timezone.utc) + timedelta(days=i)
        check_in = None
        if status in (S.PRESENT, S.LATE, S.HALF_DAY):
            check_in = scheduled - timedelta(minutes=5) if i in early else scheduled + timedelta(minutes=10)
        records.append(SimpleNamespace(
            id=i + 1,
            work_date=START + timedelta(days=i),
            status=status,
            check_in=check_in,
            scheduled_start=scheduled,
            updated_at=STAMP,
        ))
    return records


def test_current_streak_counts_back_to_first_absent():
    records = history(S.PRESENT, S.LATE, S.HALF_DAY, S.ABSENT, S.PRESENT, S.LEAVE, S.PRESENT)

    assert current_streak(records) == 2
    assert longest_streak(records) == 3


def test_leave_is_neutral():
    records = history(S.PRESENT, S.LEAVE, S.LEAVE, S.PRESENT, S.LATE)

    assert current_streak(records) == 3
    assert longest_streak(records) == 3


def test_unclassified_days_are_skipped():
    records = history(S.PRESENT, None, S.PRESENT)

    assert current_streak(records) == 2
    assert compute_streak(records).total_working_days == 2


def test_appending_absent_resets_current_streak():
    records = history(S.PRESENT, S.PRESENT, S.PRESENT)
    assert current_streak(records) == 3

    records = history(S.PRESENT, S.PRESENT, S.PRESENT, S.ABSENT)
    assert current_streak(records) == 0
    assert longest_streak(records) == 3


def test_streak_is_idempotent_and_order_independent():
    records = history(S.PRESENT, S.ABSENT, S.LATE, S.PRESENT)

    first = compute_streak(records)
    assert compute_streak(records) == first
    assert compute_streak(list(reversed(records))) == first


def test_counts():
    records = history(
        S.PRESENT, S.PRESENT, S.PRESENT, S.LATE, S.HALF_DAY, S.ABSENT, S.LEAVE,
        early=(0, 1),
    )
    summary = compute_streak(records)

    assert summary.early_bird_count == 2
    assert summary.on_time_count == 1
    assert summary.late_count == 1
    assert summary.half_day_count == 1
    assert summary.absent_count == 1
    assert summary.leave_count == 1
    assert summary.total_working_days == 7
    assert summary.current_streak == 0
    assert summary.longest_streak == 5


def test_empty_history():
    summary = compute_streak([])

    assert summary.current_streak == 0
    assert summary.longest_streak == 0
    assert summary.total_working_days == 0


def test_cache_hits_only_for_same_history_version():
    cache = StreakCache()
    records = history(S.PRESENT, S.PRESENT)
    version = history_version(records)
    summary = compute_streak(records)

    cache.put(7, version, summary)
    assert cache.get(7, version) is summary
    assert cache.get(7, history_version(history(S.PRESENT, S.PRESENT, S.ABSENT))) is None
    assert cache.get(8, version) is None


def test_summarize_recomputes_after_history_changes():
    records = history(S.PRESENT, S.PRESENT)
    assert summarize(9, records).current_streak == 2

    records = history(S.PRESENT, S.PRESENT, S.ABSENT)
    assert summarize(9, records).current_streak == 0


def test_streak_from_database(db, at):
    for offset, (hour, minute) in enumerate([(8, 55), (9, 10), (9, 40)]):
        day = START + timedelta(days=offset)
        svc.check_in(db, 5, at(day, hour, minute))
        svc.check_out(db, 5, at(day, 18, 30))

    summary = get_streak_summary(db, 5)
    assert summary.current_streak == 3
    assert summary.early_bird_count == 1
    assert summary.on_time_count == 1
    assert summary.late_count == 1

    svc.close_day(db, 5, START + timedelta(days=3), at(START + timedelta(days=3), 23, 0))
    assert get_streak_summary(db, 5).current_streak == 0
