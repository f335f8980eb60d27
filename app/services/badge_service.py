"""
Badge engine: achievement badges derived from a user's history.

Awards are computed fresh from the history on every run and diffed against
the persisted set keyed by (user_id, badge_type, qualifying_period), so
re-running never inserts the same badge twice.
"""
import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.attendance import AttendanceStatus
from app.models.badge import AttendanceBadge, BadgeType
from app.services.attendance_service import full_history
from app.services.audit_service import AuditAction, log_audit
from app.services.streak_service import StreakSummary, summarize
from app.utils.datetime_utils import now_utc, work_date_for

_log = logging.getLogger(__name__)

PERFECT_STATUSES = frozenset({AttendanceStatus.PRESENT, AttendanceStatus.LATE})


@dataclass(frozen=True)
class BadgeRules:
    """Badge cadence; configurable, never hard-coded in the rules below"""
    early_bird_every: int = 10
    streak_milestones: Tuple[int, ...] = field(default=(7, 30, 100))

    @classmethod
    def from_settings(cls) -> "BadgeRules":
        return cls(
            early_bird_every=settings.EARLY_BIRD_BADGE_EVERY,
            streak_milestones=tuple(settings.get_streak_milestones()),
        )


@dataclass(frozen=True)
class BadgeAward:
    badge_type: BadgeType
    qualifying_period: str
    badge_name: str
    description: str

    @property
    def key(self) -> Tuple[BadgeType, str]:
        return (self.badge_type, self.qualifying_period)


def _month_is_over(year: int, month: int, today: date) -> bool:
    last_day = date(year, month, calendar.monthrange(year, month)[1])
    return last_day < today


def perfect_months(records: Sequence[Any], today: date) -> List[Tuple[int, int]]:
    """
    Calendar months, fully elapsed before ``today``, in which every working
    day was present or late. Leave days are not working days; a month needs at
    least one working day.
    """
    months: Dict[Tuple[int, int], List[Any]] = {}
    for record in records:
        if record.status is None or record.status == AttendanceStatus.LEAVE:
            continue
        months.setdefault((record.work_date.year, record.work_date.month), []).append(record)

    return sorted(
        key for key, days in months.items()
        if _month_is_over(key[0], key[1], today)
        and all(r.status in PERFECT_STATUSES for r in days)
    )


def compute_badges(
    records: Sequence[Any],
    summary: StreakSummary,
    rules: Optional[BadgeRules] = None,
    today: Optional[date] = None,
) -> List[BadgeAward]:
    """
    Every badge the history qualifies for.

    - early_bird: one per reached multiple of ``early_bird_every`` early check-ins
    - streak: one per milestone reached by the longest streak (a streak that
      crossed a milestone earned it, even if it has since been broken)
    - perfect_month: one per fully elapsed month of present/late working days
    """
    rules = rules or BadgeRules.from_settings()
    today = today or work_date_for()
    awards: List[BadgeAward] = []

    every = rules.early_bird_every
    for count in range(every, summary.early_bird_count + 1, every):
        awards.append(BadgeAward(
            badge_type=BadgeType.EARLY_BIRD,
            qualifying_period=f"early_bird:{count}",
            badge_name=f"Early Bird x{count}",
            description=f"Checked in before the start of the day {count} times",
        ))

    for milestone in sorted(set(rules.streak_milestones)):
        if summary.longest_streak >= milestone:
            awards.append(BadgeAward(
                badge_type=BadgeType.STREAK,
                qualifying_period=f"streak:{milestone}",
                badge_name=f"{milestone}-Day Streak",
                description=f"Attended {milestone} working days in a row",
            ))

    for year, month in perfect_months(records, today):
        awards.append(BadgeAward(
            badge_type=BadgeType.PERFECT_MONTH,
            qualifying_period=f"{year:04d}-{month:02d}",
            badge_name=f"Perfect {calendar.month_name[month]} {year}",
            description="No absences or half days on any working day of the month",
        ))

    return awards


def list_badges(db: Session, user_id: int) -> List[AttendanceBadge]:
    return (
        db.query(AttendanceBadge)
        .filter(AttendanceBadge.user_id == user_id)
        .order_by(AttendanceBadge.awarded_at, AttendanceBadge.id)
        .all()
    )


def sync_badges(
    db: Session,
    user_id: int,
    now: Optional[datetime] = None,
    rules: Optional[BadgeRules] = None,
) -> List[AttendanceBadge]:
    """
    Recompute the user's badges and persist the ones not yet awarded.

    Returns:
        All badges of the user, oldest first
    """
    now = now or now_utc()
    records = full_history(db, user_id)
    summary = summarize(user_id, records)
    awards = compute_badges(records, summary, rules, today=work_date_for(now))

    awarded = {(b.badge_type, b.qualifying_period) for b in list_badges(db, user_id)}
    missing = [a for a in awards if a.key not in awarded]
    if not missing:
        return list_badges(db, user_id)

    for award in missing:
        db.add(AttendanceBadge(
            user_id=user_id,
            badge_type=award.badge_type,
            qualifying_period=award.qualifying_period,
            badge_name=award.badge_name,
            description=award.description,
            awarded_at=now,
        ))
    try:
        db.commit()
    except IntegrityError:
        # A concurrent sync awarded the same badges first; its rows stand
        db.rollback()
        _log.info("sync_badges: concurrent award for user=%s, keeping existing rows", user_id)
        return list_badges(db, user_id)

    log_audit(
        db=db,
        actor_id=user_id,
        action=AuditAction.BADGES_AWARDED,
        entity_type="attendance_badges",
        meta={"awarded": [a.qualifying_period for a in missing]},
    )
    _log.info("sync_badges: user=%s awarded=%s", user_id, [a.qualifying_period for a in missing])
    return list_badges(db, user_id)
