"""Expiry sweeper: keeps ad lock state consistent with the clock.

Runs at the top of every read that reports status-dependent data, so an ad
whose testing window has elapsed is never shown as still testing.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.core.metrics import SWEEPER_CHANGES
from app.core.transitions import ensure_utc, utcnow
from app.models.ad import Ad, AdStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepResult:
    moved: int = 0
    repaired: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.moved or self.repaired)


def sweep_expired_ads(db: Session, now: Optional[datetime] = None) -> SweepResult:
    """Move expired testing ads to analysis and clear stray locks.

    Idempotent: a second run with the same clock changes nothing.
    """
    now = ensure_utc(now) or utcnow()

    moved = (
        db.query(Ad)
        .filter(
            Ad.status == AdStatus.TESTING.value,
            Ad.review_date.isnot(None),
            Ad.review_date <= now,
        )
        .update(
            {Ad.status: AdStatus.ANALYSIS.value, Ad.is_locked: False},
            synchronize_session="fetch",
        )
    )

    repaired = (
        db.query(Ad)
        .filter(
            Ad.is_locked.is_(True),
            Ad.status != AdStatus.TESTING.value,
        )
        .update({Ad.is_locked: False}, synchronize_session="fetch")
    )
    # a testing lock with no review date can never expire on its own
    repaired += (
        db.query(Ad)
        .filter(
            Ad.is_locked.is_(True),
            Ad.status == AdStatus.TESTING.value,
            Ad.review_date.is_(None),
        )
        .update({Ad.is_locked: False}, synchronize_session="fetch")
    )

    result = SweepResult(moved=moved, repaired=repaired)
    if result.changed:
        db.commit()
        SWEEPER_CHANGES.labels(rule="expired").inc(moved)
        SWEEPER_CHANGES.labels(rule="repaired").inc(repaired)
        logger.info(f"sweeper moved {moved} expired ads to analysis, repaired {repaired} stray locks")

    return result
