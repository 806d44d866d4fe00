"""Ad status lifecycle rules.

``evaluate_transition`` is the single place that decides whether an ad may
move to another status and which lock/closing fields that move implies. It is
pure: it reads an ``AdSnapshot`` and returns ``Accepted`` or ``Rejected``,
leaving persistence to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union

from app.core.errors import ErrorKind
from app.models.ad import Ad, AdStatus

DEFAULT_LOCK_DAYS = 10

HYPOTHESIS_REQUIRED_STATUSES = (AdStatus.PRODUCTION, AdStatus.TESTING)

LOCKED_MESSAGE = "This ad is locked in testing. Wait until the testing period ends."
HYPOTHESIS_MESSAGE = "A hypothesis is required before moving to production or testing."


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (e.g. read back from SQLite) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_ad_status(value: Union[str, AdStatus]) -> AdStatus:
    if isinstance(value, AdStatus):
        return value
    return AdStatus(value)


@dataclass(frozen=True)
class AdSnapshot:
    status: AdStatus
    is_locked: bool = False
    review_date: Optional[datetime] = None
    hypothesis: Optional[str] = ""
    lock_days: Optional[int] = DEFAULT_LOCK_DAYS

    @classmethod
    def from_ad(cls, ad: Ad) -> "AdSnapshot":
        return cls(
            status=_to_ad_status(ad.status),
            is_locked=bool(ad.is_locked),
            review_date=ensure_utc(ad.review_date),
            hypothesis=ad.hypothesis,
            lock_days=ad.lock_days,
        )

    def is_actively_locked(self, now: datetime) -> bool:
        return (
            self.status == AdStatus.TESTING
            and self.is_locked
            and self.review_date is not None
            and ensure_utc(self.review_date) > now
        )


@dataclass(frozen=True)
class Accepted:
    status: AdStatus
    fields: Dict[str, Any] = field(default_factory=dict)

    accepted = True


@dataclass(frozen=True)
class Rejected:
    kind: ErrorKind
    message: str

    accepted = False


TransitionResult = Union[Accepted, Rejected]


def effective_lock_days(lock_days: Optional[int]) -> int:
    return lock_days if lock_days else DEFAULT_LOCK_DAYS


def evaluate_transition(
    snapshot: AdSnapshot,
    target_status: Union[str, AdStatus],
    updates: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None,
) -> TransitionResult:
    """Decide a status change for ``snapshot``.

    ``updates`` are caller-supplied field changes sent in the same request
    (metrics, diagnosis, a new hypothesis...). They are returned as part of the
    accepted field set, with the derived lifecycle fields taking precedence.
    """
    now = ensure_utc(now) or utcnow()
    target = _to_ad_status(target_status)
    updates = dict(updates or {})

    if snapshot.is_actively_locked(now):
        return Rejected(ErrorKind.LOCKED, LOCKED_MESSAGE)

    if target in HYPOTHESIS_REQUIRED_STATUSES:
        hypothesis = updates.get("hypothesis", snapshot.hypothesis)
        if not (hypothesis or "").strip():
            return Rejected(ErrorKind.VALIDATION, HYPOTHESIS_MESSAGE)

    derived: Dict[str, Any] = {}

    if target == AdStatus.TESTING:
        lock_days = effective_lock_days(updates.get("lock_days", snapshot.lock_days))
        derived["testing_started_at"] = now
        derived["review_date"] = now + timedelta(days=lock_days)
        derived["is_locked"] = True

    if snapshot.status == AdStatus.TESTING and target != AdStatus.TESTING:
        derived["is_locked"] = False

    if target == AdStatus.COMPLETED:
        derived["closed_at"] = now

    fields = {**updates, **derived, "status": target}
    return Accepted(status=target, fields=fields)
