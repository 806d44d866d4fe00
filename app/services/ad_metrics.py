import math
from datetime import datetime
from typing import Dict, Optional

from app.core.transitions import ensure_utc, utcnow
from app.models.ad import AdFormat, ElementResult

VIDEO_FORMATS = (AdFormat.VIDEO, AdFormat.UGC)

# (failed below, good at or above), in percent
HOOK_RATE_BANDS = (20.0, 30.0)
HOLD_RATE_BANDS = (15.0, 25.0)

SECONDS_PER_DAY = 24 * 60 * 60


def calculate_roas(revenue: Optional[float], spend: Optional[float]) -> Optional[float]:
    if revenue is None or spend is None or spend == 0:
        return None
    return revenue / spend


def calculate_hit_rate(winners: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return winners / total * 100


def days_remaining(review_date: Optional[datetime], now: Optional[datetime] = None) -> int:
    if review_date is None:
        return 0
    now = ensure_utc(now) or utcnow()
    diff_days = (ensure_utc(review_date) - now).total_seconds() / SECONDS_PER_DAY
    return max(0, math.ceil(diff_days))


def is_lock_expired(review_date: Optional[datetime], now: Optional[datetime] = None) -> bool:
    if review_date is None:
        return True
    now = ensure_utc(now) or utcnow()
    return ensure_utc(review_date) <= now


def _rate(numerator: Optional[int], impressions: Optional[int]) -> Optional[float]:
    if numerator is None or impressions is None or impressions == 0:
        return None
    return numerator / impressions * 100


def calculate_hook_rate(video_views_3s: Optional[int], impressions: Optional[int]) -> Optional[float]:
    """3-second views / impressions, as a percentage."""
    return _rate(video_views_3s, impressions)


def calculate_hold_rate(video_views_thruplay: Optional[int], impressions: Optional[int]) -> Optional[float]:
    """Thruplay views / impressions, as a percentage."""
    return _rate(video_views_thruplay, impressions)


def rate_band(rate: Optional[float], bands: tuple) -> Optional[str]:
    if rate is None:
        return None
    failed_below, good_from = bands
    if rate < failed_below:
        return "failed"
    if rate < good_from:
        return "warning"
    return "good"


def _suggestion(band: Optional[str]) -> Optional[str]:
    if band == "failed":
        return ElementResult.FAILED.value
    if band == "good":
        return ElementResult.WORKED.value
    return None


def analyze_video_metrics(
    impressions: Optional[int],
    video_views_3s: Optional[int],
    video_views_thruplay: Optional[int],
    ad_format=None,
) -> Dict[str, Optional[object]]:
    """Hook/hold rates plus the element results they suggest.

    Suggestions are hints for the post-mortem form; nothing enforces them.
    Non-video formats get an all-None analysis.
    """
    empty = {
        "hookRate": None,
        "holdRate": None,
        "hookRateStatus": None,
        "holdRateStatus": None,
        "suggestedHookResult": None,
        "suggestedScriptResult": None,
    }
    if ad_format is not None and AdFormat(ad_format) not in VIDEO_FORMATS:
        return empty

    hook_rate = calculate_hook_rate(video_views_3s, impressions)
    hold_rate = calculate_hold_rate(video_views_thruplay, impressions)
    hook_status = rate_band(hook_rate, HOOK_RATE_BANDS)
    hold_status = rate_band(hold_rate, HOLD_RATE_BANDS)

    return {
        "hookRate": hook_rate,
        "holdRate": hold_rate,
        "hookRateStatus": hook_status,
        "holdRateStatus": hold_status,
        "suggestedHookResult": _suggestion(hook_status),
        "suggestedScriptResult": _suggestion(hold_status),
    }
