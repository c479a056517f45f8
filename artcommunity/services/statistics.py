"""
Per-user generation statistics

Rows inside the requested window are fetched once and aggregated in Python.
"""
from datetime import datetime
from sqlalchemy import select
from typing import Any, Dict, Optional
import json
import math
import logging
from artcommunity.auth.validator import AuthenticatedUser
from artcommunity.database.gateway import PersistenceGateway
from artcommunity.database.models import Artwork
from artcommunity.errors import AuthorizationError, ValidationError
from artcommunity.services.query_builder import days_ago

logger = logging.getLogger(__name__)

TIME_RANGES = {"day": 0, "week": 7, "month": 30, "year": 365}
DEFAULT_TIME_RANGE = "week"
# Sunday first
WEEKDAYS = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
MODEL_SLOTS = ["flux_realistic", "anime_diffusion", "dreamshaper", "realistic_vision"]
OTHER_MODEL_SLOT = len(MODEL_SLOTS)
DEFAULT_GENERATION_TIME = 5.0


def parse_user_id(value: Any) -> int:
    if value is None or str(value).strip() == "":
        raise ValidationError("User ID is required")
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValidationError("Invalid user ID")


def weekday_index(moment: datetime) -> int:
    """0 = Sunday ... 6 = Saturday"""
    return (moment.weekday() + 1) % 7


def model_slot(model: Optional[str]) -> int:
    try:
        return MODEL_SLOTS.index(model)
    except ValueError:
        return OTHER_MODEL_SLOT


def generation_time(parameters: Optional[str]) -> float:
    """``generation_time`` from the stored parameter blob, or the default"""
    if not parameters:
        return DEFAULT_GENERATION_TIME
    try:
        data = json.loads(parameters)
    except ValueError:
        return DEFAULT_GENERATION_TIME
    if not isinstance(data, dict):
        return DEFAULT_GENERATION_TIME
    value = data.get("generation_time")
    if isinstance(value, bool):
        return DEFAULT_GENERATION_TIME
    try:
        return float(value)
    except (TypeError, ValueError):
        return DEFAULT_GENERATION_TIME


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def get_statistics(
    gateway: PersistenceGateway,
    identity: AuthenticatedUser,
    user_id: Any,
    time_range: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Generation statistics for the requester
    Args:
        user_id: Requested user id; must be the requester's own
        time_range: day, week, month or year (unknown values mean week)
    Returns:
        ``{"generations": {...}, "models": {...}, "time": {...}}``
    """
    requested = parse_user_id(user_id)
    if requested != identity.id:
        raise AuthorizationError("You cannot view another user's statistics")

    days = TIME_RANGES.get(time_range or DEFAULT_TIME_RANGE, TIME_RANGES[DEFAULT_TIME_RANGE])
    since = days_ago(days, now)
    rows = gateway.query(
        select(Artwork.created_at, Artwork.model, Artwork.parameters)
        .where(Artwork.user_id == requested, Artwork.created_at >= since)
    ).rows

    by_day = [0] * 7
    time_by_day = [0.0] * 7
    model_usage = [0] * (OTHER_MODEL_SLOT + 1)
    active_dates = set()
    durations = []

    for row in rows:
        created_at = row["created_at"]
        day = weekday_index(created_at)
        duration = generation_time(row["parameters"])
        by_day[day] += 1
        time_by_day[day] += duration
        model_usage[model_slot(row["model"])] += 1
        active_dates.add(created_at.date())
        durations.append(duration)

    total = len(rows)
    most_active_day = None
    if total:
        # Ties go to the earliest weekday
        most_active_day = WEEKDAYS[max(range(7), key=lambda i: (by_day[i], -i))]

    return {
        "generations": {
            "total": total,
            "average": total / len(active_dates) if active_dates else 0,
            "mostActiveDay": most_active_day,
            "byDay": by_day,
        },
        "models": {
            "usage": model_usage,
        },
        "time": {
            "total": round_half_up(sum(durations)),
            "average": sum(durations) / total if total else 0,
            "longest": round_half_up(max(durations)) if durations else 0,
            "byDay": [round_half_up(value) for value in time_by_day],
        },
    }
