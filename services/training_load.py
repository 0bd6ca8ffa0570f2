"""Training load classifier.

Maps a day's planned activities (or, with no plan, the realized active
minutes from a wearable) onto the ordinal `TrainingLoad` scale.

Planned activity rules, first match wins:

- a ``rest`` activity is ``rest`` whatever else it carries
- distance >= 20 km or duration >= 120 min is ``long``
- high intensity, or an interval/tempo/speed session, is ``quality``
- duration >= 60 min is ``moderate``
- anything else is ``easy``

The day takes the highest load of its activities; an otherwise ``easy`` day
whose sessions add up to an hour or more is ``moderate``.
"""

from typing import Any, Iterable, Optional

from core.logger import get_logger
from services.scoring_models import TrainingLoad

logger = get_logger("services.training_load")

LONG_DISTANCE_KM = 20.0
LONG_DURATION_MIN = 120.0
MODERATE_DURATION_MIN = 60.0
QUALITY_KEYWORDS = ("interval", "tempo", "speed", "threshold", "fartlek")
REST_TYPES = {"rest", "rest_day", "off"}

FALLBACK_QUALITY_MINUTES = 60.0
FALLBACK_EASY_MINUTES = 30.0


def _get(activity: Any, name: str):
    if isinstance(activity, dict):
        return activity.get(name)
    return getattr(activity, name, None)


def _is_rest(activity_type: Optional[str]) -> bool:
    return (activity_type or "").strip().lower() in REST_TYPES


def classify_activity(activity: Any) -> TrainingLoad:
    """Classify one planned activity (ORM row, dataclass or dict)."""
    activity_type = (_get(activity, "activity_type") or "").strip().lower()
    if _is_rest(activity_type):
        return TrainingLoad.REST

    duration = _get(activity, "duration_minutes") or 0
    distance = _get(activity, "distance_km") or 0
    intensity = (_get(activity, "intensity") or "").strip().lower()

    if distance >= LONG_DISTANCE_KM or duration >= LONG_DURATION_MIN:
        return TrainingLoad.LONG
    if intensity == "high" or any(k in activity_type for k in QUALITY_KEYWORDS):
        return TrainingLoad.QUALITY
    if duration >= MODERATE_DURATION_MIN:
        return TrainingLoad.MODERATE
    return TrainingLoad.EASY


def classify_planned(activities: Iterable[Any]) -> TrainingLoad:
    activities = list(activities or [])
    if not activities:
        return TrainingLoad.REST

    load = max((classify_activity(a) for a in activities), key=lambda l: l.rank)
    if load == TrainingLoad.EASY:
        total = sum(_get(a, "duration_minutes") or 0 for a in activities
                    if not _is_rest(_get(a, "activity_type")))
        if total >= MODERATE_DURATION_MIN:
            load = TrainingLoad.MODERATE
    return load


def classify_from_active_minutes(active_minutes: Optional[float]) -> TrainingLoad:
    """Coarse fallback when nothing was planned.

    Intensity is not considered: any day with more than an hour of activity
    lands in ``quality``.
    """
    minutes = active_minutes or 0
    if minutes > FALLBACK_QUALITY_MINUTES:
        return TrainingLoad.QUALITY
    if minutes > FALLBACK_EASY_MINUTES:
        return TrainingLoad.EASY
    return TrainingLoad.REST


def determine_training_load(planned: Iterable[Any] = (), active_minutes: Optional[float] = None) -> TrainingLoad:
    """Use the plan when there is one, otherwise the realized active minutes."""
    planned = list(planned or [])
    if planned:
        load = classify_planned(planned)
        logger.debug("Training load from %s planned activities: %s", len(planned), load.value)
        return load
    load = classify_from_active_minutes(active_minutes)
    logger.debug("Training load from %s active minutes: %s", active_minutes, load.value)
    return load
