"""Meal-level scorer.

Compares each planned meal's macro targets with the food logged under the
same meal type. Scores are recomputed on every request and never persisted;
they feed the meal cards, not the unified daily total.
"""

import math
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional

from core.logger import get_logger
from services.scoring_config import ScoringConfig, get_scoring_config
from services.scoring_models import MealScore, MealScoreResult, MealType

logger = get_logger("services.meal_scorer")

# (plan column, log column) per macro
MACRO_COLUMNS = {
    "calories": ("recommended_calories", "calories"),
    "protein": ("recommended_protein_grams", "protein_grams"),
    "carbs": ("recommended_carbs_grams", "carbs_grams"),
    "fat": ("recommended_fat_grams", "fat_grams"),
}


def _field(row: Any, name: str):
    return row.get(name) if isinstance(row, dict) else getattr(row, name, None)


def _value(row: Any, name: str) -> float:
    return float(_field(row, name) or 0)


def macro_percentage(actual: Optional[float], target: Optional[float]) -> float:
    """Percentage of ``target`` reached, capped at 100.

    A missing or non-positive target, or a ratio that is not finite, yields 0.
    """
    if target is None or target <= 0:
        return 0.0
    pct = (actual or 0) / target * 100
    if not math.isfinite(pct):
        return 0.0
    return min(100.0, max(0.0, pct))


def rate(score: float, config: Optional[ScoringConfig] = None) -> str:
    thresholds = (config or get_scoring_config()).meal_rating
    if score >= thresholds.excellent:
        return "Excellent"
    if score >= thresholds.good:
        return "Good"
    if score >= thresholds.fair:
        return "Fair"
    return "Needs Improvement"


def score_meals(plan_rows: Iterable[Any], log_rows: Iterable[Any],
                config: Optional[ScoringConfig] = None) -> List[MealScore]:
    """One `MealScore` per meal type in the plan.

    Logged food is matched on meal type; food with an unknown or missing
    meal type counts towards no meal. Several plan rows of the same type
    are summed into one target.
    """
    config = config or get_scoring_config()

    targets: Dict[MealType, Dict[str, float]] = {}
    for row in plan_rows:
        meal_type = MealType.parse(_field(row, "meal_type"))
        if meal_type is None:
            continue
        bucket = targets.setdefault(meal_type, defaultdict(float))
        for macro, (plan_col, _) in MACRO_COLUMNS.items():
            bucket[macro] += _value(row, plan_col)

    eaten: Dict[MealType, Dict[str, float]] = defaultdict(lambda: defaultdict(float))
    for row in log_rows:
        meal_type = MealType.parse(_field(row, "meal_type"))
        if meal_type is None:
            continue
        for macro, (_, log_col) in MACRO_COLUMNS.items():
            eaten[meal_type][macro] += _value(row, log_col)

    scores = []
    for meal_type in MealType:
        if meal_type not in targets:
            continue
        breakdown = {
            macro: round(macro_percentage(eaten[meal_type][macro], targets[meal_type][macro]), 1)
            for macro in MACRO_COLUMNS
        }
        score = round(sum(breakdown.values()) / len(breakdown))
        scores.append(MealScore(meal_type=meal_type, score=score, rating=rate(score, config), breakdown=breakdown))
    return scores


def meal_average(scores: List[MealScore]) -> int:
    if not scores:
        return 0
    return round(sum(s.score for s in scores) / len(scores))


def score_day(plan_rows: Iterable[Any], log_rows: Iterable[Any],
              config: Optional[ScoringConfig] = None) -> MealScoreResult:
    scores = score_meals(plan_rows, log_rows, config)
    result = MealScoreResult(scores=scores, average=meal_average(scores))
    logger.debug("Scored %s meals, average %s", len(scores), result.average)
    return result
