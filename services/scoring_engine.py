"""Unified daily score calculator.

Pure functions: a `ScoringContext` goes in, a `ScoreBreakdown` comes out,
no I/O. All constants come from `ScoringConfig`.

The total is::

    nutrition * w_nutrition(load) + training * w_training(load)
        + bonuses + penalties

rounded and clamped to [0, 100], where

- nutrition blends macro adherence, fueling-window timing and meal structure
  by the strategy's weights,
- training blends completion, type match and (with heart-rate data)
  intensity,
- bonuses are capped and penalties (negative) are floored, except the
  over-consumption and incomplete-data penalties which always apply.
"""

import math
from typing import List, Optional

from core.logger import get_logger
from services.scoring_config import ErrorBand, ScoringConfig, get_scoring_config
from services.scoring_models import (
    DataCompleteness,
    FuelingWindows,
    MealType,
    NutritionActuals,
    NutritionBreakdown,
    NutritionContext,
    NutritionTargets,
    ScoreBreakdown,
    ScoringContext,
    ScoringFlags,
    ScoringStrategy,
    TrainingActual,
    TrainingBreakdown,
    TrainingContext,
    TrainingLoad,
    TrainingPlan,
)

logger = get_logger("services.scoring_engine")

REQUIRED_MEALS = (MealType.BREAKFAST, MealType.LUNCH, MealType.DINNER)


def _band_score(error: float, bands: List[ErrorBand]) -> float:
    for band in sorted(bands, key=lambda b: b.max_error):
        if error <= band.max_error:
            return band.score
    return 0.0


def macro_score(actual: float, target: float, config: Optional[ScoringConfig] = None) -> float:
    """Piecewise adherence score for one macro.

    A non-positive target means the day has no usable plan, which scores 0
    rather than rewarding missing data.
    """
    config = config or get_scoring_config()
    if not target or target <= 0:
        return 0.0
    error = abs((actual or 0) - target) / target
    if not math.isfinite(error):
        return 0.0
    return _band_score(error, config.macro_bands)


def timing_score(target: NutritionTargets, actual: NutritionActuals, windows: FuelingWindows,
                 config: Optional[ScoringConfig] = None) -> float:
    """Fueling-window score; windows that do not apply score full marks."""
    cfg = (config or get_scoring_config()).timing

    pre = 100.0
    if windows.pre.applicable:
        need = (target.pre_cho or 0) * cfg.required_fraction
        got = actual.pre_cho or 0
        pre = 100.0 if (windows.pre.in_window and need > 0 and got >= need) else 0.0

    during = 100.0
    if windows.during.applicable:
        need = target.during_cho_per_hour or 0
        got = actual.during_cho_per_hour or 0
        if need > 0:
            delta = abs(got - need)
            if delta >= cfg.during_zero_at:
                during = 0.0
            elif delta <= cfg.during_full_tolerance:
                during = 100.0
            else:
                span = cfg.during_zero_at - cfg.during_full_tolerance
                during = float(round(100 * (1 - (delta - cfg.during_full_tolerance) / span)))

    post = 100.0
    if windows.post.applicable:
        need_cho = (target.post_cho or 0) * cfg.required_fraction
        need_pro = (target.post_pro or 0) * cfg.required_fraction
        got_cho = actual.post_cho or 0
        got_pro = actual.post_pro or 0
        ok = (windows.post.in_window and need_cho + need_pro > 0
              and got_cho >= need_cho and got_pro >= need_pro)
        post = 100.0 if ok else 0.0

    return pre * cfg.pre_weight + during * cfg.during_weight + post * cfg.post_weight


def structure_score(meals_present: List[MealType], load: TrainingLoad, single_meal_over_60pct: bool = False,
                    config: Optional[ScoringConfig] = None) -> float:
    """Share of the day's expected meals that were eaten.

    Training days expect a snack on top of the three main meals.
    """
    cfg = (config or get_scoring_config()).structure
    required = list(REQUIRED_MEALS)
    if load != TrainingLoad.REST:
        required.append(MealType.SNACK)
    present = set(meals_present or [])
    score = 100.0 * sum(1 for m in required if m in present) / len(required)
    if single_meal_over_60pct:
        score = min(score, cfg.single_meal_cap)
    return score


def training_completion(plan: Optional[TrainingPlan], actual: Optional[TrainingActual],
                        config: Optional[ScoringConfig] = None) -> float:
    cfg = (config or get_scoring_config()).training
    planned = (plan.duration_min if plan else 0) or 0
    done = (actual.duration_min if actual else 0) or 0
    if planned <= 0:
        return 100.0
    error = abs(done / planned - 1)
    return _band_score(error, cfg.completion_bands)


def calculate_modifiers(flags: Optional[ScoringFlags], actual: NutritionActuals, target: NutritionTargets,
                        session_minutes: float = 0, config: Optional[ScoringConfig] = None):
    """Return ``(bonuses, penalties)``; penalties are zero or negative."""
    cfg = (config or get_scoring_config()).modifiers
    if flags is None:
        return 0.0, 0.0

    bonuses = 0.0
    if flags.window_sync_all:
        bonuses += cfg.window_sync_bonus
    if flags.streak_days and flags.streak_days > 0:
        bonuses += min(cfg.streak_bonus_cap, flags.streak_days)
    if flags.hydration_ok:
        bonuses += cfg.hydration_bonus
    bonuses = min(cfg.bonus_cap, bonuses)

    penalties = 0.0
    if flags.is_hard_day and (actual.carbs or 0) < (target.carbs or 0) * cfg.hard_day_carb_fraction:
        penalties -= cfg.hard_day_underfuel_penalty
    if flags.big_deficit and session_minutes >= cfg.big_deficit_min_duration:
        penalties -= cfg.big_deficit_penalty
    if flags.missed_post_window:
        penalties -= cfg.missed_post_penalty
    penalties = max(-cfg.penalty_floor, penalties)

    return bonuses, penalties


def calculate_unified_score(context: ScoringContext, config: Optional[ScoringConfig] = None) -> ScoreBreakdown:
    """Score one user-day. Deterministic and side-effect free."""
    config = config or get_scoring_config()
    nutrition = context.nutrition
    training = context.training
    strategy = config.strategy(context.strategy)
    weights = config.load_weight(context.load)

    target, actual = nutrition.target, nutrition.actual
    mw = strategy.macro_weights
    macros = (
        macro_score(actual.calories, target.calories, config) * mw.calories
        + macro_score(actual.protein, target.protein, config) * mw.protein
        + macro_score(actual.carbs, target.carbs, config) * mw.carbs
        + macro_score(actual.fat, target.fat, config) * mw.fat
    )
    timing = timing_score(target, actual, nutrition.windows, config)
    structure = structure_score(nutrition.meals_present, context.load, nutrition.single_meal_over_60pct, config)

    nw = strategy.nutrition_weights
    nutrition_total = macros * nw.macros + timing * nw.timing + structure * nw.structure

    tcfg = config.training
    completion = training_completion(training.plan, training.actual, config)
    type_match = 100.0 if training.type_family_match else 0.0
    if training.intensity_ok:
        intensity = 100.0
    elif training.intensity_near:
        intensity = tcfg.intensity_near_score
    else:
        intensity = 0.0
    has_hr = training.actual is not None and training.actual.avg_hr is not None
    intensity_weight = tcfg.intensity_weight if has_hr else 0.0
    completion_weight = tcfg.completion_weight + (tcfg.intensity_weight - intensity_weight)
    training_total = (completion * completion_weight + type_match * tcfg.type_match_weight
                      + intensity * intensity_weight)

    session_minutes = (training.actual.duration_min if training.actual else 0) or 0
    bonuses, penalties = calculate_modifiers(context.flags, actual, target, session_minutes, config)

    if (actual.calories or 0) > (target.calories or 0) * strategy.overconsumption_threshold:
        penalties -= strategy.overconsumption_penalty

    meals_logged = len(nutrition.meals_present or [])
    has_food_logs = (actual.calories or 0) > 0 or meals_logged > 0
    missing: List[str] = []
    if not has_food_logs:
        penalties -= config.incomplete_data.no_food_logs_penalty
        missing.append("food logs")
    elif meals_logged == 0:
        penalties -= config.incomplete_data.unstructured_meals_penalty
        missing.append("structured meals")

    base = nutrition_total * weights.nutrition + training_total * weights.training
    total = int(max(0, min(100, round(base + bonuses + penalties))))
    logger.debug("Score %s (load=%s nutrition=%.1f training=%.1f bonuses=%s penalties=%s)",
                 total, TrainingLoad(context.load).value, nutrition_total, training_total, bonuses, penalties)

    return ScoreBreakdown(
        total=total,
        nutrition=NutritionBreakdown(
            total=round(nutrition_total),
            macros=round(macros),
            timing=round(timing),
            structure=round(structure),
        ),
        training=TrainingBreakdown(
            total=round(training_total),
            completion=round(completion),
            type_match=round(type_match),
            intensity=round(intensity),
        ),
        bonuses=bonuses,
        penalties=penalties,
        weights={"nutrition": weights.nutrition, "training": weights.training},
        data_completeness=DataCompleteness(
            has_body_metrics=True,
            has_meal_plan=(target.calories or 0) > 0,
            has_food_logs=has_food_logs,
            meals_logged=meals_logged,
            reliable=has_food_logs and meals_logged > 0,
            missing_data=missing,
        ),
    )


def create_scoring_context(
    targets: NutritionTargets,
    actuals: NutritionActuals,
    plan: Optional[TrainingPlan] = None,
    actual_training: Optional[TrainingActual] = None,
    load: TrainingLoad = TrainingLoad.REST,
    strategy: ScoringStrategy = ScoringStrategy.RUNNER_FOCUSED,
    meals_present: Optional[List[MealType]] = None,
    windows: Optional[FuelingWindows] = None,
    flags: Optional[ScoringFlags] = None,
    type_family_match: bool = True,
) -> ScoringContext:
    """Assemble a context with default windows for ``load``."""
    return ScoringContext(
        nutrition=NutritionContext(
            target=targets,
            actual=actuals,
            windows=windows or FuelingWindows.for_load(load),
            meals_present=list(meals_present or []),
        ),
        training=TrainingContext(plan=plan, actual=actual_training, type_family_match=type_family_match),
        load=TrainingLoad(load),
        strategy=ScoringStrategy(strategy),
        flags=flags,
    )
