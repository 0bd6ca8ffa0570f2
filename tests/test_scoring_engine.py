"""Tests for the unified score calculator."""

import itertools

import pytest

from services.nutrition_calculator import nutrition_calculator
from services.scoring_config import ScoringConfig
from services.scoring_engine import (
    calculate_modifiers,
    calculate_unified_score,
    create_scoring_context,
    macro_score,
    structure_score,
    timing_score,
)
from services.scoring_models import (
    FuelingWindow,
    FuelingWindows,
    MealType,
    NutritionActuals,
    NutritionTargets,
    ScoringFlags,
    ScoringStrategy,
    TrainingActual,
    TrainingLoad,
    TrainingPlan,
    UserProfile,
)

ALL_MEALS = [MealType.BREAKFAST, MealType.LUNCH, MealType.DINNER, MealType.SNACK]


def long_day_targets():
    return NutritionTargets(calories=2500, protein=150, carbs=350, fat=70,
                            pre_cho=105, during_cho_per_hour=60, post_cho=70, post_pro=21)


def test_full_adherence_scores_at_ceiling():
    targets = long_day_targets()
    actuals = NutritionActuals(calories=2500, protein=150, carbs=350, fat=70,
                               pre_cho=105, during_cho_per_hour=60, post_cho=70, post_pro=21)
    context = create_scoring_context(
        targets, actuals,
        plan=TrainingPlan(duration_min=120, type="run", intensity="moderate"),
        actual_training=TrainingActual(duration_min=120, type="run"),
        load=TrainingLoad.LONG,
        meals_present=ALL_MEALS,
        flags=ScoringFlags(window_sync_all=True, streak_days=3, hydration_ok=True, is_hard_day=True),
    )
    result = calculate_unified_score(context)
    assert result.nutrition.total == 100
    assert result.training.total == 100
    assert result.total >= 95
    assert result.data_completeness.reliable


def test_no_meal_plan_and_no_food_scores_low():
    profile = UserProfile(weight_kg=70, height_cm=170, age=30, sex="male", is_default=True)
    targets = nutrition_calculator.default_day_targets(profile, TrainingLoad.REST)
    context = create_scoring_context(
        targets, NutritionActuals(),
        load=TrainingLoad.REST,
        flags=ScoringFlags(hydration_ok=True),
    )
    result = calculate_unified_score(context)
    assert result.total <= 20
    assert not result.data_completeness.has_food_logs
    assert "food logs" in result.data_completeness.missing_data


def test_zero_targets_and_zero_food_do_not_score_high():
    context = create_scoring_context(
        NutritionTargets(), NutritionActuals(),
        load=TrainingLoad.REST,
        flags=ScoringFlags(window_sync_all=True, hydration_ok=True),
    )
    assert calculate_unified_score(context).total <= 20


@pytest.mark.parametrize("load, factor, strategy", itertools.product(
    list(TrainingLoad), [0, 0.5, 1, 3, 10], list(ScoringStrategy)))
def test_total_is_always_within_bounds(load, factor, strategy):
    targets = long_day_targets()
    actuals = NutritionActuals(calories=2500 * factor, protein=150 * factor, carbs=350 * factor, fat=70 * factor)
    context = create_scoring_context(
        targets, actuals,
        plan=TrainingPlan(duration_min=90, type="run"),
        actual_training=TrainingActual(duration_min=90 * factor, type="ride", avg_hr=150),
        load=load,
        strategy=strategy,
        meals_present=ALL_MEALS if factor else [],
        flags=ScoringFlags(window_sync_all=True, streak_days=30, hydration_ok=True, big_deficit=True,
                           is_hard_day=load.is_hard, missed_post_window=True),
    )
    result = calculate_unified_score(context)
    assert 0 <= result.total <= 100


def test_rest_day_without_training_gets_full_training_marks():
    context = create_scoring_context(long_day_targets(), NutritionActuals(), load=TrainingLoad.REST)
    result = calculate_unified_score(context)
    assert result.training.total == 100
    assert result.weights == {"nutrition": 1.0, "training": 0.0}


def test_quality_day_without_training_scores_poorly_on_training():
    context = create_scoring_context(
        long_day_targets(), NutritionActuals(),
        plan=TrainingPlan(duration_min=60, type="intervals", intensity="high"),
        load=TrainingLoad.QUALITY,
        type_family_match=False,
    )
    result = calculate_unified_score(context)
    assert result.training.total == 0
    assert result.weights["training"] == pytest.approx(0.4)


def test_heart_rate_enables_intensity_weight():
    plan = TrainingPlan(duration_min=60, type="run", intensity="moderate")
    context = create_scoring_context(
        long_day_targets(), NutritionActuals(),
        plan=plan, actual_training=TrainingActual(duration_min=60, type="run", avg_hr=140),
        load=TrainingLoad.MODERATE,
    )
    context.training.intensity_ok = False
    context.training.intensity_near = True
    result = calculate_unified_score(context)
    # 100 * 0.60 + 100 * 0.25 + 60 * 0.15
    assert result.training.total == 94


@pytest.mark.parametrize("actual, target, expected", [
    (100, 100, 100),
    (105, 100, 100),
    (95, 100, 100),
    (108, 100, 60),
    (85, 100, 20),
    (130, 100, 0),
    (50, 0, 0),
    (50, -10, 0),
])
def test_macro_score_bands(actual, target, expected):
    assert macro_score(actual, target) == expected


def test_during_window_scales_linearly_between_tolerances():
    targets = NutritionTargets(during_cho_per_hour=60)
    actuals = NutritionActuals(during_cho_per_hour=45)
    windows = FuelingWindows(during=FuelingWindow(applicable=True))
    # pre and post do not apply: 100 * 0.4 + 75 * 0.4 + 100 * 0.2
    assert timing_score(targets, actuals, windows) == pytest.approx(90)


def test_missing_window_intake_scores_zero_for_that_window():
    targets = NutritionTargets(pre_cho=105, post_cho=70, post_pro=21)
    windows = FuelingWindows.for_load(TrainingLoad.EASY)
    assert timing_score(targets, NutritionActuals(), windows) == pytest.approx(40)


def test_structure_expects_snack_on_training_days():
    three = [MealType.BREAKFAST, MealType.LUNCH, MealType.DINNER]
    assert structure_score(three, TrainingLoad.REST) == 100
    assert structure_score(three, TrainingLoad.EASY) == 75
    assert structure_score(ALL_MEALS, TrainingLoad.EASY, single_meal_over_60pct=True) == 70


def test_bonuses_are_capped_and_penalties_floored():
    flags = ScoringFlags(window_sync_all=True, streak_days=12, hydration_ok=True,
                         big_deficit=True, is_hard_day=True, missed_post_window=True)
    bonuses, penalties = calculate_modifiers(flags, NutritionActuals(carbs=100), NutritionTargets(carbs=400),
                                             session_minutes=120)
    assert bonuses == 10
    assert penalties == -15


def test_big_deficit_needs_a_long_session():
    flags = ScoringFlags(big_deficit=True)
    _, short = calculate_modifiers(flags, NutritionActuals(), NutritionTargets(), session_minutes=45)
    _, long_ = calculate_modifiers(flags, NutritionActuals(), NutritionTargets(), session_minutes=90)
    assert short == 0
    assert long_ == -10


def test_overconsumption_penalty_depends_on_strategy():
    targets = long_day_targets()
    actuals = NutritionActuals(calories=3000, protein=150, carbs=350, fat=70)
    runner = calculate_unified_score(create_scoring_context(
        targets, actuals, load=TrainingLoad.REST, meals_present=ALL_MEALS))
    general = calculate_unified_score(create_scoring_context(
        targets, actuals, load=TrainingLoad.REST, meals_present=ALL_MEALS, strategy=ScoringStrategy.GENERAL))
    assert runner.penalties == -10
    assert general.penalties == -5


def test_food_without_meal_types_is_penalised():
    targets = long_day_targets()
    actuals = NutritionActuals(calories=2500, protein=150, carbs=350, fat=70)
    result = calculate_unified_score(create_scoring_context(targets, actuals, load=TrainingLoad.REST))
    assert result.penalties == -10
    assert result.data_completeness.missing_data == ["structured meals"]
    assert not result.data_completeness.reliable


def test_custom_config_changes_weights():
    config = ScoringConfig.model_validate({"modifiers": {"hydration_bonus": 0}})
    flags = ScoringFlags(hydration_ok=True)
    bonuses, _ = calculate_modifiers(flags, NutritionActuals(), NutritionTargets(), config=config)
    assert bonuses == 0


def test_calculation_is_deterministic():
    context = create_scoring_context(long_day_targets(), NutritionActuals(calories=1800, carbs=250),
                                     load=TrainingLoad.EASY, meals_present=[MealType.LUNCH])
    assert calculate_unified_score(context) == calculate_unified_score(context)
