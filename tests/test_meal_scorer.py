"""Tests for meal-level scoring."""

import math

import pytest

from services.meal_scorer import macro_percentage, meal_average, rate, score_day, score_meals
from services.scoring_models import MealScore, MealType


def plan(meal_type, calories, protein, carbs, fat):
    return {
        "meal_type": meal_type,
        "recommended_calories": calories,
        "recommended_protein_grams": protein,
        "recommended_carbs_grams": carbs,
        "recommended_fat_grams": fat,
    }


def log(meal_type, calories, protein=0, carbs=0, fat=0):
    return {
        "meal_type": meal_type,
        "calories": calories,
        "protein_grams": protein,
        "carbs_grams": carbs,
        "fat_grams": fat,
    }


@pytest.mark.parametrize("actual, target, expected", [
    (300, 100, 100),
    (50, 100, 50),
    (0, 100, 0),
    (50, 0, 0),
    (50, None, 0),
    (50, -5, 0),
    (math.inf, 100, 0),
    (math.nan, 100, 0),
])
def test_macro_percentage_is_capped_and_safe(actual, target, expected):
    value = macro_percentage(actual, target)
    assert value == expected
    assert math.isfinite(value)


def test_protein_overshoot_counts_as_full_marks():
    scores = score_meals(
        [plan("breakfast", 500, 30, 60, 15)],
        [log("breakfast", 500, protein=90, carbs=60, fat=15)],
    )
    assert len(scores) == 1
    assert scores[0].breakdown["protein"] == 100
    assert scores[0].score == 100
    assert scores[0].rating == "Excellent"


def test_zero_macro_target_contributes_nothing():
    scores = score_meals(
        [plan("lunch", 700, 40, 80, 0)],
        [log("lunch", 700, protein=40, carbs=80, fat=20)],
    )
    assert scores[0].breakdown["fat"] == 0
    assert scores[0].score == 75
    assert scores[0].rating == "Good"


def test_logs_are_matched_by_meal_type():
    result = score_day(
        [plan("breakfast", 400, 20, 50, 10), plan("dinner", 600, 40, 70, 20)],
        [log("breakfast", 200, protein=10, carbs=25, fat=5), log("snack", 300, protein=5, carbs=40, fat=10),
         log(None, 900, protein=50, carbs=100, fat=30)],
    )
    by_type = {s.meal_type: s for s in result.scores}
    assert set(by_type) == {MealType.BREAKFAST, MealType.DINNER}
    assert by_type[MealType.BREAKFAST].score == 50
    assert by_type[MealType.DINNER].score == 0
    assert by_type[MealType.DINNER].rating == "Needs Improvement"
    assert result.average == 25


def test_same_meal_type_plan_rows_are_summed():
    scores = score_meals(
        [plan("snack", 100, 5, 15, 2), plan("snack", 100, 5, 15, 2)],
        [log("snack", 200, protein=10, carbs=30, fat=4)],
    )
    assert scores[0].score == 100


def test_meal_average():
    scores = [MealScore(MealType.BREAKFAST, 100, "Excellent", {}), MealScore(MealType.LUNCH, 75, "Good", {}),
              MealScore(MealType.DINNER, 0, "Needs Improvement", {})]
    assert meal_average(scores) == 58
    assert meal_average([]) == 0


@pytest.mark.parametrize("score, expected", [
    (100, "Excellent"),
    (80, "Excellent"),
    (79, "Good"),
    (65, "Good"),
    (50, "Fair"),
    (49, "Needs Improvement"),
])
def test_rating_thresholds(score, expected):
    assert rate(score) == expected
