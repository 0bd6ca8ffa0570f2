"""Tests for science-layer targets used when no meal plan exists."""

from types import SimpleNamespace

from services.nutrition_calculator import nutrition_calculator
from services.scoring_models import TrainingLoad, UserProfile


def default_profile(**overrides):
    values = dict(weight_kg=70, height_cm=170, age=30, sex="male")
    values.update(overrides)
    return UserProfile(**values)


def test_bmr_mifflin_st_jeor():
    assert nutrition_calculator.calculate_bmr(default_profile()) == 1618
    assert nutrition_calculator.calculate_bmr(default_profile(sex="female")) == 1452


def test_tdee_rounds_to_ten_and_grows_with_load():
    rest = nutrition_calculator.calculate_tdee(default_profile(), TrainingLoad.REST)
    quality = nutrition_calculator.calculate_tdee(default_profile(), TrainingLoad.QUALITY)
    assert rest == 2270
    assert rest % 10 == 0
    assert quality > rest


def test_day_macros_leave_remainder_to_fat():
    macros = nutrition_calculator.calculate_day_macros(default_profile(), TrainingLoad.REST, 2270)
    assert macros == {"carbs": 245, "protein": 112, "fat": 94}


def test_fat_never_below_twenty_percent():
    macros = nutrition_calculator.calculate_day_macros(default_profile(), TrainingLoad.LONG, 2000)
    assert macros["fat"] == round(2000 * 0.2 / 9)


def test_default_day_targets():
    targets = nutrition_calculator.default_day_targets(default_profile(), TrainingLoad.REST)
    assert targets.calories == 2270
    assert targets.carbs == 245
    assert targets.pre_cho is None


def test_fueling_targets_scale_with_body_weight():
    fueling = nutrition_calculator.fueling_targets(70, TrainingLoad.LONG, duration_min=150, calories=2250)
    assert fueling == {"pre_cho": 105, "during_cho_per_hour": 60, "post_cho": 70, "post_pro": 21, "fat_min": 50}


def test_during_target_depends_on_session():
    assert nutrition_calculator.fueling_targets(70, TrainingLoad.MODERATE, 75, "moderate")["during_cho_per_hour"] == 45
    assert nutrition_calculator.fueling_targets(70, TrainingLoad.QUALITY, 75, "high")["during_cho_per_hour"] == 60
    assert nutrition_calculator.fueling_targets(70, TrainingLoad.EASY, 40)["during_cho_per_hour"] == 0


def test_missing_profile_uses_defaults():
    profile = nutrition_calculator.profile_or_default(None)
    assert profile.is_default
    assert (profile.weight_kg, profile.height_cm, profile.age, profile.sex) == (70, 170, 30, "male")


def test_partial_profile_fills_gaps():
    row = SimpleNamespace(weight_kg=None, height_cm=180, age=40, sex="Female", timezone="Europe/London")
    profile = nutrition_calculator.profile_or_default(row)
    assert profile.weight_kg == 70
    assert profile.height_cm == 180
    assert profile.sex == "female"
    assert profile.timezone == "Europe/London"
    assert profile.is_default
