"""Science-layer nutrition targets for runners.

Provides BMR/TDEE and load-dependent macro allocation used when a date has
no meal plan, plus the body-weight-scaled fueling-window targets the scorer
checks around a session.
"""

from typing import Any, Optional

from core import config
from core.logger import get_logger
from services.scoring_models import NutritionTargets, TrainingLoad, UserProfile

logger = get_logger("services.nutrition_calculator")

ACTIVITY_FACTORS = {
    TrainingLoad.REST: 1.4,
    TrainingLoad.EASY: 1.6,
    TrainingLoad.MODERATE: 1.8,
    TrainingLoad.LONG: 2.0,
    TrainingLoad.QUALITY: 2.1,
}

# g per kg body weight
MACROS_PER_KG = {
    TrainingLoad.REST: {"carbs": 3.5, "protein": 1.6},
    TrainingLoad.EASY: {"carbs": 5.5, "protein": 1.7},
    TrainingLoad.MODERATE: {"carbs": 7.0, "protein": 1.8},
    TrainingLoad.LONG: {"carbs": 9.0, "protein": 1.9},
    TrainingLoad.QUALITY: {"carbs": 8.0, "protein": 1.9},
}

MIN_FAT_SHARE = 0.2
PRE_CHO_PER_KG = 1.5
POST_CHO_PER_KG = 1.0
POST_PRO_PER_KG = 0.3
DURING_CHO_HIGH = 60
DURING_CHO_DEFAULT = 45


class NutritionCalculator:
    """Class-based nutrition calculator used by the context builder."""

    def profile_or_default(self, row: Optional[Any]) -> UserProfile:
        """Build a `UserProfile` from a profile row, filling gaps with defaults.

        A missing profile never blocks scoring: absent metrics fall back to
        the configured defaults (70 kg, 170 cm, 30 y, male).
        """
        if row is None:
            logger.info("No profile found, using default body metrics")
            return UserProfile(
                weight_kg=config.DEFAULT_WEIGHT_KG,
                height_cm=config.DEFAULT_HEIGHT_CM,
                age=config.DEFAULT_AGE,
                sex=config.DEFAULT_SEX,
                is_default=True,
            )
        missing = not (row.weight_kg and row.height_cm and row.age)
        return UserProfile(
            weight_kg=row.weight_kg or config.DEFAULT_WEIGHT_KG,
            height_cm=row.height_cm or config.DEFAULT_HEIGHT_CM,
            age=row.age or config.DEFAULT_AGE,
            sex=(row.sex or config.DEFAULT_SEX).lower(),
            timezone=row.timezone,
            is_default=missing,
        )

    def calculate_bmr(self, profile: UserProfile) -> float:
        """Calculate BMR using the Mifflin-St Jeor equation."""
        offset = 5 if profile.sex == "male" else -161
        return round(10 * profile.weight_kg + 6.25 * profile.height_cm - 5 * profile.age + offset)

    def calculate_tdee(self, profile: UserProfile, load: TrainingLoad) -> float:
        """Estimate TDEE from BMR and the load's activity factor, to the nearest 10 kcal."""
        bmr = self.calculate_bmr(profile)
        tdee = round(bmr * ACTIVITY_FACTORS[TrainingLoad(load)] / 10) * 10
        logger.debug("TDEE for load %s: %s", load, tdee)
        return tdee

    def calculate_day_macros(self, profile: UserProfile, load: TrainingLoad, tdee: float) -> dict:
        """Allocate grams of carbs/protein per kg, the remaining energy to fat.

        Fat never drops below 20% of TDEE.
        """
        per_kg = MACROS_PER_KG[TrainingLoad(load)]
        carbs = round(profile.weight_kg * per_kg["carbs"])
        protein = round(profile.weight_kg * per_kg["protein"])
        remaining = tdee - carbs * 4 - protein * 4
        fat = round(max(tdee * MIN_FAT_SHARE, remaining) / 9)
        return {"carbs": carbs, "protein": protein, "fat": fat}

    def fueling_targets(
        self,
        weight_kg: float,
        load: TrainingLoad,
        duration_min: float = 0,
        intensity: Optional[str] = None,
        calories: float = 0,
    ) -> dict:
        """Pre/during/post fueling targets scaled from body weight."""
        if load == TrainingLoad.LONG or (duration_min or 0) > 60:
            during = DURING_CHO_HIGH if (intensity == "high" or load == TrainingLoad.LONG) else DURING_CHO_DEFAULT
        else:
            during = 0
        return {
            "pre_cho": round(weight_kg * PRE_CHO_PER_KG),
            "during_cho_per_hour": during,
            "post_cho": round(weight_kg * POST_CHO_PER_KG),
            "post_pro": round(weight_kg * POST_PRO_PER_KG),
            "fat_min": round(calories * MIN_FAT_SHARE / 9),
        }

    def default_day_targets(self, profile: UserProfile, load: TrainingLoad) -> NutritionTargets:
        """Full daily targets for a date without a meal plan."""
        tdee = self.calculate_tdee(profile, load)
        macros = self.calculate_day_macros(profile, load, tdee)
        return NutritionTargets(calories=tdee, **macros)


nutrition_calculator = NutritionCalculator()
__all__ = ["NutritionCalculator", "nutrition_calculator"]
