"""Scoring context builder.

Fetches everything one user-day needs from the database and turns the rows
into a `ScoringContext`. Building has no side effects; persisting the score
is the score service's job.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from core.exceptions import ConfigurationError
from core.logger import get_logger
from core.timeutils import local_day_bounds, to_utc_naive
from database.models import (
    DailyMealPlan,
    FitnessSession,
    FoodLog,
    NutritionScore,
    Profile,
    TrainingActivity,
)
from services.nutrition_calculator import nutrition_calculator
from services.scoring_config import ScoringConfig, get_scoring_config
from services.scoring_engine import timing_score
from services.scoring_models import (
    FuelingWindows,
    MealType,
    NutritionActuals,
    NutritionContext,
    NutritionTargets,
    ScoringContext,
    ScoringFlags,
    ScoringStrategy,
    TrainingActual,
    TrainingContext,
    TrainingLoad,
    TrainingPlan,
    UserProfile,
)
from services.training_load import REST_TYPES, determine_training_load

logger = get_logger("services.context_builder")

STREAK_LOOKBACK_DAYS = 30
SINGLE_MEAL_SHARE = 0.6

TYPE_FAMILIES = {
    "run": ("run", "jog", "trail", "treadmill", "tempo", "interval", "fartlek", "speed", "threshold"),
    "ride": ("ride", "cycl", "bike", "spin"),
    "swim": ("swim",),
    "walk": ("walk", "hike"),
    "strength": ("strength", "gym", "weight", "crossfit"),
}

INTENSITY_ORDER = ("low", "moderate", "high")

# fraction of max heart rate per planned intensity
HR_ZONES = {
    "low": (0.50, 0.70),
    "moderate": (0.70, 0.80),
    "high": (0.80, 0.95),
}
HR_NEAR_MARGIN = 0.05


@dataclass
class BuiltContext:
    """A scoring context plus the raw totals the ledger row snapshots."""

    context: ScoringContext
    profile: UserProfile
    targets: NutritionTargets
    actuals: NutritionActuals
    food_log_count: int = 0
    has_meal_plan: bool = False
    meals_present: List[MealType] = field(default_factory=list)


def type_family(activity_type: Optional[str]) -> Optional[str]:
    if not activity_type:
        return None
    value = activity_type.strip().lower()
    for family, keywords in TYPE_FAMILIES.items():
        if any(k in value for k in keywords):
            return family
    return value


def type_family_match(plan: Optional[TrainingPlan], actual: Optional[TrainingActual]) -> bool:
    """Planned and realized sessions belong to the same sport.

    No plan always matches; a plan with nothing realized never does. An
    actual session without a type is given the benefit of the doubt.
    """
    if plan is None:
        return True
    if actual is None:
        return False
    planned, realized = type_family(plan.type), type_family(actual.type)
    if planned is None or realized is None:
        return True
    return planned == realized


def intensity_flags(plan: Optional[TrainingPlan], actual: Optional[TrainingActual], age: float):
    """Return ``(intensity_ok, intensity_near)`` from average heart rate.

    Both are None without a planned intensity or heart-rate data.
    """
    if plan is None or actual is None or actual.avg_hr is None or plan.intensity not in HR_ZONES:
        return None, None
    max_hr = 220 - age
    if max_hr <= 0:
        return None, None
    low, high = HR_ZONES[plan.intensity]
    fraction = actual.avg_hr / max_hr
    ok = low <= fraction <= high
    near = not ok and (low - HR_NEAR_MARGIN) <= fraction <= (high + HR_NEAR_MARGIN)
    return ok, near


class ScoringContextBuilder:
    """Assemble `ScoringContext` objects from a database session."""

    def __init__(self, session: Session, config: Optional[ScoringConfig] = None):
        self.session = session
        self.config = config or get_scoring_config()

    def build(self, user_id: str, day: date,
              strategy: ScoringStrategy = ScoringStrategy.RUNNER_FOCUSED) -> BuiltContext:
        profile = nutrition_calculator.profile_or_default(
            self.session.query(Profile).filter(Profile.user_id == user_id).one_or_none()
        )
        plans = self.meal_plans(user_id, day)
        logs = self.food_logs(user_id, day, profile.timezone)
        activities = self._planned_activities(user_id, day)
        sessions = self._fitness_sessions(user_id, day)

        active_minutes = sum(s.active_minutes or 0 for s in sessions)
        load = determine_training_load(activities, active_minutes)

        plan = self._training_plan(activities)
        actual_training = self._training_actual(sessions)

        targets = self._targets(plans, profile, load, plan)
        actuals = NutritionActuals(
            calories=sum(log.calories or 0 for log in logs),
            protein=sum(log.protein_grams or 0 for log in logs),
            carbs=sum(log.carbs_grams or 0 for log in logs),
            fat=sum(log.fat_grams or 0 for log in logs),
        )

        meal_calories: Dict[MealType, float] = defaultdict(float)
        for log in logs:
            meal_type = MealType.parse(log.meal_type)
            if meal_type is not None:
                meal_calories[meal_type] += log.calories or 0
        meals_present = [m for m in MealType if m in meal_calories]
        single_meal_over = bool(actuals.calories > 0 and meal_calories
                                and max(meal_calories.values()) > actuals.calories * SINGLE_MEAL_SHARE)

        snack_planned = any(MealType.parse(p.meal_type) == MealType.SNACK for p in plans)
        windows = FuelingWindows.for_load(load, snack_planned=snack_planned)

        applicable = [w for w in (windows.pre, windows.during, windows.post) if w.applicable]
        # the sync bonus needs every applicable window to have scored, not just been reached
        windows_met = timing_score(targets, actuals, windows, self.config) >= 100
        big_deficit_fraction = self.config.modifiers.big_deficit_fraction
        flags = ScoringFlags(
            window_sync_all=bool(logs) and windows_met and all(w.in_window for w in applicable),
            streak_days=self._streak_days(user_id, day),
            hydration_ok=True,
            big_deficit=targets.calories > 0 and actuals.calories < targets.calories * big_deficit_fraction,
            is_hard_day=load.is_hard,
            missed_post_window=False,
        )

        intensity_ok, intensity_near = intensity_flags(plan, actual_training, profile.age)
        context = ScoringContext(
            nutrition=NutritionContext(
                target=targets,
                actual=actuals,
                windows=windows,
                meals_present=meals_present,
                single_meal_over_60pct=single_meal_over,
            ),
            training=TrainingContext(
                plan=plan,
                actual=actual_training,
                type_family_match=type_family_match(plan, actual_training),
                intensity_ok=intensity_ok,
                intensity_near=intensity_near,
            ),
            load=load,
            strategy=ScoringStrategy(strategy),
            flags=flags,
        )
        logger.debug("Built context for %s on %s: load=%s plans=%s logs=%s sessions=%s",
                     user_id, day, load.value, len(plans), len(logs), len(sessions))
        return BuiltContext(
            context=context,
            profile=profile,
            targets=targets,
            actuals=actuals,
            food_log_count=len(logs),
            has_meal_plan=bool(plans),
            meals_present=meals_present,
        )

    def meal_plans(self, user_id: str, day: date) -> List[DailyMealPlan]:
        return (
            self.session.query(DailyMealPlan)
            .filter(DailyMealPlan.user_id == user_id, DailyMealPlan.date == day)
            .all()
        )

    def food_logs(self, user_id: str, day: date, tz_name: Optional[str]) -> List[FoodLog]:
        try:
            start, end = local_day_bounds(day, tz_name)
        except ConfigurationError:
            logger.warning("Profile timezone %r for %s is invalid, using region timezone", tz_name, user_id)
            start, end = local_day_bounds(day)
        return (
            self.session.query(FoodLog)
            .filter(
                FoodLog.user_id == user_id,
                FoodLog.logged_at >= to_utc_naive(start),
                FoodLog.logged_at < to_utc_naive(end),
            )
            .order_by(FoodLog.logged_at)
            .all()
        )

    def _planned_activities(self, user_id: str, day: date) -> List[TrainingActivity]:
        return (
            self.session.query(TrainingActivity)
            .filter(TrainingActivity.user_id == user_id, TrainingActivity.date == day)
            .order_by(TrainingActivity.id)
            .all()
        )

    def _fitness_sessions(self, user_id: str, day: date) -> List[FitnessSession]:
        # rows without session data are ambient step counts, not training
        return (
            self.session.query(FitnessSession)
            .filter(
                FitnessSession.user_id == user_id,
                FitnessSession.date == day,
                FitnessSession.session_data.isnot(None),
                FitnessSession.session_data != "",
            )
            .all()
        )

    def _training_plan(self, activities: List[TrainingActivity]) -> Optional[TrainingPlan]:
        training = [a for a in activities if (a.activity_type or "").strip().lower() not in REST_TYPES]
        duration = sum(a.duration_minutes or 0 for a in training)
        if duration <= 0:
            return None
        intensities = [(a.intensity or "").lower() for a in training if (a.intensity or "").lower() in INTENSITY_ORDER]
        return TrainingPlan(
            duration_min=duration,
            type=training[0].activity_type,
            intensity=max(intensities, key=INTENSITY_ORDER.index) if intensities else None,
            distance_km=sum(a.distance_km or 0 for a in training) or None,
        )

    def _training_actual(self, sessions: List[FitnessSession]) -> Optional[TrainingActual]:
        if not sessions:
            return None
        heart_rates = [s.heart_rate_avg for s in sessions if s.heart_rate_avg]
        distance_m = sum(s.distance_meters or 0 for s in sessions)
        return TrainingActual(
            duration_min=sum(s.active_minutes or 0 for s in sessions),
            type=next((s.activity_type for s in sessions if s.activity_type), None),
            calories=sum(s.calories_burned or 0 for s in sessions),
            distance_km=round(distance_m / 1000, 2) if distance_m else None,
            avg_hr=round(sum(heart_rates) / len(heart_rates)) if heart_rates else None,
        )

    def _targets(self, plans: List[DailyMealPlan], profile: UserProfile, load: TrainingLoad,
                 plan: Optional[TrainingPlan]) -> NutritionTargets:
        if plans:
            targets = NutritionTargets(
                calories=sum(p.recommended_calories or 0 for p in plans),
                protein=sum(p.recommended_protein_grams or 0 for p in plans),
                carbs=sum(p.recommended_carbs_grams or 0 for p in plans),
                fat=sum(p.recommended_fat_grams or 0 for p in plans),
            )
        else:
            targets = nutrition_calculator.default_day_targets(profile, load)

        fueling = nutrition_calculator.fueling_targets(
            profile.weight_kg,
            load,
            duration_min=plan.duration_min if plan else 0,
            intensity=plan.intensity if plan else None,
            calories=targets.calories,
        )
        for key, value in fueling.items():
            setattr(targets, key, value)
        return targets

    def _streak_days(self, user_id: str, day: date) -> int:
        """Consecutive days before ``day`` with logged food and a persisted score above zero."""
        rows = (
            self.session.query(NutritionScore.date, NutritionScore.daily_score)
            .filter(
                NutritionScore.user_id == user_id,
                NutritionScore.meals_logged > 0,
                NutritionScore.date < day,
                NutritionScore.date >= day - timedelta(days=STREAK_LOOKBACK_DAYS),
            )
            .all()
        )
        scored = {d for d, score in rows if (score or 0) > 0}
        streak = 0
        cursor = day - timedelta(days=1)
        while cursor in scored:
            streak += 1
            cursor -= timedelta(days=1)
        return streak
