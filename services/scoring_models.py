"""Typed records flowing through the scoring engine.

These are plain dataclasses: the context builder fills them from database
rows, the engine reads them, and the API layer converts the results to
pydantic responses. Optional fields are `None` when the source data is
absent, never a sentinel zero.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Dict, List, Optional, Any


class TrainingLoad(str, Enum):
    """Ordinal classification of a day's training: rest < easy < moderate < long < quality."""

    REST = "rest"
    EASY = "easy"
    MODERATE = "moderate"
    LONG = "long"
    QUALITY = "quality"

    @property
    def rank(self) -> int:
        return _LOAD_ORDER.index(self)

    @property
    def is_hard(self) -> bool:
        return self in (TrainingLoad.LONG, TrainingLoad.QUALITY)


_LOAD_ORDER = [TrainingLoad.REST, TrainingLoad.EASY, TrainingLoad.MODERATE, TrainingLoad.LONG, TrainingLoad.QUALITY]


class MealType(str, Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"

    @classmethod
    def parse(cls, value) -> Optional["MealType"]:
        """Return the meal type for a raw column value, or None if unrecognised."""
        if value is None:
            return None
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


class ScoringStrategy(str, Enum):
    RUNNER_FOCUSED = "runner-focused"
    GENERAL = "general"
    MEAL_LEVEL = "meal-level"


@dataclass
class UserProfile:
    weight_kg: float
    height_cm: float
    age: int
    sex: str
    timezone: Optional[str] = None
    is_default: bool = False


@dataclass
class NutritionTargets:
    """Daily macro targets plus runner fueling-window sub-targets."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    pre_cho: Optional[float] = None
    during_cho_per_hour: Optional[float] = None
    post_cho: Optional[float] = None
    post_pro: Optional[float] = None
    fat_min: Optional[float] = None


@dataclass
class NutritionActuals:
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    pre_cho: Optional[float] = None
    during_cho_per_hour: Optional[float] = None
    post_cho: Optional[float] = None
    post_pro: Optional[float] = None


@dataclass
class TrainingPlan:
    duration_min: Optional[float] = None
    type: Optional[str] = None
    intensity: Optional[str] = None  # low | moderate | high
    distance_km: Optional[float] = None


@dataclass
class TrainingActual:
    duration_min: Optional[float] = None
    type: Optional[str] = None
    calories: Optional[float] = None
    distance_km: Optional[float] = None
    avg_hr: Optional[float] = None


@dataclass
class FuelingWindow:
    applicable: bool = False
    in_window: bool = True


@dataclass
class FuelingWindows:
    pre: FuelingWindow = field(default_factory=FuelingWindow)
    during: FuelingWindow = field(default_factory=FuelingWindow)
    post: FuelingWindow = field(default_factory=FuelingWindow)

    @classmethod
    def for_load(cls, load: TrainingLoad, snack_planned: bool = False) -> "FuelingWindows":
        """Default applicability: pre/post on training days, during on long days or when a snack is planned."""
        training_day = load != TrainingLoad.REST
        return cls(
            pre=FuelingWindow(applicable=training_day),
            during=FuelingWindow(applicable=load == TrainingLoad.LONG or snack_planned),
            post=FuelingWindow(applicable=training_day),
        )


@dataclass
class ScoringFlags:
    """Bonus and penalty switches for one day.

    ``window_sync_all`` is set only when food was logged and every applicable
    fueling window scored full timing marks. Window intake is not tracked, so
    on training days the flag stays off.
    """

    window_sync_all: bool = False
    streak_days: int = 0
    hydration_ok: bool = False
    big_deficit: bool = False
    is_hard_day: bool = False
    missed_post_window: bool = False


@dataclass
class NutritionContext:
    target: NutritionTargets
    actual: NutritionActuals
    windows: FuelingWindows = field(default_factory=FuelingWindows)
    meals_present: List[MealType] = field(default_factory=list)
    single_meal_over_60pct: bool = False


@dataclass
class TrainingContext:
    plan: Optional[TrainingPlan] = None
    actual: Optional[TrainingActual] = None
    type_family_match: bool = True
    intensity_ok: Optional[bool] = None
    intensity_near: Optional[bool] = None


@dataclass
class ScoringContext:
    """Everything the calculator needs for one user-day."""

    nutrition: NutritionContext
    training: TrainingContext = field(default_factory=TrainingContext)
    load: TrainingLoad = TrainingLoad.REST
    strategy: ScoringStrategy = ScoringStrategy.RUNNER_FOCUSED
    flags: Optional[ScoringFlags] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class NutritionBreakdown:
    total: int
    macros: int
    timing: int
    structure: int


@dataclass
class TrainingBreakdown:
    total: int
    completion: int
    type_match: int
    intensity: int


@dataclass
class DataCompleteness:
    has_body_metrics: bool
    has_meal_plan: bool
    has_food_logs: bool
    meals_logged: int
    reliable: bool
    missing_data: List[str] = field(default_factory=list)


@dataclass
class ScoreBreakdown:
    total: int
    nutrition: NutritionBreakdown
    training: TrainingBreakdown
    bonuses: float
    penalties: float
    weights: Dict[str, float]
    data_completeness: Optional[DataCompleteness] = None

    def summary(self) -> Dict[str, float]:
        """The four-figure breakdown used by the legacy score endpoints."""
        return {
            "nutrition": self.nutrition.total,
            "training": self.training.total,
            "bonuses": self.bonuses,
            "penalties": self.penalties,
        }


@dataclass
class MealScore:
    meal_type: MealType
    score: int
    rating: str
    breakdown: Dict[str, float]


@dataclass
class MealScoreResult:
    scores: List[MealScore]
    average: int
