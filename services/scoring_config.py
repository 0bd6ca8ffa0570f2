"""Tunable constants of the unified scoring engine.

Every weight, band and modifier the calculator uses lives here as a pydantic
model so it can be overridden from a JSON file (``SCORING_CONFIG_PATH``)
without code changes. Overrides are deep-merged onto the defaults, so a file
only needs the keys it changes, e.g.::

    {"modifiers": {"bonus_cap": 8},
     "strategies": {"general": {"overconsumption_penalty": 7}}}
"""

import json
from functools import lru_cache
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from core.config import SCORING_CONFIG_PATH
from core.exceptions import ConfigurationError
from core.logger import get_logger
from services.scoring_models import ScoringStrategy, TrainingLoad

logger = get_logger("services.scoring_config")


class MacroWeights(BaseModel):
    calories: float = Field(..., ge=0)
    protein: float = Field(..., ge=0)
    carbs: float = Field(..., ge=0)
    fat: float = Field(..., ge=0)


class NutritionWeights(BaseModel):
    macros: float = Field(..., ge=0)
    timing: float = Field(..., ge=0)
    structure: float = Field(..., ge=0)


class StrategyConfig(BaseModel):
    macro_weights: MacroWeights
    nutrition_weights: NutritionWeights
    overconsumption_threshold: float = Field(..., gt=1.0)
    overconsumption_penalty: float = Field(..., ge=0)


class LoadWeight(BaseModel):
    nutrition: float = Field(..., ge=0)
    training: float = Field(..., ge=0)


class ErrorBand(BaseModel):
    """Score awarded when relative error is at most ``max_error``."""

    max_error: float = Field(..., ge=0)
    score: float = Field(..., ge=0, le=100)


class TimingConfig(BaseModel):
    pre_weight: float = Field(0.4, ge=0)
    during_weight: float = Field(0.4, ge=0)
    post_weight: float = Field(0.2, ge=0)
    required_fraction: float = Field(0.8, ge=0, le=1)
    during_full_tolerance: float = Field(10, ge=0)
    during_zero_at: float = Field(30, gt=0)


class StructureConfig(BaseModel):
    single_meal_cap: float = Field(70, ge=0, le=100)


class TrainingConfig(BaseModel):
    completion_weight: float = Field(0.60, ge=0)
    type_match_weight: float = Field(0.25, ge=0)
    intensity_weight: float = Field(0.15, ge=0)
    intensity_near_score: float = Field(60, ge=0, le=100)
    completion_bands: List[ErrorBand] = Field(default_factory=lambda: [
        ErrorBand(max_error=0.10, score=100),
        ErrorBand(max_error=0.25, score=60),
    ])


class ModifierConfig(BaseModel):
    window_sync_bonus: float = Field(5, ge=0)
    streak_bonus_cap: float = Field(5, ge=0)
    hydration_bonus: float = Field(2, ge=0)
    bonus_cap: float = Field(10, ge=0)
    hard_day_underfuel_penalty: float = Field(5, ge=0)
    hard_day_carb_fraction: float = Field(0.8, ge=0, le=1)
    big_deficit_penalty: float = Field(10, ge=0)
    big_deficit_min_duration: float = Field(90, ge=0)
    big_deficit_fraction: float = Field(0.7, ge=0, le=1)
    missed_post_penalty: float = Field(3, ge=0)
    penalty_floor: float = Field(15, ge=0)


class IncompleteDataConfig(BaseModel):
    no_food_logs_penalty: float = Field(30, ge=0)
    unstructured_meals_penalty: float = Field(10, ge=0)


class MealRatingConfig(BaseModel):
    excellent: float = 80
    good: float = 65
    fair: float = 50


def _default_strategies() -> Dict[ScoringStrategy, StrategyConfig]:
    return {
        ScoringStrategy.RUNNER_FOCUSED: StrategyConfig(
            macro_weights=MacroWeights(calories=0.3, carbs=0.4, protein=0.2, fat=0.1),
            nutrition_weights=NutritionWeights(macros=0.50, timing=0.35, structure=0.15),
            overconsumption_threshold=1.15,
            overconsumption_penalty=10,
        ),
        ScoringStrategy.GENERAL: StrategyConfig(
            macro_weights=MacroWeights(calories=0.4, protein=0.3, carbs=0.2, fat=0.1),
            nutrition_weights=NutritionWeights(macros=0.60, timing=0.25, structure=0.15),
            overconsumption_threshold=1.1,
            overconsumption_penalty=5,
        ),
        ScoringStrategy.MEAL_LEVEL: StrategyConfig(
            macro_weights=MacroWeights(calories=0.4, protein=0.2, carbs=0.2, fat=0.2),
            nutrition_weights=NutritionWeights(macros=0.60, timing=0.25, structure=0.15),
            overconsumption_threshold=1.1,
            overconsumption_penalty=3,
        ),
    }


def _default_load_weights() -> Dict[TrainingLoad, LoadWeight]:
    return {
        TrainingLoad.REST: LoadWeight(nutrition=1.0, training=0.0),
        TrainingLoad.EASY: LoadWeight(nutrition=0.7, training=0.3),
        TrainingLoad.MODERATE: LoadWeight(nutrition=0.6, training=0.4),
        TrainingLoad.LONG: LoadWeight(nutrition=0.55, training=0.45),
        TrainingLoad.QUALITY: LoadWeight(nutrition=0.6, training=0.4),
    }


def _default_macro_bands() -> List[ErrorBand]:
    return [
        ErrorBand(max_error=0.05, score=100),
        ErrorBand(max_error=0.10, score=60),
        ErrorBand(max_error=0.20, score=20),
    ]


class ScoringConfig(BaseModel):
    strategies: Dict[ScoringStrategy, StrategyConfig] = Field(default_factory=_default_strategies)
    load_weights: Dict[TrainingLoad, LoadWeight] = Field(default_factory=_default_load_weights)
    macro_bands: List[ErrorBand] = Field(default_factory=_default_macro_bands)
    timing: TimingConfig = Field(default_factory=TimingConfig)
    structure: StructureConfig = Field(default_factory=StructureConfig)
    training: TrainingConfig = Field(default_factory=TrainingConfig)
    modifiers: ModifierConfig = Field(default_factory=ModifierConfig)
    incomplete_data: IncompleteDataConfig = Field(default_factory=IncompleteDataConfig)
    meal_rating: MealRatingConfig = Field(default_factory=MealRatingConfig)

    def strategy(self, strategy: ScoringStrategy) -> StrategyConfig:
        try:
            return self.strategies[ScoringStrategy(strategy)]
        except (KeyError, ValueError):
            raise ConfigurationError(f"No scoring configuration for strategy '{strategy}'", config_key="strategies")

    def load_weight(self, load: TrainingLoad) -> LoadWeight:
        try:
            return self.load_weights[TrainingLoad(load)]
        except (KeyError, ValueError):
            raise ConfigurationError(f"No load weights for training load '{load}'", config_key="load_weights")


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_scoring_config(path: Optional[str] = None) -> ScoringConfig:
    """Build the scoring configuration, applying a JSON override file if given.

    Raises:
        ConfigurationError: If the file cannot be read, is not a JSON object,
            or produces invalid weights.
    """
    defaults = ScoringConfig()
    if not path:
        return defaults

    try:
        with open(path, "r", encoding="utf-8") as fh:
            overrides = json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Cannot read scoring config '{path}': {exc}", config_key="SCORING_CONFIG_PATH")

    if not isinstance(overrides, dict):
        raise ConfigurationError("Scoring config must be a JSON object", config_key="SCORING_CONFIG_PATH")

    merged = _deep_merge(defaults.model_dump(mode="json"), overrides)
    try:
        config = ScoringConfig.model_validate(merged)
    except PydanticValidationError as exc:
        raise ConfigurationError(f"Invalid scoring config '{path}': {exc.error_count()} error(s)",
                                 config_key="SCORING_CONFIG_PATH")
    logger.info("Loaded scoring config overrides from %s", path)
    return config


@lru_cache(maxsize=1)
def get_scoring_config() -> ScoringConfig:
    """Process-wide configuration from ``SCORING_CONFIG_PATH`` (or defaults)."""
    return load_scoring_config(SCORING_CONFIG_PATH)
