"""Pydantic schema package for request and response models."""

from .score_schema import (
    DailyScoreResponse,
    ScoreBreakdownResponse,
    WeeklyScoreResponse,
    LeaderboardEntry,
    MealScoresResponse,
    RecalculateRequest,
    RecalculateResponse,
)
from .log_schema import (
    ProfileUpsertRequest,
    ProfileResponse,
    MealPlanCreateRequest,
    FoodLogCreateRequest,
    TrainingActivityCreateRequest,
    FitnessSessionCreateRequest,
    CreatedResponse,
)

__all__ = [
    "DailyScoreResponse",
    "ScoreBreakdownResponse",
    "WeeklyScoreResponse",
    "LeaderboardEntry",
    "MealScoresResponse",
    "RecalculateRequest",
    "RecalculateResponse",
    "ProfileUpsertRequest",
    "ProfileResponse",
    "MealPlanCreateRequest",
    "FoodLogCreateRequest",
    "TrainingActivityCreateRequest",
    "FitnessSessionCreateRequest",
    "CreatedResponse",
]
