"""Schemas for score responses."""

from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ScoreSummary(BaseModel):
    nutrition: float
    training: float
    bonuses: float
    penalties: float


class DailyScoreResponse(BaseModel):
    """Score for one day with the four-figure breakdown."""

    score: int = Field(..., ge=0, le=100, examples=[78])
    breakdown: ScoreSummary


class NutritionBreakdownOut(BaseModel):
    total: int
    macros: int
    timing: int
    structure: int


class TrainingBreakdownOut(BaseModel):
    total: int
    completion: int
    type_match: int
    intensity: int


class DataCompletenessOut(BaseModel):
    has_body_metrics: bool
    has_meal_plan: bool
    has_food_logs: bool
    meals_logged: int
    reliable: bool
    missing_data: List[str] = []


class ScoreBreakdownResponse(BaseModel):
    """Full unified score with component breakdown and the scoring inputs."""

    user_id: str
    date: date
    strategy: str
    load: str
    score: int = Field(..., ge=0, le=100)
    nutrition: NutritionBreakdownOut
    training: TrainingBreakdownOut
    bonuses: float
    penalties: float
    weights: Dict[str, float]
    data_completeness: Optional[DataCompletenessOut] = None
    persisted: bool
    context: dict = Field(..., description="Scoring context the score was computed from")


class DayScore(BaseModel):
    date: date
    score: int


class WeeklyScoreResponse(BaseModel):
    """Weekly average over persisted days with a score above zero."""

    average: int = Field(..., examples=[80])
    daily_scores: List[DayScore]
    week_start: date
    week_end: date


class LeaderboardEntry(BaseModel):
    user_id: str
    weekly_score: int
    daily_scores: List[DayScore]


class MealScoreOut(BaseModel):
    meal_type: str
    score: int
    rating: str = Field(..., examples=["Good"])
    breakdown: Dict[str, float] = Field(..., description="Percentage of target reached per macro, capped at 100")


class MealScoresResponse(BaseModel):
    scores: List[MealScoreOut]
    average: int


class RecalculateRequest(BaseModel):
    days_back: int = Field(30, ge=0, le=365, examples=[7], description="Number of past days to recompute besides today")


class RecalculatedDay(BaseModel):
    date: date
    score: int
    persisted: bool


class RecalculateResponse(BaseModel):
    message: str
    data: List[RecalculatedDay]
