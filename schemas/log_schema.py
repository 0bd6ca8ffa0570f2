"""Schemas for data-entry requests: profiles, meal plans, food logs, training."""

from datetime import date, datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field


class ProfileUpsertRequest(BaseModel):
    """Request payload for creating or replacing a user's body metrics."""

    display_name: Optional[str] = Field(None, examples=["Habieb"])
    age: Optional[int] = Field(None, ge=10, le=100, examples=[30], description="Age in years")
    sex: Optional[Literal["male", "female"]] = Field(None, examples=["male"])
    weight_kg: Optional[float] = Field(None, ge=30, le=300, examples=[70.0], description="Weight in kilograms")
    height_cm: Optional[float] = Field(None, ge=100, le=250, examples=[175.0], description="Height in centimeters")
    timezone: Optional[str] = Field(None, examples=["Asia/Jakarta"], description="IANA timezone for local-day boundaries")


class ProfileResponse(ProfileUpsertRequest):
    user_id: str


class MealPlanCreateRequest(BaseModel):
    """Target macros for one meal on one date."""

    user_id: str = Field(..., min_length=1)
    date: date
    meal_type: Literal["breakfast", "lunch", "dinner", "snack"]
    meal_name: Optional[str] = Field(None, examples=["Oatmeal with banana"])
    recommended_calories: float = Field(..., ge=0, examples=[550])
    recommended_protein_grams: float = Field(0, ge=0)
    recommended_carbs_grams: float = Field(0, ge=0)
    recommended_fat_grams: float = Field(0, ge=0)


class FoodLogCreateRequest(BaseModel):
    """A consumed item. ``logged_at`` defaults to now; naive times are taken as UTC."""

    user_id: str = Field(..., min_length=1)
    food_name: str = Field(..., min_length=1, examples=["Nasi goreng"])
    meal_type: Optional[Literal["breakfast", "lunch", "dinner", "snack"]] = None
    calories: float = Field(..., ge=0)
    protein_grams: Optional[float] = Field(None, ge=0)
    carbs_grams: Optional[float] = Field(None, ge=0)
    fat_grams: Optional[float] = Field(None, ge=0)
    logged_at: Optional[datetime] = None


class TrainingActivityCreateRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    date: date
    activity_type: str = Field(..., min_length=1, examples=["run"])
    duration_minutes: Optional[float] = Field(None, ge=0, examples=[60])
    distance_km: Optional[float] = Field(None, ge=0, examples=[10])
    intensity: Optional[Literal["low", "moderate", "high"]] = None
    start_time: Optional[str] = Field(None, examples=["06:00"])


class FitnessSessionCreateRequest(BaseModel):
    """A synced wearable day. Without ``sessions`` the row only counts as ambient activity."""

    user_id: str = Field(..., min_length=1)
    date: date
    source: str = Field("google_fit", examples=["google_fit", "apple_health", "strava"])
    activity_type: Optional[str] = Field(None, examples=["run"])
    active_minutes: Optional[float] = Field(None, ge=0)
    calories_burned: Optional[float] = Field(None, ge=0)
    distance_meters: Optional[float] = Field(None, ge=0)
    heart_rate_avg: Optional[float] = Field(None, gt=0, le=250)
    steps: Optional[int] = Field(None, ge=0)
    sessions: Optional[List[Any]] = Field(None, description="Raw session records from the provider")


class CreatedResponse(BaseModel):
    id: int
    message: str
