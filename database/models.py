"""SQLAlchemy ORM models for the scoring service.

Tables mirror the rows the scoring engine reads: user profiles, per-meal
plan targets, food logs, planned training activities, wearable fitness
sessions, and the `nutrition_scores` ledger that doubles as the score cache.
Models stay behavior-free; business logic lives in `services`.

Timestamps are stored as naive UTC.
"""

from sqlalchemy import (
    Column, Integer, String, Float, Date, DateTime, Text, UniqueConstraint, Index
)
from sqlalchemy.orm import declarative_base
from datetime import datetime

Base = declarative_base()


class Profile(Base):
    """Body metrics used to derive science-layer targets."""

    __tablename__ = "profiles"
    user_id = Column(String, primary_key=True)
    display_name = Column(String, nullable=True)
    age = Column(Integer, nullable=True)
    sex = Column(String, nullable=True)
    weight_kg = Column(Float, nullable=True)
    height_cm = Column(Float, nullable=True)
    timezone = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class DailyMealPlan(Base):
    """Target macros for one meal type on one date."""

    __tablename__ = "daily_meal_plans"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    meal_type = Column(String, nullable=False)
    meal_name = Column(String, nullable=True)
    recommended_calories = Column(Float, nullable=False, default=0)
    recommended_protein_grams = Column(Float, nullable=False, default=0)
    recommended_carbs_grams = Column(Float, nullable=False, default=0)
    recommended_fat_grams = Column(Float, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)


class FoodLog(Base):
    """A consumed item with its macro content."""

    __tablename__ = "food_logs"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    food_name = Column(String, nullable=False)
    meal_type = Column(String, nullable=True)
    calories = Column(Float, nullable=False, default=0)
    protein_grams = Column(Float, nullable=True)
    carbs_grams = Column(Float, nullable=True)
    fat_grams = Column(Float, nullable=True)
    logged_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)


class TrainingActivity(Base):
    """A scheduled activity from the training plan."""

    __tablename__ = "training_activities"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    activity_type = Column(String, nullable=False)
    duration_minutes = Column(Float, nullable=True)
    distance_km = Column(Float, nullable=True)
    intensity = Column(String, nullable=True)  # low | moderate | high
    start_time = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class FitnessSession(Base):
    """A day of wearable-synced data (Google Fit, Apple Health, Strava).

    Rows without `session_data` only carry ambient step counts and are not
    treated as training.
    """

    __tablename__ = "fitness_sessions"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    source = Column(String, nullable=False, default="google_fit")
    activity_type = Column(String, nullable=True)
    active_minutes = Column(Float, nullable=True)
    calories_burned = Column(Float, nullable=True)
    distance_meters = Column(Float, nullable=True)
    heart_rate_avg = Column(Float, nullable=True)
    steps = Column(Integer, nullable=True)
    session_data = Column(Text, nullable=True)  # JSON-encoded session list
    synced_at = Column(DateTime, default=datetime.utcnow)


class NutritionScore(Base):
    """Persisted daily score: both cache and historical ledger."""

    __tablename__ = "nutrition_scores"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_nutrition_scores_user_date"),
        Index("ix_nutrition_scores_date", "date"),
    )
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False)
    daily_score = Column(Integer, nullable=False, default=0)
    calories_consumed = Column(Float, nullable=False, default=0)
    protein_grams = Column(Float, nullable=False, default=0)
    carbs_grams = Column(Float, nullable=False, default=0)
    fat_grams = Column(Float, nullable=False, default=0)
    meals_logged = Column(Integer, nullable=False, default=0)
    planned_calories = Column(Float, nullable=False, default=0)
    planned_protein_grams = Column(Float, nullable=False, default=0)
    planned_carbs_grams = Column(Float, nullable=False, default=0)
    planned_fat_grams = Column(Float, nullable=False, default=0)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
