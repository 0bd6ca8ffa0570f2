"""Data-entry API router.

Writes the rows the scoring engine reads: profiles, meal plans, food logs,
planned training and synced wearable sessions.
"""

import json
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.config import get_zone
from core.exceptions import ConfigurationError, NotFoundError, ValidationError
from core.logger import get_logger
from core.repository import save
from core.timeutils import to_utc_naive
from database import models
from database.deps import get_db_read, get_db_write
from schemas import (
    CreatedResponse,
    FitnessSessionCreateRequest,
    FoodLogCreateRequest,
    MealPlanCreateRequest,
    ProfileResponse,
    ProfileUpsertRequest,
    TrainingActivityCreateRequest,
)

logger = get_logger("api.logs")
router = APIRouter(prefix="/api", tags=["logs"])


@router.put("/profiles/{user_id}", response_model=ProfileResponse)
def upsert_profile(user_id: str, payload: ProfileUpsertRequest, db: Session = Depends(get_db_write)):
    """Create or update a user's body metrics and timezone.

    Raises:
        ValidationError: If ``timezone`` is not a known IANA zone.
    """
    if payload.timezone:
        try:
            get_zone(payload.timezone)
        except ConfigurationError:
            raise ValidationError(f"Unknown timezone '{payload.timezone}'", field="timezone")

    profile = db.get(models.Profile, user_id)
    if profile is None:
        profile = models.Profile(user_id=user_id)
    for key, value in payload.model_dump().items():
        setattr(profile, key, value)
    profile = save(db, profile)
    logger.info("Saved profile for %s", user_id)
    return ProfileResponse(user_id=profile.user_id, **payload.model_dump())


@router.get("/profiles/{user_id}", response_model=ProfileResponse)
def get_profile(user_id: str, db: Session = Depends(get_db_read)):
    profile = db.get(models.Profile, user_id)
    if profile is None:
        raise NotFoundError("Profile", user_id)
    return ProfileResponse(
        user_id=profile.user_id,
        **{field: getattr(profile, field) for field in ProfileUpsertRequest.model_fields},
    )


@router.post("/meal-plans", response_model=CreatedResponse, status_code=201)
def create_meal_plan(payload: MealPlanCreateRequest, db: Session = Depends(get_db_write)):
    row = save(db, models.DailyMealPlan(**payload.model_dump()))
    return CreatedResponse(id=row.id, message=f"Meal plan saved for {payload.meal_type} on {payload.date}")


@router.post("/food-logs", response_model=CreatedResponse, status_code=201)
def create_food_log(payload: FoodLogCreateRequest, db: Session = Depends(get_db_write)):
    """Log a consumed item. Timestamps are stored as naive UTC."""
    values = payload.model_dump()
    values["logged_at"] = to_utc_naive(payload.logged_at or datetime.now(timezone.utc))
    row = save(db, models.FoodLog(**values))
    logger.info("Food logged for %s: %s (%s kcal)", payload.user_id, payload.food_name, payload.calories)
    return CreatedResponse(id=row.id, message="Food logged")


@router.post("/training-activities", response_model=CreatedResponse, status_code=201)
def create_training_activity(payload: TrainingActivityCreateRequest, db: Session = Depends(get_db_write)):
    row = save(db, models.TrainingActivity(**payload.model_dump()))
    return CreatedResponse(id=row.id, message=f"Training activity planned for {payload.date}")


@router.post("/fitness-sessions", response_model=CreatedResponse, status_code=201)
def create_fitness_session(payload: FitnessSessionCreateRequest, db: Session = Depends(get_db_write)):
    """Store a synced wearable day; ``sessions`` is kept as JSON when present."""
    values = payload.model_dump(exclude={"sessions"})
    values["session_data"] = json.dumps(payload.sessions) if payload.sessions else None
    row = save(db, models.FitnessSession(**values))
    return CreatedResponse(id=row.id, message=f"Fitness data synced for {payload.date}")
