"""Scores API router.

Daily scores are computed on request and upserted into the ledger, so those
endpoints take a write session. Weekly figures and the leaderboard only read
the ledger.
"""

from dataclasses import asdict
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.logger import get_logger
from database.deps import get_db_read, get_db_write, get_persist_listeners
from schemas import (
    DailyScoreResponse,
    LeaderboardEntry,
    MealScoresResponse,
    RecalculateRequest,
    RecalculateResponse,
    ScoreBreakdownResponse,
    WeeklyScoreResponse,
)
from services.score_service import ScoreService
from services.scoring_models import ScoringStrategy

logger = get_logger("api.scores")
router = APIRouter(prefix="/api/scores", tags=["scores"])


@router.get("/leaderboard/weekly", response_model=List[LeaderboardEntry])
def weekly_leaderboard(week_start: Optional[date] = None, db: Session = Depends(get_db_read)):
    """All users' weekly averages for the current (or given) week, best first."""
    return ScoreService(db).get_all_users_weekly_scores(week_start)


@router.get("/{user_id}/today", response_model=DailyScoreResponse)
def today_score(user_id: str, db: Session = Depends(get_db_write),
                listeners: list = Depends(get_persist_listeners)):
    """Compute and persist today's score in the user's timezone."""
    return ScoreService(db, listeners=listeners).get_today_score(user_id)


@router.get("/{user_id}/daily/{day}", response_model=DailyScoreResponse)
def daily_score(user_id: str, day: str, db: Session = Depends(get_db_write),
                listeners: list = Depends(get_persist_listeners)):
    """Compute and persist the score for ``day`` (YYYY-MM-DD)."""
    return ScoreService(db, listeners=listeners).get_daily_score_for_date(user_id, day)


@router.get("/{user_id}/daily/{day}/breakdown", response_model=ScoreBreakdownResponse)
def daily_breakdown(user_id: str, day: str, strategy: str = Query(ScoringStrategy.RUNNER_FOCUSED.value),
                    db: Session = Depends(get_db_write), listeners: list = Depends(get_persist_listeners)):
    """Full unified score for ``day`` with components, weights and scoring inputs.

    Args:
        strategy: ``runner-focused`` (default), ``general`` or ``meal-level``.
    """
    result = ScoreService(db, listeners=listeners).get_daily_unified_score(user_id, day, strategy)
    breakdown = result.breakdown
    return ScoreBreakdownResponse(
        user_id=user_id,
        date=result.persisted.date,
        strategy=result.context.strategy.value,
        load=result.context.load.value,
        score=result.score,
        nutrition=asdict(breakdown.nutrition),
        training=asdict(breakdown.training),
        bonuses=breakdown.bonuses,
        penalties=breakdown.penalties,
        weights=breakdown.weights,
        data_completeness=asdict(breakdown.data_completeness) if breakdown.data_completeness else None,
        persisted=result.persisted.ok,
        context=result.context.to_dict(),
    )


@router.get("/{user_id}/weekly", response_model=WeeklyScoreResponse)
def weekly_score(user_id: str, week_start: Optional[date] = None, db: Session = Depends(get_db_read)):
    """Weekly average from the ledger; the current region week unless ``week_start`` is given."""
    service = ScoreService(db)
    if week_start:
        return service.get_weekly_score_from_cache(user_id, week_start)
    return service.get_weekly_score_persisted(user_id)


@router.get("/{user_id}/meals/{day}", response_model=MealScoresResponse)
def meal_scores(user_id: str, day: str, db: Session = Depends(get_db_read)):
    """Per-meal scores against the day's meal plan. Recomputed, never stored."""
    result = ScoreService(db).get_meal_scores(user_id, day)
    return {
        "scores": [
            {"meal_type": s.meal_type.value, "score": s.score, "rating": s.rating, "breakdown": s.breakdown}
            for s in result.scores
        ],
        "average": result.average,
    }


@router.post("/{user_id}/recalculate", response_model=RecalculateResponse)
def recalculate(user_id: str, payload: Optional[RecalculateRequest] = None, db: Session = Depends(get_db_write),
                listeners: list = Depends(get_persist_listeners)):
    """Recompute and persist scores for the past ``days_back`` days and today."""
    days_back = payload.days_back if payload else RecalculateRequest().days_back
    logger.info("Recalculating %s days for %s", days_back, user_id)
    results = ScoreService(db, listeners=listeners).recalculate_scores(user_id, days_back)
    return {"message": f"Recalculated scores for {len(results)} days", "data": results}
