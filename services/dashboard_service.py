"""Dashboard bundle assembly.

The dashboard shows three independent widgets, fetched concurrently and
each cached in the app's `WidgetCache` with its own TTL:

- ``dashboard``: today's unified score and the weekly average
- ``meal-plans``: today's planned meals
- ``weekly-distance``: running distance this week from wearable sessions

Producers do blocking database work, so each runs in a worker thread with
a session of its own.
"""

import asyncio
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from core import config
from core.async_utils import request_with_timeout
from core.logger import get_logger
from core.timeutils import week_start
from core.widget_cache import WidgetCache
from database.models import DailyMealPlan, FitnessSession
from services.score_service import ScoreService
from services.scoring_config import ScoringConfig

logger = get_logger("services.dashboard_service")

DISTANCE_TIMEOUT = 2.0
RUN_FAMILY = ("run", "jog", "trail", "treadmill")


class DashboardService:
    """Cached, concurrently fetched dashboard data.

    Args:
        cache: Widget cache owned by the application.
        write_session_factory: Sessions for the score widget (it persists).
        read_session_factory: Sessions for read-only widgets.
        scoring_config: Optional scoring constants for the score widget.
    """

    def __init__(self, cache: WidgetCache, write_session_factory: Callable[[], Session],
                 read_session_factory: Optional[Callable[[], Session]] = None,
                 scoring_config: Optional[ScoringConfig] = None,
                 distance_timeout: float = DISTANCE_TIMEOUT):
        self.cache = cache
        self.write_session_factory = write_session_factory
        self.read_session_factory = read_session_factory or write_session_factory
        self.scoring_config = scoring_config
        self.distance_timeout = distance_timeout

    async def get_dashboard(self, user_id: str, force_refresh: bool = False,
                            now: Optional[datetime] = None) -> Dict[str, Any]:
        version = config.WIDGET_CACHE_VERSION
        today = await asyncio.to_thread(self._today, user_id, now)

        summary, plans, distance = await asyncio.gather(
            self.cache.fetch("dashboard", lambda: asyncio.to_thread(self._score_summary, user_id, now),
                             ttl=config.DASHBOARD_CACHE_TTL, version=version,
                             user_id=user_id, force_refresh=force_refresh),
            self.cache.fetch("meal-plans", lambda: asyncio.to_thread(self._meal_plans, user_id, today),
                             ttl=config.MEAL_PLAN_CACHE_TTL, version=version,
                             user_id=user_id, force_refresh=force_refresh),
            self.cache.fetch("weekly-distance", lambda: self._weekly_distance_or_none(user_id, now),
                             ttl=config.WEEKLY_DISTANCE_CACHE_TTL, version=version,
                             user_id=user_id, force_refresh=force_refresh),
        )
        logger.debug("Dashboard for %s (cached: dashboard=%s meal-plans=%s weekly-distance=%s)",
                     user_id, summary.cached, plans.cached, distance.cached)
        return {
            "user_id": user_id,
            "date": today,
            "score": summary.data["today"],
            "weekly": summary.data["weekly"],
            "meal_plans": plans.data,
            "weekly_distance_km": distance.data,
            "cached": {
                "dashboard": summary.cached,
                "meal_plans": plans.cached,
                "weekly_distance": distance.cached,
            },
        }

    def sign_out(self, user_id: str) -> int:
        """Forget everything cached for ``user_id``."""
        return self.cache.clear_user(user_id)

    def _today(self, user_id: str, now: Optional[datetime]) -> date:
        session = self.read_session_factory()
        try:
            return ScoreService(session, self.scoring_config).user_today(user_id, now)
        finally:
            session.close()

    def _score_summary(self, user_id: str, now: Optional[datetime]) -> Dict[str, Any]:
        session = self.write_session_factory()
        try:
            service = ScoreService(session, self.scoring_config)
            return {
                "today": service.get_today_score(user_id, now),
                "weekly": service.get_weekly_score_persisted(user_id, now),
            }
        finally:
            session.close()

    def _meal_plans(self, user_id: str, day: date) -> List[Dict[str, Any]]:
        session = self.read_session_factory()
        try:
            rows = (
                session.query(DailyMealPlan)
                .filter(DailyMealPlan.user_id == user_id, DailyMealPlan.date == day)
                .order_by(DailyMealPlan.id)
                .all()
            )
            return [
                {
                    "meal_type": r.meal_type,
                    "meal_name": r.meal_name,
                    "calories": r.recommended_calories,
                    "protein_grams": r.recommended_protein_grams,
                    "carbs_grams": r.recommended_carbs_grams,
                    "fat_grams": r.recommended_fat_grams,
                }
                for r in rows
            ]
        finally:
            session.close()

    def _weekly_distance(self, user_id: str, now: Optional[datetime]) -> float:
        monday = week_start(now).date()
        session = self.read_session_factory()
        try:
            rows = (
                session.query(FitnessSession)
                .filter(
                    FitnessSession.user_id == user_id,
                    FitnessSession.date >= monday,
                    FitnessSession.date <= monday + timedelta(days=6),
                    FitnessSession.session_data.isnot(None),
                    FitnessSession.session_data != "",
                )
                .all()
            )
        finally:
            session.close()
        meters = sum(
            r.distance_meters or 0 for r in rows
            if r.activity_type is None or any(k in r.activity_type.lower() for k in RUN_FAMILY)
        )
        return round(meters / 1000, 2)

    async def _weekly_distance_or_none(self, user_id: str, now: Optional[datetime]) -> Optional[float]:
        return await request_with_timeout(
            asyncio.to_thread(self._weekly_distance, user_id, now), self.distance_timeout
        )
