"""Score service: the entry points the API and dashboard call.

Each daily computation is a self-contained read-compute-upsert sequence for
one (user, date). Weekly figures never recompute; they read the ledger that
the daily computations leave behind.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import REGION_TIMEZONE
from core.exceptions import ConfigurationError, DatabaseError, ValidationError
from core.logger import get_logger
from core.timeutils import parse_iso_date, today_in, week_dates, week_start
from database.models import Profile
from services.context_builder import ScoringContextBuilder
from services.meal_scorer import score_day
from services.score_persistence import (
    FailureListener,
    PersistOutcome,
    ScorePersister,
    ScoreRepository,
    score_row,
    weekly_average,
)
from services.scoring_config import ScoringConfig, get_scoring_config
from services.scoring_engine import calculate_unified_score
from services.scoring_models import MealScoreResult, ScoreBreakdown, ScoringContext, ScoringStrategy

logger = get_logger("services.score_service")

MAX_RECALCULATE_DAYS = 365


@dataclass
class ScoreResult:
    score: int
    breakdown: ScoreBreakdown
    context: ScoringContext
    persisted: PersistOutcome


@contextmanager
def _db_read(operation: str):
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Database read failed during %s: %s", operation, exc)
        raise DatabaseError(f"Failed to {operation}", operation=operation)


def _parse_day(value) -> date:
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"Invalid date '{value}', expected YYYY-MM-DD", field="date")


def _parse_strategy(value) -> ScoringStrategy:
    try:
        return ScoringStrategy(value)
    except ValueError:
        allowed = ", ".join(s.value for s in ScoringStrategy)
        raise ValidationError(f"Unknown scoring strategy '{value}' (expected one of: {allowed})",
                              field="strategy")


class ScoreService:
    """Daily, weekly and meal-level scores for users.

    Args:
        session: SQLAlchemy session; must be write-capable for the daily
            score methods since they persist.
        config: Scoring constants (process-wide defaults when omitted).
        listeners: Notified whenever a ledger write fails.
        region_timezone: Timezone of the weekly boundary.
    """

    def __init__(self, session: Session, config: Optional[ScoringConfig] = None,
                 listeners: Optional[Iterable[FailureListener]] = None,
                 region_timezone: Optional[str] = None):
        self.session = session
        self.config = config or get_scoring_config()
        self.region_timezone = region_timezone or REGION_TIMEZONE
        self.builder = ScoringContextBuilder(session, self.config)
        self.persister = ScorePersister(session, listeners)
        self.repository = ScoreRepository(session)

    # Daily scores
    def get_daily_unified_score(self, user_id: str, day, strategy=ScoringStrategy.RUNNER_FOCUSED) -> ScoreResult:
        """Compute, persist and return the unified score for one user-day.

        Persistence is best-effort: the computed score is returned even when
        the ledger write fails, with the failure described in ``persisted``.
        """
        day = _parse_day(day)
        strategy = _parse_strategy(strategy)

        with _db_read("load scoring data"):
            built = self.builder.build(user_id, day, strategy)

        breakdown = calculate_unified_score(built.context, self.config)
        completeness = breakdown.data_completeness
        completeness.has_body_metrics = not built.profile.is_default
        completeness.has_meal_plan = built.has_meal_plan
        if not built.has_meal_plan:
            completeness.missing_data.append("meal plan")
        if built.profile.is_default:
            completeness.missing_data.append("body metrics")

        logger.info("Unified score for %s on %s: %s (nutrition=%s training=%s load=%s)",
                    user_id, day, breakdown.total, breakdown.nutrition.total,
                    breakdown.training.total, built.context.load.value)

        outcome = self.persister.persist(
            score_row(user_id, day, breakdown.total, built.actuals, built.targets, built.food_log_count)
        )
        return ScoreResult(score=breakdown.total, breakdown=breakdown, context=built.context, persisted=outcome)

    def user_today(self, user_id: str, now: Optional[datetime] = None) -> date:
        """The current calendar date in the user's timezone (region timezone by default)."""
        with _db_read("load profile"):
            tz_name = self._profile_timezone(user_id)
        try:
            return today_in(tz_name or self.region_timezone, now)
        except ConfigurationError:
            logger.warning("Profile timezone %r for %s is invalid, using region timezone", tz_name, user_id)
            return today_in(self.region_timezone, now)

    def get_today_score(self, user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        return self.get_daily_score_for_date(user_id, self.user_today(user_id, now))

    def get_daily_score_for_date(self, user_id: str, day) -> Dict[str, Any]:
        """Score with the four-figure breakdown (nutrition, training, bonuses, penalties)."""
        result = self.get_daily_unified_score(user_id, day, ScoringStrategy.RUNNER_FOCUSED)
        return {"score": result.score, "breakdown": result.breakdown.summary()}

    # Weekly aggregation
    def get_weekly_score_from_cache(self, user_id: str, monday) -> Dict[str, Any]:
        """Weekly average of persisted scores for the week containing ``monday``.

        Any date is accepted and moved back to the Monday of its week.
        """
        day = _parse_day(monday)
        start, end = week_dates(day - timedelta(days=day.weekday()))
        with _db_read("load weekly scores"):
            rows = self.repository.scores_between(user_id, start, end)
        daily = [{"date": r.date, "score": r.daily_score} for r in rows]
        return {
            "average": weekly_average(d["score"] for d in daily),
            "daily_scores": daily,
            "week_start": start,
            "week_end": end,
        }

    def get_weekly_score_persisted(self, user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Current week (Monday 00:00 in the region timezone onwards) from the ledger."""
        monday = week_start(now, self.region_timezone).date()
        return self.get_weekly_score_from_cache(user_id, monday)

    def get_all_users_weekly_scores(self, monday=None, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """Leaderboard: every user with ledger rows this week, best weekly score first."""
        if monday:
            day = _parse_day(monday)
            monday = day - timedelta(days=day.weekday())
        else:
            monday = week_start(now, self.region_timezone).date()
        start, end = week_dates(monday)
        with _db_read("load leaderboard"):
            rows = self.repository.all_scores_between(start, end)

        by_user: Dict[str, List[Dict[str, Any]]] = {}
        for row in rows:
            by_user.setdefault(row.user_id, []).append({"date": row.date, "score": row.daily_score})

        board = [
            {
                "user_id": user_id,
                "weekly_score": weekly_average(d["score"] for d in daily),
                "daily_scores": daily,
            }
            for user_id, daily in by_user.items()
        ]
        board.sort(key=lambda entry: (-entry["weekly_score"], entry["user_id"]))
        return board

    # Meal level
    def get_meal_scores(self, user_id: str, day) -> MealScoreResult:
        """Per-meal scores for a date; empty when there is no meal plan."""
        day = _parse_day(day)
        with _db_read("load meal scores"):
            plans = self.builder.meal_plans(user_id, day)
            if not plans:
                return MealScoreResult(scores=[], average=0)
            logs = self.builder.food_logs(user_id, day, self._profile_timezone(user_id))
        return score_day(plans, logs, self.config)

    def _profile_timezone(self, user_id: str) -> Optional[str]:
        return self.session.query(Profile.timezone).filter(Profile.user_id == user_id).scalar()

    # Maintenance
    def recalculate_scores(self, user_id: str, days_back: int = 30,
                           now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """Recompute and persist every day from ``days_back`` days ago through today.

        Days are processed oldest first so each day's streak sees the
        rewritten history before it.
        """
        if days_back < 0 or days_back > MAX_RECALCULATE_DAYS:
            raise ValidationError(f"days_back must be between 0 and {MAX_RECALCULATE_DAYS}", field="days_back")
        today = self.user_today(user_id, now)
        results = []
        for offset in range(days_back, -1, -1):
            day = today - timedelta(days=offset)
            result = self.get_daily_unified_score(user_id, day)
            results.append({"date": day, "score": result.score, "persisted": result.persisted.ok})
        failed = sum(1 for r in results if not r["persisted"])
        logger.info("Recalculated %s days for %s (%s persist failures)", len(results), user_id, failed)
        return results
