"""Persistence of daily scores into the `nutrition_scores` ledger.

The ledger is both a cache (weekly aggregation reads it instead of
recomputing) and a history for trend charts. Writes are best-effort: a
failed upsert is logged, rolled back and reported as a `PersistOutcome`, and
the freshly computed score is still served to the caller.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.logger import get_logger
from core.repository import BaseRepository
from core.timeutils import utcnow, to_utc_naive
from database.models import NutritionScore
from services.scoring_models import NutritionActuals, NutritionTargets

logger = get_logger("services.score_persistence")

SCORE_KEY = ("user_id", "date")


@dataclass
class PersistOutcome:
    """Result of a best-effort ledger write."""

    ok: bool
    user_id: str
    date: date
    score: int
    error: Optional[str] = None


FailureListener = Callable[[PersistOutcome], None]


class PersistFailureMonitor:
    """Failure listener that counts failed writes for the health endpoint."""

    def __init__(self):
        self.failures = 0
        self.last_failure: Optional[PersistOutcome] = None

    def __call__(self, outcome: PersistOutcome) -> None:
        self.failures += 1
        self.last_failure = outcome

    def snapshot(self) -> Dict:
        last = self.last_failure
        return {
            "persist_failures": self.failures,
            "last_failure": None if last is None else {
                "user_id": last.user_id, "date": last.date.isoformat(), "error": last.error,
            },
        }


class ScoreRepository(BaseRepository[NutritionScore]):
    """Queries and writes against `nutrition_scores`."""

    def __init__(self, session: Session):
        super().__init__(NutritionScore, session)

    def upsert_daily_score(self, values: Dict) -> None:
        """Insert or fully replace the row for ``(user_id, date)``."""
        self.upsert(values, SCORE_KEY)

    def get_for_day(self, user_id: str, day: date) -> Optional[NutritionScore]:
        return (
            self.session.query(NutritionScore)
            .filter(NutritionScore.user_id == user_id, NutritionScore.date == day)
            .one_or_none()
        )

    def scores_between(self, user_id: str, start: date, end: date) -> List[NutritionScore]:
        """Rows for one user with ``start <= date <= end``, oldest first."""
        return (
            self.session.query(NutritionScore)
            .filter(
                NutritionScore.user_id == user_id,
                NutritionScore.date >= start,
                NutritionScore.date <= end,
            )
            .order_by(NutritionScore.date)
            .all()
        )

    def all_scores_between(self, start: date, end: date) -> List[NutritionScore]:
        return (
            self.session.query(NutritionScore)
            .filter(NutritionScore.date >= start, NutritionScore.date <= end)
            .order_by(NutritionScore.user_id, NutritionScore.date)
            .all()
        )


def score_row(user_id: str, day: date, score: int, actuals: NutritionActuals, targets: NutritionTargets,
              meals_logged: int, updated_at: Optional[datetime] = None) -> Dict:
    """Column values for one ledger row.

    A day without food logs is stored as 0 so weekly averages, leaderboards
    and streaks skip it; callers still see the computed score.
    """
    return {
        "user_id": user_id,
        "date": day,
        "daily_score": int(score) if meals_logged > 0 else 0,
        "calories_consumed": actuals.calories or 0,
        "protein_grams": actuals.protein or 0,
        "carbs_grams": actuals.carbs or 0,
        "fat_grams": actuals.fat or 0,
        "meals_logged": meals_logged,
        "planned_calories": targets.calories or 0,
        "planned_protein_grams": targets.protein or 0,
        "planned_carbs_grams": targets.carbs or 0,
        "planned_fat_grams": targets.fat or 0,
        "updated_at": to_utc_naive(updated_at or utcnow()),
    }


class ScorePersister:
    """Best-effort writer that never raises on database failures.

    Args:
        session: Write session.
        listeners: Callables notified with the outcome of every failed write.
    """

    def __init__(self, session: Session, listeners: Optional[Iterable[FailureListener]] = None):
        self.repository = ScoreRepository(session)
        self.listeners: List[FailureListener] = list(listeners or [])

    def add_listener(self, listener: FailureListener) -> None:
        self.listeners.append(listener)

    def persist(self, values: Dict) -> PersistOutcome:
        user_id, day, score = values["user_id"], values["date"], values["daily_score"]
        try:
            self.repository.upsert_daily_score(values)
        except SQLAlchemyError as exc:
            self.repository.session.rollback()
            logger.error("Failed to persist score for %s on %s: %s", user_id, day, exc)
            outcome = PersistOutcome(ok=False, user_id=user_id, date=day, score=score, error=str(exc))
            self._notify(outcome)
            return outcome
        logger.info("Score persisted for %s on %s: %s", user_id, day, score)
        return PersistOutcome(ok=True, user_id=user_id, date=day, score=score)

    def _notify(self, outcome: PersistOutcome) -> None:
        for listener in self.listeners:
            try:
                listener(outcome)
            except Exception:
                logger.exception("Persist failure listener %r raised", listener)


def weekly_average(scores: Iterable[Optional[int]]) -> int:
    """Rounded mean of the scores above zero; 0 when there are none.

    Zero and missing scores mean "not computed yet", not "scored zero".
    """
    valid = [s for s in scores if s is not None and s > 0]
    if not valid:
        return 0
    return round(sum(valid) / len(valid))
