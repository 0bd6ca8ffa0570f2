"""Dashboard API router.

Serves the cached dashboard bundle and drops a user's cached widgets on
sign-out.
"""

from fastapi import APIRouter, Depends

from core.logger import get_logger
from core.widget_cache import WidgetCache
from database.deps import get_session_factories, get_widget_cache
from services.dashboard_service import DashboardService

logger = get_logger("api.dashboard")
router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


def get_dashboard_service(cache: WidgetCache = Depends(get_widget_cache),
                          factories=Depends(get_session_factories)) -> DashboardService:
    write_factory, read_factory = factories
    return DashboardService(cache, write_factory, read_factory)


@router.get("/{user_id}")
async def dashboard(user_id: str, refresh: bool = False,
                    service: DashboardService = Depends(get_dashboard_service)):
    """Today's score, weekly average, meal plans and weekly distance.

    Each widget is served from cache while fresh; ``refresh=true`` bypasses it.
    """
    return await service.get_dashboard(user_id, force_refresh=refresh)


@router.post("/{user_id}/sign-out")
def sign_out(user_id: str, service: DashboardService = Depends(get_dashboard_service)):
    cleared = service.sign_out(user_id)
    logger.info("Signed out %s, cleared %s cached widgets", user_id, cleared)
    return {"user_id": user_id, "cleared": cleared}
