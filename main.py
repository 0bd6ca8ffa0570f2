"""Application entry point for the Runner Fuel Score API.

Defines the FastAPI app, middleware, exception handlers and includes API
routers from the `api` package. The `lifespan` handler initializes the DB
and creates the app-scoped widget cache and persistence monitor.
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.orm import Session

from api.dashboard import router as dashboard_router
from api.logs import router as logs_router
from api.scores import router as scores_router
from core.config import CORS_ORIGINS
from core.error_handlers import register_exception_handlers
from core.exceptions import DatabaseError
from core.logger import get_logger
from core.widget_cache import WidgetCache
from database import init_db
from database.deps import get_db_read
from services.score_persistence import PersistFailureMonitor

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize resources before serving requests; drop the widget cache on shutdown."""
    init_db()
    app.state.widget_cache = WidgetCache()
    app.state.persist_monitor = PersistFailureMonitor()
    yield
    app.state.widget_cache.clear()


app = FastAPI(title="Runner Fuel Score API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log incoming requests and their responses."""
    logger.info("%s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
        logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
        return response
    except Exception:
        logger.exception("Request error: %s %s", request.method, request.url.path)
        raise


@app.get("/health")
def health(request: Request, db: Session = Depends(get_db_read)):
    """Return basic health status, database connectivity and ledger write failures.

    Raises:
        DatabaseError: If database connection fails.
    """
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.exception("Health check failed")
        raise DatabaseError("Database health check failed", operation="health_check") from e
    return {
        "status": "healthy",
        "database": "connected",
        **request.app.state.persist_monitor.snapshot(),
    }


app.include_router(scores_router)
app.include_router(logs_router)
app.include_router(dashboard_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
