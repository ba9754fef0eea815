from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI
from sentry_sdk.integrations.fastapi import FastApiIntegration

from . import __version__
from .api.routes import events as event_routes
from .api.routes import recommendations as recommendation_routes
from .logging_config import configure_structlog, get_logger
from .schemas import HealthResponse
from .settings import settings
from .utils import add_cors, add_request_id_tracing

# Configure structured logging (must be done before any logging calls)
configure_structlog()

if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        release=settings.SENTRY_RELEASE or f"eventfinder@{__version__}",
        integrations=[FastApiIntegration()],
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
    )

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    engine = recommendation_routes._ENGINE
    if engine is not None and hasattr(engine.store, "close"):
        await engine.store.close()
        logger.info("event_store_closed")


app = FastAPI(
    title="Eventfinder API",
    version=__version__,
    description="Prompt-driven event recommendations and conflict-free schedules",
    lifespan=lifespan,
)
add_cors(app)
add_request_id_tracing(app)

API_PREFIX = "/v1"

app.include_router(recommendation_routes.router, prefix=API_PREFIX)
app.include_router(event_routes.router, prefix=API_PREFIX)


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="ok", service="eventfinder", version=__version__)
