"""
Social Graph API: entry point.

Startup sequence:
  1. Configure logging and (optionally) OTel tracing
  2. Build the document store selected by settings and create its tables
  3. Expose the SocialGraph to the routers via app.state
  4. Expose Prometheus /metrics endpoint

The HTTP layer only translates requests into SocialGraph calls; every write
still goes through the validator.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from socialgraph.config import settings
from socialgraph.engine import SocialGraph
from socialgraph.errors import NotFoundError, StoreError, UniquenessError, ValidationError
from socialgraph.routers import accounts, comments, notifications, posts
from socialgraph.telemetry import instrument_app, setup_tracing

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

setup_tracing()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the store on startup, close it on shutdown."""
    logger.info(
        "Starting Social Graph API (env=%s, store=%s)",
        settings.environment,
        settings.store_backend,
    )
    graph = SocialGraph.from_settings(settings)
    await graph.start()
    app.state.graph = graph
    logger.info("Store ready. API ready.")
    yield

    logger.info("Shutting down...")
    await graph.stop()


app = FastAPI(
    title="Social Graph API",
    description="Accounts, posts, comments, likes, follows and derived notifications.",
    version="1.0.0",
    lifespan=lifespan,
)

# ── Routers ────────────────────────────────────────────────────────────────
app.include_router(accounts.router, prefix="/accounts", tags=["Accounts"])
app.include_router(posts.router, prefix="/posts", tags=["Posts"])
app.include_router(comments.router, prefix="/comments", tags=["Comments"])
app.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])


# ── Error mapping ──────────────────────────────────────────────────────────
@app.exception_handler(UniquenessError)
async def uniqueness_error_handler(request: Request, exc: UniquenessError):
    return JSONResponse(status_code=409, content=exc.to_dict())


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content=exc.to_dict())


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content=exc.to_dict())


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content=exc.to_dict())


# ── Prometheus metrics endpoint ────────────────────────────────────────────
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

instrument_app(app)


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok", "service": settings.service_name}
