import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from shared.database.redis_client import get_redis_client
from shared.middleware.error_handler import error_envelope_middleware
from shared.middleware.request_id import request_id_middleware

from app.actions.router import router as actions_router
from app.database import dispose_db, init_db
from app.dependencies import get_settings
from app.events.bus import EventBus
from app.events.subscribers import register_default_subscribers
from app.explore.router import router as explore_router
from app.feed.router import router as feed_router
from app.preferences.router import router as preferences_router
from app.rate_limit import limiter

logger = logging.getLogger(__name__)

# Swagger tag groups displayed in the OpenAPI docs sidebar
_OPENAPI_TAGS = [
    {
        "name": "Feed",
        "description": (
            "Personalised social feed: recency, topic, source, follow and action "
            "signals combined into one score, then bucketed into sections and badged. "
            "Works anonymously; a valid bearer token enables personalisation."
        ),
    },
    {
        "name": "Explore",
        "description": "Explore grid ordered by stored score with opaque offset cursors.",
    },
    {
        "name": "Actions",
        "description": "Save / like / open / hide log. A hide removes the item from the caller's feed.",
    },
    {
        "name": "Preferences",
        "description": "Per-user source weights, topic weights and blocked topics.",
    },
    {
        "name": "Health",
        "description": "Liveness check.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if settings.missing_required():
        # Feed routes answer with a configuration error instead of failing startup
        logger.error("Missing required settings: %s", ", ".join(settings.missing_required()))
    else:
        init_db(settings.feed_database_url, command_timeout=settings.store_timeout_s)

    redis_client = get_redis_client(settings.redis_url)
    app.state.redis = redis_client

    bus = EventBus()
    register_default_subscribers(bus, redis_client)
    app.state.event_bus = bus

    yield

    bus.close()
    await redis_client.aclose()
    await dispose_db()


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(
        title="Kivaw Feed Service",
        description=(
            "Ranks ingested content per user and serves it as a sectioned social feed, "
            "an explore grid, and the action / preference endpoints that personalise it."
        ),
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=_OPENAPI_TAGS,
        lifespan=lifespan,
    )

    # Attach rate limiter state before middleware
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Middleware is applied in reverse-registration order (last added = outermost).
    # CORS must be outermost so all responses, 429s included, carry CORS headers.
    app.add_middleware(SlowAPIMiddleware)
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(error_envelope_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )

    app.include_router(feed_router, prefix="/api/v1")
    app.include_router(explore_router, prefix="/api/v1")
    app.include_router(actions_router, prefix="/api/v1")
    app.include_router(preferences_router, prefix="/api/v1")

    @app.get("/health", tags=["Health"])
    async def health() -> dict:
        """Lightweight liveness check. Does not hit the database."""
        return {"status": "ok", "service": "feed"}

    return app


app = create_app()
