"""FastAPI application wiring for the account service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from psycopg_pool import ConnectionPool

from .api.routes import router as v1_router
from .clients import MileageClient, NotificationClient
from .config import get_settings
from .domain.auth import AuthService
from .domain.service import AccountService
from .repository import AccountRepository, CartRepository, CredentialRepository, WishlistRepository
from .security.passwords import BcryptPasswordHasher
from .verification import RedisVerificationCodeStore

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialise shared resources (Postgres pool, Redis, HTTP clients, services)."""
    pool = ConnectionPool(settings.database_url, open=False)
    pool.open()
    redis_client = redis.from_url(settings.redis_url)
    notifications = NotificationClient(
        settings.notification_service_url,
        timeout=settings.gateway_timeout_seconds,
    )
    mileage = MileageClient(
        settings.mileage_service_url,
        timeout=settings.gateway_timeout_seconds,
    )

    app.state.pool = pool
    app.state.account_service = AccountService(
        AccountRepository(pool),
        CartRepository(pool),
        WishlistRepository(pool),
        mileage,
    )
    app.state.auth_service = AuthService(
        CredentialRepository(pool),
        RedisVerificationCodeStore(
            redis_client, ttl_seconds=settings.verification_code_ttl_seconds
        ),
        notifications,
        BcryptPasswordHasher(rounds=settings.bcrypt_rounds),
    )
    logger.info("%s %s started", settings.app_name, settings.version)
    try:
        yield
    finally:
        notifications.close()
        mileage.close()
        redis_client.close()
        pool.close()


app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=600,
)


@app.get("/healthz", tags=["health"])
def healthz() -> dict[str, str]:
    """Return a minimal readiness indicator used by orchestration systems."""
    return {"status": "ok"}


app.include_router(v1_router)


@app.get("/metrics")
def metrics() -> Response:
    """Expose Prometheus metrics for scrapes."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
