# src/services/api/app.py
"""
FastAPI приложение Mindelo Ride.

Собирает хранилище и сервисы, подключает роутеры /api и WebSocket /ws,
сопоставляет доменные исключения с HTTP кодами.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.common.constants import TypeMsg
from src.common.exceptions import (
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    RateLimitedError,
    RideAppError,
    UnauthorizedError,
    ValidationError,
)
from src.common.localization import get_text
from src.common.logger import log_error, log_info
from src.config.loader import Settings
from src.infra.seed import seed_demo_data
from src.infra.store import BaseStore, MemoryStore
from src.services.api.dependencies import build_container
from src.services.api.i18n import request_language
from src.services.api.routes import (
    admin_router,
    auth_router,
    favorites_router,
    pricing_router,
    rides_router,
)
from src.services.realtime_ws.routes import router as ws_router
from src.shared.models.common import HealthStatus


# Доменное исключение -> HTTP код
ERROR_STATUS_CODES: tuple[tuple[type[RideAppError], int], ...] = (
    (NotFoundError, 404),
    (InvalidTransitionError, 409),
    (ForbiddenError, 403),
    (ValidationError, 400),
    (RateLimitedError, 429),
    (UnauthorizedError, 401),
)


def status_code_for(exc: RideAppError) -> int:
    for error_cls, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_cls):
            return status_code
    return 400


# === EXCEPTION HANDLERS ===

async def ride_app_error_handler(request: Request, exc: RideAppError) -> JSONResponse:
    status_code = status_code_for(exc)
    await log_info(
        f"{request.method} {request.url.path} -> {status_code} {exc.code}: {exc.message}",
        type_msg=TypeMsg.WARNING if status_code != 404 else TypeMsg.DEBUG,
    )

    content = {
        "message": get_text(exc.message_key, request_language(request), default=exc.message),
        "code": exc.code,
    }
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=status_code, content=content)


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": str(error.get("msg", "")),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={
            "message": get_text("INVALID_DATA", request_language(request)),
            "code": ValidationError.code,
            "errors": errors,
        },
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    await log_error(f"Необработанная ошибка {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"message": get_text("ERROR", request_language(request))},
    )


# === APP FACTORY ===

def create_app(
    store: Optional[BaseStore] = None,
    config: Optional[Settings] = None,
    seed_demo: Optional[bool] = None,
) -> FastAPI:
    """
    Создаёт приложение.

    Args:
        store: Хранилище (по умолчанию новое MemoryStore)
        config: Настройки (по умолчанию из config.json)
        seed_demo: Загрузить демо-данные при старте (по умолчанию из настроек)
    """
    if config is None:
        from src.config import settings as config

    store = store if store is not None else MemoryStore()
    container = build_container(store, config)
    should_seed = config.seed.SEED_DEMO_DATA if seed_demo is None else seed_demo
    started_at = time.monotonic()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Жизненный цикл приложения."""
        await log_info(f"Запуск {config.system.PROJECT_NAME} v{config.system.VERSION}")
        if should_seed:
            await seed_demo_data(container.store, container.hasher, container.subscriptions, config.seed)

        yield

        await log_info(f"Остановка {config.system.PROJECT_NAME}")

    app = FastAPI(
        title="Mindelo Ride API",
        description="Заказ поездок, диспетчеризация водителей и real-time уведомления.",
        version=config.system.VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.container = container
    app.state.connection_manager = container.connection_manager
    app.state.user_service = container.users

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.deployment.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RideAppError, ride_app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    for router in (auth_router, pricing_router, rides_router, favorites_router, admin_router):
        app.include_router(router, prefix="/api")
    app.include_router(ws_router)

    # === HEALTH CHECK ===

    @app.get("/api/health", response_model=HealthStatus, tags=["Health"])
    async def health_check() -> HealthStatus:
        """Проверка здоровья сервиса."""
        manager = container.connection_manager
        return HealthStatus(
            service=config.system.PROJECT_NAME,
            status="healthy",
            version=config.system.VERSION,
            timestamp=datetime.now(timezone.utc).isoformat(),
            uptime_seconds=round(time.monotonic() - started_at, 3),
            dependencies={
                "store": type(container.store).__name__,
                "websocket": f"{manager.active_connections} connections",
            },
        )

    return app
