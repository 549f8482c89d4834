from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from ppd import __version__
from ppd.core.config import Settings, get_settings
from ppd.core.log import configure_logging
from ppd.core.rate_limiter import RateLimiter
from ppd.domain.errors import PPDError
from ppd.repositories import open_store
from ppd.repositories.base import RecordStore, StorageError
from ppd.routers import admin as admin_router
from ppd.routers import auth as auth_router
from ppd.routers import credits as credits_router
from ppd.routers import members as members_router
from ppd.routers import notifications as notifications_router
from ppd.routers import payments as payments_router
from ppd.services.credit_service import CreditService
from ppd.services.maintenance_service import MaintenanceService
from ppd.services.member_service import MemberService
from ppd.services.notification_service import NotificationService
from ppd.services.payment_service import PaymentService
from ppd.services.settings_service import SettingsService

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers on every JSON response."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("Cache-Control", "no-store")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


def _error(status: int, message: str, **extra) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=status)


def _install_handlers(app: FastAPI) -> None:
    @app.exception_handler(PPDError)
    async def domain_error(request: Request, exc: PPDError):
        return _error(exc.status_code, exc.message)

    @app.exception_handler(StorageError)
    async def storage_error(request: Request, exc: StorageError):
        logger.error("[app] falha de armazenamento em %s %s: %s", request.method, request.url.path, exc)
        return _error(500, "Erro interno do servidor")

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"), "message": err.get("msg", "")}
            for err in exc.errors()
        ]
        return _error(400, "Dados invalidos", details=details)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))


def create_app(settings: Settings | None = None, store: RecordStore | None = None) -> FastAPI:
    """Build the API around ``store`` (opened from settings when omitted)."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    store = store or open_store(settings)

    app = FastAPI(title="PPD+ API", version=__version__)

    origins = set(settings.cors_origins)
    if settings.app_env != "prod":
        origins.update({"http://localhost:3000", "http://127.0.0.1:3000"})
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=sorted(origins),
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "OPTIONS"],
            allow_headers=["*"],
        )
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.app_env == "prod")

    app.state.settings = settings
    app.state.store = store
    app.state.rate_limiter = RateLimiter(settings.login_rate_limit, settings.login_rate_window_seconds)
    app.state.member_service = MemberService(store, settings)
    app.state.credit_service = CreditService(store, settings)
    app.state.payment_service = PaymentService(store, settings)
    app.state.notification_service = NotificationService(store)
    app.state.settings_service = SettingsService(store, settings)
    app.state.maintenance_service = MaintenanceService(store)

    _install_handlers(app)

    @app.get("/healthz")
    def healthz():
        return {"ok": True, "version": __version__, "backend": settings.storage_backend}

    app.include_router(auth_router.router)
    app.include_router(members_router.router)
    app.include_router(credits_router.router)
    app.include_router(payments_router.router)
    app.include_router(notifications_router.router)
    app.include_router(admin_router.router)

    logger.info("[app] PPD+ iniciado (%s, backend=%s)", settings.app_env, settings.storage_backend)
    return app
