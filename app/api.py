"""
HTTP API for Notion Ledger

JSON routes in front of the core operations. Every route except /health
and /login requires a logged-in session (signed cookie).

Components are provided through FastAPI dependencies so tests can swap in
an in-memory store without touching Notion.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Optional

import uvicorn
from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pydantic import ValidationError as SettingsValidationError
from starlette.middleware.sessions import SessionMiddleware

from src.audit import AuditLogger, configure_logging, create_correlation_id, get_logger
from src.auth import verify_credentials
from src.config import AuthSettings, get_settings
from src.errors import (
    ConfigurationError,
    InternalError,
    TrackerError,
    UnauthorizedError,
    ValidationError,
)
from src.models import BalanceReport, TransactionRequest
from src.orchestrator import LedgerComponents, create_app_components


logger = get_logger("notion_ledger.api")
audit_logger = AuditLogger()

SESSION_KEY = "authenticated"
MIN_RECENT_LIMIT = 1
MAX_RECENT_LIMIT = 100


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


# =============================================================================
# DEPENDENCIES
# =============================================================================

@lru_cache()
def get_components() -> LedgerComponents:
    """Build the application components once per process."""
    try:
        return create_app_components()
    except SettingsValidationError as e:
        raise ConfigurationError(
            "NOTION_API_KEY and NOTION_TRANSACTIONS_DB_ID must be set",
            error="Notion is not configured",
        ) from e


async def close_components() -> None:
    """Close the Notion client, if components were ever built."""
    if get_components.cache_info().currsize:
        components = get_components()
        get_components.cache_clear()
        await components.store.close()
        logger.info("components_closed")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    _ = app
    yield
    await close_components()


def require_session(request: Request) -> None:
    if not request.session.get(SESSION_KEY):
        raise UnauthorizedError("Please log in to continue")


def parse_recent_limit(limit: Optional[str] = Query(default=None)) -> Optional[int]:
    """Validate the ?limit= parameter; None means the default."""
    if limit is None:
        return None
    try:
        value = int(limit)
    except ValueError:
        value = None
    if value is None or not MIN_RECENT_LIMIT <= value <= MAX_RECENT_LIMIT:
        raise ValidationError(
            f"limit must be an integer between {MIN_RECENT_LIMIT} and {MAX_RECENT_LIMIT}",
            error="Invalid limit parameter",
            fields=["limit"],
        )
    return value


def _dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)


def _balance_body(report: BalanceReport) -> dict[str, Any]:
    body: dict[str, Any] = {"accounts": [_dump(account) for account in report.accounts]}
    if report.message:
        body["message"] = report.message
    return body


# =============================================================================
# APPLICATION
# =============================================================================

def create_app(
    auth_settings: Optional[AuthSettings] = None,
    production: Optional[bool] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        auth_settings: Session configuration; read from the environment if None
        production: Hide internal error details; from APP_ENVIRONMENT if None
    """
    settings = get_settings()
    app_settings = settings.app
    auth_settings = auth_settings or settings.auth
    if production is None:
        production = app_settings.is_production

    configure_logging("DEBUG" if app_settings.debug_mode else app_settings.log_level)

    app = FastAPI(title="Notion Ledger", version="1.0.0", lifespan=lifespan)
    app.add_middleware(
        SessionMiddleware,
        secret_key=auth_settings.session_secret,
        session_cookie=auth_settings.session_cookie,
        max_age=auth_settings.session_max_age,
        https_only=production,
    )

    @app.exception_handler(TrackerError)
    async def handle_tracker_error(request: Request, exc: TrackerError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("request_failed", path=request.url.path, error=str(exc))
        else:
            logger.warning("request_rejected", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response(production=production),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        audit_logger.log_error(
            error_type=type(exc).__name__,
            error_message=str(exc),
            details={"path": request.url.path},
            correlation_id=create_correlation_id(),
        )
        error = InternalError(str(exc))
        return JSONResponse(
            status_code=error.status_code,
            content=error.to_response(production=production),
        )

    # -------------------------------------------------------------------------
    # Public routes
    # -------------------------------------------------------------------------

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.post("/login")
    async def login(
        body: LoginRequest,
        request: Request,
    ) -> dict[str, bool]:
        if not body.username or not body.password:
            raise ValidationError(
                "Username and password are required",
                error="Missing credentials",
                fields=[
                    field
                    for field in ("username", "password")
                    if not getattr(body, field)
                ],
            )

        succeeded = verify_credentials(
            body.username,
            body.password,
            auth_settings.username,
            auth_settings.password_hash,
        )
        audit_logger.log_login(username=body.username, succeeded=succeeded)
        if not succeeded:
            raise UnauthorizedError("Invalid username or password")

        request.session[SESSION_KEY] = True
        return {"success": True}

    @app.post("/logout")
    async def logout(request: Request) -> dict[str, bool]:
        request.session.clear()
        return {"success": True}

    # -------------------------------------------------------------------------
    # Authenticated routes
    # -------------------------------------------------------------------------

    @app.get("/categories", dependencies=[Depends(require_session)])
    async def categories(
        components: LedgerComponents = Depends(get_components),
    ) -> list[dict[str, Any]]:
        return [_dump(category) for category in await components.catalog.categories()]

    @app.get("/accounts", dependencies=[Depends(require_session)])
    async def accounts(
        components: LedgerComponents = Depends(get_components),
    ) -> list[dict[str, Any]]:
        return [_dump(account) for account in await components.catalog.accounts()]

    @app.get("/balance", dependencies=[Depends(require_session)])
    async def balance(
        components: LedgerComponents = Depends(get_components),
    ) -> dict[str, Any]:
        report = await components.balances.balances(correlation_id=create_correlation_id())
        return _balance_body(report)

    @app.get("/recent-transactions", dependencies=[Depends(require_session)])
    async def recent_transactions(
        limit: Optional[int] = Depends(parse_recent_limit),
        components: LedgerComponents = Depends(get_components),
    ) -> list[dict[str, Any]]:
        transactions = await components.recent.recent(limit)
        return [_dump(transaction) for transaction in transactions]

    @app.post("/transaction", dependencies=[Depends(require_session)])
    async def create_transaction(
        body: TransactionRequest,
        components: LedgerComponents = Depends(get_components),
    ) -> dict[str, Any]:
        created = await components.writer.create(
            body,
            correlation_id=create_correlation_id(),
        )
        return _dump(created)

    return app


app = create_app()


def run() -> None:
    """Console entry point."""
    uvicorn.run("app.api:app", host="0.0.0.0", port=3000)


if __name__ == "__main__":
    run()
