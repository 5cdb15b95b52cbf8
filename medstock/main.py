import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse

from medstock.api.endpoints.pages import StaticAssets
from medstock.api.router import api_router, public_router
from medstock.core.config import get_settings
from medstock.core.database import SessionLocal, init_db
from medstock.core.exceptions import InventoryError, LoginRequiredError
from medstock.services.credential_service import get_admin_password_hash

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if settings.auto_create_tables:
        init_db()
        logger.info("Database tables are ready.")
    # Seed the bootstrap admin password on first start
    with SessionLocal() as db:
        get_admin_password_hash(db)
    yield


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(LoginRequiredError)
    async def login_required_handler(request: Request, exc: LoginRequiredError):
        return RedirectResponse("/login.html", status_code=status.HTTP_302_FOUND)

    @app.exception_handler(InventoryError)
    async def inventory_error_handler(request: Request, exc: InventoryError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content={"message": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        messages = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
            messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": "; ".join(messages) or "Invalid request."},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal server error."},
        )


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Medical Supply Inventory",
        lifespan=lifespan,
    )
    register_exception_handlers(app)

    @app.get("/health", tags=["health"])
    async def root_health() -> dict:
        """
        Global health check endpoint.
        """
        return {"status": "ok"}

    app.include_router(public_router)
    app.include_router(api_router, prefix=settings.api_prefix)

    # Login page, scripts and styles; must be mounted after the guarded page routes
    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.mount("/", StaticAssets(directory=static_dir), name="static")
    else:
        logger.warning("Static directory '%s' not found; HTML pages are not served.", static_dir)

    return app


app = create_app()
