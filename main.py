"""
Anthology API: personal library catalogue with shelves, series and catalog lookups
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, load_settings
from dependencies import LOCAL_OWNER_ID
from logging_config import configure_logging
from middleware import register_middleware
from models.database import build_engine, build_session_factory, init_db
from repositories import (
    InMemoryAuthRepository,
    InMemoryItemRepository,
    InMemoryShelfRepository,
    SqlAuthRepository,
    SqlItemRepository,
    SqlShelfRepository,
)
from routers import (
    catalog_router,
    items_router,
    oauth_router,
    series_router,
    session_router,
    shelves_router,
)
from seed import seed_library
from services.auth_service import AuthService
from services.catalog_service import CatalogService
from services.csv_importer import CSVImporter
from services.exceptions import AnthologyError
from services.google_oauth import GoogleAuthenticator
from services.item_service import ItemService
from services.login_limiter import LoginAttemptTracker
from services.shelf_service import ShelfService

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None,
               catalog_service: Optional[CatalogService] = None,
               google_authenticator: Optional[GoogleAuthenticator] = None,
               seed_demo_data: bool = True) -> FastAPI:
    """
    Builds the application: repositories chosen by DATA_STORE, services,
    routers, middleware and error handlers.
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    if settings.use_memory_store:
        logger.info("Using in-memory repositories")
        item_repository = InMemoryItemRepository()
        shelf_repository = InMemoryShelfRepository()
        auth_repository = InMemoryAuthRepository()
    else:
        logger.info("Using database repositories")
        engine = build_engine(settings.database_url)
        init_db(engine)
        session_factory = build_session_factory(engine)
        item_repository = SqlItemRepository(session_factory)
        shelf_repository = SqlShelfRepository(session_factory)
        auth_repository = SqlAuthRepository(session_factory)

    catalog_service = catalog_service or CatalogService(api_key=settings.google_books_api_key)
    item_service = ItemService(item_repository, catalog_service)
    shelf_service = ShelfService(shelf_repository, item_repository, item_service, catalog_service)

    if google_authenticator is None and settings.oauth_enabled:
        google_authenticator = GoogleAuthenticator(
            settings.google_client_id,
            settings.google_client_secret,
            settings.google_redirect_url,
            allowed_domains=settings.allowed_domains,
            allowed_emails=settings.allowed_emails,
        )
        if not google_authenticator.has_allowlist():
            logger.warning("OAuth enabled without ALLOWED_EMAILS or ALLOWED_DOMAINS; any Google account can sign in")

    if not settings.auth_enabled:
        logger.warning("Authentication disabled; /api endpoints are unauthenticated")

    app = FastAPI(title="Anthology", description="Personal library catalogue API")
    app.state.settings = settings
    app.state.item_service = item_service
    app.state.shelf_service = shelf_service
    app.state.catalog_service = catalog_service
    app.state.csv_importer = CSVImporter(item_service, catalog_service)
    app.state.auth_service = AuthService(auth_repository)
    app.state.login_tracker = LoginAttemptTracker()
    app.state.google_authenticator = google_authenticator

    app.include_router(items_router)
    app.include_router(series_router)
    app.include_router(catalog_router)
    app.include_router(shelves_router)
    app.include_router(session_router)
    app.include_router(oauth_router)

    @app.get("/health", tags=["health"])
    def health():
        return {"status": "ok", "environment": settings.environment}

    register_exception_handlers(app)
    register_middleware(app, settings.request_timeout_seconds, settings.is_development)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Accept", "Authorization", "Content-Type", "X-CSRF-Token"],
        expose_headers=["Link"],
        max_age=300,
    )

    if settings.use_memory_store and seed_demo_data:
        seed_library(item_service, shelf_service, LOCAL_OWNER_ID)

    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Every error response is {"error": message}"""

    @app.exception_handler(AnthologyError)
    async def anthology_error_handler(request: Request, exc: AnthologyError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)},
                            headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        logger.debug(f"Rejected request for {request.url.path}: {errors}")
        location = tuple(errors[0].get("loc", ())) if errors else ()
        if len(location) >= 2 and location[0] == "query":
            return JSONResponse(status_code=400, content={"error": f"invalid {location[1]} filter"})
        return JSONResponse(status_code=400, content={"error": "invalid request body"})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"error": "unexpected error"})


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=app.state.settings.http_port)
