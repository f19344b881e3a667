"""
Mentoring API
Conversations, attributes and reports for mentors and their mentees
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from database import create_db_engine, create_session_factory, init_db
from errors import ImproperPayload, ServerError
from middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from routers import (
    attributes_router,
    conversations_router,
    groups_router,
    meta_router,
    reports_router,
    scripts_router,
    users_router,
)
from services.document_store import DocumentStore, SqlDocumentStore

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Setup logger
logger = logging.getLogger(__name__)


def error_response(error: ServerError) -> JSONResponse:
    return JSONResponse(status_code=error.status, content={"error": error.to_dict()})


def create_app(store: Optional[DocumentStore] = None) -> FastAPI:
    """
    Build the application.

    Args:
        store: The document store to serve from. When left out, a SQL store
            on ``settings.DATABASE_URL`` is created and its tables are made
            at startup.
    """
    app = FastAPI(
        title="Mentoring API",
        description="Conversations, attributes and reports for mentors and their mentees",
        version="1.0.0",
    )

    if store is None:
        engine = create_db_engine()
        app.state.engine = engine
        store = SqlDocumentStore(create_session_factory(engine))

        @app.on_event("startup")
        async def startup_event():
            """Initialize database on startup"""
            init_db(engine)
            logger.info("[OK] Database tables created")

    app.state.store = store

    # Security middleware
    app.add_middleware(SecurityHeadersMiddleware, api_prefix=settings.API_PREFIX)
    app.add_middleware(RequestLoggingMiddleware)

    # CORS middleware - Use configured origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=settings.allowed_origins_list != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.exception_handler(ServerError)
    async def server_error_handler(request: Request, exc: ServerError):
        if exc.status >= 500:
            logger.error(f"[ERROR] {request.method} {request.url.path}: {exc.code} {exc.message}")
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.info(f"[ERROR] improper payload on {request.method} {request.url.path}: {exc.errors()}")
        return error_response(ImproperPayload())

    @app.exception_handler(ValidationError)
    async def model_validation_handler(request: Request, exc: ValidationError):
        # Raised when a payload passes the request model but not the entity's own checks
        logger.info(f"[ERROR] invalid entity on {request.method} {request.url.path}: {exc.errors()}")
        first = exc.errors()[0] if exc.errors() else {}
        return error_response(ImproperPayload(first.get("msg")))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (404, 405):
            return error_response(ServerError("route-not-found"))
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": {"code": "server-crash", "message": str(exc.detail), "status": exc.status_code}},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"[ERROR] unhandled error on {request.method} {request.url.path}")
        return error_response(ServerError("server-crash"))

    # =========================================================================
    # ROUTES
    # =========================================================================

    app.include_router(meta_router)
    app.include_router(users_router)
    app.include_router(groups_router)
    app.include_router(conversations_router)
    app.include_router(attributes_router)
    app.include_router(reports_router)
    app.include_router(scripts_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "ok", "service": "mentoring-api", "version": "1.0.0"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
