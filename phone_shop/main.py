from __future__ import annotations

import argparse
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .catalog import CatalogStore
from .config import Settings
from .database import Storage
from .errors import ShopError
from .routers import cart_router, phone_router
from .utils.logging import add_context, clear_context, configure_logging, get_logger

logger = get_logger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Malformed JSON body"
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ShopError)
    async def _shop_error(request: Request, exc: ShopError):
        if exc.status_code >= 500:
            logger.error("Request failed", path=request.url.path, error=exc.message)
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        return _error(400, _describe_validation_error(exc))

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.exception("Unhandled error", path=request.url.path, method=request.method)
        return _error(500, "Internal Server Error")


def create_app(settings: Optional[Settings] = None, storage: Optional[Storage] = None) -> FastAPI:
    settings = settings or Settings()
    storage = storage or Storage(settings.database_url)
    storage.create_all()

    if settings.seed_catalog:
        with storage.session() as db:
            added = CatalogStore(db).seed()
        if added:
            logger.info("Seeded catalog", phones=added)

    app = FastAPI(
        title="Phone Shop",
        description="Phone catalog with a stock-reserving cart",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.storage = storage

    @app.middleware("http")
    async def _request_context(request: Request, call_next):
        clear_context()
        add_context(method=request.method, path=request.url.path)
        try:
            return await call_next(request)
        finally:
            clear_context()

    register_error_handlers(app)

    app.include_router(phone_router.router)
    app.include_router(cart_router.router)

    @app.get("/health")
    def health_check():
        return {"status": "healthy", "service": "phone-shop"}

    return app


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="phone-shop", description="Run the phone shop HTTP service")
    parser.add_argument("--host", default=None, help="Bind address (default: $HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (default: $PORT or 3000)")
    parser.add_argument("--no-seed", action="store_true", help="Start with an empty catalog")
    parser.add_argument("--log-level", default=None, help="Log level (default: $LOG_LEVEL or per $ENV)")
    return parser.parse_args(argv)


def settings_from_args(args: argparse.Namespace) -> Settings:
    settings = Settings()
    if args.host:
        settings.host = args.host
    if args.port is not None:
        settings.port = args.port
    if args.no_seed:
        settings.seed_catalog = False
    if args.log_level:
        settings.log_level = args.log_level
    return settings


def run(argv: Optional[list[str]] = None) -> None:
    settings = settings_from_args(parse_args(argv))
    configure_logging(settings.log_level)

    app = create_app(settings)
    logger.info("Server is running", url=f"http://{settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
