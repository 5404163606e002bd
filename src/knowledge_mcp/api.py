"""HTTP API exposing Knowledge article search and retrieval."""

import contextlib
import logging
import sys
import time
from typing import AsyncIterator

import uvicorn
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route

from .articles import ArticleService
from .config import load_config
from .exceptions import KnowledgeError
from .logging_config import setup_logging


logger = logging.getLogger(__name__)

# Seconds uvicorn waits for in-flight requests before forcing shutdown.
GRACEFUL_SHUTDOWN_TIMEOUT = 10


def _error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": {"message": message}}, status_code=status_code)


async def health(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def search_articles(request: Request) -> JSONResponse:
    service: ArticleService = request.app.state.service
    records = await service.search_articles(
        request.query_params.get("q"),
        request.query_params.get("limit")
    )
    return JSONResponse({"data": records})


async def get_article(request: Request) -> JSONResponse:
    service: ArticleService = request.app.state.service
    article = await service.get_article_by_id(request.path_params["article_id"])
    return JSONResponse({"data": article})


async def handle_knowledge_error(request: Request, exc: KnowledgeError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return _error_response(exc.message, exc.http_status)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    message = "Not found" if exc.status_code == 404 else exc.detail
    return _error_response(message, exc.status_code)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unexpected error handling {request.method} {request.url.path}")
    return _error_response(str(exc) or "Unexpected error", 500)


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of each request except health checks."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        if request.url.path != "/health":
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.info(f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.0f}ms")
        return response


def create_app(service: ArticleService) -> Starlette:
    """Build the ASGI application around a shared article service."""

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        try:
            yield
        finally:
            logger.info("API shutting down...")
            await service.aclose()

    app = Starlette(
        routes=[
            Route("/health", endpoint=health, methods=["GET"]),
            Mount("/articles", routes=[
                Route("/search", endpoint=search_articles, methods=["GET"]),
                Route("/{article_id}", endpoint=get_article, methods=["GET"]),
            ]),
        ],
        middleware=[Middleware(RequestLogMiddleware)],
        exception_handlers={
            KnowledgeError: handle_knowledge_error,
            HTTPException: handle_http_exception,
            Exception: handle_unexpected_error,
        },
        lifespan=lifespan,
    )
    app.state.service = service
    return app


def main():
    """Main entry point."""
    try:
        config = load_config()
    except KnowledgeError as e:
        setup_logging()
        logger.error(f"Failed to start API: {e.message}")
        sys.exit(1)

    setup_logging(config.log_level)
    app = create_app(ArticleService.from_config(config))
    logger.info(f"API listening on port {config.port}")
    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level="warning",
        timeout_graceful_shutdown=GRACEFUL_SHUTDOWN_TIMEOUT
    )


if __name__ == "__main__":
    main()
