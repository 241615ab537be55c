"""FastAPI app entry point."""

from __future__ import annotations

import logging
from typing import Any, Sequence

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from growth_pilot.core.config import settings
from growth_pilot.routers import analyze
from growth_pilot.services.channel_resolver import EMPTY_QUERY_MESSAGE
from growth_pilot.services.feed_cache import FeedCache


def describe_validation_errors(errors: Sequence[dict[str, Any]]) -> str:
    """Render request validation errors as one readable sentence."""

    if not errors:
        return "Invalid request body"
    messages = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return "Invalid request body: " + "; ".join(messages)


def create_app() -> FastAPI:
    """Build FastAPI application."""

    logging.basicConfig(level=settings.log_level)

    app = FastAPI(title="YouTube Growth Pilot", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(analyze.router)

    app.state.feed_cache = FeedCache(
        ttl_seconds=settings.feed_cache_ttl_seconds,
        max_entries=settings.feed_cache_max_entries,
    )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        if errors and all(error.get("type") == "missing" for error in errors):
            return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": EMPTY_QUERY_MESSAGE})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": describe_validation_errors(errors)},
        )

    @app.get("/healthz", tags=["health"])
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()


def run() -> None:
    """Serve the app with uvicorn."""

    uvicorn.run("growth_pilot.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
