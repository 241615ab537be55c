"""API endpoint running the channel growth analysis."""

from __future__ import annotations

import logging
from typing import AsyncIterator

import httpx
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from growth_pilot.core.config import settings
from growth_pilot.schema.analysis import AnalysisReport, AnalyzeRequest, ErrorResponse
from growth_pilot.services.analyzer import ChannelAnalyzer
from growth_pilot.services.channel_feed import default_source
from growth_pilot.services.channel_resolver import EMPTY_QUERY_MESSAGE, default_directory
from growth_pilot.services.errors import AnalysisError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["analysis"])

GENERIC_FAILURE_MESSAGE = "Unable to analyze channel"


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


async def get_analyzer(request: Request) -> AsyncIterator[ChannelAnalyzer]:
    """Provide an analyzer bound to a per-request HTTP client and the app's feed cache."""

    async with httpx.AsyncClient(
        headers={"User-Agent": settings.user_agent},
        timeout=settings.upstream_timeout_seconds,
        follow_redirects=True,
    ) as client:
        yield ChannelAnalyzer(
            default_directory(client),
            default_source(client),
            cache=getattr(request.app.state, "feed_cache", None),
        )


@router.post(
    "/analyze",
    response_model=AnalysisReport,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def analyze_channel(
    payload: AnalyzeRequest,
    analyzer: ChannelAnalyzer = Depends(get_analyzer),
) -> AnalysisReport | JSONResponse:
    if not payload.query or not payload.query.strip():
        return error_response(status.HTTP_400_BAD_REQUEST, EMPTY_QUERY_MESSAGE)

    try:
        return await analyzer.analyze(payload.query)
    except AnalysisError as exc:
        logger.warning("Analysis failed for %r: %s", payload.query, exc)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message)
    except Exception:  # noqa: BLE001 - request boundary
        logger.exception("Unexpected failure analysing %r", payload.query)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_FAILURE_MESSAGE)
