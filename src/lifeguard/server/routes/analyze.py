"""Emergency analysis routes."""

import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from lifeguard.analysis import (
    AnalysisOutcome,
    AnalysisRequest,
    EmergencyAnalyzer,
    ErrorKind,
    categorize_error,
)
from lifeguard.errors import PreconditionError

logger = logging.getLogger(__name__)

router = APIRouter()


class AnalyzeBody(BaseModel):
    """Inbound payload from the capture UI."""

    image: str | None = None
    audio: str | None = None
    language: str | None = None


def _status_for(outcome: AnalysisOutcome) -> int:
    if outcome.success or outcome.error is None:
        return 200
    if outcome.error.kind is ErrorKind.PRECONDITION:
        return 400
    return 200


@router.post("/analyze")
async def analyze(body: AnalyzeBody, request: Request) -> JSONResponse:
    """Analyze one captured frame (and optional audio clip).

    Failures are reported in the body as ``{"success": false, "error": ...}``
    so the UI can style them by ``errorType``.
    """
    analyzer: EmergencyAnalyzer = request.app.state.analyzer
    config = request.app.state.config

    try:
        analysis_request = AnalysisRequest.from_base64(
            body.image,
            body.audio,
            body.language,
            image_mime_type=config.analysis.image_mime_type,
            audio_mime_type=config.analysis.audio_mime_type,
        )
    except PreconditionError as e:
        outcome = AnalysisOutcome.from_error(categorize_error(e))
    else:
        outcome = await analyzer.analyze(analysis_request)

    return JSONResponse(outcome.to_dict(), status_code=_status_for(outcome))


@router.get("/model-check")
async def model_check(request: Request) -> JSONResponse:
    """Verify the API key and model answer a trivial prompt."""
    analyzer: EmergencyAnalyzer = request.app.state.analyzer
    config = request.app.state.config

    if not analyzer.client.configured:
        return JSONResponse(
            {"success": False, "error": "API key not configured"}, status_code=500
        )

    try:
        text = await analyzer.check_connection(config.gemini.check_model)
    except Exception as e:
        error = categorize_error(e)
        logger.warning(
            "model_check_failed",
            extra={"error.kind": error.kind.value, "error.type": type(e).__name__},
        )
        status = 503 if error.kind is ErrorKind.CAPACITY else 500
        payload: dict[str, Any] = {"success": False, "error": error.message}
        return JSONResponse(payload, status_code=status)

    return JSONResponse({"success": True, "text": text})
