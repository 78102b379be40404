"""
Domain Exceptions - failures of the outbound proxy and analysis handlers

Every exception here maps to a JSON error body of the form
``{"error": message}`` with a non-2xx status (see ``tracker_error_handler``).

Taxonomy:
    UpstreamError          - network failure or non-2xx from a third-party API
    MalformedPayloadError  - third-party API answered with an unexpected shape
    PreconditionError      - caller state is missing (no resume, no URL, ...)
    ConfigurationError     - server is missing an API key
"""

import logging
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class TrackerError(Exception):
    """Base class for errors surfaced to the caller as ``{"error": ...}``."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class UpstreamError(TrackerError):
    status_code = 502


class MalformedPayloadError(TrackerError):
    status_code = 502


class PreconditionError(TrackerError):
    status_code = 400


class ConfigurationError(TrackerError):
    status_code = 500


async def tracker_error_handler(request: Request, exc: TrackerError) -> JSONResponse:
    logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
