"""Mapping from exceptions to the BFF error envelope.

{success: false, error, details?} with:
- 400 for rejected requests (nothing was sent upstream)
- the upstream status, or 502, for upstream API failures
- 500 for configuration, transport and unexpected errors
"""

from typing import Any

from fastapi.responses import JSONResponse

from fundboard.api.serialization import to_jsonable
from fundboard.exceptions import InvalidRequestError, UpstreamApiError
from fundboard.logging import get_logger

logger = get_logger(__name__)


def error_body(message: str, details: Any = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "error": message}
    if details is not None:
        body["details"] = to_jsonable(details)
    return body


def error_response(exc: Exception, event: str) -> JSONResponse:
    """Translate an exception into a JSONResponse and log it under ``event``."""
    if isinstance(exc, InvalidRequestError):
        logger.info(event, status=400, error=exc.message)
        return JSONResponse(error_body(exc.message, exc.details), status_code=400)

    if isinstance(exc, UpstreamApiError):
        status = exc.http_status
        logger.warning(event, status=status, error=exc.message)
        return JSONResponse(error_body(exc.message, exc.details), status_code=status)

    logger.error(event, status=500, error=str(exc), exc_info=exc)
    return JSONResponse(error_body(str(exc) or "Unknown error"), status_code=500)
