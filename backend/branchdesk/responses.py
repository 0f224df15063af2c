"""
BranchDesk Backend — Response Formatter
========================================

What:  Builds the HTTP responses for every branch endpoint.
How:   Serializes the payload to JSON first and only then builds a
       Response with the status line and `application/json` content type.
       If serialization fails the caller gets a plain-text 500 instead.
Who:   Route handlers (success paths) and the exception handler in main.py
       (error paths).

Functions:
    send_success(envelope, status)  → SuccessResponse body
    send_error(envelope, status)    → ErrorResponse body
    send_json(payload, status)      → bare entity / entity list (list and get)
    error_envelope(exc)             → ErrorResponse built from a BranchDeskError
"""

import json
import logging
from typing import Any

from fastapi.encoders import jsonable_encoder
from starlette.responses import PlainTextResponse, Response

from branchdesk.exceptions import BranchDeskError, EncodingError
from branchdesk.schemas.branch import ErrorResponse, SuccessResponse

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"


def _encode(payload: Any) -> bytes:
    """
    Serialize a payload (pydantic models, lists of them, plain dicts) to JSON bytes.

    Raises:
        EncodingError: the payload holds something JSON cannot represent.
    """
    try:
        return json.dumps(
            jsonable_encoder(payload),
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
        ).encode("utf-8")
    except (TypeError, ValueError, RecursionError) as exc:
        raise EncodingError(context={"error": str(exc), "payload_type": type(payload).__name__}) from exc


def _write(payload: Any, status_code: int) -> Response:
    try:
        body = _encode(payload)
    except EncodingError as exc:
        logger.error("%s: %s", exc.detail, exc.context)
        return PlainTextResponse(exc.detail, status_code=500)
    return Response(content=body, status_code=status_code, media_type=JSON_MEDIA_TYPE)


def send_json(payload: Any, status_code: int = 200) -> Response:
    """Write an unwrapped payload, e.g. a branch or a list of branches."""
    return _write(payload, status_code)


def send_success(envelope: SuccessResponse, status_code: int) -> Response:
    """Write a success envelope with the given HTTP status."""
    return _write(envelope, status_code)


def send_error(envelope: ErrorResponse, status_code: int) -> Response:
    """Write an error envelope with the given HTTP status."""
    return _write(envelope, status_code)


def success_envelope(detail: str, status_code: int = 200) -> SuccessResponse:
    return SuccessResponse(
        status=str(status_code),
        title="Success",
        detail=detail,
        status_code=status_code,
    )


def error_envelope(exc: BranchDeskError) -> ErrorResponse:
    return ErrorResponse(
        status=str(exc.status_code),
        title=exc.title,
        detail=exc.detail,
        status_code=exc.status_code,
    )
