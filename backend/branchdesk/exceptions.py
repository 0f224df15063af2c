"""
BranchDesk Backend — Custom Exception Hierarchy
=================================================

What:  Defines application-specific exceptions for each failure a branch
       request can end in.
How:   Each exception carries the envelope fields returned to the client
       (status code, title, detail) and an optional context dict that is
       logged server-side only. The exception handler registered in main.py
       turns any BranchDeskError into an error envelope.
Who:   Raised by the storage connector, BranchService and the response formatter.
When:  During request processing; the first failing step of a pipeline raises.

Exception Hierarchy:
    BranchDeskError (base)              → 500 Internal Server Error
    ├── StorageConnectionError          → 500 (fatal during startup)
    ├── ValidationError                 → 400 Bad Request
    │   └── InvalidIdentifierError      → 400 Bad Request or 502 Bad Gateway
    ├── NotFoundError                   → 404 Not Found
    ├── PersistenceError                → 500 Internal Server Error
    └── EncodingError                   → plain-text 500 fallback
"""

from typing import Any, Dict, Optional


class BranchDeskError(Exception):
    """
    Base exception for all BranchDesk application errors.

    Attributes:
        detail:       Client-facing message (safe to return in the envelope)
        status_code:  HTTP status used for the response status line
        title:        Short category placed in the envelope's `title`
        context:      Additional debug info (logged but NOT returned to client)
    """

    status_code: int = 500
    title: str = "Internal Server Error"

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
        title: Optional[str] = None,
    ):
        self.detail = detail
        self.context = context or {}
        if status_code is not None:
            self.status_code = status_code
        if title is not None:
            self.title = title
        super().__init__(self.detail)


class StorageConnectionError(BranchDeskError):
    """
    Raised when the relational store cannot be reached.

    When:    Checkout or liveness ping of a connection fails.
    HTTP:    500 Internal Server Error for a request; aborts startup otherwise.
    """

    def __init__(
        self,
        detail: str = "Failed to connect to the database",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(detail=detail, context=context)


class ValidationError(BranchDeskError):
    """
    Raised when client input fails validation.

    When:    Malformed JSON body, missing name/location, unparsable id.
    HTTP:    400 Bad Request
    """

    status_code = 400
    title = "Bad Request"

    def __init__(
        self,
        detail: str = "Invalid request body",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(detail=detail, context=ctx)
        self.field = field


class InvalidIdentifierError(ValidationError):
    """
    Raised when the `{id}` path segment is not an integer.

    GET answers 400 Bad Request. PUT and DELETE answer 502 Bad Gateway unless
    `settings.unify_invalid_id_status` is enabled, so the status is chosen
    by the caller.
    """

    def __init__(
        self,
        raw_id: str,
        detail: str = "Invalid Branches ID",
        gateway: bool = False,
    ):
        super().__init__(detail=detail, field="id", context={"raw_id": raw_id})
        if gateway:
            self.status_code = 502
            self.title = "Bad Gateway"


class NotFoundError(BranchDeskError):
    """
    Raised when no branch matches the requested id.

    HTTP:    404 Not Found
    """

    status_code = 404
    title = "Not Found"

    def __init__(
        self,
        detail: str = "Branch Not Found",
        resource_id: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(detail=detail, context=ctx)


class PersistenceError(BranchDeskError):
    """
    Raised when a query or statement against the store fails.

    HTTP:    500 Internal Server Error

    Security Note:
        The detail returned to the client is always generic. The driver error
        is kept in `context` and logged server-side only.
    """

    def __init__(
        self,
        detail: str = "A database error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(detail=detail, context=context)


class EncodingError(BranchDeskError):
    """
    Raised when a response body cannot be serialized to JSON.

    The response formatter answers with a plain-text 500 instead of an envelope.
    """

    def __init__(
        self,
        detail: str = "Failed to encode JSON response",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(detail=detail, context=context)
