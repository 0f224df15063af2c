"""
BranchDesk Backend — Pydantic Request/Response Schemas
=======================================================

What:  Pydantic models defining the wire format of the branches API.
How:   BranchService decodes request bodies into BranchRequest and store rows
       into BranchResponse; the response formatter serializes envelopes.

Design Decision:
    Schemas are separate from the SQLAlchemy model: the wire field is `id`
    while the column is `branch_id`, and envelopes have no table at all.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


# ══════════════════════════════════════════════════════════════════════════
# Entity Models
# ══════════════════════════════════════════════════════════════════════════


class BranchResponse(BaseModel):
    """
    What:  A persisted branch as returned by GET /branches and GET /branches/{id}.
    Who:   Built from store rows by BranchService; serialized without an envelope.
    """
    id: int = Field(description="Store-assigned branch identifier")
    name: str = Field(description="Branch name")
    location: str = Field(description="Branch location")

    model_config = {"from_attributes": True}


class BranchRequest(BaseModel):
    """
    What:  Body accepted by POST /branches and PUT /branches/{id}.

    Missing or null fields decode as empty strings; BranchService then rejects them
    with "Name and Location are required fields". An `id` in the body is
    accepted and ignored.
    """
    id: Optional[int] = Field(default=None, description="Ignored on input")
    name: str = Field(default="", description="Branch name (required, non-empty)")
    location: str = Field(default="", description="Branch location (required, non-empty)")

    @field_validator("name", "location", mode="before")
    @classmethod
    def null_as_empty(cls, v):
        """JSON null leaves the field empty, like an absent key."""
        return "" if v is None else v


# ══════════════════════════════════════════════════════════════════════════
# Envelopes
# ══════════════════════════════════════════════════════════════════════════


class ResponseEnvelope(BaseModel):
    """
    Uniform status/title/detail wrapper.

    `status_code` drives the HTTP status line and is excluded from the body.

    Example:
        {"status": "404", "title": "Not Found", "detail": "Branch Not Found"}
    """
    status: str = Field(description="HTTP status code as a string")
    title: str = Field(description="Short category, e.g. 'Success' or 'Not Found'")
    detail: str = Field(description="Human-readable message")
    status_code: int = Field(default=200, exclude=True)


class SuccessResponse(ResponseEnvelope):
    """Envelope returned by create, update and delete."""


class ErrorResponse(ResponseEnvelope):
    """Envelope returned for every failed request."""


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and store status.
    Who:   Returned by GET /health for monitoring and load balancer probes.
    """
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
