"""
BranchDesk Backend — Branch Route Handlers
============================================

What:  Binds the five branch operations to HTTP methods and paths.
How:   Each route acquires a connection through `get_db_connection`, passes
       the raw path id / raw body to BranchService and writes the result with
       the response formatter. Failures are raised as BranchDeskError
       subclasses and rendered by the exception handler in main.py.

Route Inventory:
    GET    /branches         list all branches (200, bare JSON array)
    GET    /branches/{id}    one branch (200, bare JSON object)
    POST   /branches         create (201, success envelope, Location header)
    PUT    /branches/{id}    update (200, success envelope)
    DELETE /branches/{id}    delete (200, success envelope)

The `{id}` segment is declared as `str` and the body is read raw, so parse
and decode failures produce this API's own envelopes in pipeline order
instead of FastAPI's automatic 422.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncConnection

from branchdesk.database import get_db_connection
from branchdesk.responses import send_json, send_success, success_envelope
from branchdesk.schemas.branch import BranchRequest, BranchResponse, ErrorResponse, SuccessResponse
from branchdesk.services.branch_service import branch_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Branches"])

_BODY_SCHEMA = {
    "requestBody": {
        "required": True,
        "content": {"application/json": {"schema": BranchRequest.model_json_schema()}},
    }
}


@router.get(
    "/branches",
    response_model=None,
    responses={
        200: {"description": "All branches, ordered by id", "model": List[BranchResponse]},
        500: {"description": "Store failure", "model": ErrorResponse},
    },
    summary="List branches",
)
async def list_branches(conn: AsyncConnection = Depends(get_db_connection)) -> Response:
    items = await branch_service.list_branches(conn)
    return send_json(items, 200)


@router.get(
    "/branches/{branch_id}",
    response_model=None,
    responses={
        200: {"description": "The branch", "model": BranchResponse},
        400: {"description": "Id is not an integer", "model": ErrorResponse},
        404: {"description": "No such branch", "model": ErrorResponse},
        500: {"description": "Store failure", "model": ErrorResponse},
    },
    summary="Get a branch by id",
)
async def get_branch(
    branch_id: str,
    conn: AsyncConnection = Depends(get_db_connection),
) -> Response:
    branch = await branch_service.get_branch(conn, branch_id)
    return send_json(branch, 200)


@router.post(
    "/branches",
    response_model=None,
    status_code=201,
    responses={
        201: {"description": "Branch created", "model": SuccessResponse},
        400: {"description": "Malformed body or missing fields", "model": ErrorResponse},
        500: {"description": "Store failure", "model": ErrorResponse},
    },
    openapi_extra=_BODY_SCHEMA,
    summary="Create a branch",
)
async def create_branch(
    request: Request,
    conn: AsyncConnection = Depends(get_db_connection),
) -> Response:
    """
    Create a branch.

    The body of the 201 response is the envelope only; the new branch's URL
    is returned in the Location header.
    """
    body = await request.body()
    branch = await branch_service.create_branch(conn, body)

    response = send_success(success_envelope("Branches Successfully Created", 201), 201)
    if response.status_code == 201:
        response.headers["Location"] = f"/branches/{branch.id}"
    return response


@router.put(
    "/branches/{branch_id}",
    response_model=None,
    responses={
        200: {"description": "Branch updated", "model": SuccessResponse},
        400: {"description": "Malformed body or missing fields", "model": ErrorResponse},
        404: {"description": "No such branch", "model": ErrorResponse},
        502: {"description": "Id is not an integer", "model": ErrorResponse},
        500: {"description": "Store failure", "model": ErrorResponse},
    },
    openapi_extra=_BODY_SCHEMA,
    summary="Update a branch",
)
async def update_branch(
    branch_id: str,
    request: Request,
    conn: AsyncConnection = Depends(get_db_connection),
) -> Response:
    body = await request.body()
    await branch_service.update_branch(conn, branch_id, body)
    return send_success(success_envelope("Branch Updated Successfully"), 200)


@router.delete(
    "/branches/{branch_id}",
    response_model=None,
    responses={
        200: {"description": "Branch deleted", "model": SuccessResponse},
        404: {"description": "No such branch", "model": ErrorResponse},
        502: {"description": "Id is not an integer", "model": ErrorResponse},
        500: {"description": "Store failure", "model": ErrorResponse},
    },
    summary="Delete a branch",
)
async def delete_branch(
    branch_id: str,
    conn: AsyncConnection = Depends(get_db_connection),
) -> Response:
    await branch_service.delete_branch(conn, branch_id)
    return send_success(success_envelope("Branch Deleted Successfully"), 200)
