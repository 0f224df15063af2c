"""
BranchDesk Backend — Branch Service (Resource Handlers)
========================================================

What:  The five branch operations: list, get, create, update, delete.
How:   Each operation is a linear pipeline over one acquired connection.
       The first failing step raises a BranchDeskError subclass, which ends
       the pipeline; the exception handler turns it into the error envelope.
Who:   Called by the route handlers in routes/branches.py.
When:  Once per branch request.

Pipelines:
    list    select all (ORDER BY branch_id) → decode rows, skip bad ones
    get     parse id → select by id → 404 if absent → decode
    create  decode body → require name/location → insert → check rowcount → id
    update  parse id → existence check → decode body → require fields → update
    delete  parse id → existence check → delete

    Update checks existence BEFORE decoding the body, so PUT with a bad body
    on a missing id answers 404, not 400.

Check-then-act:
    Update and delete read, then write, with no lock in between. A row deleted
    concurrently between the two statements still yields a success response;
    the zero rowcount is logged as a warning.
"""

import logging
import re
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from branchdesk.config import settings
from branchdesk.exceptions import (
    InvalidIdentifierError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from branchdesk.models.branch import branches
from branchdesk.schemas.branch import BranchRequest, BranchResponse

logger = logging.getLogger(__name__)

# Optional sign followed by digits; anything else is not a branch id
_ID_PATTERN = re.compile(r"[+-]?[0-9]+")
_ID_MIN = -(2 ** 63)
_ID_MAX = 2 ** 63 - 1


def parse_branch_id(raw_id: str, detail: str = "Invalid Branches ID", gateway: bool = False) -> int:
    """
    Parse the `{id}` path segment as a signed 64-bit integer.

    Raises:
        InvalidIdentifierError: 400, or 502 when `gateway` is set.
    """
    if _ID_PATTERN.fullmatch(raw_id or ""):
        value = int(raw_id)
        if _ID_MIN <= value <= _ID_MAX:
            return value
    raise InvalidIdentifierError(raw_id=raw_id, detail=detail, gateway=gateway)


def decode_branch(body: bytes) -> BranchRequest:
    """
    Decode a JSON request body and require non-empty name and location.

    Raises:
        ValidationError: "Invalid request body" for malformed JSON or wrong
        field types, "Name and Location are required fields" for empty values.
    """
    try:
        payload = BranchRequest.model_validate_json(body)
    except PydanticValidationError as exc:
        raise ValidationError(
            detail="Invalid request body",
            context={"errors": exc.error_count()},
        ) from exc

    if payload.name == "" or payload.location == "":
        raise ValidationError(detail="Name and Location are required fields")
    return payload


class BranchService:
    """
    Business logic for the branch resource.

    Error Handling Strategy:
        Driver errors (SQLAlchemyError) are logged with their message and
        re-raised as PersistenceError carrying a generic detail; the driver
        message never reaches the client.
    """

    def __init__(self, unify_invalid_id_status: bool = False):
        # PUT/DELETE answer 502 for an unparsable id unless unified to 400
        self.invalid_id_gateway = not unify_invalid_id_status

    async def list_branches(self, conn: AsyncConnection) -> List[BranchResponse]:
        """
        Return every branch in insertion (id) order.

        A row that cannot be decoded into a BranchResponse is logged and
        skipped; the rest of the list is still returned.

        Raises:
            PersistenceError: the select failed.
        """
        query = select(
            branches.c.branch_id.label("id"),
            branches.c.name,
            branches.c.location,
        ).order_by(branches.c.branch_id)

        try:
            result = await conn.execute(query)
        except SQLAlchemyError as e:
            logger.error("Failed to fetch branches: %s", e)
            raise PersistenceError(
                detail="Failed to fetch branches",
                context={"error": str(e)},
            ) from e

        items: List[BranchResponse] = []
        for row in result.mappings():
            try:
                items.append(BranchResponse.model_validate(dict(row)))
            except PydanticValidationError as e:
                logger.warning("Error scanning row %r: %s", row.get("id"), e)
                continue
        return items

    async def get_branch(self, conn: AsyncConnection, raw_id: str) -> BranchResponse:
        """
        Fetch one branch by its path id.

        Raises:
            InvalidIdentifierError: id is not an integer (400)
            NotFoundError: no such branch (404)
            PersistenceError: query failed or the row could not be decoded (500)
        """
        branch_id = parse_branch_id(raw_id)

        query = select(
            branches.c.branch_id.label("id"),
            branches.c.name,
            branches.c.location,
        ).where(branches.c.branch_id == branch_id)

        try:
            result = await conn.execute(query)
            row = result.mappings().first()
        except SQLAlchemyError as e:
            logger.error("Failed to fetch branches details: %s", e)
            raise PersistenceError(
                detail="Failed to fetch branches details",
                context={"branch_id": branch_id, "error": str(e)},
            ) from e

        if row is None:
            raise NotFoundError(detail="Branches Not Found", resource_id=branch_id)

        try:
            return BranchResponse.model_validate(dict(row))
        except PydanticValidationError as e:
            logger.error("Failed to fetch branches details: %s", e)
            raise PersistenceError(
                detail="Failed to fetch branches details",
                context={"branch_id": branch_id, "error": str(e)},
            ) from e

    async def create_branch(self, conn: AsyncConnection, body: bytes) -> BranchResponse:
        """
        Insert a new branch from a JSON body and return it with its new id.

        Raises:
            ValidationError: malformed body or empty name/location (400)
            PersistenceError: insert failed or affected no rows (500)
        """
        payload = decode_branch(body)

        stmt = insert(branches).values(name=payload.name, location=payload.location)
        try:
            result = await conn.execute(stmt)
            await conn.commit()
        except SQLAlchemyError as e:
            logger.error("Failed to insert into the database: %s", e)
            raise PersistenceError(
                detail="Failed to insert into the database",
                context={"error": str(e)},
            ) from e

        if result.rowcount == 0:
            logger.error("Error creating branches: no rows affected")
            raise PersistenceError(detail="Failed to create branches")

        primary_key = result.inserted_primary_key
        new_id: Optional[int] = primary_key[0] if primary_key else None
        logger.info("Branch created: id=%s", new_id)
        return BranchResponse(id=new_id or 0, name=payload.name, location=payload.location)

    async def update_branch(self, conn: AsyncConnection, raw_id: str, body: bytes) -> None:
        """
        Replace name and location of an existing branch.

        Order: parse id → existence check → decode body → update.

        Raises:
            InvalidIdentifierError: id is not an integer (502, or 400 when unified)
            NotFoundError: no such branch (404)
            ValidationError: malformed body or empty name/location (400)
            PersistenceError: a statement failed (500)
        """
        branch_id = parse_branch_id(
            raw_id, detail="Invalid Branch ID", gateway=self.invalid_id_gateway
        )
        await self._ensure_exists(conn, branch_id, "Failed To Check Branch Existence")

        payload = decode_branch(body)

        stmt = (
            update(branches)
            .where(branches.c.branch_id == branch_id)
            .values(name=payload.name, location=payload.location)
        )
        try:
            result = await conn.execute(stmt)
            await conn.commit()
        except SQLAlchemyError as e:
            logger.error("Failed to update branch: %s", e)
            raise PersistenceError(
                detail="Failed To Update Branch",
                context={"branch_id": branch_id, "error": str(e)},
            ) from e

        if result.rowcount == 0:
            logger.warning("Branch %d vanished before update; reporting success", branch_id)
        else:
            logger.info("Branch updated: id=%d", branch_id)

    async def delete_branch(self, conn: AsyncConnection, raw_id: str) -> None:
        """
        Delete an existing branch.

        Raises:
            InvalidIdentifierError: id is not an integer (502, or 400 when unified)
            NotFoundError: no such branch (404)
            PersistenceError: a statement failed (500)
        """
        branch_id = parse_branch_id(raw_id, gateway=self.invalid_id_gateway)
        await self._ensure_exists(conn, branch_id, "Failed To Check Branches Existence")

        stmt = delete(branches).where(branches.c.branch_id == branch_id)
        try:
            result = await conn.execute(stmt)
            await conn.commit()
        except SQLAlchemyError as e:
            logger.error("Failed to delete branch: %s", e)
            raise PersistenceError(
                detail="Failed To Delete Branch",
                context={"branch_id": branch_id, "error": str(e)},
            ) from e

        if result.rowcount == 0:
            logger.warning("Branch %d vanished before delete; reporting success", branch_id)
        else:
            logger.info("Branch deleted: id=%d", branch_id)

    async def _ensure_exists(self, conn: AsyncConnection, branch_id: int, failure_detail: str) -> None:
        """Raise NotFoundError unless a row with `branch_id` exists."""
        query = select(branches.c.branch_id).where(branches.c.branch_id == branch_id)
        try:
            result = await conn.execute(query)
            row = result.first()
        except SQLAlchemyError as e:
            logger.error("%s: %s", failure_detail, e)
            raise PersistenceError(
                detail=failure_detail,
                context={"branch_id": branch_id, "error": str(e)},
            ) from e

        if row is None:
            raise NotFoundError(detail="Branch Not Found", resource_id=branch_id)


# ── Singleton Instance ────────────────────────────────────────────────────
branch_service = BranchService(unify_invalid_id_status=settings.unify_invalid_id_status)
