"""
BranchDesk Backend — Branch SQLAlchemy Model
==============================================

What:  ORM model representing the `branches` table.
How:   Inherits from the project's DeclarativeBase; BranchService issues Core
       statements against `Branch.__table__`.

Table Design:
    - branch_id: 64-bit surrogate key assigned by the store, never updated
      (BIGINT; plain INTEGER on SQLite, where only that type autoincrements)
    - name / location: required, non-empty text (enforced by BranchService;
      NOT NULL in the store)
"""

from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from branchdesk.database import Base


class Branch(Base):
    """
    A physical branch location.

    Lifecycle:
        1. Inserted by POST /branches (id assigned by the store)
        2. Read by GET /branches and GET /branches/{id}
        3. name/location replaced by PUT /branches/{id}
        4. Removed by DELETE /branches/{id} (hard delete)
    """

    __tablename__ = "branches"

    # Exposed as `id` on the wire (see schemas/branch.py)
    branch_id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    location: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Branch(branch_id={self.branch_id}, name='{self.name}', location='{self.location}')>"


# Core table handle used for raw statements
branches = Branch.__table__
