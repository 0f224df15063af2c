"""
BranchDesk Backend — Application Package Initializer
====================================================

What: The `branchdesk` package: an HTTP CRUD service for branch locations.
Who:  Imported by uvicorn (`branchdesk.main:app`), the console script and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │     Routes (routes/branches.py)     │  ← HTTP binding, raw id/body
    ├─────────────────────────────────────┤
    │ Services (services/branch_service)  │  ← validation + persistence pipelines
    ├─────────────────────────────────────┤
    │  Models & Schemas / responses.py    │  ← table, wire shapes, envelopes
    ├─────────────────────────────────────┤
    │      Storage Connector (database)   │  ← pooled engine, per-request connection
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
