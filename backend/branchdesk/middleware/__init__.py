# Middleware package init
"""
BranchDesk Backend — Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Access Logging] → Route Handler

    - Request ID is set first so the access log line and every handler log
      line for the request carry the same correlation id.
    - The access log is written on the way out, once status and duration are known.
"""
