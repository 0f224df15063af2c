# Routes package init
"""
BranchDesk Backend — API Routes Package
=========================================

Route Inventory:
    - branches.py:  GET/POST /branches, GET/PUT/DELETE /branches/{id}
    - health.py:    GET /health (storage reachability probe)

Routes stay thin: extract the raw id/body, call BranchService, write the
response with the response formatter.
"""
