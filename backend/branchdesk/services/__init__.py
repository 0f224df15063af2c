# Services package init
"""
BranchDesk Backend — Services Layer
=====================================

Service Inventory:
    - BranchService: list/get/create/update/delete pipelines for branches

Services take an acquired connection and raw request data, and raise
BranchDeskError subclasses on failure. They know nothing about HTTP.
"""
