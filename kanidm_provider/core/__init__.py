"""Core logic for managing Kanidm resources.

Module Structure:
    - kanidm/                 : Low-level Kanidm REST API client
    - provisioning_service.py : Resource lifecycle flows (create + read back,
                                membership and scope-map reconciliation)
"""
