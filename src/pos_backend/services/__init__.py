"""
pos_backend.services

Service-layer package.

Responsibilities:
- Own transaction boundaries and persistence decisions.
- Compose repositories, SQL stores and the core (ledger, settlement engine).
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services return typed results; they never raise HTTP errors.
