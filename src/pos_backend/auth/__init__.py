"""
pos_backend.auth

Authentication/authorization package.

Responsibilities:
- JWT issuing and credential verification.
- Role gate and the versioned role policy.
- Password hashing.
- FastAPI auth dependencies (CallerIdentity + policy-driven RBAC).
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Nothing here imports FastAPI except `deps`; the rest is reusable from workers/CLIs.
