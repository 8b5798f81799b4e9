"""
pos_backend.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM models, engine/session setup, repositories and SQL-backed stores.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Nothing in `inventory` or `orders` imports this package; the SQL stores adapt the
# ORM to their protocols, so the core stays backend-agnostic.
