"""
pos_backend.inventory

Stock ledger package.

Responsibilities:
- Item store protocol and in-memory store.
- Per-item lock registry.
- The stock ledger (reserve / restock / read).
"""

# Package marker.
