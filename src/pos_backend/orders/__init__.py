"""
pos_backend.orders

Order domain package.

Responsibilities:
- Order request/record value types and money helpers.
- Order store protocol and in-memory store.
- The settlement engine.
"""

# Package marker.
