"""
pos_backend.api.routers

HTTP routers, one module per resource.
"""
