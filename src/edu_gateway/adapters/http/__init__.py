"""HTTP gateway for the education backend.

Provides:
- REST API for per-role login and token refresh
- Principal management guarded by role allow-lists
"""

from edu_gateway.adapters.http.server import EduGatewayServer, create_app

__all__ = [
    "EduGatewayServer",
    "create_app",
]
