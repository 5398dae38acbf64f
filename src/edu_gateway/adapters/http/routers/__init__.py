"""API routers for the HTTP gateway.

Provides FastAPI routers for all API endpoints:
- auth: Per-role login, token refresh, current principal
- health: Health check endpoints
- principals: CRUD and salary reports per stored role
"""

from edu_gateway.adapters.http.routers import auth, health, principals

__all__ = [
    "auth",
    "health",
    "principals",
]
