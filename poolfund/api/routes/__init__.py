"""
API routes.

Available routers:
- health: Health check endpoint
- proposals: Group proposal lifecycle
"""

from poolfund.api.routes.health import router as health_router
from poolfund.api.routes.proposals import router as proposals_router

__all__: list[str] = ["health_router", "proposals_router"]
