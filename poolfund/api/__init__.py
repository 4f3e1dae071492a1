"""
API layer - FastAPI routes and HTTP concerns for the governance engine.

This layer contains:
- FastAPI route definitions
- Request/Response DTOs
- HTTP middleware

IMPORT RULES:
- CAN import from: application, bootstrap
- CANNOT import from: infrastructure directly
"""

__all__: list[str] = []
