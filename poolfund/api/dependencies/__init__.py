"""API dependencies for dependency injection."""

from poolfund.api.dependencies.proposal import (
    USER_ID_HEADER,
    get_acting_user_id,
    get_lifecycle_service,
)

__all__: list[str] = [
    "USER_ID_HEADER",
    "get_acting_user_id",
    "get_lifecycle_service",
]
