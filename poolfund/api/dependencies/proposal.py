"""Proposal API dependencies.

Route handlers receive the lifecycle service through these providers.
The singletons live in poolfund.bootstrap.proposal_governance so tests
can swap collaborators before the first request.
"""

from fastapi import Header

from poolfund.application.services.proposal_lifecycle_service import (
    ProposalLifecycleService,
)
from poolfund.bootstrap.proposal_governance import get_proposal_lifecycle_service

# Acting user header; authentication happens upstream
USER_ID_HEADER = "X-User-Id"


def get_lifecycle_service() -> ProposalLifecycleService:
    return get_proposal_lifecycle_service()


async def get_acting_user_id(
    x_user_id: str = Header(..., alias=USER_ID_HEADER, min_length=1),
) -> str:
    """Return the authenticated user id forwarded by the gateway."""
    return x_user_id
