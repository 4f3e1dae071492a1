"""
API models (Pydantic DTOs).
"""

from poolfund.api.models.health import HealthResponse
from poolfund.api.models.proposal import (
    CancelProposalRequestModel,
    CastVoteRequestModel,
    CreateProposalRequestModel,
    CreateRuleChangeRequestModel,
    GovernanceErrorResponse,
    ProposalListResponse,
    ProposalRequirementResponse,
    ProposalResponse,
)

__all__: list[str] = [
    "CancelProposalRequestModel",
    "CastVoteRequestModel",
    "CreateProposalRequestModel",
    "CreateRuleChangeRequestModel",
    "GovernanceErrorResponse",
    "HealthResponse",
    "ProposalListResponse",
    "ProposalRequirementResponse",
    "ProposalResponse",
]
