"""Proposal API request/response models.

Pydantic models for the group proposal endpoints. Enum values on the
wire are exactly the domain values (Open, Approved, RuleChange, ...)
and timestamps are ISO 8601 with a Z suffix.

Developer Golden Rules:
1. VALIDATE EARLY - Pydantic handles schema validation
2. FAIL LOUD - Invalid requests return 400 with RFC 7807
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any
from uuid import UUID

from pydantic import BaseModel, Field, PlainSerializer, field_validator

from poolfund.domain.models.governance_model import GovernanceModel
from poolfund.domain.models.proposal import Proposal, Vote
from poolfund.domain.models.proposal_requirement import ProposalRequirement

# ISO 8601 with Z suffix (Pydantic v2)
DateTimeWithZ = Annotated[
    datetime,
    PlainSerializer(
        lambda v: v.isoformat().replace("+00:00", "Z") if v else None, return_type=str
    ),
]


class ProposalTypeEnum(str, Enum):
    RULE_CHANGE = "RuleChange"
    LOAN_APPROVAL = "LoanApproval"
    MEMBER_REMOVAL = "MemberRemoval"


class ProposalStatusEnum(str, Enum):
    OPEN = "Open"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    EXPIRED = "Expired"
    CANCELLED = "Cancelled"


class ChangeTypeEnum(str, Enum):
    RULE_CHANGE = "RuleChange"
    LOAN_APPROVAL = "LoanApproval"
    MEMBER_REMOVAL = "MemberRemoval"
    INITIAL_CONFIG = "InitialConfig"


# =============================================================================
# Requests
# =============================================================================


class CreateProposalRequestModel(BaseModel):
    """Open a proposal with a type-specific payload.

    Payload shapes:
        RuleChange:    {"<field>": {"from": old, "to": new}, ...}
        LoanApproval:  {"loan_id": "...", "borrower_id": "...", "amount": 100.0}
        MemberRemoval: {"member_id": "...", "reason": "..."}
    """

    type: ProposalTypeEnum = Field(..., description="Kind of change proposed")
    payload: dict[str, Any] = Field(..., description="Type-specific change description")
    proposed_by_name: str | None = Field(default=None, max_length=100)
    title: str | None = Field(default=None, min_length=5, max_length=100)
    description: str | None = Field(default=None, min_length=10, max_length=500)
    expires_at: datetime | None = Field(
        default=None, description="Voting deadline; defaults to the configured window"
    )

    @field_validator("expires_at")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        """Treat a timestamp without offset as UTC."""
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class CreateRuleChangeRequestModel(BaseModel):
    """Open a rule change from the current and proposed rule sets."""

    current_rules: dict[str, Any] = Field(..., description="Rules as they are now")
    proposed_rules: dict[str, Any] = Field(..., description="Rules as proposed")
    proposed_by_name: str | None = Field(default=None, max_length=100)
    title: str | None = Field(default=None, min_length=5, max_length=100)
    description: str | None = Field(default=None, min_length=10, max_length=500)


class CastVoteRequestModel(BaseModel):
    """Cast a vote. voter_id, when given, must match the acting user."""

    approve: bool = Field(..., description="True to approve, False to reject")
    comment: str | None = Field(default=None, max_length=255)
    voter_id: str | None = Field(default=None)


class CancelProposalRequestModel(BaseModel):
    """Cancel an open proposal. cancelled_by, when given, must match the acting user."""

    reason: str = Field(..., min_length=1, max_length=255)
    cancelled_by: str | None = Field(default=None)


# =============================================================================
# Responses
# =============================================================================


class VoteResponse(BaseModel):
    voter_id: str
    approve: bool
    cast_at: DateTimeWithZ
    comment: str | None = None

    @classmethod
    def from_domain(cls, vote: Vote) -> "VoteResponse":
        return cls(
            voter_id=vote.voter_id,
            approve=vote.approve,
            cast_at=vote.cast_at,
            comment=vote.comment,
        )


class ProposalResponse(BaseModel):
    """A proposal with its votes and tally."""

    id: UUID
    group_id: str
    type: ProposalTypeEnum
    payload: dict[str, Any]
    proposed_by: str
    proposed_by_name: str
    title: str | None = None
    description: str | None = None
    status: ProposalStatusEnum
    votes: list[VoteResponse]
    approve_count: int
    reject_count: int
    created_at: DateTimeWithZ
    expires_at: DateTimeWithZ
    resolved_at: DateTimeWithZ | None = None
    cancelled_by: str | None = None
    cancellation_reason: str | None = None
    applied_at: DateTimeWithZ | None = None
    apply_error: str | None = None
    apply_claimed_at: DateTimeWithZ | None = None

    @classmethod
    def from_domain(cls, proposal: Proposal) -> "ProposalResponse":
        approve_count = sum(1 for vote in proposal.votes if vote.approve)
        return cls(
            id=proposal.id,
            group_id=proposal.group_id,
            type=ProposalTypeEnum(proposal.type.value),
            payload=proposal.payload.to_dict(),
            proposed_by=proposal.proposed_by,
            proposed_by_name=proposal.proposed_by_name,
            title=proposal.title,
            description=proposal.description,
            status=ProposalStatusEnum(proposal.status.value),
            votes=[VoteResponse.from_domain(vote) for vote in proposal.votes],
            approve_count=approve_count,
            reject_count=len(proposal.votes) - approve_count,
            created_at=proposal.created_at,
            expires_at=proposal.expires_at,
            resolved_at=proposal.resolved_at,
            cancelled_by=proposal.cancelled_by,
            cancellation_reason=proposal.cancellation_reason,
            applied_at=proposal.applied_at,
            apply_error=proposal.apply_error,
            apply_claimed_at=proposal.apply_claimed_at,
        )


class ProposalListResponse(BaseModel):
    proposals: list[ProposalResponse]
    total: int


class GovernanceModelResponse(BaseModel):
    mode: str
    quorum_kind: str
    quorum_value: float
    admin_has_tiebreaker: bool

    @classmethod
    def from_domain(cls, model: GovernanceModel) -> "GovernanceModelResponse":
        return cls(
            mode=model.mode.value,
            quorum_kind=model.quorum_kind.value,
            quorum_value=model.quorum_value,
            admin_has_tiebreaker=model.admin_has_tiebreaker,
        )


class ProposalRequirementResponse(BaseModel):
    """Whether a change must go through a proposal, and why."""

    required: bool
    reason: str
    governance_model: GovernanceModelResponse | None = None

    @classmethod
    def from_domain(cls, requirement: ProposalRequirement) -> "ProposalRequirementResponse":
        return cls(
            required=requirement.required,
            reason=requirement.reason.value,
            governance_model=(
                GovernanceModelResponse.from_domain(requirement.governance_model)
                if requirement.governance_model is not None
                else None
            ),
        )


class GovernanceErrorResponse(BaseModel):
    """Error response for proposal operations (RFC 7807)."""

    type: str = Field(..., description="Error type URI")
    title: str = Field(..., description="Human-readable error title")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Detailed error message")
    instance: str = Field(..., description="Request path that caused the error")
