"""Domain models for group governance."""

from poolfund.domain.models.governance_model import (
    DEFAULT_GOVERNANCE_MODEL,
    GovernanceMode,
    GovernanceModel,
    QuorumKind,
)
from poolfund.domain.models.group_members import GroupMembers
from poolfund.domain.models.proposal import (
    DEFAULT_PROPOSAL_LIFETIME,
    TERMINAL_STATUSES,
    FieldChange,
    LoanApprovalPayload,
    MemberRemovalPayload,
    Proposal,
    ProposalPayload,
    ProposalPayloadVisitor,
    ProposalStatus,
    ProposalType,
    RuleChangePayload,
    Vote,
    payload_from_dict,
)
from poolfund.domain.models.proposal_requirement import (
    ChangeType,
    ProposalRequirement,
    RequirementReason,
)

__all__: list[str] = [
    "DEFAULT_GOVERNANCE_MODEL",
    "DEFAULT_PROPOSAL_LIFETIME",
    "TERMINAL_STATUSES",
    "ChangeType",
    "FieldChange",
    "GovernanceMode",
    "GovernanceModel",
    "GroupMembers",
    "LoanApprovalPayload",
    "MemberRemovalPayload",
    "Proposal",
    "ProposalPayload",
    "ProposalPayloadVisitor",
    "ProposalRequirement",
    "ProposalStatus",
    "ProposalType",
    "QuorumKind",
    "RequirementReason",
    "RuleChangePayload",
    "Vote",
    "payload_from_dict",
]
