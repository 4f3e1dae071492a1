"""Decision on whether a change needs a group proposal."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from poolfund.domain.models.governance_model import GovernanceModel


class ChangeType(Enum):
    """Kind of change an actor wants to make to a group."""

    RULE_CHANGE = "RuleChange"
    LOAN_APPROVAL = "LoanApproval"
    MEMBER_REMOVAL = "MemberRemoval"
    INITIAL_CONFIG = "InitialConfig"


class RequirementReason(Enum):
    """Why a proposal is or is not required.

    Reasons:
        ADMIN_ONLY_MEMBER: The actor is the group's only member.
        ADMIN_CONTROL: Group is admin-controlled and the actor is admin.
        INITIAL_CONFIG: First-time setup by the admin.
        DEFAULT_POLICY: Everything else needs a group vote.
    """

    ADMIN_ONLY_MEMBER = "AdminOnlyMember"
    ADMIN_CONTROL = "AdminControl"
    INITIAL_CONFIG = "InitialConfig"
    DEFAULT_POLICY = "DefaultPolicy"


@dataclass(frozen=True, eq=True)
class ProposalRequirement:
    """Result of a proposal requirement check.

    Attributes:
        required: Whether the change must go through a proposal.
        reason: Which rule decided.
        governance_model: The group's model, returned when a vote is required.
    """

    required: bool
    reason: RequirementReason
    governance_model: GovernanceModel | None = None

    @classmethod
    def bypass(cls, reason: RequirementReason) -> ProposalRequirement:
        return cls(required=False, reason=reason)

    @classmethod
    def default_policy(cls, governance_model: GovernanceModel) -> ProposalRequirement:
        return cls(
            required=True,
            reason=RequirementReason.DEFAULT_POLICY,
            governance_model=governance_model,
        )
