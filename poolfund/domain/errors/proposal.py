"""Proposal domain errors.

Provides specific exception classes for proposal lifecycle failures.
Validation, authorization and state errors are terminal: they are
returned to the caller unchanged and never retried.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from poolfund.domain.exceptions import PoolFundError

if TYPE_CHECKING:
    from poolfund.domain.models.proposal import ProposalStatus


class ProposalError(PoolFundError):
    """Base class for proposal lifecycle errors."""

    pass


class ProposalValidationError(ProposalError):
    """Raised when proposal input is missing or malformed.

    Attributes:
        field: Name of the offending field, if known.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize validation error.

        Args:
            message: What is wrong with the input.
            field: Name of the offending field.
        """
        self.field = field
        super().__init__(message)


class NoChangeDetectedError(ProposalValidationError):
    """Raised when a rule change proposal does not differ from current rules."""

    def __init__(self, group_id: str) -> None:
        self.group_id = group_id
        super().__init__(
            f"No rule change detected for group {group_id}: "
            "proposed rules match the current configuration",
            field="proposed_rules",
        )


class NotMemberError(ProposalError):
    """Raised when an actor is not an active member of the group.

    Attributes:
        group_id: The group the actor tried to act in.
        user_id: The actor.
    """

    def __init__(self, group_id: str, user_id: str) -> None:
        self.group_id = group_id
        self.user_id = user_id
        super().__init__(f"User {user_id} is not a member of group {group_id}")


class ForbiddenError(ProposalError):
    """Raised when an actor lacks permission for a proposal operation.

    Attributes:
        proposal_id: The proposal that was targeted.
        user_id: The actor.
        action: The attempted action (e.g. "cancel").
    """

    def __init__(self, proposal_id: UUID, user_id: str, action: str) -> None:
        self.proposal_id = proposal_id
        self.user_id = user_id
        self.action = action
        super().__init__(
            f"User {user_id} is not allowed to {action} proposal {proposal_id}"
        )


class ProposalNotFoundError(ProposalError):
    """Raised when a proposal does not exist in the given group."""

    def __init__(self, proposal_id: UUID | str, group_id: str) -> None:
        self.proposal_id = proposal_id
        self.group_id = group_id
        super().__init__(f"Proposal {proposal_id} not found in group {group_id}")


class GroupNotFoundError(ProposalError):
    """Raised when the group directory has no record of a group."""

    def __init__(self, group_id: str) -> None:
        self.group_id = group_id
        super().__init__(f"Group {group_id} not found")


class InvalidProposalStateError(ProposalError):
    """Raised when an action targets a proposal that is no longer Open.

    Attributes:
        proposal_id: The proposal.
        status: The terminal status the proposal is in.
        action: The attempted action.
    """

    def __init__(
        self, proposal_id: UUID, status: ProposalStatus, action: str
    ) -> None:
        self.proposal_id = proposal_id
        self.status = status
        self.action = action
        super().__init__(
            f"Cannot {action} proposal {proposal_id}: status is {status.value}"
        )


class DuplicateVoteError(ProposalError):
    """Raised when a member votes a second time on the same proposal.

    At most one vote per member per proposal is accepted. Unlike a
    write conflict this is not retried.
    """

    def __init__(self, proposal_id: UUID, voter_id: str) -> None:
        self.proposal_id = proposal_id
        self.voter_id = voter_id
        super().__init__(
            f"User {voter_id} has already voted on proposal {proposal_id}"
        )
