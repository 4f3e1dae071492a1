"""Errors raised while applying an approved proposal."""

from __future__ import annotations

from uuid import UUID

from poolfund.domain.exceptions import PoolFundError


class ApplyFailedError(PoolFundError):
    """Raised when an approved proposal could not be applied to the group.

    The Approved decision stays committed. The proposal is left in the
    "approved but unapplied" condition until reconciliation succeeds.

    Attributes:
        proposal_id: The approved proposal.
        proposal_type: Type value of the proposal.
        cause: The underlying exception message.
    """

    def __init__(self, proposal_id: UUID, proposal_type: str, cause: str) -> None:
        self.proposal_id = proposal_id
        self.proposal_type = proposal_type
        self.cause = cause
        super().__init__(
            f"Failed to apply {proposal_type} proposal {proposal_id}: {cause}"
        )
