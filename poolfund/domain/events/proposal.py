"""Proposal outcome events delivered to proposer and voters."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from poolfund.domain.models.proposal import Proposal, ProposalStatus

PROPOSAL_OUTCOME_EVENT_TYPE = "proposal.outcome"


@dataclass(frozen=True, eq=True)
class ProposalOutcomeEvent:
    """A proposal reached a terminal status.

    Attributes:
        proposal_id: The decided proposal.
        group_id: Owning group.
        proposal_type: Type value of the proposal.
        status: Terminal status reached.
        outcome_approved: True only for APPROVED.
        occurred_at: When the terminal transition was committed.
    """

    proposal_id: UUID
    group_id: str
    proposal_type: str
    status: ProposalStatus
    outcome_approved: bool
    occurred_at: datetime

    @property
    def event_type(self) -> str:
        return PROPOSAL_OUTCOME_EVENT_TYPE

    @classmethod
    def from_proposal(cls, proposal: Proposal) -> ProposalOutcomeEvent:
        """Build the event for a proposal that is already terminal."""
        if not proposal.is_terminal or proposal.resolved_at is None:
            raise ValueError(f"Proposal {proposal.id} is not resolved")
        return cls(
            proposal_id=proposal.id,
            group_id=proposal.group_id,
            proposal_type=proposal.type.value,
            status=proposal.status,
            outcome_approved=proposal.status == ProposalStatus.APPROVED,
            occurred_at=proposal.resolved_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type,
            "proposal_id": str(self.proposal_id),
            "group_id": self.group_id,
            "proposal_type": self.proposal_type,
            "status": self.status.value,
            "outcome_approved": self.outcome_approved,
            "occurred_at": self.occurred_at.isoformat(),
        }
