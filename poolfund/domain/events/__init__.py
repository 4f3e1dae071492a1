"""Domain events emitted by the proposal lifecycle."""

from poolfund.domain.events.proposal import (
    PROPOSAL_OUTCOME_EVENT_TYPE,
    ProposalOutcomeEvent,
)

__all__: list[str] = ["PROPOSAL_OUTCOME_EVENT_TYPE", "ProposalOutcomeEvent"]
