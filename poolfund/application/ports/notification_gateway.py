"""Notification gateway port for proposal outcomes.

Delivery is owned by the notification service. The governance engine
calls notify() once per recipient after a terminal transition has been
committed.
"""

from typing import Protocol

from poolfund.domain.events.proposal import ProposalOutcomeEvent


class NotificationGatewayProtocol(Protocol):
    """Port for informing proposer and voters of proposal outcomes."""

    async def notify(self, user_id: str, event: ProposalOutcomeEvent) -> None:
        """Deliver an outcome event to one user.

        Note:
            Callers log delivery failures and never let them affect the
            committed proposal.
        """
        ...
