"""Notification gateway stub implementation."""

from __future__ import annotations

from poolfund.application.ports.notification_gateway import (
    NotificationGatewayProtocol,
)
from poolfund.domain.events.proposal import ProposalOutcomeEvent


class NotificationGatewayStub(NotificationGatewayProtocol):
    """Collects outcome notifications in memory.

    Attributes:
        sent: Delivered (user_id, event) pairs in delivery order.
        failing_users: Users whose delivery raises ConnectionError.
    """

    def __init__(self) -> None:
        self.sent: list[tuple[str, ProposalOutcomeEvent]] = []
        self.failing_users: set[str] = set()

    async def notify(self, user_id: str, event: ProposalOutcomeEvent) -> None:
        if user_id in self.failing_users:
            raise ConnectionError(f"Notification delivery to {user_id} failed")
        self.sent.append((user_id, event))

    def recipients(self) -> list[str]:
        return [user_id for user_id, _ in self.sent]

    def clear(self) -> None:
        self.sent.clear()
        self.failing_users.clear()
