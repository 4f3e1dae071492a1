"""Membership service port (target of approved member removals)."""

from typing import Protocol

from poolfund.domain.models.proposal import MemberRemovalPayload


class MembershipServiceProtocol(Protocol):
    """Protocol for the external membership domain service."""

    async def remove_from_proposal(
        self, group_id: str, payload: MemberRemovalPayload
    ) -> None:
        """Remove the member named by an approved proposal.

        Must be idempotent per member_id.
        """
        ...
