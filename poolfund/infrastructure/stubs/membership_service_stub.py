"""Membership service stub implementation.

Optionally wired to a GroupDirectoryStub so that an approved removal is
visible in subsequent membership reads.
"""

from __future__ import annotations

from poolfund.application.ports.membership_service import MembershipServiceProtocol
from poolfund.domain.models.proposal import MemberRemovalPayload
from poolfund.infrastructure.stubs.group_directory_stub import GroupDirectoryStub


class MembershipServiceStub(MembershipServiceProtocol):
    """Records member removals handed over by approved proposals.

    Attributes:
        removed: (group_id, member_id) pairs, without duplicates.
        calls: Every (group_id, payload) received, including failed ones.
    """

    def __init__(self, directory: GroupDirectoryStub | None = None) -> None:
        self._directory = directory
        self._failure: Exception | None = None
        self.removed: list[tuple[str, str]] = []
        self.calls: list[tuple[str, MemberRemovalPayload]] = []

    def fail_with(self, error: Exception | None) -> None:
        self._failure = error

    async def remove_from_proposal(
        self, group_id: str, payload: MemberRemovalPayload
    ) -> None:
        self.calls.append((group_id, payload))
        if self._failure is not None:
            raise self._failure

        entry = (group_id, payload.member_id)
        if entry in self.removed:
            return
        self.removed.append(entry)
        if self._directory is not None:
            self._directory.remove_member(group_id, payload.member_id)

    def clear(self) -> None:
        self.removed.clear()
        self.calls.clear()
        self._failure = None
