"""Group directory stub implementation.

In-memory registry of groups, their active members, admin and
governance model. Used for development and testing.
"""

from __future__ import annotations

from collections.abc import Iterable

from poolfund.application.ports.group_directory import GroupDirectoryProtocol
from poolfund.domain.errors.proposal import GroupNotFoundError
from poolfund.domain.models.governance_model import (
    DEFAULT_GOVERNANCE_MODEL,
    GovernanceModel,
)
from poolfund.domain.models.group_members import GroupMembers


class GroupDirectoryStub(GroupDirectoryProtocol):
    """In-memory stub implementation of GroupDirectoryProtocol.

    Attributes:
        _members: Dictionary mapping group id to GroupMembers.
        _models: Dictionary mapping group id to GovernanceModel.
    """

    def __init__(self) -> None:
        self._members: dict[str, GroupMembers] = {}
        self._models: dict[str, GovernanceModel] = {}

    def add_group(
        self,
        group_id: str,
        member_ids: Iterable[str],
        admin_id: str,
        governance_model: GovernanceModel = DEFAULT_GOVERNANCE_MODEL,
    ) -> GroupMembers:
        """Register a group. The admin is always counted as a member."""
        ids = tuple(dict.fromkeys([admin_id, *member_ids]))
        members = GroupMembers(group_id=group_id, member_ids=ids, admin_id=admin_id)
        self._members[group_id] = members
        self._models[group_id] = governance_model
        return members

    def set_governance_model(
        self, group_id: str, governance_model: GovernanceModel
    ) -> None:
        self._require(group_id)
        self._models[group_id] = governance_model

    def remove_member(self, group_id: str, member_id: str) -> None:
        members = self._require(group_id)
        self._members[group_id] = GroupMembers(
            group_id=group_id,
            member_ids=tuple(m for m in members.member_ids if m != member_id),
            admin_id=members.admin_id,
        )

    async def get_members(self, group_id: str) -> GroupMembers:
        return self._require(group_id)

    async def get_governance_model(self, group_id: str) -> GovernanceModel:
        self._require(group_id)
        return self._models[group_id]

    def _require(self, group_id: str) -> GroupMembers:
        members = self._members.get(group_id)
        if members is None:
            raise GroupNotFoundError(group_id)
        return members

    def clear(self) -> None:
        self._members.clear()
        self._models.clear()
