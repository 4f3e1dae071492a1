"""Read-only view of a group's membership."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, eq=True)
class GroupMembers:
    """Active members and admin of a group, as seen by the group directory.

    Attributes:
        group_id: The group.
        member_ids: Active member ids (admin included).
        admin_id: The group admin.
    """

    group_id: str
    member_ids: tuple[str, ...]
    admin_id: str

    @property
    def total_members(self) -> int:
        return len(self.member_ids)

    def is_member(self, user_id: str) -> bool:
        return user_id in self.member_ids

    def is_admin(self, user_id: str) -> bool:
        return user_id == self.admin_id

    def is_sole_member(self, user_id: str) -> bool:
        """True when the group has exactly one member and it is user_id."""
        return len(self.member_ids) == 1 and self.member_ids[0] == user_id
