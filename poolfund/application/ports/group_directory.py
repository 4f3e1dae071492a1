"""Group directory port (read-only view of groups).

Membership, admin identity and governance configuration are owned by
the group management service. The governance engine only reads them.
"""

from typing import Protocol

from poolfund.domain.models.governance_model import GovernanceModel
from poolfund.domain.models.group_members import GroupMembers


class GroupDirectoryProtocol(Protocol):
    """Protocol for reading group membership and governance configuration."""

    async def get_members(self, group_id: str) -> GroupMembers:
        """Get active members and the admin of a group.

        Raises:
            GroupNotFoundError: If the group does not exist.
        """
        ...

    async def get_governance_model(self, group_id: str) -> GovernanceModel:
        """Get the governance model stored for a group.

        Groups that never configured governance get the default model
        resolved when the group was created.

        Raises:
            GroupNotFoundError: If the group does not exist.
        """
        ...
