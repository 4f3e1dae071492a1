"""Group configuration store port (target of approved rule changes)."""

from collections.abc import Mapping
from typing import Any, Protocol


class GroupConfigStoreProtocol(Protocol):
    """Protocol for writing fields of a group's configuration record."""

    async def apply_fields(self, group_id: str, fields: Mapping[str, Any]) -> None:
        """Write each field's new value into the group's configuration.

        Writing the same values twice must leave the record unchanged so
        that reconciliation can safely re-apply an approved rule change.

        Args:
            group_id: The group to update.
            fields: Mapping of field name to new value.
        """
        ...
