"""Group configuration store stub implementation."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from poolfund.application.ports.group_config_store import GroupConfigStoreProtocol


class GroupConfigStoreStub(GroupConfigStoreProtocol):
    """In-memory group configuration records.

    Attributes:
        _configs: Dictionary mapping group id to its configuration fields.
        apply_calls: Every (group_id, fields) pair received, in order.
    """

    def __init__(self) -> None:
        self._configs: dict[str, dict[str, Any]] = {}
        self._failure: Exception | None = None
        self.apply_calls: list[tuple[str, dict[str, Any]]] = []

    def set_config(self, group_id: str, fields: Mapping[str, Any]) -> None:
        self._configs[group_id] = dict(fields)

    def get_config(self, group_id: str) -> dict[str, Any]:
        return dict(self._configs.get(group_id, {}))

    def fail_with(self, error: Exception | None) -> None:
        """Make apply_fields raise `error` until reset with None."""
        self._failure = error

    async def apply_fields(self, group_id: str, fields: Mapping[str, Any]) -> None:
        self.apply_calls.append((group_id, dict(fields)))
        if self._failure is not None:
            raise self._failure
        self._configs.setdefault(group_id, {}).update(fields)

    def clear(self) -> None:
        self._configs.clear()
        self._failure = None
        self.apply_calls.clear()
