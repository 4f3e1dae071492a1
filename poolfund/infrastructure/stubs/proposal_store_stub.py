"""Proposal store stub implementation.

In-memory implementation of ProposalStoreProtocol for development and
testing. Conditional writes are simulated with an asyncio lock; reads
yield to the event loop once so concurrent callers interleave the way
they would against a real database.

Failure injection:
- set_unavailable(True): every call raises StoreUnavailableError
- set_delay(seconds): every call sleeps first (timeout testing)
- inject_conflicts(n): the next n updates raise ConcurrentModificationError
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from uuid import UUID

from poolfund.application.ports.proposal_store import ProposalStoreProtocol
from poolfund.domain.errors.concurrent_modification import (
    ConcurrentModificationError,
)
from poolfund.domain.errors.proposal import ProposalNotFoundError
from poolfund.domain.errors.store import StoreUnavailableError
from poolfund.domain.models.proposal import Proposal, ProposalStatus


class ProposalStoreStub(ProposalStoreProtocol):
    """In-memory stub implementation of ProposalStoreProtocol.

    NOT suitable for production use.

    Attributes:
        _proposals: Dictionary mapping proposal id to the stored Proposal.
        update_calls: Number of update() calls, including rejected ones.
    """

    def __init__(self) -> None:
        """Initialize the stub with empty storage."""
        self._proposals: dict[UUID, Proposal] = {}
        # Lock for simulating the conditional UPDATE
        self._cas_lock = asyncio.Lock()
        self._unavailable = False
        self._delay_seconds = 0.0
        self._pending_conflicts = 0
        self.update_calls = 0

    # Failure injection

    def set_unavailable(self, unavailable: bool) -> None:
        self._unavailable = unavailable

    def set_delay(self, seconds: float) -> None:
        self._delay_seconds = seconds

    def inject_conflicts(self, count: int) -> None:
        """Make the next `count` updates fail as if another writer won."""
        self._pending_conflicts = count

    async def _round_trip(self, operation: str) -> None:
        if self._delay_seconds:
            await asyncio.sleep(self._delay_seconds)
        else:
            await asyncio.sleep(0)
        if self._unavailable:
            raise StoreUnavailableError(operation, "stub store marked unavailable")

    # ProposalStoreProtocol

    async def create(self, proposal: Proposal) -> Proposal:
        await self._round_trip("create")
        async with self._cas_lock:
            if proposal.id in self._proposals:
                raise ValueError(f"Proposal already exists: {proposal.id}")
            stored = replace(proposal, version=1)
            self._proposals[stored.id] = stored
            return stored

    async def get(self, group_id: str, proposal_id: UUID) -> Proposal | None:
        await self._round_trip("get")
        proposal = self._proposals.get(proposal_id)
        if proposal is None or proposal.group_id != group_id:
            return None
        return proposal

    async def update(self, proposal: Proposal, expected_version: int) -> Proposal:
        await self._round_trip("update")
        async with self._cas_lock:
            self.update_calls += 1
            stored = self._proposals.get(proposal.id)
            if stored is None or stored.group_id != proposal.group_id:
                raise ProposalNotFoundError(
                    proposal_id=proposal.id, group_id=proposal.group_id
                )

            if self._pending_conflicts > 0:
                self._pending_conflicts -= 1
                raise ConcurrentModificationError(
                    proposal_id=proposal.id,
                    expected_version=expected_version,
                    actual_version=stored.version,
                )

            if stored.version != expected_version:
                raise ConcurrentModificationError(
                    proposal_id=proposal.id,
                    expected_version=expected_version,
                    actual_version=stored.version,
                )

            committed = replace(proposal, version=expected_version + 1)
            self._proposals[committed.id] = committed
            return committed

    async def list_by_group(
        self,
        group_id: str,
        statuses: frozenset[ProposalStatus] | None = None,
    ) -> list[Proposal]:
        await self._round_trip("list_by_group")
        proposals = [
            p
            for p in self._proposals.values()
            if p.group_id == group_id and (statuses is None or p.status in statuses)
        ]
        return sorted(proposals, key=lambda p: p.created_at)

    # Test helpers

    def put(self, proposal: Proposal) -> None:
        """Store a proposal as-is, bypassing version checks."""
        self._proposals[proposal.id] = proposal

    def get_sync(self, proposal_id: UUID) -> Proposal | None:
        return self._proposals.get(proposal_id)

    def clear(self) -> None:
        """Clear all stored proposals and injected failures."""
        self._proposals.clear()
        self._unavailable = False
        self._delay_seconds = 0.0
        self._pending_conflicts = 0
        self.update_calls = 0
