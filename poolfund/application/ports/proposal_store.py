"""Proposal store port.

This module defines the persistence contract for the Proposal aggregate.
The proposal record is the only mutable shared resource of the
governance engine, so every mutation goes through a conditional write.

Developer Golden Rules:
1. CONDITIONAL WRITES ONLY - update() commits only if the stored version
   still equals expected_version, and bumps the version on success
2. NO DELETES - proposals are retained as audit records
3. FAIL LOUD - infrastructure failures raise StoreUnavailableError
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from poolfund.domain.models.proposal import Proposal, ProposalStatus


class ProposalStoreProtocol(Protocol):
    """Protocol for proposal persistence.

    Implementations may use PostgreSQL, an in-memory dictionary, or any
    document store offering a conditional update.

    Methods:
        create: Store a new proposal
        get: Retrieve a proposal of a group by id
        update: Conditionally replace a proposal (compare version and swap)
        list_by_group: List a group's proposals, optionally by status
    """

    async def create(self, proposal: Proposal) -> Proposal:
        """Store a new proposal.

        Args:
            proposal: The proposal to store (version is ignored and set to 1).

        Returns:
            The stored proposal with its committed version.

        Raises:
            ValueError: If a proposal with the same id already exists.
            StoreUnavailableError: If the store cannot be reached.
        """
        ...

    async def get(self, group_id: str, proposal_id: UUID) -> Proposal | None:
        """Retrieve a proposal by id within its group.

        Args:
            group_id: The owning group.
            proposal_id: The proposal id.

        Returns:
            The proposal if found, None otherwise.

        Raises:
            StoreUnavailableError: If the store cannot be reached.
        """
        ...

    async def update(self, proposal: Proposal, expected_version: int) -> Proposal:
        """Replace a proposal if nobody else wrote it since it was read.

        Implementation Notes:
        - PostgreSQL: UPDATE ... WHERE id = :id AND version = :expected RETURNING *
        - The committed proposal carries version expected_version + 1

        Args:
            proposal: The new proposal state.
            expected_version: The version that was read before computing it.

        Returns:
            The committed proposal with its new version.

        Raises:
            ConcurrentModificationError: If the stored version differs.
            ProposalNotFoundError: If the proposal does not exist.
            StoreUnavailableError: If the store cannot be reached.
        """
        ...

    async def list_by_group(
        self,
        group_id: str,
        statuses: frozenset[ProposalStatus] | None = None,
    ) -> list[Proposal]:
        """List the proposals of a group.

        Args:
            group_id: The owning group.
            statuses: Only return proposals in these statuses (None = all).

        Returns:
            Proposals ordered by created_at.

        Raises:
            StoreUnavailableError: If the store cannot be reached.
        """
        ...
