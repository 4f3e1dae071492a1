"""Concurrent modification error for conditional proposal writes.

Every proposal mutation is written conditionally on the version that was
read. When another writer committed first the store raises this error
and the lifecycle service re-reads and retries.
"""

from __future__ import annotations

from uuid import UUID

from poolfund.domain.exceptions import PoolFundError


class ConcurrentModificationError(PoolFundError):
    """Raised when a conditional write fails due to a concurrent modification.

    This is a recoverable error - the caller should re-read the proposal
    and decide whether to retry or abort.

    Attributes:
        proposal_id: UUID of the proposal that was being modified.
        expected_version: The version the writer read.
        actual_version: The version found at write time, if known.
        operation: Description of the operation that failed.
    """

    def __init__(
        self,
        proposal_id: UUID,
        expected_version: int,
        actual_version: int | None = None,
        operation: str = "update",
    ) -> None:
        """Initialize concurrent modification error.

        Args:
            proposal_id: UUID of the proposal being modified.
            expected_version: Version expected for the conditional write.
            actual_version: Version currently stored.
            operation: Description of the failed operation.
        """
        self.proposal_id = proposal_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        self.operation = operation
        super().__init__(
            f"Concurrent modification detected for proposal {proposal_id} "
            f"during {operation}. Expected version: {expected_version}, "
            f"found: {actual_version}."
        )
