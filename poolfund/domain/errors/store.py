"""Infrastructure failure errors surfaced by proposal operations."""

from __future__ import annotations

from poolfund.domain.exceptions import PoolFundError


class StoreUnavailableError(PoolFundError):
    """Raised when the proposal store cannot complete a round trip.

    Covers timeouts, connection failures and exhausted write retries.
    Proposal state is unchanged when this is raised, so the caller may
    retry the whole operation.

    Attributes:
        operation: The store operation that failed.
        reason: Short description of the failure.
    """

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"Proposal store unavailable during {operation}: {reason}")
