"""Loan service port (target of approved loan proposals)."""

from typing import Protocol

from poolfund.domain.models.proposal import LoanApprovalPayload


class LoanServiceProtocol(Protocol):
    """Protocol for the external loan domain service.

    All loan business rules (limits, interest, disbursement) live behind
    this port. The governance engine only hands over the approved payload.
    """

    async def approve_from_proposal(
        self, group_id: str, payload: LoanApprovalPayload
    ) -> None:
        """Approve the loan described by an approved proposal.

        Must be idempotent per loan_id.
        """
        ...
