"""Loan service stub implementation."""

from __future__ import annotations

from poolfund.application.ports.loan_service import LoanServiceProtocol
from poolfund.domain.models.proposal import LoanApprovalPayload


class LoanServiceStub(LoanServiceProtocol):
    """Records loan approvals handed over by approved proposals.

    Attributes:
        approved_loans: loan_id -> group_id for every approved loan.
        calls: Every (group_id, payload) received, including failed ones.
    """

    def __init__(self) -> None:
        self.approved_loans: dict[str, str] = {}
        self.calls: list[tuple[str, LoanApprovalPayload]] = []
        self._failure: Exception | None = None

    def fail_with(self, error: Exception | None) -> None:
        self._failure = error

    async def approve_from_proposal(
        self, group_id: str, payload: LoanApprovalPayload
    ) -> None:
        self.calls.append((group_id, payload))
        if self._failure is not None:
            raise self._failure
        self.approved_loans[payload.loan_id] = group_id

    def clear(self) -> None:
        self.approved_loans.clear()
        self.calls.clear()
        self._failure = None
