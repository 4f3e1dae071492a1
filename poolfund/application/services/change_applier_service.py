"""Change applier: carries an approved proposal into the group's live state.

Dispatch is a visitor over the payload variants, so each proposal type
reaches its own external collaborator:

- RuleChange     -> GroupConfigStore.apply_fields({field: to})
- LoanApproval   -> LoanService.approve_from_proposal(payload)
- MemberRemoval  -> MembershipService.remove_from_proposal(payload)

The applier holds no loan or membership business rules. It is invoked
once per proposal, after the APPROVED transition has been committed.
A failure is raised as ApplyFailedError and never reverts the decision.
"""

from __future__ import annotations

from collections.abc import Awaitable

import structlog

from poolfund.application.ports.group_config_store import GroupConfigStoreProtocol
from poolfund.application.ports.loan_service import LoanServiceProtocol
from poolfund.application.ports.membership_service import MembershipServiceProtocol
from poolfund.domain.errors.apply import ApplyFailedError
from poolfund.domain.models.proposal import (
    LoanApprovalPayload,
    MemberRemovalPayload,
    Proposal,
    ProposalPayloadVisitor,
    ProposalStatus,
    RuleChangePayload,
)

logger = structlog.get_logger(__name__)


class _ApplyVisitor(ProposalPayloadVisitor[Awaitable[None]]):
    """Maps each payload variant to the call that applies it."""

    def __init__(
        self,
        group_id: str,
        config_store: GroupConfigStoreProtocol,
        loan_service: LoanServiceProtocol,
        membership_service: MembershipServiceProtocol,
    ) -> None:
        self._group_id = group_id
        self._config_store = config_store
        self._loan_service = loan_service
        self._membership_service = membership_service

    def visit_rule_change(self, payload: RuleChangePayload) -> Awaitable[None]:
        return self._config_store.apply_fields(self._group_id, payload.target_fields())

    def visit_loan_approval(self, payload: LoanApprovalPayload) -> Awaitable[None]:
        return self._loan_service.approve_from_proposal(self._group_id, payload)

    def visit_member_removal(self, payload: MemberRemovalPayload) -> Awaitable[None]:
        return self._membership_service.remove_from_proposal(self._group_id, payload)


class ChangeApplierService:
    """Applies approved proposals through the external domain services.

    Attributes:
        _config_store: Group configuration record writer.
        _loan_service: Loan domain service.
        _membership_service: Membership domain service.
    """

    def __init__(
        self,
        config_store: GroupConfigStoreProtocol,
        loan_service: LoanServiceProtocol,
        membership_service: MembershipServiceProtocol,
    ) -> None:
        """Initialize the change applier.

        Args:
            config_store: Target of rule changes.
            loan_service: Target of loan approvals.
            membership_service: Target of member removals.
        """
        self._config_store = config_store
        self._loan_service = loan_service
        self._membership_service = membership_service
        self._log = logger.bind(component="change_applier")

    async def apply(self, proposal: Proposal) -> None:
        """Apply an approved proposal to the group.

        Args:
            proposal: A proposal in APPROVED status.

        Raises:
            ValueError: If the proposal is not APPROVED.
            ApplyFailedError: If the external service failed.
        """
        if proposal.status != ProposalStatus.APPROVED:
            raise ValueError(
                f"Only approved proposals can be applied; proposal {proposal.id} "
                f"is {proposal.status.value}"
            )

        log = self._log.bind(
            proposal_id=str(proposal.id),
            group_id=proposal.group_id,
            proposal_type=proposal.type.value,
        )

        visitor = _ApplyVisitor(
            group_id=proposal.group_id,
            config_store=self._config_store,
            loan_service=self._loan_service,
            membership_service=self._membership_service,
        )

        try:
            await proposal.payload.accept(visitor)
        except Exception as exc:
            log.error("proposal_changes_apply_failed", error=str(exc))
            raise ApplyFailedError(
                proposal_id=proposal.id,
                proposal_type=proposal.type.value,
                cause=str(exc),
            ) from exc

        log.info("proposal_changes_applied")
