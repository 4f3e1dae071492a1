"""Proposal lifecycle service: creation, voting, cancellation and expiry.

This service owns the proposal state machine. It decides whether a
change needs a proposal, opens proposals, records votes, cancels, and
lazily expires proposals on access. Outcomes are computed by the pure
governance evaluator and approved changes are handed to the
ChangeApplierService exactly once.

Concurrency:
    Every mutation is a read -> compute -> conditional write loop against
    the proposal record. A ConcurrentModificationError from the store
    means another writer committed first; the loop re-reads and tries
    again, up to max_write_attempts, then surfaces StoreUnavailableError.
    Votes, cancellation and expiry all use this same discipline on the
    status field, so a vote can never land in a proposal that a
    concurrent cancel just closed, and two concurrent votes can never
    drop each other.

Exactly-once apply:
    The writer whose commit moved the proposal from OPEN to APPROVED
    claims the apply in that same commit (apply_claimed_at) and is the
    only one to invoke the applier. Apply failures are logged as
    proposal_apply_failed and recorded on the proposal, and the claim
    is released; the decision is never reverted. reconcile_approved()
    must win a new claim through a conditional write before it applies,
    so it never runs alongside an apply in flight. A claim older than
    apply_claim_ttl_seconds counts as abandoned and may be taken over.

Expiration:
    There is no timer. Any read or vote first checks expires_at and
    commits EXPIRED before doing anything else. A proposal nobody
    touches after its deadline stays visibly OPEN until next access.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, TypeVar
from uuid import UUID, uuid4

import structlog

from poolfund.application.ports.group_directory import GroupDirectoryProtocol
from poolfund.application.ports.notification_gateway import (
    NotificationGatewayProtocol,
)
from poolfund.application.ports.proposal_store import ProposalStoreProtocol
from poolfund.application.ports.time_authority import TimeAuthorityProtocol
from poolfund.application.services.change_applier_service import (
    ChangeApplierService,
)
from poolfund.config.governance_config import (
    DEFAULT_GOVERNANCE_CONFIG,
    GovernanceConfig,
)
from poolfund.domain.errors.apply import ApplyFailedError
from poolfund.domain.errors.concurrent_modification import (
    ConcurrentModificationError,
)
from poolfund.domain.errors.proposal import (
    DuplicateVoteError,
    ForbiddenError,
    InvalidProposalStateError,
    NoChangeDetectedError,
    NotMemberError,
    ProposalNotFoundError,
    ProposalValidationError,
)
from poolfund.domain.errors.store import StoreUnavailableError
from poolfund.domain.events.proposal import ProposalOutcomeEvent
from poolfund.domain.models.governance_model import GovernanceMode
from poolfund.domain.models.proposal import (
    DEFAULT_PROPOSER_NAME,
    TERMINAL_STATUSES,
    Proposal,
    ProposalPayload,
    ProposalStatus,
    ProposalType,
    RuleChangePayload,
    Vote,
)
from poolfund.domain.models.proposal_requirement import (
    ChangeType,
    ProposalRequirement,
    RequirementReason,
)
from poolfund.domain.services.governance_evaluator import apply_evaluation, evaluate

logger = structlog.get_logger(__name__)

R = TypeVar("R")

# Request field limits
TITLE_MIN_LENGTH = 5
TITLE_MAX_LENGTH = 100
DESCRIPTION_MIN_LENGTH = 10
DESCRIPTION_MAX_LENGTH = 500
REASON_MAX_LENGTH = 255
COMMENT_MAX_LENGTH = 255

DEFAULT_RULE_CHANGE_TITLE = "Group rule change"
DEFAULT_RULE_CHANGE_DESCRIPTION = "Proposed change to the group rules"

# Aggregate filters accepted by list_proposals
STATUS_FILTER_ACTIVE = "active"
STATUS_FILTER_RESOLVED = "resolved"


@dataclass(frozen=True)
class CreateProposalRequest:
    """Input for opening a proposal.

    Attributes:
        proposal_type: RuleChange, LoanApproval or MemberRemoval.
        payload: Type-specific change description.
        proposed_by: Proposer's user id.
        proposed_by_name: Display label (defaults to "Group member").
        title: Optional short summary (5-100 chars).
        description: Optional explanation (10-500 chars).
        expires_at: Optional voting deadline; must be in the future.
    """

    proposal_type: ProposalType
    payload: ProposalPayload
    proposed_by: str
    proposed_by_name: str | None = None
    title: str | None = None
    description: str | None = None
    expires_at: datetime | None = None


class ProposalLifecycleService:
    """Orchestrates the proposal state machine.

    Attributes:
        _store: Proposal persistence with conditional writes.
        _directory: Read-only group membership and governance.
        _applier: Applies approved proposals.
        _time: Clock for expiry, votes and resolution times.
        _notifier: Optional outcome notification gateway.
        _config: Expiry window, write attempts and store timeout.
    """

    def __init__(
        self,
        store: ProposalStoreProtocol,
        group_directory: GroupDirectoryProtocol,
        change_applier: ChangeApplierService,
        time_authority: TimeAuthorityProtocol,
        notification_gateway: NotificationGatewayProtocol | None = None,
        config: GovernanceConfig = DEFAULT_GOVERNANCE_CONFIG,
    ) -> None:
        """Initialize the lifecycle service.

        Args:
            store: Proposal store.
            group_directory: Group directory.
            change_applier: Applier for approved proposals.
            time_authority: Clock.
            notification_gateway: Outcome notifications (None disables them).
            config: Lifecycle configuration.
        """
        self._store = store
        self._directory = group_directory
        self._applier = change_applier
        self._time = time_authority
        self._notifier = notification_gateway
        self._config = config
        self._log = logger.bind(component="proposal_lifecycle")

    # =========================================================================
    # Requirement check
    # =========================================================================

    async def requires_proposal(
        self, group_id: str, change_type: ChangeType, actor_id: str
    ) -> ProposalRequirement:
        """Decide whether a change by actor_id must go through a proposal.

        Bypass rules, in order:
        1. The actor is the group's only member.
        2. The group is admin-controlled and the actor is the admin.
        3. The admin is performing initial configuration.

        Everything else requires a proposal (DefaultPolicy).

        Raises:
            GroupNotFoundError: If the group does not exist.
        """
        members = await self._directory.get_members(group_id)
        governance_model = await self._directory.get_governance_model(group_id)

        if members.is_sole_member(actor_id):
            requirement = ProposalRequirement.bypass(RequirementReason.ADMIN_ONLY_MEMBER)
        elif (
            governance_model.mode == GovernanceMode.ADMIN_CONTROL
            and members.is_admin(actor_id)
        ):
            requirement = ProposalRequirement.bypass(RequirementReason.ADMIN_CONTROL)
        elif change_type == ChangeType.INITIAL_CONFIG and members.is_admin(actor_id):
            requirement = ProposalRequirement.bypass(RequirementReason.INITIAL_CONFIG)
        else:
            requirement = ProposalRequirement.default_policy(governance_model)

        self._log.debug(
            "proposal_requirement_checked",
            group_id=group_id,
            change_type=change_type.value,
            actor_id=actor_id,
            required=requirement.required,
            reason=requirement.reason.value,
        )
        return requirement

    # =========================================================================
    # Creation
    # =========================================================================

    async def create_proposal(
        self, group_id: str, request: CreateProposalRequest
    ) -> Proposal:
        """Open a new proposal in a group.

        Args:
            group_id: The owning group.
            request: Proposal data.

        Returns:
            The stored OPEN proposal.

        Raises:
            ProposalValidationError: If the payload is empty or fields are invalid.
            NotMemberError: If the proposer is not a group member.
            GroupNotFoundError: If the group does not exist.
            StoreUnavailableError: If the store cannot be reached.
        """
        now = self._time.now()
        self._validate_create_request(request, now)

        members = await self._directory.get_members(group_id)
        if not members.is_member(request.proposed_by):
            raise NotMemberError(group_id=group_id, user_id=request.proposed_by)

        proposal = Proposal(
            id=uuid4(),
            group_id=group_id,
            type=request.proposal_type,
            payload=request.payload,
            proposed_by=request.proposed_by,
            proposed_by_name=request.proposed_by_name or DEFAULT_PROPOSER_NAME,
            title=request.title,
            description=request.description,
            status=ProposalStatus.OPEN,
            created_at=now,
            expires_at=request.expires_at or now + self._config.expiry_timedelta,
        )

        stored = await self._store_call("create", self._store.create(proposal))

        self._log.info(
            "proposal_created",
            proposal_id=str(stored.id),
            group_id=group_id,
            proposal_type=stored.type.value,
            proposed_by=stored.proposed_by,
            expires_at=stored.expires_at.isoformat(),
        )
        return stored

    async def create_rule_change_proposal(
        self,
        group_id: str,
        proposer_id: str,
        current_rules: Mapping[str, Any],
        proposed_rules: Mapping[str, Any],
        title: str | None = None,
        description: str | None = None,
        proposer_name: str | None = None,
    ) -> Proposal:
        """Open a rule change proposal from a before/after view of the rules.

        Only fields whose proposed value differs from the current value
        become part of the payload.

        Raises:
            NoChangeDetectedError: If no field differs.
        """
        payload = RuleChangePayload.diff(current_rules, proposed_rules)
        if payload.is_empty():
            raise NoChangeDetectedError(group_id=group_id)

        return await self.create_proposal(
            group_id,
            CreateProposalRequest(
                proposal_type=ProposalType.RULE_CHANGE,
                payload=payload,
                proposed_by=proposer_id,
                proposed_by_name=proposer_name,
                title=title or DEFAULT_RULE_CHANGE_TITLE,
                description=description or DEFAULT_RULE_CHANGE_DESCRIPTION,
            ),
        )

    # =========================================================================
    # Voting
    # =========================================================================

    async def cast_vote(
        self,
        group_id: str,
        proposal_id: UUID,
        voter_id: str,
        approve: bool,
        comment: str | None = None,
    ) -> Proposal:
        """Record a member's vote and evaluate the proposal atomically.

        The vote, the evaluation and the status write are committed as
        one conditional write. If the proposal has expired the expiry is
        committed first and the vote is not counted.

        Returns:
            The proposal after the vote (and after apply, if it was approved).

        Raises:
            NotMemberError: If the voter is not an active member.
            InvalidProposalStateError: If the proposal is not OPEN (or just expired).
            DuplicateVoteError: If the voter already voted.
            ProposalNotFoundError: If the proposal does not exist.
            StoreUnavailableError: If the store cannot be reached or stays contended.
        """
        if comment is not None and len(comment) > COMMENT_MAX_LENGTH:
            raise ProposalValidationError(
                f"Comment must be at most {COMMENT_MAX_LENGTH} characters",
                field="comment",
            )

        members = await self._directory.get_members(group_id)
        if not members.is_member(voter_id):
            raise NotMemberError(group_id=group_id, user_id=voter_id)
        governance_model = await self._directory.get_governance_model(group_id)

        recorded: list[bool] = []

        def record_vote(current: Proposal, now: datetime) -> Proposal:
            recorded.clear()
            if current.status == ProposalStatus.OPEN and current.is_expired_at(now):
                return self._expired(current, now)
            if current.status != ProposalStatus.OPEN:
                raise InvalidProposalStateError(current.id, current.status, "vote on")
            if current.has_voted(voter_id):
                raise DuplicateVoteError(proposal_id=current.id, voter_id=voter_id)

            voted = current.with_vote(
                Vote(voter_id=voter_id, approve=approve, cast_at=now, comment=comment)
            )
            result = evaluate(
                voted,
                governance_model,
                members.total_members,
                members.admin_id,
                now,
            )
            recorded.append(True)
            evaluated = apply_evaluation(voted, result)
            if evaluated.status == ProposalStatus.APPROVED:
                # The deciding write also claims the apply
                return evaluated.claim_apply(now)
            return evaluated

        before, committed = await self._mutate(
            group_id, proposal_id, "cast_vote", record_vote
        )

        if not recorded:
            await self._after_transition(before, committed)
            raise InvalidProposalStateError(committed.id, committed.status, "vote on")

        self._log.info(
            "vote_cast",
            proposal_id=str(proposal_id),
            group_id=group_id,
            voter_id=voter_id,
            approve=approve,
            vote_count=len(committed.votes),
            status=committed.status.value,
        )
        return await self._after_transition(before, committed)

    # =========================================================================
    # Cancellation
    # =========================================================================

    async def cancel_proposal(
        self, group_id: str, proposal_id: UUID, actor_id: str, reason: str
    ) -> Proposal:
        """Cancel an OPEN proposal.

        Only the group admin or the proposer may cancel.

        Raises:
            ProposalValidationError: If reason is empty or too long.
            ForbiddenError: If actor_id is neither admin nor proposer.
            InvalidProposalStateError: If the proposal is not OPEN.
            ProposalNotFoundError: If the proposal does not exist.
            StoreUnavailableError: If the store cannot be reached or stays contended.
        """
        if not reason or not reason.strip():
            raise ProposalValidationError("Cancellation reason is required", field="reason")
        if len(reason) > REASON_MAX_LENGTH:
            raise ProposalValidationError(
                f"Cancellation reason must be at most {REASON_MAX_LENGTH} characters",
                field="reason",
            )

        members = await self._directory.get_members(group_id)
        cancelled: list[bool] = []

        def cancel(current: Proposal, now: datetime) -> Proposal:
            cancelled.clear()
            if not members.is_admin(actor_id) and current.proposed_by != actor_id:
                raise ForbiddenError(current.id, actor_id, "cancel")
            if current.status == ProposalStatus.OPEN and current.is_expired_at(now):
                return self._expired(current, now)
            if current.status != ProposalStatus.OPEN:
                raise InvalidProposalStateError(current.id, current.status, "cancel")
            cancelled.append(True)
            return current.transition_to(
                ProposalStatus.CANCELLED,
                now,
                cancelled_by=actor_id,
                cancellation_reason=reason,
            )

        before, committed = await self._mutate(group_id, proposal_id, "cancel", cancel)

        if not cancelled:
            await self._after_transition(before, committed)
            raise InvalidProposalStateError(committed.id, committed.status, "cancel")

        self._log.info(
            "proposal_cancelled",
            proposal_id=str(proposal_id),
            group_id=group_id,
            cancelled_by=actor_id,
            reason=reason,
        )
        return await self._after_transition(before, committed)

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_proposal(self, group_id: str, proposal_id: UUID) -> Proposal:
        """Get a proposal, expiring it first if its deadline passed.

        Raises:
            ProposalNotFoundError: If the proposal does not exist.
            StoreUnavailableError: If the store cannot be reached.
        """
        proposal = await self._load(group_id, proposal_id)
        return await self.expire_if_due(proposal)

    async def list_proposals(
        self, group_id: str, status_filter: str | None = None
    ) -> list[Proposal]:
        """List a group's proposals after applying lazy expiry.

        Args:
            group_id: The owning group.
            status_filter: None for all, "active" for OPEN, "resolved" for
                any terminal status, or a single status name such as "Approved".

        Raises:
            ProposalValidationError: If status_filter is not recognised.
            StoreUnavailableError: If the store cannot be reached.
        """
        wanted = self._parse_status_filter(status_filter)
        proposals = await self._store_call(
            "list_by_group", self._store.list_by_group(group_id)
        )

        current = [await self.expire_if_due(proposal) for proposal in proposals]
        if wanted is None:
            return current
        return [proposal for proposal in current if proposal.status in wanted]

    async def expire_if_due(self, proposal: Proposal) -> Proposal:
        """Commit EXPIRED for an OPEN proposal past its deadline.

        Returns the proposal unchanged when it is terminal or not yet due.
        """
        if proposal.status != ProposalStatus.OPEN or not proposal.is_expired_at(
            self._time.now()
        ):
            return proposal

        def expire(current: Proposal, now: datetime) -> Proposal:
            if current.status == ProposalStatus.OPEN and current.is_expired_at(now):
                return self._expired(current, now)
            return current

        before, committed = await self._mutate(
            proposal.group_id, proposal.id, "expire", expire
        )
        return await self._after_transition(before, committed)

    # =========================================================================
    # Reconciliation
    # =========================================================================

    async def reconcile_approved(self, group_id: str, proposal_id: UUID) -> Proposal:
        """Retry applying an APPROVED proposal that is not applied yet.

        The apply is claimed with a conditional write first. An already
        applied proposal, or one whose apply is still held by another
        writer, is returned unchanged without invoking the applier.

        Raises:
            InvalidProposalStateError: If the proposal is not APPROVED.
            ApplyFailedError: If applying fails again.
            ProposalNotFoundError: If the proposal does not exist.
        """
        claim_ttl = self._config.apply_claim_ttl

        def claim(current: Proposal, now: datetime) -> Proposal:
            if current.status != ProposalStatus.APPROVED:
                raise InvalidProposalStateError(current.id, current.status, "reconcile")
            if not current.can_claim_apply(now, claim_ttl):
                return current
            return current.claim_apply(now)

        before, claimed = await self._mutate(group_id, proposal_id, "claim_apply", claim)
        if claimed is before:
            if claimed.applied_at is None:
                self._log.info(
                    "proposal_apply_in_progress",
                    proposal_id=str(proposal_id),
                    group_id=group_id,
                )
            return claimed

        self._log.info(
            "proposal_reconciliation_started",
            proposal_id=str(proposal_id),
            group_id=group_id,
            previous_error=before.apply_error,
            took_over_stale_claim=before.apply_claimed_at is not None,
        )
        updated, error = await self._apply_approved(claimed)
        if error is not None:
            raise error
        return updated

    # =========================================================================
    # Internals
    # =========================================================================

    async def _store_call(self, operation: str, call: Awaitable[R]) -> R:
        """Await a store round trip bounded by the configured timeout."""
        try:
            return await asyncio.wait_for(
                call, timeout=self._config.store_timeout_seconds
            )
        except asyncio.TimeoutError as exc:
            self._log.error(
                "proposal_store_timeout",
                operation=operation,
                timeout_seconds=self._config.store_timeout_seconds,
            )
            raise StoreUnavailableError(operation, "timed out") from exc

    async def _load(self, group_id: str, proposal_id: UUID) -> Proposal:
        proposal = await self._store_call("get", self._store.get(group_id, proposal_id))
        if proposal is None:
            raise ProposalNotFoundError(proposal_id=proposal_id, group_id=group_id)
        return proposal

    async def _mutate(
        self,
        group_id: str,
        proposal_id: UUID,
        operation: str,
        mutator: Callable[[Proposal, datetime], Proposal],
    ) -> tuple[Proposal, Proposal]:
        """Run a read -> compute -> conditional write loop.

        The mutator receives the freshly read proposal and the current
        time and returns the new proposal (or the same object for a
        no-op). Domain errors raised by the mutator propagate unchanged.

        Returns:
            Tuple of (proposal as read, proposal as committed).
        """
        attempts = self._config.max_write_attempts
        for attempt in range(1, attempts + 1):
            current = await self._load(group_id, proposal_id)
            updated = mutator(current, self._time.now())
            if updated is current:
                return current, current

            try:
                committed = await self._store_call(
                    operation, self._store.update(updated, expected_version=current.version)
                )
            except ConcurrentModificationError:
                self._log.warning(
                    "write_conflict_retry",
                    operation=operation,
                    proposal_id=str(proposal_id),
                    attempt=attempt,
                    max_attempts=attempts,
                )
                continue
            return current, committed

        self._log.error(
            "write_conflict_retries_exhausted",
            operation=operation,
            proposal_id=str(proposal_id),
            attempts=attempts,
        )
        raise StoreUnavailableError(
            operation, f"write conflicts persisted after {attempts} attempts"
        )

    @staticmethod
    def _expired(proposal: Proposal, now: datetime) -> Proposal:
        return proposal.transition_to(ProposalStatus.EXPIRED, now)

    async def _after_transition(self, before: Proposal, committed: Proposal) -> Proposal:
        """Run the side effects of a committed terminal transition.

        Only the writer that moved the proposal out of OPEN gets here with
        a status change, so apply and notifications run once.
        """
        if before.status != ProposalStatus.OPEN or not committed.is_terminal:
            return committed

        self._log.info(
            "proposal_resolved",
            proposal_id=str(committed.id),
            group_id=committed.group_id,
            status=committed.status.value,
            approve_count=sum(1 for vote in committed.votes if vote.approve),
            vote_count=len(committed.votes),
        )

        result = committed
        if committed.status == ProposalStatus.APPROVED:
            result, _ = await self._apply_approved(committed)

        await self._notify_outcome(committed)
        return result

    async def _apply_approved(
        self, proposal: Proposal
    ) -> tuple[Proposal, ApplyFailedError | None]:
        """Apply an approved proposal and record the outcome on it."""
        try:
            await self._applier.apply(proposal)
        except ApplyFailedError as exc:
            self._log.error(
                "proposal_apply_failed",
                proposal_id=str(proposal.id),
                group_id=proposal.group_id,
                proposal_type=proposal.type.value,
                error=exc.cause,
            )
            recorded = await self._record_apply(proposal, applied=False, error=exc.cause)
            return recorded, exc

        recorded = await self._record_apply(proposal, applied=True, error=None)
        return recorded, None

    async def _record_apply(
        self, proposal: Proposal, applied: bool, error: str | None
    ) -> Proposal:
        """Persist apply bookkeeping; the decision itself is already durable."""

        def mark(current: Proposal, now: datetime) -> Proposal:
            if current.applied_at is not None:
                return current
            if applied:
                return replace(
                    current, applied_at=now, apply_error=None, apply_claimed_at=None
                )
            return replace(current, apply_error=error, apply_claimed_at=None)

        try:
            _, committed = await self._mutate(
                proposal.group_id, proposal.id, "record_apply", mark
            )
        except StoreUnavailableError as exc:
            self._log.error(
                "proposal_apply_record_failed",
                proposal_id=str(proposal.id),
                applied=applied,
                error=str(exc),
            )
            return proposal
        return committed

    async def _notify_outcome(self, proposal: Proposal) -> None:
        """Tell the proposer and every voter about a terminal outcome."""
        if self._notifier is None:
            return

        event = ProposalOutcomeEvent.from_proposal(proposal)
        recipients = dict.fromkeys(
            [proposal.proposed_by, *(vote.voter_id for vote in proposal.votes)]
        )
        for user_id in recipients:
            try:
                await self._notifier.notify(user_id, event)
            except Exception as exc:
                self._log.warning(
                    "proposal_outcome_notification_failed",
                    proposal_id=str(proposal.id),
                    user_id=user_id,
                    error=str(exc),
                )

    def _validate_create_request(self, request: CreateProposalRequest, now: datetime) -> None:
        if request.payload.proposal_type != request.proposal_type:
            raise ProposalValidationError(
                f"Payload does not match proposal type {request.proposal_type.value}",
                field="payload",
            )
        if request.payload.is_empty():
            raise ProposalValidationError("Proposal payload must not be empty", field="payload")
        if request.title is not None and not (
            TITLE_MIN_LENGTH <= len(request.title) <= TITLE_MAX_LENGTH
        ):
            raise ProposalValidationError(
                f"Title must be between {TITLE_MIN_LENGTH} and {TITLE_MAX_LENGTH} characters",
                field="title",
            )
        if request.description is not None and not (
            DESCRIPTION_MIN_LENGTH <= len(request.description) <= DESCRIPTION_MAX_LENGTH
        ):
            raise ProposalValidationError(
                f"Description must be between {DESCRIPTION_MIN_LENGTH} and "
                f"{DESCRIPTION_MAX_LENGTH} characters",
                field="description",
            )
        if request.expires_at is not None and request.expires_at <= now:
            raise ProposalValidationError(
                "Expiration date must be in the future", field="expires_at"
            )

    @staticmethod
    def _parse_status_filter(
        status_filter: str | None,
    ) -> frozenset[ProposalStatus] | None:
        if status_filter is None:
            return None
        if status_filter == STATUS_FILTER_ACTIVE:
            return frozenset({ProposalStatus.OPEN})
        if status_filter == STATUS_FILTER_RESOLVED:
            return TERMINAL_STATUSES
        try:
            return frozenset({ProposalStatus(status_filter)})
        except ValueError as exc:
            raise ProposalValidationError(
                f"Unknown status filter '{status_filter}'", field="status"
            ) from exc
