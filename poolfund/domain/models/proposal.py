"""Proposal aggregate for collective group decisions.

A proposal is the unit of collective decision in a pooled-fund group:
a rule change, a loan approval or a member removal that members vote on.

State Machine:
    OPEN -> APPROVED   (quorum reached, approvals win or admin breaks tie)
    OPEN -> REJECTED   (quorum reached, rejections win or tie stands)
    OPEN -> EXPIRED    (expires_at passed before a decision)
    OPEN -> CANCELLED  (admin or proposer cancelled)

All non-OPEN states are terminal. Proposals are never deleted; terminal
proposals are retained as audit records.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, ClassVar, Protocol, TypeVar
from uuid import UUID

DEFAULT_PROPOSAL_LIFETIME = timedelta(days=7)
DEFAULT_PROPOSER_NAME = "Group member"


class ProposalType(Enum):
    """Kind of change a proposal carries."""

    RULE_CHANGE = "RuleChange"
    LOAN_APPROVAL = "LoanApproval"
    MEMBER_REMOVAL = "MemberRemoval"


class ProposalStatus(Enum):
    """Lifecycle status of a proposal.

    OPEN is the only non-terminal status. Once a proposal leaves OPEN no
    further transition is permitted.
    """

    OPEN = "Open"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    EXPIRED = "Expired"
    CANCELLED = "Cancelled"

    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    def valid_transitions(self) -> frozenset[ProposalStatus]:
        return STATUS_TRANSITIONS.get(self, frozenset())


TERMINAL_STATUSES: frozenset[ProposalStatus] = frozenset(
    {
        ProposalStatus.APPROVED,
        ProposalStatus.REJECTED,
        ProposalStatus.EXPIRED,
        ProposalStatus.CANCELLED,
    }
)

STATUS_TRANSITIONS: dict[ProposalStatus, frozenset[ProposalStatus]] = {
    ProposalStatus.OPEN: TERMINAL_STATUSES,
    ProposalStatus.APPROVED: frozenset(),
    ProposalStatus.REJECTED: frozenset(),
    ProposalStatus.EXPIRED: frozenset(),
    ProposalStatus.CANCELLED: frozenset(),
}


# =============================================================================
# Payload variants
# =============================================================================

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class ProposalPayloadVisitor(Protocol[T_co]):
    """Visitor over the proposal payload variants."""

    def visit_rule_change(self, payload: RuleChangePayload) -> T_co: ...

    def visit_loan_approval(self, payload: LoanApprovalPayload) -> T_co: ...

    def visit_member_removal(self, payload: MemberRemovalPayload) -> T_co: ...


@dataclass(frozen=True, eq=True)
class FieldChange:
    """A single group configuration field moving from one value to another."""

    field_name: str
    from_value: Any
    to_value: Any


@dataclass(frozen=True, eq=True)
class RuleChangePayload:
    """Change to one or more group configuration fields.

    Wire form: ``{field: {"from": old, "to": new}, ...}``.
    """

    proposal_type: ClassVar[ProposalType] = ProposalType.RULE_CHANGE

    changes: tuple[FieldChange, ...] = ()

    @classmethod
    def diff(
        cls, current_rules: Mapping[str, Any], proposed_rules: Mapping[str, Any]
    ) -> RuleChangePayload:
        """Build a payload from the fields that differ between two rule sets.

        Fields absent from proposed_rules are left untouched.
        """
        changes = tuple(
            FieldChange(field_name=key, from_value=current_rules.get(key), to_value=value)
            for key, value in proposed_rules.items()
            if current_rules.get(key) != value
        )
        return cls(changes=changes)

    def is_empty(self) -> bool:
        return not self.changes

    def target_fields(self) -> dict[str, Any]:
        """Return ``{field: to_value}`` for writing into the group config."""
        return {change.field_name: change.to_value for change in self.changes}

    def accept(self, visitor: ProposalPayloadVisitor[T]) -> T:
        return visitor.visit_rule_change(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            change.field_name: {"from": change.from_value, "to": change.to_value}
            for change in self.changes
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RuleChangePayload:
        changes = []
        for key, value in data.items():
            if not isinstance(value, Mapping) or "to" not in value:
                raise ValueError(f"Rule change for '{key}' must be an object with 'to'")
            changes.append(
                FieldChange(field_name=key, from_value=value.get("from"), to_value=value["to"])
            )
        return cls(changes=tuple(changes))


@dataclass(frozen=True, eq=True)
class LoanApprovalPayload:
    """Request to approve a member loan. Loan rules live in the loan service."""

    proposal_type: ClassVar[ProposalType] = ProposalType.LOAN_APPROVAL

    loan_id: str = ""
    borrower_id: str | None = None
    amount: float | None = None
    details: Mapping[str, Any] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.loan_id

    def accept(self, visitor: ProposalPayloadVisitor[T]) -> T:
        return visitor.visit_loan_approval(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "loan_id": self.loan_id,
            "borrower_id": self.borrower_id,
            "amount": self.amount,
            "details": dict(self.details),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LoanApprovalPayload:
        return cls(
            loan_id=str(data.get("loan_id") or ""),
            borrower_id=data.get("borrower_id"),
            amount=data.get("amount"),
            details=dict(data.get("details") or {}),
        )


@dataclass(frozen=True, eq=True)
class MemberRemovalPayload:
    """Request to remove a member. Membership rules live in the membership service."""

    proposal_type: ClassVar[ProposalType] = ProposalType.MEMBER_REMOVAL

    member_id: str = ""
    reason: str | None = None

    def is_empty(self) -> bool:
        return not self.member_id

    def accept(self, visitor: ProposalPayloadVisitor[T]) -> T:
        return visitor.visit_member_removal(self)

    def to_dict(self) -> dict[str, Any]:
        return {"member_id": self.member_id, "reason": self.reason}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MemberRemovalPayload:
        return cls(member_id=str(data.get("member_id") or ""), reason=data.get("reason"))


ProposalPayload = RuleChangePayload | LoanApprovalPayload | MemberRemovalPayload

_PAYLOAD_TYPES: dict[ProposalType, Any] = {
    ProposalType.RULE_CHANGE: RuleChangePayload,
    ProposalType.LOAN_APPROVAL: LoanApprovalPayload,
    ProposalType.MEMBER_REMOVAL: MemberRemovalPayload,
}


def payload_from_dict(
    proposal_type: ProposalType, data: Mapping[str, Any]
) -> ProposalPayload:
    """Decode the wire form of a payload for the given proposal type.

    Raises:
        ValueError: If the data does not fit the payload type.
    """
    return _PAYLOAD_TYPES[proposal_type].from_dict(data)


# =============================================================================
# Votes and the aggregate
# =============================================================================


@dataclass(frozen=True, eq=True)
class Vote:
    """One member's vote on a proposal.

    Attributes:
        voter_id: The voting member.
        approve: True to approve, False to reject.
        cast_at: When the vote was recorded (UTC).
        comment: Optional remark (max 255 chars).
    """

    voter_id: str
    approve: bool
    cast_at: datetime
    comment: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "voter_id": self.voter_id,
            "approve": self.approve,
            "cast_at": self.cast_at.isoformat(),
            "comment": self.comment,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Vote:
        return cls(
            voter_id=data["voter_id"],
            approve=bool(data["approve"]),
            cast_at=_parse_datetime(data["cast_at"]),
            comment=data.get("comment"),
        )


@dataclass(frozen=True, eq=True)
class Proposal:
    """A pending or decided collective decision of a group.

    Constraints:
    - Frozen dataclass: every mutation produces a new instance.
    - votes keep insertion order, which is the audit order.
    - resolved_at is set exactly once, on the terminal transition.
    - version increments on every committed write (optimistic concurrency).

    Attributes:
        id: Unique identifier.
        group_id: Owning group.
        type: RuleChange, LoanApproval or MemberRemoval.
        payload: Type-specific change description.
        proposed_by: Proposer's user id.
        proposed_by_name: Display label of the proposer.
        title: Short summary.
        description: Longer explanation.
        status: Lifecycle status.
        votes: Votes in the order they were cast.
        created_at: Creation time (UTC).
        expires_at: Voting deadline (UTC).
        resolved_at: Terminal transition time.
        cancelled_by: Who cancelled (CANCELLED only).
        cancellation_reason: Why it was cancelled (CANCELLED only).
        applied_at: When the approved change was applied to the group.
        apply_error: Last apply failure for an approved proposal.
        apply_claimed_at: When a writer took over applying the change.
            Set while an apply is in flight and cleared when it finishes.
        version: Optimistic concurrency token.
    """

    id: UUID
    group_id: str
    type: ProposalType
    payload: ProposalPayload
    proposed_by: str
    created_at: datetime
    expires_at: datetime
    proposed_by_name: str = DEFAULT_PROPOSER_NAME
    title: str | None = None
    description: str | None = None
    status: ProposalStatus = ProposalStatus.OPEN
    votes: tuple[Vote, ...] = ()
    resolved_at: datetime | None = None
    cancelled_by: str | None = None
    cancellation_reason: str | None = None
    applied_at: datetime | None = None
    apply_error: str | None = None
    apply_claimed_at: datetime | None = None
    version: int = 0

    def __post_init__(self) -> None:
        if self.payload.proposal_type != self.type:
            raise ValueError(
                f"Payload {type(self.payload).__name__} does not match "
                f"proposal type {self.type.value}"
            )

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal()

    @property
    def is_awaiting_apply(self) -> bool:
        """Approved but not yet applied to the group."""
        return self.status == ProposalStatus.APPROVED and self.applied_at is None

    def can_claim_apply(self, now: datetime, claim_ttl: timedelta) -> bool:
        """Whether a writer may take over applying this proposal.

        True for an approved, unapplied proposal with no claim, or with a
        claim older than claim_ttl (its holder is presumed gone).
        """
        if not self.is_awaiting_apply:
            return False
        return self.apply_claimed_at is None or now - self.apply_claimed_at >= claim_ttl

    def claim_apply(self, at: datetime) -> Proposal:
        return replace(self, apply_claimed_at=at)

    def is_expired_at(self, now: datetime) -> bool:
        return now > self.expires_at

    def find_vote(self, voter_id: str) -> Vote | None:
        for vote in self.votes:
            if vote.voter_id == voter_id:
                return vote
        return None

    def has_voted(self, voter_id: str) -> bool:
        return self.find_vote(voter_id) is not None

    def with_vote(self, vote: Vote) -> Proposal:
        return replace(self, votes=(*self.votes, vote))

    def transition_to(
        self, status: ProposalStatus, at: datetime, **changes: Any
    ) -> Proposal:
        """Return a copy moved to a terminal status.

        Raises:
            ValueError: If the transition is not allowed from the current status.
        """
        if status not in self.status.valid_transitions():
            raise ValueError(
                f"Invalid proposal transition: {self.status.value} -> {status.value}"
            )
        return replace(self, status=status, resolved_at=at, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON document shape used by stores and the wire."""
        return {
            "id": str(self.id),
            "group_id": self.group_id,
            "type": self.type.value,
            "payload": self.payload.to_dict(),
            "proposed_by": self.proposed_by,
            "proposed_by_name": self.proposed_by_name,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "votes": [vote.to_dict() for vote in self.votes],
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "resolved_at": _format_optional(self.resolved_at),
            "cancelled_by": self.cancelled_by,
            "cancellation_reason": self.cancellation_reason,
            "applied_at": _format_optional(self.applied_at),
            "apply_error": self.apply_error,
            "apply_claimed_at": _format_optional(self.apply_claimed_at),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Proposal:
        proposal_type = ProposalType(data["type"])
        return cls(
            id=UUID(str(data["id"])),
            group_id=data["group_id"],
            type=proposal_type,
            payload=payload_from_dict(proposal_type, data.get("payload") or {}),
            proposed_by=data["proposed_by"],
            proposed_by_name=data.get("proposed_by_name") or DEFAULT_PROPOSER_NAME,
            title=data.get("title"),
            description=data.get("description"),
            status=ProposalStatus(data.get("status", ProposalStatus.OPEN.value)),
            votes=tuple(Vote.from_dict(v) for v in data.get("votes") or ()),
            created_at=_parse_datetime(data["created_at"]),
            expires_at=_parse_datetime(data["expires_at"]),
            resolved_at=_parse_optional(data.get("resolved_at")),
            cancelled_by=data.get("cancelled_by"),
            cancellation_reason=data.get("cancellation_reason"),
            applied_at=_parse_optional(data.get("applied_at")),
            apply_error=data.get("apply_error"),
            apply_claimed_at=_parse_optional(data.get("apply_claimed_at")),
            version=int(data.get("version", 0)),
        )


def _parse_datetime(value: str | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _parse_optional(value: str | datetime | None) -> datetime | None:
    return None if value is None else _parse_datetime(value)


def _format_optional(value: datetime | None) -> str | None:
    return None if value is None else value.isoformat()
