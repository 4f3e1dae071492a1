"""Unit tests for the Proposal aggregate and its payloads."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from poolfund.domain.events.proposal import ProposalOutcomeEvent
from poolfund.domain.models.proposal import (
    DEFAULT_PROPOSER_NAME,
    FieldChange,
    LoanApprovalPayload,
    MemberRemovalPayload,
    Proposal,
    ProposalStatus,
    ProposalType,
    RuleChangePayload,
    Vote,
    payload_from_dict,
)

NOW = datetime(2026, 2, 1, 8, 30, tzinfo=timezone.utc)


def _rule_change_proposal(**overrides) -> Proposal:
    base = {
        "id": uuid4(),
        "group_id": "group-1",
        "type": ProposalType.RULE_CHANGE,
        "payload": RuleChangePayload(
            changes=(FieldChange("contribution_amount", 50, 75),)
        ),
        "proposed_by": "m1",
        "created_at": NOW,
        "expires_at": NOW + timedelta(days=7),
    }
    base.update(overrides)
    return Proposal(**base)


class TestProposalStatus:
    def test_only_open_is_non_terminal(self) -> None:
        assert not ProposalStatus.OPEN.is_terminal()
        for status in ProposalStatus:
            if status != ProposalStatus.OPEN:
                assert status.is_terminal()
                assert status.valid_transitions() == frozenset()

    def test_wire_values(self) -> None:
        assert [s.value for s in ProposalStatus] == [
            "Open",
            "Approved",
            "Rejected",
            "Expired",
            "Cancelled",
        ]


class TestRuleChangePayload:
    def test_diff_keeps_only_changed_fields(self) -> None:
        payload = RuleChangePayload.diff(
            {"contribution_amount": 50, "frequency": "monthly", "late_fee": 5},
            {"contribution_amount": 75, "frequency": "monthly"},
        )

        assert payload.changes == (FieldChange("contribution_amount", 50, 75),)
        assert payload.target_fields() == {"contribution_amount": 75}

    def test_diff_with_no_differences_is_empty(self) -> None:
        payload = RuleChangePayload.diff({"late_fee": 5}, {"late_fee": 5})
        assert payload.is_empty()

    def test_wire_form(self) -> None:
        payload = RuleChangePayload(changes=(FieldChange("late_fee", 5, 10),))

        assert payload.to_dict() == {"late_fee": {"from": 5, "to": 10}}
        assert RuleChangePayload.from_dict(payload.to_dict()) == payload

    def test_from_dict_requires_to(self) -> None:
        with pytest.raises(ValueError, match="late_fee"):
            RuleChangePayload.from_dict({"late_fee": {"from": 5}})


class TestPayloadFromDict:
    def test_loan_approval(self) -> None:
        payload = payload_from_dict(
            ProposalType.LOAN_APPROVAL,
            {"loan_id": "loan-7", "borrower_id": "m2", "amount": 250.0},
        )

        assert isinstance(payload, LoanApprovalPayload)
        assert payload.loan_id == "loan-7"
        assert not payload.is_empty()

    def test_member_removal_without_member_is_empty(self) -> None:
        payload = payload_from_dict(ProposalType.MEMBER_REMOVAL, {"reason": "x"})

        assert isinstance(payload, MemberRemovalPayload)
        assert payload.is_empty()


class TestProposal:
    def test_defaults(self) -> None:
        proposal = _rule_change_proposal()

        assert proposal.status == ProposalStatus.OPEN
        assert proposal.votes == ()
        assert proposal.proposed_by_name == DEFAULT_PROPOSER_NAME
        assert proposal.version == 0

    def test_payload_must_match_type(self) -> None:
        with pytest.raises(ValueError, match="does not match"):
            _rule_change_proposal(payload=MemberRemovalPayload(member_id="m3"))

    def test_is_expired_strictly_after_deadline(self) -> None:
        proposal = _rule_change_proposal()

        assert not proposal.is_expired_at(proposal.expires_at)
        assert proposal.is_expired_at(proposal.expires_at + timedelta(microseconds=1))

    def test_with_vote_keeps_order(self) -> None:
        proposal = _rule_change_proposal()
        proposal = proposal.with_vote(Vote("m2", True, NOW))
        proposal = proposal.with_vote(Vote("m3", False, NOW))

        assert [v.voter_id for v in proposal.votes] == ["m2", "m3"]
        assert proposal.has_voted("m3")
        assert not proposal.has_voted("m4")

    def test_transition_from_open(self) -> None:
        cancelled = _rule_change_proposal().transition_to(
            ProposalStatus.CANCELLED, NOW, cancelled_by="m1", cancellation_reason="typo"
        )

        assert cancelled.status == ProposalStatus.CANCELLED
        assert cancelled.resolved_at == NOW
        assert cancelled.cancelled_by == "m1"

    def test_terminal_proposal_cannot_transition(self) -> None:
        expired = _rule_change_proposal().transition_to(ProposalStatus.EXPIRED, NOW)

        with pytest.raises(ValueError, match="Invalid proposal transition"):
            expired.transition_to(ProposalStatus.APPROVED, NOW)

    def test_document_round_trip(self) -> None:
        proposal = _rule_change_proposal(
            title="Raise contribution",
            votes=(Vote("m2", True, NOW, comment="fine"),),
            version=3,
        )

        restored = Proposal.from_dict(proposal.to_dict())

        assert restored == proposal

    def test_awaiting_apply(self) -> None:
        approved = _rule_change_proposal().transition_to(ProposalStatus.APPROVED, NOW)

        assert approved.is_awaiting_apply
        assert not replace(approved, applied_at=NOW).is_awaiting_apply

    def test_apply_claim_expires_after_ttl(self) -> None:
        ttl = timedelta(minutes=5)
        approved = _rule_change_proposal().transition_to(ProposalStatus.APPROVED, NOW)
        claimed = approved.claim_apply(NOW)

        assert approved.can_claim_apply(NOW, ttl)
        assert not claimed.can_claim_apply(NOW + ttl - timedelta(seconds=1), ttl)
        assert claimed.can_claim_apply(NOW + ttl, ttl)

    def test_applied_or_open_proposal_cannot_be_claimed(self) -> None:
        ttl = timedelta(minutes=5)
        applied = replace(
            _rule_change_proposal().transition_to(ProposalStatus.APPROVED, NOW),
            applied_at=NOW,
        )

        assert not applied.can_claim_apply(NOW, ttl)
        assert not _rule_change_proposal().can_claim_apply(NOW, ttl)

    def test_apply_claim_survives_round_trip(self) -> None:
        claimed = (
            _rule_change_proposal()
            .transition_to(ProposalStatus.APPROVED, NOW)
            .claim_apply(NOW)
        )

        assert Proposal.from_dict(claimed.to_dict()).apply_claimed_at == NOW


class TestProposalOutcomeEvent:
    def test_from_resolved_proposal(self) -> None:
        approved = _rule_change_proposal().transition_to(ProposalStatus.APPROVED, NOW)

        event = ProposalOutcomeEvent.from_proposal(approved)

        assert event.outcome_approved is True
        assert event.occurred_at == NOW
        assert event.to_dict()["status"] == "Approved"
        assert event.event_type == "proposal.outcome"

    def test_open_proposal_has_no_outcome(self) -> None:
        with pytest.raises(ValueError):
            ProposalOutcomeEvent.from_proposal(_rule_change_proposal())
