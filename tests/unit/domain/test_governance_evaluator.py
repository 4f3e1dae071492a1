"""Unit tests for the governance evaluator.

Covers quorum arithmetic, majority and tie-break rules, expiry and
idempotency of evaluation on terminal proposals.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from poolfund.domain.models.governance_model import (
    GovernanceMode,
    GovernanceModel,
    QuorumKind,
)
from poolfund.domain.models.proposal import (
    MemberRemovalPayload,
    Proposal,
    ProposalStatus,
    ProposalType,
    Vote,
)
from poolfund.domain.services.governance_evaluator import (
    apply_evaluation,
    evaluate,
    is_quorum_reached,
)

NOW = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)
ADMIN = "admin"


def _proposal(votes: list[tuple[str, bool]] | None = None, **overrides) -> Proposal:
    base = {
        "id": uuid4(),
        "group_id": "group-1",
        "type": ProposalType.MEMBER_REMOVAL,
        "payload": MemberRemovalPayload(member_id="m9", reason="inactive"),
        "proposed_by": "m1",
        "created_at": NOW - timedelta(days=1),
        "expires_at": NOW + timedelta(days=6),
        "votes": tuple(
            Vote(voter_id=voter, approve=approve, cast_at=NOW) for voter, approve in votes or []
        ),
    }
    base.update(overrides)
    return Proposal(**base)


def _votes(approve: int, reject: int, admin_vote: bool | None = None) -> list[tuple[str, bool]]:
    votes = [(f"a{i}", True) for i in range(approve)] + [(f"r{i}", False) for i in range(reject)]
    if admin_vote is not None:
        # the admin takes one slot of the matching side
        side = "a0" if admin_vote else "r0"
        votes = [(ADMIN if voter == side else voter, value) for voter, value in votes]
    return votes


PERCENT_51 = GovernanceModel(
    mode=GovernanceMode.GROUP_DISPUTE,
    quorum_kind=QuorumKind.PERCENTAGE,
    quorum_value=51,
    admin_has_tiebreaker=True,
)


class TestIsQuorumReached:
    """Tests for quorum arithmetic."""

    def test_ten_members_51_percent_needs_six_votes(self) -> None:
        assert not is_quorum_reached(5, 10, PERCENT_51)
        assert is_quorum_reached(6, 10, PERCENT_51)

    def test_exact_percentage_boundary_counts(self) -> None:
        model = GovernanceModel(quorum_kind=QuorumKind.PERCENTAGE, quorum_value=50)
        assert is_quorum_reached(5, 10, model)
        assert not is_quorum_reached(4, 10, model)

    def test_count_quorum(self) -> None:
        model = GovernanceModel(quorum_kind=QuorumKind.COUNT, quorum_value=3)
        assert not is_quorum_reached(2, 100, model)
        assert is_quorum_reached(3, 100, model)

    def test_zero_members_never_reaches_percentage_quorum(self) -> None:
        assert not is_quorum_reached(0, 0, PERCENT_51)


class TestEvaluate:
    """Tests for evaluate()."""

    def test_below_quorum_stays_open(self) -> None:
        result = evaluate(_proposal(_votes(5, 0)), PERCENT_51, 10, ADMIN, NOW)

        assert result.status == ProposalStatus.OPEN
        assert result.quorum_reached is False
        assert result.resolved_at is None
        assert result.approve_count == 5

    def test_quorum_with_majority_approves(self) -> None:
        result = evaluate(_proposal(_votes(4, 2)), PERCENT_51, 10, ADMIN, NOW)

        assert result.status == ProposalStatus.APPROVED
        assert result.outcome_approved is True
        assert result.resolved_at == NOW

    def test_quorum_with_majority_rejects(self) -> None:
        result = evaluate(_proposal(_votes(2, 4)), PERCENT_51, 10, ADMIN, NOW)

        assert result.status == ProposalStatus.REJECTED
        assert result.outcome_approved is False

    def test_tie_broken_by_admin_approval(self) -> None:
        result = evaluate(
            _proposal(_votes(3, 3, admin_vote=True)), PERCENT_51, 10, ADMIN, NOW
        )

        assert result.status == ProposalStatus.APPROVED
        assert result.tie_broken_by_admin is True

    def test_tie_broken_by_admin_rejection(self) -> None:
        result = evaluate(
            _proposal(_votes(3, 3, admin_vote=False)), PERCENT_51, 10, ADMIN, NOW
        )

        assert result.status == ProposalStatus.REJECTED
        assert result.tie_broken_by_admin is True

    def test_tie_without_admin_vote_rejects(self) -> None:
        result = evaluate(_proposal(_votes(3, 3)), PERCENT_51, 10, ADMIN, NOW)

        assert result.status == ProposalStatus.REJECTED
        assert result.tie_broken_by_admin is False

    def test_tie_rejects_when_tiebreaker_disabled(self) -> None:
        model = GovernanceModel(quorum_value=51, admin_has_tiebreaker=False)
        result = evaluate(_proposal(_votes(3, 3, admin_vote=True)), model, 10, ADMIN, NOW)

        assert result.status == ProposalStatus.REJECTED

    def test_expired_proposal_evaluates_to_expired(self) -> None:
        proposal = _proposal(_votes(6, 0), expires_at=NOW - timedelta(seconds=1))

        result = evaluate(proposal, PERCENT_51, 10, ADMIN, NOW)

        assert result.status == ProposalStatus.EXPIRED
        assert result.outcome_approved is False

    def test_deadline_instant_is_still_open(self) -> None:
        proposal = _proposal(_votes(1, 0), expires_at=NOW)

        result = evaluate(proposal, PERCENT_51, 10, ADMIN, NOW)

        assert result.status == ProposalStatus.OPEN

    @pytest.mark.parametrize(
        "status",
        [
            ProposalStatus.APPROVED,
            ProposalStatus.REJECTED,
            ProposalStatus.EXPIRED,
            ProposalStatus.CANCELLED,
        ],
    )
    def test_terminal_proposal_is_returned_unchanged(self, status: ProposalStatus) -> None:
        resolved_at = NOW - timedelta(hours=1)
        proposal = _proposal(_votes(0, 6), status=status, resolved_at=resolved_at)

        first = evaluate(proposal, PERCENT_51, 10, ADMIN, NOW)
        second = evaluate(proposal, PERCENT_51, 10, ADMIN, NOW + timedelta(days=30))

        assert first.status == status
        assert first == second
        assert first.resolved_at == resolved_at


class TestApplyEvaluation:
    """Tests for apply_evaluation()."""

    def test_open_result_leaves_proposal_untouched(self) -> None:
        proposal = _proposal(_votes(1, 0))
        result = evaluate(proposal, PERCENT_51, 10, ADMIN, NOW)

        assert apply_evaluation(proposal, result) is proposal

    def test_terminal_result_sets_status_and_resolved_at(self) -> None:
        proposal = _proposal(_votes(6, 0))
        result = evaluate(proposal, PERCENT_51, 10, ADMIN, NOW)

        updated = apply_evaluation(proposal, result)

        assert updated.status == ProposalStatus.APPROVED
        assert updated.resolved_at == NOW
        assert updated.votes == proposal.votes
