"""Governance evaluator: quorum, tally and tie-break for a proposal.

This module is pure. Given the same proposal, governance model, member
count, admin id and clock reading it always produces the same result,
and it never touches a store or an external service. It can be unit
tested with literal vote sets.

Algorithm:
1. Terminal proposals are returned unchanged (idempotent).
2. An Open proposal past expires_at evaluates to EXPIRED.
3. Quorum:
   - PERCENTAGE: votes / total_members * 100 >= quorum_value
   - COUNT: votes >= quorum_value
   Without quorum the proposal stays OPEN.
4. With quorum, approvals must strictly outnumber rejections.
5. On a tie with admin_has_tiebreaker, the admin's own vote decides.
   If the admin did not vote the tie stands and the proposal is REJECTED.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from poolfund.domain.models.governance_model import GovernanceModel, QuorumKind
from poolfund.domain.models.proposal import Proposal, ProposalStatus


@dataclass(frozen=True, eq=True)
class EvaluationResult:
    """Outcome of evaluating a proposal.

    Attributes:
        status: Status the proposal should have after evaluation.
        outcome_approved: True only when status is APPROVED.
        quorum_reached: Whether participation met the quorum.
        approve_count: Approving votes counted.
        reject_count: Rejecting votes counted.
        resolved_at: Terminal transition time, None while OPEN.
        tie_broken_by_admin: True when the admin's vote decided a tie.
    """

    status: ProposalStatus
    outcome_approved: bool
    quorum_reached: bool
    approve_count: int = 0
    reject_count: int = 0
    resolved_at: datetime | None = None
    tie_broken_by_admin: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal()


def is_quorum_reached(
    vote_count: int, total_members: int, governance_model: GovernanceModel
) -> bool:
    """Check whether vote_count satisfies the group's quorum.

    Percentages are compared as ``votes * 100 >= quorum * members`` so
    that float rounding cannot move the threshold.
    """
    if governance_model.quorum_kind == QuorumKind.PERCENTAGE:
        if total_members <= 0:
            return False
        return vote_count * 100 >= governance_model.quorum_value * total_members
    return vote_count >= governance_model.quorum_value


def evaluate(
    proposal: Proposal,
    governance_model: GovernanceModel,
    total_members: int,
    admin_id: str | None,
    now: datetime,
) -> EvaluationResult:
    """Compute the status a proposal should be in.

    Args:
        proposal: The proposal, including every vote cast so far.
        governance_model: The group's governance model.
        total_members: Active members of the group.
        admin_id: The group admin, consulted for tie-breaks.
        now: Current time (UTC).

    Returns:
        EvaluationResult with the new status and tally.
    """
    approve_count = sum(1 for vote in proposal.votes if vote.approve)
    reject_count = len(proposal.votes) - approve_count

    if proposal.is_terminal:
        return EvaluationResult(
            status=proposal.status,
            outcome_approved=proposal.status == ProposalStatus.APPROVED,
            quorum_reached=proposal.status
            in (ProposalStatus.APPROVED, ProposalStatus.REJECTED),
            approve_count=approve_count,
            reject_count=reject_count,
            resolved_at=proposal.resolved_at,
        )

    if proposal.is_expired_at(now):
        return EvaluationResult(
            status=ProposalStatus.EXPIRED,
            outcome_approved=False,
            quorum_reached=False,
            approve_count=approve_count,
            reject_count=reject_count,
            resolved_at=now,
        )

    if not is_quorum_reached(len(proposal.votes), total_members, governance_model):
        return EvaluationResult(
            status=ProposalStatus.OPEN,
            outcome_approved=False,
            quorum_reached=False,
            approve_count=approve_count,
            reject_count=reject_count,
        )

    approved = approve_count > reject_count
    tie_broken_by_admin = False

    if approve_count == reject_count and governance_model.admin_has_tiebreaker:
        admin_vote = proposal.find_vote(admin_id) if admin_id else None
        if admin_vote is not None:
            approved = admin_vote.approve
            tie_broken_by_admin = True

    return EvaluationResult(
        status=ProposalStatus.APPROVED if approved else ProposalStatus.REJECTED,
        outcome_approved=approved,
        quorum_reached=True,
        approve_count=approve_count,
        reject_count=reject_count,
        resolved_at=now,
        tie_broken_by_admin=tie_broken_by_admin,
    )


def apply_evaluation(proposal: Proposal, result: EvaluationResult) -> Proposal:
    """Return the proposal carrying the evaluated status.

    A result that keeps the current status leaves the proposal untouched.
    """
    if result.status == proposal.status:
        return proposal
    return replace(proposal, status=result.status, resolved_at=result.resolved_at)
