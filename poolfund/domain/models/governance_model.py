"""Group governance model (how a group authorizes changes).

A GovernanceModel is resolved once per group by the group directory and
read once per evaluation. It never changes while a proposal is being
evaluated.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class GovernanceMode(Enum):
    """How changes to a group are authorized.

    Modes:
        GROUP_DISPUTE: Changes require a proposal voted on by members.
        ADMIN_CONTROL: The group admin may change the group directly.
    """

    GROUP_DISPUTE = "GroupDispute"
    ADMIN_CONTROL = "AdminControl"


class QuorumKind(Enum):
    """How the quorum threshold is expressed.

    Kinds:
        PERCENTAGE: Share of all group members (0-100] that must vote.
        COUNT: Absolute number of votes required.
    """

    PERCENTAGE = "Percentage"
    COUNT = "Count"


# Default governance for groups that never configured one
DEFAULT_QUORUM_PERCENTAGE = 51
MAX_QUORUM_PERCENTAGE = 100


@dataclass(frozen=True, eq=True)
class GovernanceModel:
    """Per-group governance configuration.

    Attributes:
        mode: GroupDispute or AdminControl.
        quorum_kind: Percentage or Count.
        quorum_value: Threshold for quorum (percent or vote count).
        admin_has_tiebreaker: Whether the admin's own vote breaks a tie.
    """

    mode: GovernanceMode = GovernanceMode.GROUP_DISPUTE
    quorum_kind: QuorumKind = QuorumKind.PERCENTAGE
    quorum_value: float = DEFAULT_QUORUM_PERCENTAGE
    admin_has_tiebreaker: bool = True

    def __post_init__(self) -> None:
        """Validate quorum configuration."""
        if self.quorum_value <= 0:
            raise ValueError(
                f"quorum_value must be positive, got {self.quorum_value}"
            )
        if (
            self.quorum_kind == QuorumKind.PERCENTAGE
            and self.quorum_value > MAX_QUORUM_PERCENTAGE
        ):
            raise ValueError(
                f"Percentage quorum must be at most {MAX_QUORUM_PERCENTAGE}, "
                f"got {self.quorum_value}"
            )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for storage and the wire."""
        return {
            "mode": self.mode.value,
            "quorum_kind": self.quorum_kind.value,
            "quorum_value": self.quorum_value,
            "admin_has_tiebreaker": self.admin_has_tiebreaker,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GovernanceModel:
        """Deserialize, falling back to defaults for absent keys."""
        return cls(
            mode=GovernanceMode(data.get("mode", GovernanceMode.GROUP_DISPUTE.value)),
            quorum_kind=QuorumKind(
                data.get("quorum_kind", QuorumKind.PERCENTAGE.value)
            ),
            quorum_value=data.get("quorum_value", DEFAULT_QUORUM_PERCENTAGE),
            admin_has_tiebreaker=data.get("admin_has_tiebreaker", True),
        )


DEFAULT_GOVERNANCE_MODEL = GovernanceModel()
