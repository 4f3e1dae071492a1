"""Application ports (interfaces) for the governance engine.

Ports are typing Protocols; adapters live in poolfund.infrastructure.
"""

from poolfund.application.ports.group_config_store import GroupConfigStoreProtocol
from poolfund.application.ports.group_directory import GroupDirectoryProtocol
from poolfund.application.ports.loan_service import LoanServiceProtocol
from poolfund.application.ports.membership_service import MembershipServiceProtocol
from poolfund.application.ports.notification_gateway import (
    NotificationGatewayProtocol,
)
from poolfund.application.ports.proposal_store import ProposalStoreProtocol
from poolfund.application.ports.time_authority import TimeAuthorityProtocol

__all__: list[str] = [
    "GroupConfigStoreProtocol",
    "GroupDirectoryProtocol",
    "LoanServiceProtocol",
    "MembershipServiceProtocol",
    "NotificationGatewayProtocol",
    "ProposalStoreProtocol",
    "TimeAuthorityProtocol",
]
