"""Infrastructure stubs for development and testing.

Available stubs:
- ProposalStoreStub: In-memory proposals with lock-simulated conditional writes
- GroupDirectoryStub: In-memory groups, members and governance models
- GroupConfigStoreStub: In-memory group configuration records
- LoanServiceStub: Records approved loans
- MembershipServiceStub: Records member removals
- NotificationGatewayStub: Collects outcome notifications

WARNING: These stubs are NOT for production use.
Production implementations are in poolfund/infrastructure/adapters/.
"""

from poolfund.infrastructure.stubs.group_config_store_stub import (
    GroupConfigStoreStub,
)
from poolfund.infrastructure.stubs.group_directory_stub import GroupDirectoryStub
from poolfund.infrastructure.stubs.loan_service_stub import LoanServiceStub
from poolfund.infrastructure.stubs.membership_service_stub import (
    MembershipServiceStub,
)
from poolfund.infrastructure.stubs.notification_gateway_stub import (
    NotificationGatewayStub,
)
from poolfund.infrastructure.stubs.proposal_store_stub import ProposalStoreStub

__all__: list[str] = [
    "GroupConfigStoreStub",
    "GroupDirectoryStub",
    "LoanServiceStub",
    "MembershipServiceStub",
    "NotificationGatewayStub",
    "ProposalStoreStub",
]
