"""Application services - Use case orchestration.

Available services:
- ProposalLifecycleService: Create, vote, cancel, expire and reconcile proposals
- ChangeApplierService: Apply approved proposals to the group
- ProposalExpirationSweepService: Scheduled expiry of overdue proposals
"""

from poolfund.application.services.change_applier_service import (
    ChangeApplierService,
)
from poolfund.application.services.proposal_expiration_sweep_service import (
    ProposalExpirationSweepService,
)
from poolfund.application.services.proposal_lifecycle_service import (
    CreateProposalRequest,
    ProposalLifecycleService,
)

__all__: list[str] = [
    "ChangeApplierService",
    "CreateProposalRequest",
    "ProposalExpirationSweepService",
    "ProposalLifecycleService",
]
