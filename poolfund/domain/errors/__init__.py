"""Domain errors for PoolFund governance.

Provides specific exception classes for different failure scenarios.
All exceptions inherit from PoolFundError.
"""

from poolfund.domain.errors.apply import ApplyFailedError
from poolfund.domain.errors.concurrent_modification import (
    ConcurrentModificationError,
)
from poolfund.domain.errors.proposal import (
    DuplicateVoteError,
    ForbiddenError,
    GroupNotFoundError,
    InvalidProposalStateError,
    NoChangeDetectedError,
    NotMemberError,
    ProposalError,
    ProposalNotFoundError,
    ProposalValidationError,
)
from poolfund.domain.errors.store import StoreUnavailableError

__all__: list[str] = [
    "ApplyFailedError",
    "ConcurrentModificationError",
    "DuplicateVoteError",
    "ForbiddenError",
    "GroupNotFoundError",
    "InvalidProposalStateError",
    "NoChangeDetectedError",
    "NotMemberError",
    "ProposalError",
    "ProposalNotFoundError",
    "ProposalValidationError",
    "StoreUnavailableError",
]
