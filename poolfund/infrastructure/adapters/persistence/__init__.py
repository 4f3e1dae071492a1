"""Persistence adapters."""

from poolfund.infrastructure.adapters.persistence.postgres_proposal_store import (
    PostgresProposalStore,
)

__all__: list[str] = ["PostgresProposalStore"]
