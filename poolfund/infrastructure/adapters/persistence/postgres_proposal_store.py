"""PostgreSQL proposal store.

Production implementation of ProposalStoreProtocol. Each proposal is
one row holding the aggregate as a JSONB document next to the columns
that are queried or compared: group_id, status, created_at and version.

Conditional write pattern:
    UPDATE proposals
    SET document = :document, status = :status, version = version + 1
    WHERE id = :id AND group_id = :group_id AND version = :expected_version
    RETURNING version

Zero rows returned means either the proposal is gone or another writer
committed first; a follow-up SELECT tells the two apart.

Usage:
    from poolfund.bootstrap.database import get_session_factory

    store = PostgresProposalStore(get_session_factory())
"""

from __future__ import annotations

import json
from dataclasses import replace
from typing import Any
from uuid import UUID

from sqlalchemy import bindparam, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

from poolfund.application.ports.proposal_store import ProposalStoreProtocol
from poolfund.domain.errors.concurrent_modification import (
    ConcurrentModificationError,
)
from poolfund.domain.errors.proposal import ProposalNotFoundError
from poolfund.domain.errors.store import StoreUnavailableError
from poolfund.domain.models.proposal import Proposal, ProposalStatus

logger = get_logger()

PROPOSALS_TABLE_DDL = """
CREATE TABLE IF NOT EXISTS proposals (
    id UUID PRIMARY KEY,
    group_id TEXT NOT NULL,
    status TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL,
    version INTEGER NOT NULL,
    document JSONB NOT NULL
)
"""

PROPOSALS_GROUP_INDEX_DDL = """
CREATE INDEX IF NOT EXISTS ix_proposals_group_status
    ON proposals (group_id, status, created_at)
"""


class PostgresProposalStore(ProposalStoreProtocol):
    """PostgreSQL implementation of ProposalStoreProtocol.

    Attributes:
        _session_factory: SQLAlchemy async session factory for DB access.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the store.

        Args:
            session_factory: SQLAlchemy async session factory.
        """
        self._session_factory = session_factory
        self._log = logger.bind(component="postgres_proposal_store")

    async def ensure_schema(self) -> None:
        """Create the proposals table and index if they do not exist."""
        try:
            async with self._session_factory() as session, session.begin():
                await session.execute(text(PROPOSALS_TABLE_DDL))
                await session.execute(text(PROPOSALS_GROUP_INDEX_DDL))
        except (SQLAlchemyError, OSError) as e:
            raise self._unavailable("ensure_schema", e) from e
        self._log.info("proposal_schema_ready")

    async def create(self, proposal: Proposal) -> Proposal:
        stored = replace(proposal, version=1)
        try:
            async with self._session_factory() as session, session.begin():
                await session.execute(
                    text("""
                        INSERT INTO proposals
                            (id, group_id, status, created_at, version, document)
                        VALUES
                            (:id, :group_id, :status, :created_at, :version,
                             CAST(:document AS JSONB))
                    """),
                    self._row_params(stored),
                )
        except IntegrityError as e:
            raise ValueError(f"Proposal already exists: {proposal.id}") from e
        except (SQLAlchemyError, OSError) as e:
            raise self._unavailable("create", e) from e

        self._log.debug("proposal_inserted", proposal_id=str(stored.id))
        return stored

    async def get(self, group_id: str, proposal_id: UUID) -> Proposal | None:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    text("""
                        SELECT document, version
                        FROM proposals
                        WHERE id = :id AND group_id = :group_id
                    """),
                    {"id": proposal_id, "group_id": group_id},
                )
                row = result.fetchone()
        except (SQLAlchemyError, OSError) as e:
            raise self._unavailable("get", e) from e

        if row is None:
            return None
        return self._to_proposal(row[0], row[1])

    async def update(self, proposal: Proposal, expected_version: int) -> Proposal:
        committed = replace(proposal, version=expected_version + 1)
        params = self._row_params(committed)
        params["expected_version"] = expected_version

        try:
            async with self._session_factory() as session, session.begin():
                result = await session.execute(
                    text("""
                        UPDATE proposals
                        SET document = CAST(:document AS JSONB),
                            status = :status,
                            version = :version
                        WHERE id = :id
                          AND group_id = :group_id
                          AND version = :expected_version
                        RETURNING version
                    """),
                    params,
                )
                if result.fetchone() is not None:
                    return committed

                current = await session.execute(
                    text("""
                        SELECT version FROM proposals
                        WHERE id = :id AND group_id = :group_id
                    """),
                    {"id": proposal.id, "group_id": proposal.group_id},
                )
                actual_version = current.scalar()
        except (SQLAlchemyError, OSError) as e:
            raise self._unavailable("update", e) from e

        if actual_version is None:
            raise ProposalNotFoundError(
                proposal_id=proposal.id, group_id=proposal.group_id
            )
        raise ConcurrentModificationError(
            proposal_id=proposal.id,
            expected_version=expected_version,
            actual_version=actual_version,
        )

    async def list_by_group(
        self,
        group_id: str,
        statuses: frozenset[ProposalStatus] | None = None,
    ) -> list[Proposal]:
        if statuses is not None and not statuses:
            return []

        if statuses is None:
            query = text("""
                SELECT document, version FROM proposals
                WHERE group_id = :group_id
                ORDER BY created_at
            """)
            params: dict[str, Any] = {"group_id": group_id}
        else:
            query = text("""
                SELECT document, version FROM proposals
                WHERE group_id = :group_id AND status IN :statuses
                ORDER BY created_at
            """).bindparams(bindparam("statuses", expanding=True))
            params = {
                "group_id": group_id,
                "statuses": sorted(s.value for s in statuses),
            }

        try:
            async with self._session_factory() as session:
                result = await session.execute(query, params)
                rows = result.fetchall()
        except (SQLAlchemyError, OSError) as e:
            raise self._unavailable("list_by_group", e) from e

        return [self._to_proposal(row[0], row[1]) for row in rows]

    @staticmethod
    def _row_params(proposal: Proposal) -> dict[str, Any]:
        document = proposal.to_dict()
        # version lives in its own column
        document.pop("version", None)
        return {
            "id": proposal.id,
            "group_id": proposal.group_id,
            "status": proposal.status.value,
            "created_at": proposal.created_at,
            "version": proposal.version,
            "document": json.dumps(document),
        }

    @staticmethod
    def _to_proposal(document: Any, version: int) -> Proposal:
        data = json.loads(document) if isinstance(document, str) else dict(document)
        data["version"] = version
        return Proposal.from_dict(data)

    def _unavailable(self, operation: str, error: Exception) -> StoreUnavailableError:
        self._log.error(
            "proposal_store_error",
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
        )
        return StoreUnavailableError(operation, type(error).__name__)
