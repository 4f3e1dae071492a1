"""Unit tests for PostgresProposalStore with a mocked SQLAlchemy session.

Exercises the conditional-write outcomes and the mapping of driver
failures onto StoreUnavailableError without a database.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from poolfund.domain.errors import (
    ConcurrentModificationError,
    ProposalNotFoundError,
    StoreUnavailableError,
)
from poolfund.domain.models.proposal import (
    LoanApprovalPayload,
    Proposal,
    ProposalStatus,
    ProposalType,
)
from poolfund.infrastructure.adapters.persistence import PostgresProposalStore

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _proposal() -> Proposal:
    return Proposal(
        id=uuid4(),
        group_id="group-1",
        type=ProposalType.LOAN_APPROVAL,
        payload=LoanApprovalPayload(loan_id="loan-1", borrower_id="m2", amount=200.0),
        proposed_by="m2",
        created_at=NOW,
        expires_at=NOW + timedelta(days=7),
    )


def _result(fetchone=None, scalar=None, fetchall=None) -> MagicMock:
    result = MagicMock()
    result.fetchone.return_value = fetchone
    result.scalar.return_value = scalar
    result.fetchall.return_value = fetchall or []
    return result


@pytest.fixture
def session() -> MagicMock:
    session = MagicMock()
    session.execute = AsyncMock()
    return session


@pytest.fixture
def store(session: MagicMock) -> PostgresProposalStore:
    session_factory = MagicMock()
    session_factory.return_value.__aenter__.return_value = session
    return PostgresProposalStore(session_factory)


class TestCreate:
    async def test_insert_carries_document_without_version(
        self, store: PostgresProposalStore, session: MagicMock
    ) -> None:
        proposal = _proposal()

        stored = await store.create(proposal)

        assert stored.version == 1
        params = session.execute.await_args.args[1]
        assert params["id"] == proposal.id
        assert params["status"] == "Open"
        assert params["version"] == 1
        document = json.loads(params["document"])
        assert "version" not in document
        assert document["payload"]["loan_id"] == "loan-1"

    async def test_duplicate_becomes_value_error(
        self, store: PostgresProposalStore, session: MagicMock
    ) -> None:
        session.execute.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))

        with pytest.raises(ValueError, match="already exists"):
            await store.create(_proposal())


class TestGet:
    async def test_row_maps_to_proposal(
        self, store: PostgresProposalStore, session: MagicMock
    ) -> None:
        proposal = _proposal()
        document = proposal.to_dict()
        session.execute.return_value = _result(fetchone=(document, 4))

        loaded = await store.get("group-1", proposal.id)

        assert loaded is not None
        assert loaded.version == 4
        assert loaded.payload == proposal.payload

    async def test_missing_row(self, store: PostgresProposalStore, session: MagicMock) -> None:
        session.execute.return_value = _result(fetchone=None)

        assert await store.get("group-1", uuid4()) is None

    async def test_driver_failure_becomes_unavailable(
        self, store: PostgresProposalStore, session: MagicMock
    ) -> None:
        session.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))

        with pytest.raises(StoreUnavailableError) as exc_info:
            await store.get("group-1", uuid4())

        assert exc_info.value.operation == "get"

    async def test_connection_refused_becomes_unavailable(
        self, store: PostgresProposalStore, session: MagicMock
    ) -> None:
        session.execute.side_effect = ConnectionRefusedError("refused")

        with pytest.raises(StoreUnavailableError):
            await store.get("group-1", uuid4())


class TestUpdate:
    async def test_matching_version_commits(
        self, store: PostgresProposalStore, session: MagicMock
    ) -> None:
        proposal = _proposal()
        session.execute.return_value = _result(fetchone=(3,))

        committed = await store.update(
            proposal.transition_to(ProposalStatus.CANCELLED, NOW), expected_version=2
        )

        assert committed.version == 3
        params = session.execute.await_args.args[1]
        assert params["expected_version"] == 2
        assert params["version"] == 3
        assert params["status"] == "Cancelled"

    async def test_stale_version_raises_conflict(
        self, store: PostgresProposalStore, session: MagicMock
    ) -> None:
        session.execute.side_effect = [_result(fetchone=None), _result(scalar=5)]

        with pytest.raises(ConcurrentModificationError) as exc_info:
            await store.update(_proposal(), expected_version=2)

        assert exc_info.value.expected_version == 2
        assert exc_info.value.actual_version == 5

    async def test_missing_row_raises_not_found(
        self, store: PostgresProposalStore, session: MagicMock
    ) -> None:
        session.execute.side_effect = [_result(fetchone=None), _result(scalar=None)]

        with pytest.raises(ProposalNotFoundError):
            await store.update(_proposal(), expected_version=1)


class TestListByGroup:
    async def test_empty_status_set_skips_query(
        self, store: PostgresProposalStore, session: MagicMock
    ) -> None:
        assert await store.list_by_group("group-1", frozenset()) == []
        session.execute.assert_not_awaited()

    async def test_rows_map_in_order(
        self, store: PostgresProposalStore, session: MagicMock
    ) -> None:
        first, second = _proposal(), _proposal()
        session.execute.return_value = _result(
            fetchall=[(json.dumps(first.to_dict()), 1), (second.to_dict(), 2)]
        )

        proposals = await store.list_by_group("group-1", frozenset({ProposalStatus.OPEN}))

        assert [p.id for p in proposals] == [first.id, second.id]
        assert [p.version for p in proposals] == [1, 2]
        assert session.execute.await_args.args[1]["statuses"] == ["Open"]
