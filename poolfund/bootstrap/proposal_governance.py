"""Bootstrap wiring for proposal governance dependencies.

The group directory, group config store, loan, membership and
notification collaborators belong to other services. Until their
adapters are configured the in-memory stubs stand in for them; tests
replace any of them with the set_* functions.
"""

from __future__ import annotations

import os

from structlog import get_logger

from poolfund.application.ports.group_config_store import GroupConfigStoreProtocol
from poolfund.application.ports.group_directory import GroupDirectoryProtocol
from poolfund.application.ports.loan_service import LoanServiceProtocol
from poolfund.application.ports.membership_service import MembershipServiceProtocol
from poolfund.application.ports.notification_gateway import (
    NotificationGatewayProtocol,
)
from poolfund.application.ports.proposal_store import ProposalStoreProtocol
from poolfund.application.ports.time_authority import TimeAuthorityProtocol
from poolfund.application.services.change_applier_service import (
    ChangeApplierService,
)
from poolfund.application.services.proposal_expiration_sweep_service import (
    ProposalExpirationSweepService,
)
from poolfund.application.services.proposal_lifecycle_service import (
    ProposalLifecycleService,
)
from poolfund.config.governance_config import GovernanceConfig
from poolfund.infrastructure.adapters.system_time_authority import SystemTimeAuthority
from poolfund.infrastructure.stubs.group_config_store_stub import GroupConfigStoreStub
from poolfund.infrastructure.stubs.group_directory_stub import GroupDirectoryStub
from poolfund.infrastructure.stubs.loan_service_stub import LoanServiceStub
from poolfund.infrastructure.stubs.membership_service_stub import (
    MembershipServiceStub,
)
from poolfund.infrastructure.stubs.notification_gateway_stub import (
    NotificationGatewayStub,
)
from poolfund.infrastructure.stubs.proposal_store_stub import ProposalStoreStub

logger = get_logger()

_proposal_store: ProposalStoreProtocol | None = None
_group_directory: GroupDirectoryProtocol | None = None
_group_config_store: GroupConfigStoreProtocol | None = None
_loan_service: LoanServiceProtocol | None = None
_membership_service: MembershipServiceProtocol | None = None
_notification_gateway: NotificationGatewayProtocol | None = None
_time_authority: TimeAuthorityProtocol | None = None
_governance_config: GovernanceConfig | None = None
_lifecycle_service: ProposalLifecycleService | None = None
_sweep_service: ProposalExpirationSweepService | None = None


def get_proposal_store() -> ProposalStoreProtocol:
    """Get the proposal store.

    Returns the PostgreSQL store if DATABASE_URL is configured,
    otherwise the in-memory stub.
    """
    global _proposal_store
    if _proposal_store is None:
        if os.environ.get("DATABASE_URL"):
            try:
                from poolfund.bootstrap.database import get_session_factory
                from poolfund.infrastructure.adapters.persistence.postgres_proposal_store import (
                    PostgresProposalStore,
                )

                _proposal_store = PostgresProposalStore(get_session_factory())
                logger.info("proposal_store_initialized", store_type="PostgreSQL")
            except ValueError as e:
                logger.error(
                    "postgres_proposal_store_init_failed",
                    error=str(e),
                    message="Falling back to in-memory stub",
                )
                _proposal_store = ProposalStoreStub()
        else:
            logger.warning(
                "proposal_store_initialized",
                store_type="InMemoryStub",
                message="DATABASE_URL not set - proposals will not persist",
            )
            _proposal_store = ProposalStoreStub()
    return _proposal_store


async def prepare_proposal_store() -> None:
    """Create the proposals table when the configured store is PostgreSQL.

    Called once at API startup. The in-memory stub needs no preparation.
    """
    from poolfund.infrastructure.adapters.persistence.postgres_proposal_store import (
        PostgresProposalStore,
    )

    store = get_proposal_store()
    if isinstance(store, PostgresProposalStore):
        await store.ensure_schema()


def get_group_directory() -> GroupDirectoryProtocol:
    global _group_directory
    if _group_directory is None:
        _group_directory = GroupDirectoryStub()
    return _group_directory


def get_group_config_store() -> GroupConfigStoreProtocol:
    global _group_config_store
    if _group_config_store is None:
        _group_config_store = GroupConfigStoreStub()
    return _group_config_store


def get_loan_service() -> LoanServiceProtocol:
    global _loan_service
    if _loan_service is None:
        _loan_service = LoanServiceStub()
    return _loan_service


def get_membership_service() -> MembershipServiceProtocol:
    global _membership_service
    if _membership_service is None:
        directory = get_group_directory()
        _membership_service = MembershipServiceStub(
            directory if isinstance(directory, GroupDirectoryStub) else None
        )
    return _membership_service


def get_notification_gateway() -> NotificationGatewayProtocol:
    global _notification_gateway
    if _notification_gateway is None:
        _notification_gateway = NotificationGatewayStub()
    return _notification_gateway


def get_time_authority() -> TimeAuthorityProtocol:
    global _time_authority
    if _time_authority is None:
        _time_authority = SystemTimeAuthority()
    return _time_authority


def get_governance_config() -> GovernanceConfig:
    """Get lifecycle configuration from the environment."""
    global _governance_config
    if _governance_config is None:
        _governance_config = GovernanceConfig.from_environment()
        logger.info(
            "governance_config_loaded",
            expiry_days=_governance_config.expiry_days,
            max_write_attempts=_governance_config.max_write_attempts,
            store_timeout_seconds=_governance_config.store_timeout_seconds,
            apply_claim_ttl_seconds=_governance_config.apply_claim_ttl_seconds,
        )
    return _governance_config


def get_proposal_lifecycle_service() -> ProposalLifecycleService:
    """Get the lifecycle service wired to the current collaborators."""
    global _lifecycle_service
    if _lifecycle_service is None:
        applier = ChangeApplierService(
            config_store=get_group_config_store(),
            loan_service=get_loan_service(),
            membership_service=get_membership_service(),
        )
        _lifecycle_service = ProposalLifecycleService(
            store=get_proposal_store(),
            group_directory=get_group_directory(),
            change_applier=applier,
            time_authority=get_time_authority(),
            notification_gateway=get_notification_gateway(),
            config=get_governance_config(),
        )
    return _lifecycle_service


def get_proposal_expiration_sweep_service() -> ProposalExpirationSweepService:
    global _sweep_service
    if _sweep_service is None:
        _sweep_service = ProposalExpirationSweepService(
            store=get_proposal_store(),
            lifecycle_service=get_proposal_lifecycle_service(),
            time_authority=get_time_authority(),
            config=get_governance_config(),
        )
    return _sweep_service


def reset_proposal_governance_dependencies() -> None:
    """Reset proposal governance dependency singletons."""
    global _proposal_store
    global _group_directory
    global _group_config_store
    global _loan_service
    global _membership_service
    global _notification_gateway
    global _time_authority
    global _governance_config
    global _lifecycle_service
    global _sweep_service

    _proposal_store = None
    _group_directory = None
    _group_config_store = None
    _loan_service = None
    _membership_service = None
    _notification_gateway = None
    _time_authority = None
    _governance_config = None
    _lifecycle_service = None
    _sweep_service = None


def _drop_services() -> None:
    global _lifecycle_service, _sweep_service
    _lifecycle_service = None
    _sweep_service = None


def set_proposal_store(store: ProposalStoreProtocol) -> None:
    """Set custom proposal store for testing."""
    global _proposal_store
    _proposal_store = store
    _drop_services()


def set_group_directory(directory: GroupDirectoryProtocol) -> None:
    """Set custom group directory for testing."""
    global _group_directory
    _group_directory = directory
    _drop_services()


def set_group_config_store(store: GroupConfigStoreProtocol) -> None:
    """Set custom group config store for testing."""
    global _group_config_store
    _group_config_store = store
    _drop_services()


def set_loan_service(service: LoanServiceProtocol) -> None:
    """Set custom loan service for testing."""
    global _loan_service
    _loan_service = service
    _drop_services()


def set_membership_service(service: MembershipServiceProtocol) -> None:
    """Set custom membership service for testing."""
    global _membership_service
    _membership_service = service
    _drop_services()


def set_notification_gateway(gateway: NotificationGatewayProtocol) -> None:
    """Set custom notification gateway for testing."""
    global _notification_gateway
    _notification_gateway = gateway
    _drop_services()


def set_time_authority(time_authority: TimeAuthorityProtocol) -> None:
    """Set custom time authority for testing."""
    global _time_authority
    _time_authority = time_authority
    _drop_services()


def set_governance_config(config: GovernanceConfig) -> None:
    """Set custom governance config for testing."""
    global _governance_config
    _governance_config = config
    _drop_services()
