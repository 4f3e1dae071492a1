"""Proposal expiration sweep.

Expiry is lazy: a proposal becomes EXPIRED on the first read or vote
after its deadline. Nothing else is needed for correctness. This sweep
exists so a scheduler can close out proposals nobody has looked at,
which keeps listings accurate and sends outcome notifications on time.

Developer Golden Rules:
1. SAME PATH - expiry goes through the lifecycle service's conditional
   write, never around it
2. ONE BAD PROPOSAL DOES NOT STOP THE SWEEP - failures are logged and
   the remaining proposals are still processed
"""

from __future__ import annotations

import asyncio

from structlog import get_logger

from poolfund.application.ports.proposal_store import ProposalStoreProtocol
from poolfund.application.ports.time_authority import TimeAuthorityProtocol
from poolfund.application.services.proposal_lifecycle_service import (
    ProposalLifecycleService,
)
from poolfund.config.governance_config import (
    DEFAULT_GOVERNANCE_CONFIG,
    GovernanceConfig,
)
from poolfund.domain.errors.store import StoreUnavailableError
from poolfund.domain.models.proposal import Proposal, ProposalStatus

logger = get_logger()


class ProposalExpirationSweepService:
    """Expires every overdue OPEN proposal of a group.

    Attributes:
        _store: Proposal store used to find OPEN proposals.
        _lifecycle: Lifecycle service that commits the expiry.
        _time: Clock used to decide what is overdue.
        _config: Supplies the store timeout for the listing.
    """

    def __init__(
        self,
        store: ProposalStoreProtocol,
        lifecycle_service: ProposalLifecycleService,
        time_authority: TimeAuthorityProtocol,
        config: GovernanceConfig = DEFAULT_GOVERNANCE_CONFIG,
    ) -> None:
        self._store = store
        self._lifecycle = lifecycle_service
        self._time = time_authority
        self._config = config

    async def sweep(self, group_id: str) -> list[Proposal]:
        """Expire the overdue OPEN proposals of a group.

        This method should be called periodically (e.g., by a scheduler).

        Args:
            group_id: The group to sweep.

        Returns:
            The proposals this sweep moved to EXPIRED.

        Raises:
            StoreUnavailableError: If the OPEN proposals cannot be listed
                within the store timeout.
        """
        log = logger.bind(operation="sweep_expired_proposals", group_id=group_id)

        try:
            open_proposals = await asyncio.wait_for(
                self._store.list_by_group(group_id, frozenset({ProposalStatus.OPEN})),
                timeout=self._config.store_timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            log.error(
                "proposal_store_timeout",
                operation="list_by_group",
                timeout_seconds=self._config.store_timeout_seconds,
            )
            raise StoreUnavailableError("list_by_group", "timed out") from exc
        now = self._time.now()
        overdue = [p for p in open_proposals if p.is_expired_at(now)]

        if not overdue:
            log.debug("no_expired_proposals")
            return []

        log.info("found_expired_proposals", count=len(overdue))

        expired: list[Proposal] = []
        for proposal in overdue:
            try:
                result = await self._lifecycle.expire_if_due(proposal)
            except StoreUnavailableError as e:
                log.error(
                    "proposal_expiration_failed",
                    proposal_id=str(proposal.id),
                    error=str(e),
                )
                continue
            # A concurrent vote may have decided it first
            if result.status == ProposalStatus.EXPIRED:
                expired.append(result)

        log.info(
            "expiration_sweep_complete",
            total=len(overdue),
            expired=len(expired),
        )
        return expired
