"""Proposal lifecycle configuration (expiry window, write retries, timeouts).

This module defines configuration for the proposal lifecycle with
environment variable overrides for production tuning.

Environment Variables:
- PROPOSAL_EXPIRY_DAYS: Default voting window in days (default: 7, min: 1, max: 90)
- PROPOSAL_MAX_WRITE_ATTEMPTS: Conditional write attempts before giving up
  (default: 5, min: 1, max: 20)
- PROPOSAL_STORE_TIMEOUT_SECONDS: Timeout per store round trip
  (default: 5, min: 1, max: 60)
- PROPOSAL_APPLY_CLAIM_TTL_SECONDS: Age after which an unfinished apply
  may be taken over by reconciliation (default: 300, min: 10, max: 86400)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


# =============================================================================
# Expiry Configuration
# =============================================================================

DEFAULT_EXPIRY_DAYS = 7
MIN_EXPIRY_DAYS = 1
MAX_EXPIRY_DAYS = 90

# =============================================================================
# Conditional Write Configuration
# =============================================================================

DEFAULT_MAX_WRITE_ATTEMPTS = 5
MIN_WRITE_ATTEMPTS = 1
MAX_WRITE_ATTEMPTS = 20

# =============================================================================
# Store Timeout Configuration
# =============================================================================

DEFAULT_STORE_TIMEOUT_SECONDS = 5
MIN_STORE_TIMEOUT_SECONDS = 1
MAX_STORE_TIMEOUT_SECONDS = 60

# =============================================================================
# Apply Claim Configuration
# =============================================================================

DEFAULT_APPLY_CLAIM_TTL_SECONDS = 300
MIN_APPLY_CLAIM_TTL_SECONDS = 10
MAX_APPLY_CLAIM_TTL_SECONDS = 86400


@dataclass(frozen=True)
class GovernanceConfig:
    """Configuration for the proposal lifecycle.

    Attributes:
        expiry_days: Voting window for proposals created without expires_at.
                     Default: 7 days.
        max_write_attempts: Attempts of a read-modify-write before the
                            operation surfaces StoreUnavailableError.
                            Default: 5.
        store_timeout_seconds: Upper bound for a single store round trip.
                               Default: 5 seconds.
        apply_claim_ttl_seconds: How long an apply claim blocks
                                 reconciliation before it counts as
                                 abandoned. Default: 300 seconds.
    """

    expiry_days: int = DEFAULT_EXPIRY_DAYS
    max_write_attempts: int = DEFAULT_MAX_WRITE_ATTEMPTS
    store_timeout_seconds: float = DEFAULT_STORE_TIMEOUT_SECONDS
    apply_claim_ttl_seconds: float = DEFAULT_APPLY_CLAIM_TTL_SECONDS

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not MIN_EXPIRY_DAYS <= self.expiry_days <= MAX_EXPIRY_DAYS:
            raise ValueError(
                f"expiry_days must be between {MIN_EXPIRY_DAYS} "
                f"and {MAX_EXPIRY_DAYS}, got {self.expiry_days}"
            )
        if not MIN_WRITE_ATTEMPTS <= self.max_write_attempts <= MAX_WRITE_ATTEMPTS:
            raise ValueError(
                f"max_write_attempts must be between {MIN_WRITE_ATTEMPTS} "
                f"and {MAX_WRITE_ATTEMPTS}, got {self.max_write_attempts}"
            )
        if self.store_timeout_seconds <= 0:
            raise ValueError(
                f"store_timeout_seconds must be positive, got {self.store_timeout_seconds}"
            )
        if self.apply_claim_ttl_seconds <= 0:
            raise ValueError(
                f"apply_claim_ttl_seconds must be positive, got {self.apply_claim_ttl_seconds}"
            )

    @property
    def expiry_timedelta(self) -> timedelta:
        """Get the default voting window as a timedelta."""
        return timedelta(days=self.expiry_days)

    @property
    def apply_claim_ttl(self) -> timedelta:
        return timedelta(seconds=self.apply_claim_ttl_seconds)

    @classmethod
    def from_environment(cls) -> GovernanceConfig:
        """Create config from environment variables with defaults.

        Out-of-range values are clamped to the allowed range.

        Returns:
            GovernanceConfig with values from environment or defaults.
        """
        expiry_days = _get_int_env("PROPOSAL_EXPIRY_DAYS", DEFAULT_EXPIRY_DAYS)
        expiry_days = max(MIN_EXPIRY_DAYS, min(expiry_days, MAX_EXPIRY_DAYS))

        attempts = _get_int_env(
            "PROPOSAL_MAX_WRITE_ATTEMPTS", DEFAULT_MAX_WRITE_ATTEMPTS
        )
        attempts = max(MIN_WRITE_ATTEMPTS, min(attempts, MAX_WRITE_ATTEMPTS))

        timeout = _get_int_env(
            "PROPOSAL_STORE_TIMEOUT_SECONDS", DEFAULT_STORE_TIMEOUT_SECONDS
        )
        timeout = max(MIN_STORE_TIMEOUT_SECONDS, min(timeout, MAX_STORE_TIMEOUT_SECONDS))

        claim_ttl = _get_int_env(
            "PROPOSAL_APPLY_CLAIM_TTL_SECONDS", DEFAULT_APPLY_CLAIM_TTL_SECONDS
        )
        claim_ttl = max(
            MIN_APPLY_CLAIM_TTL_SECONDS, min(claim_ttl, MAX_APPLY_CLAIM_TTL_SECONDS)
        )

        return cls(
            expiry_days=expiry_days,
            max_write_attempts=attempts,
            store_timeout_seconds=timeout,
            apply_claim_ttl_seconds=claim_ttl,
        )


# Default production config
DEFAULT_GOVERNANCE_CONFIG = GovernanceConfig()

# Testing config with the shortest store timeout
TEST_GOVERNANCE_CONFIG = GovernanceConfig(
    expiry_days=DEFAULT_EXPIRY_DAYS,
    max_write_attempts=DEFAULT_MAX_WRITE_ATTEMPTS,
    store_timeout_seconds=MIN_STORE_TIMEOUT_SECONDS,
)
