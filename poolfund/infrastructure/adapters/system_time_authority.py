"""Wall-clock TimeAuthorityProtocol implementation for production."""

from __future__ import annotations

import time
from datetime import datetime, timezone

from poolfund.application.ports.time_authority import TimeAuthorityProtocol


class SystemTimeAuthority(TimeAuthorityProtocol):
    """Reads the system clock. Tests use FakeTimeAuthority instead."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def monotonic(self) -> float:
        return time.monotonic()
