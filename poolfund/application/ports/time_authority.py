"""Time Authority Protocol - interface for consistent timestamp provisioning.

Services that need timestamps inject a TimeAuthorityProtocol
implementation instead of calling datetime.now() directly. Expiration,
vote timestamps and resolution times all come from the same clock, and
tests can freeze or advance it.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class TimeAuthorityProtocol(ABC):
    """Abstract interface for time authority.

    Example usage:
        class MyService:
            def __init__(self, time_authority: TimeAuthorityProtocol) -> None:
                self._time = time_authority

            def process(self) -> None:
                now = self._time.now()  # NOT datetime.now()

    For production:
        Use SystemTimeAuthority from poolfund.infrastructure.adapters

    For testing:
        Use FakeTimeAuthority from tests/helpers/fake_time_authority.py
    """

    @abstractmethod
    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        ...

    @abstractmethod
    def monotonic(self) -> float:
        """Return a monotonic clock value in seconds for measuring elapsed time."""
        ...
