"""Production adapters for the governance engine ports."""

from poolfund.infrastructure.adapters.system_time_authority import SystemTimeAuthority

__all__: list[str] = ["SystemTimeAuthority"]
