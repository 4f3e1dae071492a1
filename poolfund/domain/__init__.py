"""Domain layer: proposal aggregate, governance rules and errors."""

from poolfund.domain.exceptions import PoolFundError

__all__: list[str] = ["PoolFundError"]
