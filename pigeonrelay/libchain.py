"""Facts about well-known chains."""

from __future__ import annotations

ARBITRUM_CHAIN_ID = 42161


def is_arbitrum(chain_id: int) -> bool:
    """Tell whether a numeric chain id is Arbitrum One."""
    return int(chain_id) == ARBITRUM_CHAIN_ID