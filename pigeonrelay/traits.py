"""Traits a pigeon advertises for each chain it serves."""

from __future__ import annotations

from typing import Protocol

PIGEON_TRAIT_MEV = "mev"


class MevRelayerQuery(Protocol):
    """What trait building needs to know about an MEV relayer."""

    def is_healthy(self) -> bool: ...

    def is_chain_registered(self, chain_reference_id: str) -> bool: ...


def build_traits(chain_id: str, mev_client: MevRelayerQuery | None) -> list[str]:
    """Return the traits supported for ``chain_id``.

    The MEV trait is present only when a healthy MEV client has the chain
    registered.
    """
    if (
        mev_client is None
        or not mev_client.is_healthy()
        or not mev_client.is_chain_registered(chain_id)
    ):
        return []
    return [PIGEON_TRAIT_MEV]