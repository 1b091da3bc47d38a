"""Construction of the configured MEV relay client."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from pigeonrelay.mev.blxr import BlxrClient

_log = logging.getLogger(__name__)


def new_client(authorization_header: str, bloxroute_chains: Iterable[str]) -> BlxrClient | None:
    """Build an MEV client, or return None when no authorization is configured.

    ``bloxroute_chains`` names the chains whose bloXroute integration is
    enabled; each is registered on the new client.
    """
    if not authorization_header:
        _log.info("BLXR Auth header not found. No MEV relayer support.")
        return None

    client = BlxrClient(authorization_header)
    for chain_reference_id in bloxroute_chains:
        _log.info("Adding BLXR relayer support for chain %s", chain_reference_id)
        client.register_chain(chain_reference_id)
    return client