"""Gravity bridge work: signing and relaying batches, claiming bridge events."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from pigeonrelay.liblog import context_logger

_log = logging.getLogger(__name__)


def sign_batches(paloma_client: Any, processors: Sequence[Any]) -> None:
    """Sign every unsigned outgoing batch and confirm the signatures on Paloma."""
    for processor in processors:
        chain_reference_id = processor.chain_reference_id
        try:
            batches = list(
                paloma_client.gravity_query_last_unsigned_batch(chain_reference_id) or ()
            )
        except Exception:
            _log.exception(
                "failed getting batches to sign (chain-reference-id=%s)", chain_reference_id
            )
            raise

        if not batches:
            continue

        nonces = [batch.batch_nonce for batch in batches]
        _log.info(
            "signing %d batches (chain-reference-id=%s, batch-nonces=%s)",
            len(batches),
            chain_reference_id,
            nonces,
        )
        try:
            signed = list(processor.gravity_sign_batches(*batches) or ())
        except Exception:
            _log.exception("unable to sign batches (chain-reference-id=%s)", chain_reference_id)
            raise

        _log.info(
            "signed batches (chain-reference-id=%s, signed-batches=%s)",
            chain_reference_id,
            [batch.batch_nonce for batch in signed],
        )
        try:
            paloma_client.gravity_confirm_batches(*signed)
        except Exception:
            _log.exception(
                "couldn't broadcast signatures and process attestation (chain-reference-id=%s)",
                chain_reference_id,
            )
            raise


def relay_batches(paloma_client: Any, processors: Sequence[Any]) -> None:
    """Relay every signed batch that is ready to its target chain."""
    for processor in processors:
        chain_reference_id = processor.chain_reference_id
        log = context_logger()
        try:
            batches = list(
                paloma_client.gravity_query_batches_for_relaying(chain_reference_id) or ()
            )
        except Exception:
            log.exception(
                "couldn't get batches to relay (chain-reference-id=%s)", chain_reference_id
            )
            raise

        nonces = [batch.batch_nonce for batch in batches]
        log.debug("got %d batches (chain-reference-id=%s, batch-nonces=%s)",
                  len(batches), chain_reference_id, nonces)
        if not batches:
            continue

        log.info("relaying %d batches (chain-reference-id=%s)", len(batches), chain_reference_id)
        try:
            processor.gravity_relay_batches(batches)
        except Exception:
            log.exception("error relaying batches (chain-reference-id=%s)", chain_reference_id)
            raise


def _claim_events(
    paloma_client: Any,
    processors: Sequence[Any],
    fetch_name: str,
    submit_name: str,
    action: str,
) -> None:
    for processor in processors:
        chain_reference_id = processor.chain_reference_id
        log = context_logger()
        creator = paloma_client.get_creator()
        try:
            events = list(getattr(processor, fetch_name)(creator) or ())
        except Exception:
            log.exception(
                "couldn't get events (chain-reference-id=%s, action=%s)", chain_reference_id, action
            )
            raise

        nonces = [event.event_nonce for event in events]
        log.debug("got %d events (chain-reference-id=%s, action=%s, event-ids=%s)",
                  len(events), chain_reference_id, action, nonces)
        if not events:
            continue

        log.info("claiming for %d events (chain-reference-id=%s, action=%s)",
                 len(events), chain_reference_id, action)
        try:
            getattr(processor, submit_name)(events, creator)
        except Exception:
            log.exception(
                "error submitting claim for events (chain-reference-id=%s, action=%s)",
                chain_reference_id,
                action,
            )
            raise


def handle_batch_send_events(paloma_client: Any, processors: Sequence[Any]) -> None:
    """Claim on Paloma every batch-send event the processors observed."""
    _claim_events(
        paloma_client,
        processors,
        "get_batch_send_events",
        "submit_batch_send_to_eth_claims",
        "handle-gravity-batch-send-events",
    )


def handle_send_to_paloma_events(paloma_client: Any, processors: Sequence[Any]) -> None:
    """Claim on Paloma every send-to-Paloma event the processors observed."""
    _claim_events(
        paloma_client,
        processors,
        "get_send_to_paloma_events",
        "submit_send_to_paloma_claims",
        "handle-gravity-send-to-paloma-events",
    )