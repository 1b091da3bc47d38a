"""Signing, relaying and attesting of queued Paloma messages."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from pigeonrelay.liblog import context_logger
from pigeonrelay.queues import TypeName

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class BroadcastMessageSignature:
    """A message signature as it is sent back to Paloma."""

    id: int
    queue_type_name: str
    signature: bytes
    signed_by_address: str


def _ids(messages: Iterable[Any]) -> list[int]:
    return [message.id for message in messages]


def sign_messages(paloma_client: Any, processors: Sequence[Any]) -> None:
    """Sign every message waiting in the processors' queues and broadcast the signatures."""
    for processor in processors:
        for queue_name in processor.supported_queues():
            try:
                messages = list(paloma_client.query_messages_for_signing(queue_name) or ())
            except Exception:
                _log.error("failed getting messages to sign (queue-name=%s)", queue_name)
                raise

            if not messages:
                continue

            ids = _ids(messages)
            _log.info(
                "signing %d messages (queue-name=%s, messages-to-sign=%s)",
                len(messages),
                queue_name,
                ids,
            )
            try:
                signed = list(processor.sign_messages(*messages) or ())
            except Exception:
                _log.exception("unable to sign messages (queue-name=%s, ids=%s)", queue_name, ids)
                raise

            _log.info("signed messages (queue-name=%s, signed-messages=%s)", queue_name, _ids(signed))
            try:
                broadcast_signatures(paloma_client, queue_name, signed)
            except Exception:
                _log.exception(
                    "couldn't broadcast signatures and process attestation (queue-name=%s)",
                    queue_name,
                )
                raise


def broadcast_signatures(
    paloma_client: Any, queue_type_name: str, signed_messages: Iterable[Any]
) -> None:
    """Send the signatures of signed messages to Paloma in one broadcast."""
    signatures = []
    for signed in signed_messages:
        _log.debug(
            "broadcasting signed message (id=%s, queue-type-name=%s)", signed.id, queue_type_name
        )
        signatures.append(
            BroadcastMessageSignature(
                id=signed.id,
                queue_type_name=queue_type_name,
                signature=signed.signature,
                signed_by_address=signed.signed_by_address,
            )
        )
    paloma_client.broadcast_message_signatures(*signatures)


def relay_messages(paloma_client: Any, processors: Sequence[Any]) -> None:
    """Hand every message waiting to be relayed to the processor serving its queue."""
    for processor in processors:
        for queue_name in processor.supported_queues():
            try:
                messages = list(paloma_client.query_messages_for_relaying(queue_name) or ())
            except Exception:
                _log.exception("couldn't get messages to relay (queue-name=%s)", queue_name)
                raise

            ids = _ids(messages)
            _log.debug("got %d messages from %s (message-ids=%s)", len(messages), queue_name, ids)
            if not messages:
                continue

            _log.info("relaying %d messages (queue-name=%s, messages-to-relay=%s)",
                      len(messages), queue_name, ids)
            try:
                processor.process_messages(TypeName(queue_name), messages)
            except Exception:
                _log.exception(
                    "error relaying messages (queue-name=%s, messages-to-relay=%s)",
                    queue_name,
                    ids,
                )
                raise


def attest_messages(paloma_client: Any, processors: Sequence[Any]) -> None:
    """Provide evidence for every message waiting to be attested."""
    for processor in processors:
        for queue_name in processor.supported_queues():
            log = context_logger()
            try:
                messages = list(paloma_client.query_messages_for_attesting(queue_name) or ())
            except Exception:
                log.exception("couldn't get messages to attest (queue-name=%s)", queue_name)
                raise

            ids = _ids(messages)
            log.debug("got %d messages from %s (message-ids=%s)", len(messages), queue_name, ids)
            if not messages:
                continue

            log.info("attesting %d messages (queue-name=%s, messages-to-attest=%s)",
                     len(messages), queue_name, ids)
            try:
                processor.provide_evidence(TypeName(queue_name), messages)
            except Exception:
                log.exception(
                    "error attesting messages (queue-name=%s, messages-to-attest=%s)",
                    queue_name,
                    ids,
                )
                raise