"""Client for the bloXroute private transaction relay."""

from __future__ import annotations

import json
import logging
import threading
from typing import Any

import httpx

from pigeonrelay.liblog import context_logger

API_URL = "https://api.blxrbdn.com"
HEALTHPROBE_INTERVAL_SECONDS = 1.0

_METHOD_LOOKUP = {
    "eth-main": "blxr_private_tx",
    "bnb-main": "bsc_private_tx",
    "matic-main": "polygon_private_tx",
}

_CHAIN_ID_LOOKUP = {
    "1": "eth-main",
    "56": "bnb-main",
    "137": "matic-main",
}

_HASH_LENGTH = 32

_log = logging.getLogger(__name__)


class UnsupportedChainError(ValueError):
    """The chain has no bloXroute MEV support."""


class RelayError(RuntimeError):
    """A request to bloXroute failed or was refused."""


def _field(obj: Any, name: str) -> Any:
    """Look a key up in a JSON object, ignoring case."""
    if not isinstance(obj, dict):
        return None
    wanted = name.lower()
    for key, value in obj.items():
        if isinstance(key, str) and key.lower() == wanted:
            return value
    return None


def _decode_json(response: httpx.Response) -> Any:
    try:
        return json.loads(response.content)
    except ValueError:
        return None


def _hex_to_hash(value: str) -> bytes:
    """Turn a hex string into a 32-byte hash, padding or cropping on the left."""
    digits = value[2:] if value[:2] in ("0x", "0X") else value
    if len(digits) % 2:
        digits = "0" + digits
    try:
        raw = bytes.fromhex(digits)
    except ValueError as exc:
        raise RelayError(f"invalid transaction hash: {value}") from exc
    return raw[-_HASH_LENGTH:].rjust(_HASH_LENGTH, b"\0")


class BlxrClient:
    """Relays raw transactions privately through bloXroute."""

    def __init__(self, auth_header: str, http_client: httpx.Client | None = None) -> None:
        self._auth_header = auth_header
        self._healthy = False
        self._chains: dict[str, str] = {}
        self._http = http_client if http_client is not None else httpx.Client()

    def is_healthy(self) -> bool:
        """Tell whether the last health probe succeeded."""
        return self._healthy

    def register_chain(self, chain_reference_id: str) -> None:
        """Enable relaying for a supported chain; each chain only once."""
        method = _METHOD_LOOKUP.get(chain_reference_id)
        if method is None:
            raise UnsupportedChainError(
                f"chain {chain_reference_id} not supported for bloXroute MEV support"
            )
        existing = self._chains.get(chain_reference_id)
        if existing is not None:
            raise ValueError(
                f"chain {chain_reference_id} already has an MEV RPC method {existing} registered"
            )
        self._chains[chain_reference_id] = method

    def is_chain_registered(self, chain_reference_id: str) -> bool:
        """Tell whether a supported chain has been registered."""
        if chain_reference_id not in _METHOD_LOOKUP:
            raise UnsupportedChainError(
                f"chain {chain_reference_id} not supported for bloXroute MEV support"
            )
        return chain_reference_id in self._chains

    def keep_alive(self, lock: threading.Lock | None = None) -> None:
        """Probe the service; the lock is accepted for interface parity and unused."""
        self.run_health_check()

    def run_health_check(self) -> None:
        """Ping the service, updating health and raising when it is unreachable."""
        failure: str | None = None
        try:
            response = self._post("ping", None)
        except httpx.HTTPError as exc:
            failure = str(exc)
            status = None
        else:
            status = response.status_code
            if status != httpx.codes.OK:
                failure = f"status code {status}"

        if failure is not None:
            if self._healthy:
                context_logger().warning(
                    "Blxr client lost connection (status code %s, error %s). "
                    "Pigeon EVM relayer traits unhealthy.",
                    status,
                    failure,
                )
                self._healthy = False
            raise RelayError(f"BLXR client unhealthy: {failure}")

        if not self._healthy:
            context_logger().info("Blxr client recovered.")
            self._healthy = True

    def healthprobe_interval(self) -> float:
        """Seconds between health probes."""
        return HEALTHPROBE_INTERVAL_SECONDS

    def relay(self, chain_id: int, raw_tx: bytes) -> bytes:
        """Send an encoded transaction privately and return its 32-byte hash."""
        if not self._healthy:
            raise RelayError("client unhealthy")

        chain_reference_id = _CHAIN_ID_LOOKUP.get(str(chain_id))
        if chain_reference_id is None:
            raise RelayError(f"chain EventNonce {chain_id} not supported")

        if not self.is_chain_registered(chain_reference_id):
            raise RelayError(f"chain {chain_reference_id} not registered")

        encoded = bytes(raw_tx).hex()
        context_logger().debug("Relaying raw tx %s.", encoded)

        try:
            response = self._post(self._chains[chain_reference_id], {"Transaction": encoded})
        except httpx.HTTPError as exc:
            raise RelayError(f"failed to send request: {exc}") from exc

        payload = _decode_json(response)
        if response.status_code != httpx.codes.OK:
            message = _field(_field(payload, "error"), "message")
            raise RelayError(message if message else response.text)

        tx_hash = _field(_field(payload, "result"), "txhash")
        if not isinstance(tx_hash, str) or not tx_hash:
            raise RelayError(f"failed to retrieve hash: {response.text}")

        return _hex_to_hash(tx_hash)

    def _post(self, method: str, params: Any) -> httpx.Response:
        body = {"method": method, "id": "1", "params": params}
        return self._http.post(
            API_URL,
            content=json.dumps(body, sort_keys=True, separators=(",", ":")).encode(),
            headers={"Authorization": self._auth_header, "Content-Type": "application/json"},
        )