"""The relayer: keeps chain processors in step with Paloma and runs the work loops."""

from __future__ import annotations

import enum
import logging
import re
import threading
from collections.abc import Callable, Mapping, Sequence
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from typing import Any

from pigeonrelay import liblog
from pigeonrelay.clock import Clock
from pigeonrelay.relayer import gravity, messages
from pigeonrelay.relayer.errors import (
    InvalidMinOnChainBalanceError,
    MissingChainConfigError,
    handle_process_error,
    is_unrecoverable,
)
from pigeonrelay.traits import build_traits

UPDATE_EXTERNAL_CHAINS_LOOP_INTERVAL = 60.0
SIGN_MESSAGES_LOOP_INTERVAL = 0.5
RELAY_MESSAGES_LOOP_INTERVAL = 0.5
ATTEST_MESSAGES_LOOP_INTERVAL = 0.5
CHECK_STAKING_LOOP_INTERVAL = 5.0

UPDATE_GRAVITY_ORCHESTRATOR_ADDRESS_INTERVAL = 60.0
GRAVITY_SIGN_BATCHES_LOOP_INTERVAL = 5.0
GRAVITY_RELAY_BATCHES_LOOP_INTERVAL = 5.0
BATCH_SEND_EVENT_WATCHER_LOOP_INTERVAL = 5.0
SEND_TO_PALOMA_EVENT_WATCHER_LOOP_INTERVAL = 5.0

_NOT_IN_KEEP_ALIVE_STORE = "validator is not in keep alive store"
_HASH_LENGTH = 32
_DECIMAL = re.compile(r"[+-]?[0-9]+")
_HEX_PAIRS = re.compile(r"(?:[0-9a-fA-F]{2})*")

_log = logging.getLogger(__name__)

Lock = AbstractContextManager[Any]


@dataclass(frozen=True)
class ChainInfo:
    """What Paloma says about an EVM chain the pigeon serves."""

    id: int = 0
    chain_reference_id: str = ""
    chain_id: int = 0
    smart_contract_unique_id: bytes = b""
    smart_contract_addr: str = ""
    reference_block_height: int = 0
    reference_block_hash: str = ""
    abi: str = ""
    bytecode: bytes = b""
    constructor_input: bytes = b""
    status: int = 0
    active_smart_contract_id: int = 0
    min_on_chain_balance: str = ""


@dataclass(frozen=True)
class ChainInfoIn:
    """The pigeon's account on an external chain, as reported to Paloma."""

    chain_reference_id: str
    acc_address: str
    chain_type: str
    pub_key: bytes
    traits: list[str] = field(default_factory=list)


class ValidatorStatus(enum.IntEnum):
    """Bonding status of a validator."""

    UNSPECIFIED = 0
    UNBONDED = 1
    UNBONDING = 2
    BONDED = 3


@dataclass
class RelayerConfig:
    """Timing of the keep-alive loop; durations are in seconds."""

    keep_alive_loop_timeout: float = 0.0
    keep_alive_block_threshold: int = 0


def _hex_to_hash(value: str) -> bytes:
    """Decode hex into a 32-byte hash, keeping the rightmost bytes and padding on the left."""
    digits = value[2:] if value[:2] in ("0x", "0X") else value
    if len(digits) % 2:
        digits = "0" + digits
    raw = bytes.fromhex(_HEX_PAIRS.match(digits).group(0))
    return raw[-_HASH_LENGTH:].rjust(_HASH_LENGTH, b"\0")


class Relayer:
    """Coordinates the pigeon's work between Paloma and the chains it serves."""

    def __init__(
        self,
        evm_configs: Mapping[str, Any],
        paloma_client: Any,
        evm_factory: Any,
        clock: Clock,
        relayer_config: RelayerConfig,
    ) -> None:
        self._evm_configs = evm_configs
        self._paloma = paloma_client
        self._evm_factory = evm_factory
        self._clock = clock
        self.relayer_config = relayer_config
        self._mev_client: Any = None
        self.chains_infos: list[ChainInfo] | None = None
        self.processors: list[Any] | None = None
        self.staking = False
        self.app_version = ""
        self.stop_event = threading.Event()

    def set_app_version(self, app_version: str) -> None:
        """Record the version reported in keep-alive messages."""
        self.app_version = app_version

    def set_mev_client(self, client: Any) -> None:
        """Use ``client`` for MEV relaying and trait reporting."""
        self._mev_client = client

    def build_processors(self, lock: Lock) -> None:
        """Rebuild the chain processors when Paloma's chain infos have changed."""
        with lock:
            queried = list(self._paloma.query_get_evm_chain_infos() or ())
            _log.debug("got chain infos: %s", queried)

            if (
                self.processors is not None
                and self.chains_infos is not None
                and self.chains_infos == queried
            ):
                _log.debug("chain infos unchanged since last tick")
                return

            _log.debug("chain infos changed.  building processors")
            self.processors = []
            self.chains_infos = []
            for chain_info in queried:
                reference_id = chain_info.chain_reference_id
                try:
                    processor = self.processor_factory(chain_info)
                except Exception as exc:
                    if is_unrecoverable(exc):
                        _log.error(
                            "unable to build processor (chain-reference-id=%s): %s",
                            reference_id,
                            exc,
                        )
                    raise
                try:
                    processor.is_right_chain()
                except Exception as exc:
                    _log.error("incorrect chain (chain-reference-id=%s): %s", reference_id, exc)
                    raise
                self.processors.append(processor)
                self.chains_infos.append(chain_info)

    def processor_factory(self, chain_info: ChainInfo) -> Any:
        """Build the processor for one chain from its configuration and chain info."""
        reference_id = chain_info.chain_reference_id
        missing = f"missing chain config: reference chain id: {reference_id}"

        if reference_id not in self._evm_configs:
            raise MissingChainConfigError(missing)
        cfg = self._evm_configs[reference_id]

        balance = chain_info.min_on_chain_balance
        if not _DECIMAL.fullmatch(balance):
            raise InvalidMinOnChainBalanceError(balance)

        try:
            return self._evm_factory.build(
                cfg,
                reference_id,
                bytes(chain_info.smart_contract_unique_id).decode("utf-8", "replace"),
                chain_info.abi,
                chain_info.smart_contract_addr,
                int(chain_info.chain_id),
                int(chain_info.reference_block_height),
                _hex_to_hash(chain_info.reference_block_hash),
                int(balance),
                self._mev_client,
            )
        except Exception as exc:
            raise MissingChainConfigError(f"{exc}: {missing}") from exc

    def is_staking(self) -> bool:
        """Tell whether the validator is bonded or unbonding and not jailed."""
        try:
            validator = self._paloma.get_validator()
        except Exception as exc:
            if "NotFound" not in str(exc):
                raise
            validator = None

        return (
            validator is not None
            and not validator.jailed
            and validator.status in (ValidatorStatus.BONDED, ValidatorStatus.UNBONDING)
        )

    def health_check(self) -> None:
        """Check every chain's processor.

        Problems are only warnings while the validator is not staking. Once it
        stakes, a single problem is raised as is and several as an
        ExceptionGroup.
        """
        chain_infos = list(self._paloma.query_get_evm_chain_infos() or ())
        staking = self.is_staking()

        problems: list[Exception] = []
        for chain_info in chain_infos:
            try:
                processor = self.processor_factory(chain_info)
            except Exception as exc:
                problems.append(exc)
                continue
            try:
                processor.health_check()
            except Exception as exc:
                problems.append(exc)

        if not staking:
            _log.warning(
                "validator is not staking. ensure to fix these warning if you wish to stake."
            )
            for problem in problems:
                _log.warning(
                    "blocker for becoming a staking validator. Fix if you wish to stake: %s",
                    problem,
                )
            return

        if len(problems) == 1:
            raise problems[0]
        if problems:
            raise ExceptionGroup("health check failed", problems)

    def keep_alive(self, lock: Lock) -> None:
        """Tell Paloma the validator is alive when its alive window is about to close."""
        liblog.context_logger().debug("querying get alive time")
        try:
            alive_until = self._paloma.query_get_validator_alive_until_block_height()
        except Exception as exc:
            if _NOT_IN_KEEP_ALIVE_STORE not in str(exc):
                _log.error("error while getting the alive time for a validator: %s", exc)
                raise
            alive_until = 0

        block_height = self._paloma.block_height()
        blocks_to_live = alive_until - block_height
        send_keep_alive = blocks_to_live < self.relayer_config.keep_alive_block_threshold
        _log.debug(
            "checking keep alive (alive-until-bh=%s, current-bh=%s, btl=%s, "
            "should-send-keep-alive=%s)",
            alive_until,
            block_height,
            blocks_to_live,
            send_keep_alive,
        )

        if send_keep_alive:
            try:
                with lock:
                    self._paloma.keep_validator_alive(self.app_version)
            except Exception as exc:
                _log.error("error while trying to keep pigeon alive: %s", exc)
                raise

    def check_staking(self, lock: Lock) -> None:
        """Refresh whether the validator is staking; lookup errors count as not staking."""
        if self.stop_event.is_set():
            return
        _log.info("checking if validator is staking")
        try:
            staking = self.is_staking()
        except Exception:
            staking = False
        if staking:
            _log.info("validator is staking")
        else:
            _log.warning("validator is not staking... waiting")
        self.staking = staking

    def update_external_chain_infos(self, lock: Lock) -> None:
        """Report the pigeon's account and traits on every served chain to Paloma."""
        try:
            self.build_processors(lock)
        except Exception as exc:
            _log.error("couldn't build processors to update external chain info: %s", exc)
            raise

        _log.info("updating external chain infos")
        chain_infos = []
        for processor in self.processors or ():
            account = processor.external_account()
            traits = build_traits(account.chain_reference_id, self._mev_client)
            _log.info(
                "sending account info to paloma (chain-reference-id=%s, acc-address=%s, "
                "chain-type=%s, chain-traits=%s)",
                account.chain_reference_id,
                account.address,
                account.chain_type,
                traits,
            )
            chain_infos.append(
                ChainInfoIn(
                    chain_reference_id=account.chain_reference_id,
                    acc_address=account.address,
                    chain_type=account.chain_type,
                    pub_key=account.pub_key,
                    traits=traits,
                )
            )

        if not chain_infos:
            return

        with lock:
            self._paloma.add_external_chain_info(*chain_infos)

    def sign_messages(self, lock: Lock) -> None:
        """Sign queued messages on every served chain."""
        self._run_step(lock, "signer", messages.sign_messages)

    def relay_messages(self, lock: Lock) -> None:
        """Relay signed messages to every served chain."""
        self._run_step(lock, "relayer", messages.relay_messages)

    def attest_messages(self, lock: Lock) -> None:
        """Attest to the results of relayed messages."""
        self._run_step(lock, "attester", messages.attest_messages)

    def gravity_sign_batches(self, lock: Lock) -> None:
        """Sign outgoing gravity batches."""
        self._run_step(lock, "signer", gravity.sign_batches)

    def gravity_relay_batches(self, lock: Lock) -> None:
        """Relay signed gravity batches."""
        self._run_step(lock, "relayer", gravity.relay_batches)

    def gravity_handle_batch_send_event(self, lock: Lock) -> None:
        """Claim observed gravity batch-send events."""
        self._run_step(lock, "event watcher", gravity.handle_batch_send_events)

    def gravity_handle_send_to_paloma_event(self, lock: Lock) -> None:
        """Claim observed send-to-Paloma events."""
        self._run_step(lock, "event watcher", gravity.handle_send_to_paloma_events)

    def start(self) -> None:
        """Run every work loop until ``stop_event`` is set.

        The keep-alive loop runs on the calling thread; the rest run on
        background threads sharing one lock.
        """
        keep_alive_interval = self.relayer_config.keep_alive_loop_timeout
        if keep_alive_interval <= 0:
            raise ValueError("non-positive interval for the keep alive loop")

        _log.info("starting pigeon")
        lock = threading.Lock()
        self.check_staking(lock)

        loops: list[tuple[float, bool, Callable[[Lock], Any]]] = [
            (CHECK_STAKING_LOOP_INTERVAL, False, self.check_staking),
            (UPDATE_EXTERNAL_CHAINS_LOOP_INTERVAL, True, self.update_external_chain_infos),
            (SIGN_MESSAGES_LOOP_INTERVAL, True, self.sign_messages),
            (RELAY_MESSAGES_LOOP_INTERVAL, True, self.relay_messages),
            (ATTEST_MESSAGES_LOOP_INTERVAL, True, self.attest_messages),
        ]
        if self._mev_client is not None:
            loops.append(
                (self._mev_client.healthprobe_interval(), False, self._mev_client.keep_alive)
            )
        loops += [
            (GRAVITY_SIGN_BATCHES_LOOP_INTERVAL, True, self.gravity_sign_batches),
            (GRAVITY_RELAY_BATCHES_LOOP_INTERVAL, True, self.gravity_relay_batches),
            (BATCH_SEND_EVENT_WATCHER_LOOP_INTERVAL, True, self.gravity_handle_batch_send_event),
            (
                SEND_TO_PALOMA_EVENT_WATCHER_LOOP_INTERVAL,
                True,
                self.gravity_handle_send_to_paloma_event,
            ),
        ]
        for interval, requires_staking, process in loops:
            threading.Thread(
                target=self._start_process,
                args=(lock, interval, requires_staking, process),
                daemon=True,
            ).start()

        liblog.must_enrich_context()
        try:
            self.keep_alive(lock)
        except Exception as exc:
            _log.error("initial keep alive failed: %s", exc)

        self._start_process(lock, keep_alive_interval, False, self.keep_alive)

    def _start_process(
        self,
        lock: Lock,
        interval: float,
        requires_staking: bool,
        process: Callable[[Lock], Any],
    ) -> None:
        if interval <= 0:
            raise ValueError("non-positive interval for ticker")
        while not self.stop_event.wait(interval):
            if requires_staking and not self.staking:
                continue
            liblog.must_enrich_context()
            try:
                process(lock)
            except Exception as exc:
                _log.error("%s", exc)
        _log.warning("exiting due to the relayer being stopped")

    def _run_step(
        self,
        lock: Lock,
        name: str,
        step: Callable[[Any, Sequence[Any]], None],
    ) -> None:
        log = liblog.context_logger()
        log.info("%s loop", name)
        if self.stop_event.is_set():
            log.info("exiting %s loop as the relayer is stopping", name)
            return

        self.build_processors(lock)

        try:
            with lock:
                step(self._paloma, list(self.processors or ()))
        except Exception as exc:
            handle_process_error(exc)