# pigeonrelay

`pigeonrelay` is the relaying core of a validator sidecar. It sits between a
Paloma validator and the EVM chains that validator serves: it builds one
processor per configured chain, then repeatedly signs queued messages, relays
them, attests to their results, signs and relays gravity batches, submits
claims for on-chain events, and keeps the validator marked as alive.

The relayer drives objects you give it: a Paloma client, an EVM processor
factory and the processors that factory builds. Everything is duck-typed; the
methods each object must offer are listed below.

## What is inside

| Module | Purpose |
| --- | --- |
| `pigeonrelay.relayer.core` | `Relayer`, `RelayerConfig`, `ChainInfo`, `ChainInfoIn`, `ValidatorStatus`: processor building, the work loops, health checks and keep-alive |
| `pigeonrelay.relayer.messages` | `sign_messages`, `broadcast_signatures`, `relay_messages`, `attest_messages`; `BroadcastMessageSignature` |
| `pigeonrelay.relayer.gravity` | `sign_batches`, `relay_batches`, `handle_batch_send_events`, `handle_send_to_paloma_events` |
| `pigeonrelay.relayer.errors` | the relayer's exceptions, `is_unrecoverable` and `handle_process_error` |
| `pigeonrelay.mev.blxr` | `BlxrClient`, a client for private transaction relaying through bloXroute; `UnsupportedChainError`, `RelayError` |
| `pigeonrelay.mev.factory` | `new_client`, which builds a `BlxrClient` when an authorization header is configured |
| `pigeonrelay.liblog` | correlation ids: `new_xid`, `parse_xid`, `enrich_context`, `must_enrich_context`, `correlation_id`, `default_logger`, `context_logger` |
| `pigeonrelay.queues` | `TypeName`, a queue name with `is_turnstone_queue` and `is_validators_balances_queue` |
| `pigeonrelay.traits` | `build_traits`, the traits a validator advertises for a chain |
| `pigeonrelay.slices` | `for_each`, `filter_items`, `map_items`, `reduce_items`, `make_map_keys`, `from_map_keys`, `from_map_values`, `iter_n`, `iter_map_n`, `reverse_in_place` |
| `pigeonrelay.channels` | `fan_in`, which merges several iterables into one iterator, draining each on its own thread |
| `pigeonrelay.clock` | `SystemClock` and the `Clock` protocol |
| `pigeonrelay.libchain` | `is_arbitrum` |

## The relayer

```python
from pigeonrelay.clock import SystemClock
from pigeonrelay.relayer.core import Relayer, RelayerConfig

relayer = Relayer(
    evm_configs,          # mapping of chain reference id to that chain's EVM config
    paloma_client,        # your Paloma client
    evm_factory,          # builds a processor for one chain
    SystemClock(),
    RelayerConfig(keep_alive_loop_timeout=30.0, keep_alive_block_threshold=30),
)
relayer.set_app_version("v1.4.0")
relayer.start()           # blocks until relayer.stop_event is set
```

### Loops

`start()` raises `ValueError` if `keep_alive_loop_timeout` is not positive.
Otherwise it checks once whether the validator is staking, starts every loop
on a daemon thread sharing one `threading.Lock`, sends an initial keep-alive,
and then runs the keep-alive loop on the calling thread. All loops end when
`relayer.stop_event` is set.

| Loop | Interval (s) | Needs staking |
| --- | --- | --- |
| `check_staking` | 5 | no |
| `update_external_chain_infos` | 60 | yes |
| `sign_messages`, `relay_messages`, `attest_messages` | 0.5 | yes |
| MEV client `keep_alive` (only with `set_mev_client`) | the client's `healthprobe_interval()` | no |
| `gravity_sign_batches`, `gravity_relay_batches` | 5 | yes |
| `gravity_handle_batch_send_event`, `gravity_handle_send_to_paloma_event` | 5 | yes |
| `keep_alive` | `keep_alive_loop_timeout` | no |

Each tick gets a fresh correlation id. An exception from a tick is logged and
the loop carries on.

### Processors

Before each pass a work loop calls `build_processors(lock)`, which asks Paloma
for the current chain infos and rebuilds the processors only when they differ
from the last ones seen. For each chain `processor_factory`:

* raises `MissingChainConfigError` when `evm_configs` has no entry for the
  chain;
* raises `InvalidMinOnChainBalanceError` when `min_on_chain_balance` is not a
  base-10 integer;
* calls `evm_factory.build(cfg, chain_reference_id, smart_contract_id, abi,
  smart_contract_address, chain_id, block_height, block_hash,
  min_on_chain_balance, mev_client)` and wraps any failure in
  `MissingChainConfigError`.

Each new processor's `is_right_chain()` is then called; its exception stops
the rebuild and is raised.

Errors inside a pass go through `handle_process_error`: cancellation and
`TimeoutError` end the pass quietly, an `UnrecoverableError` (or an error
raised from one) is raised again, anything else is logged and dropped.

### Health and keep-alive

`is_staking()` is true when the validator is not jailed and is `BONDED` or
`UNBONDING`; a "NotFound" lookup error counts as not staking.

`health_check()` builds a processor for every chain and calls its
`health_check()`. While the validator is not staking, problems are only logged
as warnings. When it is staking, a single problem is raised as is and several
are raised together as an `ExceptionGroup`.

`keep_alive(lock)` compares the block height the validator is alive until
with the current one, and calls `keep_validator_alive(app_version)` when fewer
than `keep_alive_block_threshold` blocks remain.

`update_external_chain_infos(lock)` sends one `ChainInfoIn` per processor,
built from its `external_account()` and `build_traits`, to
`add_external_chain_info`.

### What the collaborators must provide

Paloma client: `query_get_evm_chain_infos()`, `get_validator()`,
`query_get_validator_alive_until_block_height()`, `block_height()`,
`keep_validator_alive(app_version)`, `add_external_chain_info(*infos)`,
`query_messages_for_signing(queue)`, `query_messages_for_relaying(queue)`,
`query_messages_for_attesting(queue)`, `broadcast_message_signatures(*sigs)`,
`gravity_query_last_unsigned_batch(chain)`, `gravity_confirm_batches(*signed)`,
`gravity_query_batches_for_relaying(chain)`, `get_creator()`.

Processor: `chain_reference_id`, `is_right_chain()`, `health_check()`,
`external_account()`, `supported_queues()`, `sign_messages(*messages)`,
`process_messages(queue, messages)`, `provide_evidence(queue, messages)`,
`gravity_sign_batches(*batches)`, `gravity_relay_batches(batches)`,
`get_batch_send_events(creator)`, `submit_batch_send_to_eth_claims(events, creator)`,
`get_send_to_paloma_events(creator)`, `submit_send_to_paloma_claims(events, creator)`.

## MEV relaying

`new_client(authorization_header, bloxroute_chains)` returns `None` when the
header is empty, and otherwise a `BlxrClient` with each named chain
registered. Supported chains are `eth-main`, `bnb-main` and `matic-main`.
Registering any other chain, or asking `is_chain_registered` about one, raises
`UnsupportedChainError`; registering the same chain twice raises `ValueError`.

`run_health_check()` pings the service, marks the client healthy or unhealthy
and raises `RelayError` on failure. `relay(chain_id, raw_tx)` sends an encoded
transaction for chain 1, 56 or 137 and returns the 32-byte transaction hash;
it raises `RelayError` while unhealthy, for an unknown or unregistered chain,
or when the service refuses the request.

## Small helpers

```python
from pigeonrelay.queues import TypeName
from pigeonrelay.slices import filter_items, map_items

TypeName("eth-main/evm-turnstone-message").is_turnstone_queue()  # True
map_items([1, 2, 3], lambda n: n * 10)                          # [10, 20, 30]
filter_items([1, 2, 3, 4], lambda n: n % 2 == 0)                # [2, 4]
```

## What this package does not do

It has no Paloma client, no EVM chain processor or processor factory, no
configuration file loading and no command-line entry point. You supply the
Paloma client, the factory and the per-chain configuration, and run
`Relayer.start()` from your own program.

## Tests

The test suite uses pytest, pytest-asyncio and respx, available through the
`test` extra.