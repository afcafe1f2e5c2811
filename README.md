# evolvechain

Building blocks for an EVM rollup node, written in plain Python with no
third-party dependencies.

## What is in the package

- `evolvechain.config`
  - Node defaults: `DEFAULT_CHAIN_ID`, `DEFAULT_RPC_PORT`, `DEFAULT_WS_PORT`
    and `DEFAULT_METRICS_PORT`.
  - Transaction-pool limits in `EvolveConfig`, with `to_dict` and `from_dict`.
  - A process-wide, thread-safe "current block gas limit". You set it with
    `set_current_block_gas_limit` and read it with `current_block_gas_limit`.
    It starts at `DEFAULT_MAX_TXPOOL_GAS`.
- `evolvechain.precompile`
  - The stateless ANDE token-duality precompile, run by
    `ande_token_duality_run(input, gas_limit)` or wrapped by
    `ande_token_duality_precompile()`. It checks gas, input length and the
    recipient, and returns a `PrecompileOutput`. It does not move balances.
  - Its errors: `PrecompileError`, `OutOfGasError` and the
    `AndePrecompileError` family (`UnauthorizedCaller`, `InvalidInputLength`,
    `TransferToZeroAddress`, `InsufficientBalance`).
- `evolvechain.precompile_provider`
  - `AndePrecompileProvider` answers calls to the ANDE address
    (`ande_precompile_address()`). It moves native balances through a journal
    such as `InMemoryJournal`.
  - Other addresses go to an optional set of standard precompiles, chosen per
    hardfork (`SpecId`). If you give no such set, the provider holds none.
- `evolvechain.mev`
  - `model`: `MevConfig` (with `validate`), `MevMetrics`, `BundleInfo` and
    `EpochInfo`.
  - `detector`: `MevDetector`, which applies arbitrage, sandwich and
    liquidation heuristics to `Transaction` records and reports
    `MevOpportunity` values tagged with a `MevType`.
  - `auction`: `MevAuctionClient`, which keeps the pending and settled bundles
    (`BundleSubmission`, `BundleExecutionResult`) and reports `AuctionStats`.
    Invalid bundles raise `AuctionError`.
  - `distributor`: `MevDistributorClient`, which buffers captured MEV and
    deposits it once the buffer is full or the deposit interval has passed. It
    tracks epochs (`EpochData`) and reports `DistributorStats`.

## Installation

```
pip install .
```

Install the test dependencies too:

```
pip install .[test]
```

## Quick look

Run the precompile on one transfer. The input is 96 bytes, laid out as
`abi.encode(from, to, value)`:

```python
from evolvechain.precompile import ande_token_duality_run

data = bytearray(96)
data[12:32] = b"\x01" * 20   # from
data[44:64] = b"\x02" * 20   # to
data[94:96] = (1000).to_bytes(2, "big")  # value

output = ande_token_duality_run(bytes(data), 10_000)
print(output.gas_used, output.output)   # 3300 b'\x01'
```

Run a native transfer through the provider, with a journal that starts with a
balance for the sender:

```python
from evolvechain.precompile_provider import (
    AndePrecompileProvider, CallInputs, InMemoryJournal, ande_precompile_address,
)

journal = InMemoryJournal({b"\x01" * 20: 5_000})
provider = AndePrecompileProvider()
result = provider.run(journal, ande_precompile_address(), CallInputs(bytes(data)), False, 10_000)
print(result.result, result.gas.spent)   # Return 3300
print(journal.balance(b"\x02" * 20))     # 1000
```

Track MEV bundles and settle them:

```python
from evolvechain.mev.auction import MevAuctionClient, BundleSubmission

client = MevAuctionClient(contract_address=b"\xaa" * 20, sequencer_address=b"\xbb" * 20)
client.submit_bundle(BundleSubmission(
    bundle_hash=b"\x11" * 32, bid_amount=1000, target_block=100,
    transactions=[b"\x22" * 32], searcher=b"\xcc" * 20,
))
winner = client.select_winning_bundle(100)
client.mark_bundle_executed(winner.bundle_hash, 2000, 900)
print(client.get_auction_stats().success_rate())   # 1.0
```

Buffer MEV for distribution:

```python
from evolvechain.mev.distributor import MevDistributorClient

distributor = MevDistributorClient.default_config(b"\xaa" * 20, b"\xbb" * 20)
distributor.add_mev(500)
print(distributor.get_buffer_amount())   # 500
print(distributor.force_deposit())       # 500
```

## What the package does not do

- It is a library, not a node. It has no command, no RPC server, no EVM and
  no storage.
- The auction and distributor clients keep their state in memory. They send
  nothing to any contract. A "deposit" empties the buffer and logs it.
  `get_epoch_info` and `check_epoch_settlement` return placeholder figures
  (zero totals, never settled).
- The `UnauthorizedCaller` check is defined but never applied: the stateless
  precompile does not know the caller.

## Running the tests

```
pytest
```