# aevum

Building blocks for a blockchain whose miners do useful computation. The
package is pure Python and has no runtime dependencies. Hashes, keys and
identifiers are plain `bytes` (32 bytes for hashes and keys).

## Modules

- `aevum.hashing` — a pure-Python BLAKE3 (`Blake3` with `update` and `digest`,
  and `blake3_hash(*parts)` over the concatenation of its arguments). Every
  identifier in the package is a BLAKE3 digest. `ZERO_HASH` is 32 zero bytes.
- `aevum.compute` — compute tasks (`ComputeTask`, `ComputeTask.create` which
  derives the task id from the contents), task types (`TaskType`,
  `CustomTaskType`), `SubTask`, `BlockSolution` and a `ComputeEngine` that
  searches a counter range for a solution. `solution_key(solution)` gives the
  verification key a solution satisfies; `BlockSolution.verify()` checks it.
- `aevum.compute_engine` — a `ComputeEngine` that records a `GpuVendor`
  (guessed by `detect_gpu()` from `/dev/nvidia0` or the `VULKAN_SDK`
  environment variable unless one is given), caps its active jobs at 16 with a
  GPU vendor or 4 without, and can run a full-range search in a background
  thread (`spawn_gpu_worker` returns a `concurrent.futures.Future`). All
  searching is done on the CPU.
- `aevum.poh` — a proof-of-history tick chain (`PohGenerator`, `PohTick`,
  `PohSnapshot`) with `verify_tick_chain`, `verify_tick_chain_multi`,
  `snapshot` and `from_snapshot`.
- `aevum.poupr` — proofs of useful work bound to a tick window: `PouprProof`
  over `ZkProofWork`, `StorageShardWork` or `AiInferenceWork`, with
  `verify_proof_hash` and `verify_time_bounds`.
- `aevum.economics` — block reward with halving every 210,000 blocks
  (`block_reward_satoshi`, `block_reward_aev`), fees (`calculate_fee`), supply
  limits (`check_supply`, `supply_aev`, `supply_progress`) and
  `blocks_until_halving`.
- `aevum.escrow` — `EscrowContract` splitting a reward among miners by shares,
  with a pool fee, a winner bonus, leftovers returned to the customer, and
  `refund`; `EscrowStatus` tracks its state.
- `aevum.sync` — `ChainSync`, which requests block heights in batches and moves
  between `Synced`, `Syncing` and `Failed` (on timeout).
- `aevum.task_pool` — `TaskPool` splits tasks into chunks, hands them to miners
  by priority, records and checks chunk proofs, releases timed-out chunks and
  bans miners with too many expired chunks or invalid proofs. Failures raise
  `TaskPoolError`. `make_valid_proof(key)` builds a proof that
  `verify_zk_proof` accepts.
- `aevum.task_market` — `TaskMarket`, an order book for compute tasks: place,
  fund, accept, propose a solution, verify it, cancel; plus
  `available_orders` and `best_order` (most reward per combination). A fee is
  taken on placement and an `EscrowContract` is opened per order. Failures
  raise `MarketError`.
- `aevum.jt_utxo` — restriction-level constants and predicates
  (`is_global`, `is_coinbase`, `is_spendable`, ...), `RestrictionLevel`,
  `ZkProof`, `JtUtxo`, and taint tracking (`decay_taint`, `compute_taint`).
- `aevum.address` — `AcceptancePolicy` (accept all, reject all, whitelist,
  blacklist) of `LevelRule` and `JurisdictionRule`, and `Address`, whose
  policy hash commits to a public key and a policy.
- `aevum.transaction` — `TxInput`, `TxOutput`, `Transaction` (hash computed on
  creation; `with_chain_id`, `sign_input`).
- `aevum.block` — `Block` with `create`, `genesis`, `is_valid_after`,
  `is_internal_valid`, `is_genesis` and `compute_hash`.
- `aevum.verifier` — `verify_useful_solution`, `verify_transaction_zk`,
  `verify_block_full` (raises `VerificationError`) and `score_solution`.
- `aevum.wire` — a versioned binary encoding of blocks: `BlockWire.from_core`,
  `to_core`, `encode`, `decode`, and `migrate_block`, which reads the wire
  version from the first two bytes. Errors raise `WireError`.

## Examples

```python
from aevum.poh import PohGenerator

poh = PohGenerator(b"seed")
first = poh.tick()
second = poh.tick()
assert PohGenerator.verify_tick_chain(first, second)
```

```python
from aevum.economics import block_reward_satoshi, calculate_fee

block_reward_satoshi(0)        # 5_000_000_000
block_reward_satoshi(210_000)  # 2_500_000_000
calculate_fee(100_000_000)     # (10_000, 1_000)
```

```python
from aevum.compute import BlockSolution, ComputeTask, TaskType, solution_key

answer = (42).to_bytes(8, "little")
task = ComputeTask.create(TaskType.DRUG_DISCOVERY, b"\x01\x02\x03", 1000, 0,
                          solution_key(answer), bytes(32), 1_000_000)
assert BlockSolution(task, answer, 10, bytes(32)).verify()
```

```python
from aevum.block import Block
from aevum.transaction import Transaction
from aevum.wire import BlockWire, migrate_block

block = Block.genesis([Transaction()])
data = BlockWire.from_core(block).encode()
assert migrate_block(data).to_core().block_hash == block.block_hash
```

## Limits

- There is no node: no networking, no peer handling, no command-line program.
  `ChainSync` only tracks requested heights; it does not fetch anything.
- Nothing is stored on disk. Blocks, tasks, orders and UTXOs live only in
  memory; `aevum.wire` produces bytes for the caller to store.
- There is no UTXO set or chain-state validator that applies blocks, and no
  key generation or signature checking. `sign_input` only records a signature;
  `verify_transaction_zk` only checks that each output carries a `ZkProof`.
- The wire format does not carry amount or tag commitments (they decode as
  zero bytes), and a custom task type decodes with an empty name.

## Running the tests

```
pip install -e ".[test]"
pytest
```