"""Stable binary wire format for blocks, transactions and compute solutions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional, TypeVar

from aevum.block import Block
from aevum.compute import AnyTaskType, BlockSolution, ComputeTask, CustomTaskType, TaskType
from aevum.hashing import ZERO_HASH
from aevum.jt_utxo import ProofScheme, ZkProof
from aevum.transaction import Transaction, TxInput, TxOutput

WIRE_VERSION = 1
MAX_SIGNATURE_SIZE = 65536

_CUSTOM_CODE = 255
_TASK_CODES = {
    TaskType.DRUG_DISCOVERY: 0,
    TaskType.CLIMATE_MODELING: 1,
    TaskType.AI_TRAINING: 2,
    TaskType.ZK_PROOF_GENERATION: 3,
    TaskType.IMAGE_GENERATION: 4,
    TaskType.VIDEO_GENERATION: 5,
    TaskType.AUDIO_PROCESSING: 6,
    TaskType.MOLECULAR_DOCKING: 7,
}
_TASKS_BY_CODE = {code: task_type for task_type, code in _TASK_CODES.items()}

_T = TypeVar("_T")


class WireError(Exception):
    """Raised when a value cannot be converted to or from the wire format."""


def _deserialization_failed(reason: str) -> WireError:
    return WireError(f"Deserialization failed: {reason}")


def _public_key(data: bytes) -> bytes:
    if len(data) != 32:
        raise WireError("Invalid public key")
    return bytes(data)


def _check_signature(signature: bytes) -> None:
    if len(signature) > MAX_SIGNATURE_SIZE:
        raise WireError(f"Signature too large: {len(signature)} bytes")


# ------------------------------------------------------------------
# Codecs for enumerations
# ------------------------------------------------------------------


def task_type_to_wire_code(task_type: AnyTaskType) -> int:
    if isinstance(task_type, CustomTaskType):
        return _CUSTOM_CODE
    return _TASK_CODES[task_type]


def task_type_from_wire_code(code: int) -> AnyTaskType:
    """Decode a task type; custom types come back with an empty name."""
    if code == _CUSTOM_CODE:
        return CustomTaskType("")
    try:
        return _TASKS_BY_CODE[code]
    except KeyError:
        raise WireError(f"Unknown task type: {code}") from None


def proof_scheme_to_wire_code(scheme: ProofScheme) -> int:
    return int(scheme)


def proof_scheme_from_wire_code(code: int) -> ProofScheme:
    try:
        return ProofScheme(code)
    except ValueError:
        raise WireError(f"Unknown proof scheme: {code}") from None


# ------------------------------------------------------------------
# Byte-level encoding: little-endian fixed integers, u64 length prefixes,
# one-byte option tags, fixed arrays written raw.
# ------------------------------------------------------------------


class _Writer:
    def __init__(self):
        self._parts: list[bytes] = []

    def uint(self, value: int, size: int) -> None:
        self._parts.append(int(value).to_bytes(size, "little"))

    def fixed(self, data: bytes, size: int) -> None:
        if len(data) != size:
            raise WireError(f"expected {size} bytes, got {len(data)}")
        self._parts.append(bytes(data))

    def var_bytes(self, data: bytes) -> None:
        self.uint(len(data), 8)
        self._parts.append(bytes(data))

    def string(self, text: str) -> None:
        self.var_bytes(text.encode("utf-8"))

    def option(self, value: Optional[_T], write: Callable[[_T], None]) -> None:
        if value is None:
            self.uint(0, 1)
        else:
            self.uint(1, 1)
            write(value)

    def getvalue(self) -> bytes:
        return b"".join(self._parts)


class _Reader:
    def __init__(self, data: bytes):
        self._data = bytes(data)
        self._pos = 0

    def take(self, size: int) -> bytes:
        end = self._pos + size
        if end > len(self._data):
            raise _deserialization_failed("unexpected end of input")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def uint(self, size: int) -> int:
        return int.from_bytes(self.take(size), "little")

    def var_bytes(self) -> bytes:
        return self.take(self.uint(8))

    def string(self) -> str:
        try:
            return self.var_bytes().decode("utf-8")
        except UnicodeDecodeError as exc:
            raise _deserialization_failed(str(exc)) from None

    def option(self, read: Callable[[], _T]) -> Optional[_T]:
        tag = self.uint(1)
        if tag == 0:
            return None
        if tag == 1:
            return read()
        raise _deserialization_failed(f"invalid option tag: {tag}")

    def sequence(self, read: Callable[[], _T]) -> list[_T]:
        return [read() for _ in range(self.uint(8))]


# ------------------------------------------------------------------
# Compute task and solution
# ------------------------------------------------------------------


@dataclass
class ComputeTaskWire:
    task_id: bytes
    task_type: int
    custom_name: Optional[str]
    input_data: bytes
    reward: int
    deadline: int
    verification_key: bytes
    issuer: bytes
    total_combinations: int
    chunk_size: int

    @classmethod
    def from_core(cls, task: ComputeTask) -> "ComputeTaskWire":
        custom = task.task_type.name if isinstance(task.task_type, CustomTaskType) else None
        return cls(
            task_id=bytes(task.task_id),
            task_type=task_type_to_wire_code(task.task_type),
            custom_name=custom,
            input_data=bytes(task.input_data),
            reward=task.reward,
            deadline=task.deadline,
            verification_key=bytes(task.verification_key),
            issuer=bytes(task.issuer),
            total_combinations=task.total_combinations,
            chunk_size=task.chunk_size,
        )

    def to_core(self) -> ComputeTask:
        return ComputeTask(
            task_id=bytes(self.task_id),
            task_type=task_type_from_wire_code(self.task_type),
            input_data=bytes(self.input_data),
            reward=self.reward,
            deadline=self.deadline,
            verification_key=bytes(self.verification_key),
            issuer=bytes(self.issuer),
            total_combinations=self.total_combinations,
            chunk_size=self.chunk_size,
        )

    def _write(self, w: _Writer) -> None:
        w.fixed(self.task_id, 32)
        w.uint(self.task_type, 1)
        w.option(self.custom_name, w.string)
        w.var_bytes(self.input_data)
        w.uint(self.reward, 8)
        w.uint(self.deadline, 8)
        w.fixed(self.verification_key, 32)
        w.fixed(self.issuer, 32)
        w.uint(self.total_combinations, 8)
        w.uint(self.chunk_size, 8)

    @classmethod
    def _read(cls, r: _Reader) -> "ComputeTaskWire":
        return cls(
            task_id=r.take(32),
            task_type=r.uint(1),
            custom_name=r.option(r.string),
            input_data=r.var_bytes(),
            reward=r.uint(8),
            deadline=r.uint(8),
            verification_key=r.take(32),
            issuer=r.take(32),
            total_combinations=r.uint(8),
            chunk_size=r.uint(8),
        )


@dataclass
class BlockSolutionWire:
    task: ComputeTaskWire
    solution: bytes
    zk_proof: bytes
    block_height: int
    miner_address: bytes
    worker_range_start: Optional[int] = None
    worker_range_end: Optional[int] = None
    pool_id: Optional[bytes] = None

    @classmethod
    def from_core(cls, solution: BlockSolution) -> "BlockSolutionWire":
        worker_range = solution.worker_range
        return cls(
            task=ComputeTaskWire.from_core(solution.task),
            solution=bytes(solution.solution),
            zk_proof=bytes(solution.zk_proof),
            block_height=solution.block_height,
            miner_address=bytes(solution.miner_address),
            worker_range_start=worker_range[0] if worker_range is not None else None,
            worker_range_end=worker_range[1] if worker_range is not None else None,
            pool_id=bytes(solution.pool_id) if solution.pool_id is not None else None,
        )

    def to_core(self) -> BlockSolution:
        """A worker range survives only when both of its ends are present."""
        if self.worker_range_start is not None and self.worker_range_end is not None:
            worker_range = (self.worker_range_start, self.worker_range_end)
        else:
            worker_range = None
        return BlockSolution(
            task=self.task.to_core(),
            solution=bytes(self.solution),
            block_height=self.block_height,
            miner_address=bytes(self.miner_address),
            zk_proof=bytes(self.zk_proof),
            worker_range=worker_range,
            pool_id=bytes(self.pool_id) if self.pool_id is not None else None,
        )

    def _write(self, w: _Writer) -> None:
        self.task._write(w)
        w.var_bytes(self.solution)
        w.var_bytes(self.zk_proof)
        w.uint(self.block_height, 8)
        w.fixed(self.miner_address, 32)
        w.option(self.worker_range_start, lambda v: w.uint(v, 8))
        w.option(self.worker_range_end, lambda v: w.uint(v, 8))
        w.option(self.pool_id, lambda v: w.fixed(v, 32))

    @classmethod
    def _read(cls, r: _Reader) -> "BlockSolutionWire":
        return cls(
            task=ComputeTaskWire._read(r),
            solution=r.var_bytes(),
            zk_proof=r.var_bytes(),
            block_height=r.uint(8),
            miner_address=r.take(32),
            worker_range_start=r.option(lambda: r.uint(8)),
            worker_range_end=r.option(lambda: r.uint(8)),
            pool_id=r.option(lambda: r.take(32)),
        )


# ------------------------------------------------------------------
# Transactions
# ------------------------------------------------------------------


@dataclass
class TxInputWire:
    tx_hash: bytes
    output_index: int
    nullifier: bytes
    public_key: bytes
    signature: bytes
    signed_hash: bytes
    nonce: int

    @classmethod
    def from_core(cls, tx_input: TxInput) -> "TxInputWire":
        _check_signature(tx_input.signature)
        return cls(
            tx_hash=bytes(tx_input.tx_hash),
            output_index=tx_input.output_index,
            nullifier=bytes(tx_input.nullifier),
            public_key=bytes(tx_input.public_key),
            signature=bytes(tx_input.signature),
            signed_hash=bytes(tx_input.signed_hash),
            nonce=tx_input.nonce,
        )

    def to_core(self) -> TxInput:
        _check_signature(self.signature)
        return TxInput(
            tx_hash=bytes(self.tx_hash),
            output_index=self.output_index,
            nullifier=bytes(self.nullifier),
            public_key=_public_key(self.public_key),
            signature=bytes(self.signature),
            signed_hash=bytes(self.signed_hash),
            nonce=self.nonce,
        )

    def _write(self, w: _Writer) -> None:
        w.fixed(self.tx_hash, 32)
        w.uint(self.output_index, 4)
        w.fixed(self.nullifier, 32)
        w.fixed(self.public_key, 32)
        w.var_bytes(self.signature)
        w.fixed(self.signed_hash, 32)
        w.uint(self.nonce, 8)

    @classmethod
    def _read(cls, r: _Reader) -> "TxInputWire":
        return cls(
            tx_hash=r.take(32),
            output_index=r.uint(4),
            nullifier=r.take(32),
            public_key=r.take(32),
            signature=r.var_bytes(),
            signed_hash=r.take(32),
            nonce=r.uint(8),
        )


@dataclass
class TxOutputWire:
    amount: int
    owner: bytes
    amount_commitment_bytes: bytes
    tag_commitment_bytes: bytes
    nullifier: bytes
    serial: int
    zk_proof_data: bytes
    zk_proof_scheme: int
    zk_proof_version: int
    tx_hash: bytes
    view_key_public: bytes
    encrypted_amount: bytes
    auth_tag: bytes
    restriction_level: int
    output_index: int

    @classmethod
    def from_core(cls, output: TxOutput) -> "TxOutputWire":
        """Commitments are not carried on the wire; their slots hold zeros."""
        return cls(
            amount=output.amount,
            owner=bytes(output.owner),
            amount_commitment_bytes=ZERO_HASH,
            tag_commitment_bytes=ZERO_HASH,
            nullifier=bytes(output.nullifier),
            serial=output.serial,
            zk_proof_data=bytes(output.zk_proof.data),
            zk_proof_scheme=proof_scheme_to_wire_code(output.zk_proof.scheme),
            zk_proof_version=output.zk_proof.version,
            tx_hash=bytes(output.tx_hash),
            view_key_public=bytes(output.view_key_public),
            encrypted_amount=bytes(output.encrypted_amount),
            auth_tag=bytes(output.auth_tag),
            restriction_level=output.restriction_level,
            output_index=output.output_index,
        )

    def to_core(self) -> TxOutput:
        return TxOutput(
            owner=_public_key(self.owner),
            amount=self.amount,
            amount_commitment=ZERO_HASH,
            tag_commitment=ZERO_HASH,
            nullifier=bytes(self.nullifier),
            serial=self.serial,
            zk_proof=ZkProof(
                proof_scheme_from_wire_code(self.zk_proof_scheme),
                self.zk_proof_version,
                bytes(self.zk_proof_data),
            ),
            tx_hash=bytes(self.tx_hash),
            restriction_level=self.restriction_level,
            output_index=self.output_index,
            view_key_public=bytes(self.view_key_public),
            encrypted_amount=bytes(self.encrypted_amount),
            auth_tag=bytes(self.auth_tag),
        )

    def _write(self, w: _Writer) -> None:
        w.uint(self.amount, 8)
        w.fixed(self.owner, 32)
        w.fixed(self.amount_commitment_bytes, 32)
        w.fixed(self.tag_commitment_bytes, 32)
        w.fixed(self.nullifier, 32)
        w.uint(self.serial, 8)
        w.var_bytes(self.zk_proof_data)
        w.uint(self.zk_proof_scheme, 2)
        w.uint(self.zk_proof_version, 2)
        w.fixed(self.tx_hash, 32)
        w.fixed(self.view_key_public, 32)
        w.fixed(self.encrypted_amount, 8)
        w.fixed(self.auth_tag, 8)
        w.uint(self.restriction_level, 8)
        w.uint(self.output_index, 4)

    @classmethod
    def _read(cls, r: _Reader) -> "TxOutputWire":
        return cls(
            amount=r.uint(8),
            owner=r.take(32),
            amount_commitment_bytes=r.take(32),
            tag_commitment_bytes=r.take(32),
            nullifier=r.take(32),
            serial=r.uint(8),
            zk_proof_data=r.var_bytes(),
            zk_proof_scheme=r.uint(2),
            zk_proof_version=r.uint(2),
            tx_hash=r.take(32),
            view_key_public=r.take(32),
            encrypted_amount=r.take(8),
            auth_tag=r.take(8),
            restriction_level=r.uint(8),
            output_index=r.uint(4),
        )


@dataclass
class TxWire:
    version: int
    chain_id: int
    fee: int
    tx_hash: bytes
    poh_tick: int
    locktime: int
    inputs: list[TxInputWire] = field(default_factory=list)
    outputs: list[TxOutputWire] = field(default_factory=list)
    wire_version: int = WIRE_VERSION

    @classmethod
    def from_core(cls, tx: Transaction) -> "TxWire":
        return cls(
            version=tx.version,
            chain_id=tx.chain_id,
            fee=tx.fee,
            tx_hash=bytes(tx.tx_hash),
            poh_tick=tx.poh_tick,
            locktime=tx.locktime,
            inputs=[TxInputWire.from_core(i) for i in tx.inputs],
            outputs=[TxOutputWire.from_core(o) for o in tx.outputs],
        )

    def to_core(self) -> Transaction:
        """Rebuild the transaction, keeping the stored hash as it is."""
        return Transaction(
            inputs=[i.to_core() for i in self.inputs],
            outputs=[o.to_core() for o in self.outputs],
            fee=self.fee,
            version=self.version,
            chain_id=self.chain_id,
            poh_tick=self.poh_tick,
            locktime=self.locktime,
            tx_hash=bytes(self.tx_hash),
        )

    def _write(self, w: _Writer) -> None:
        w.uint(self.wire_version, 2)
        w.uint(self.version, 4)
        w.uint(self.chain_id, 4)
        w.uint(len(self.inputs), 8)
        for tx_input in self.inputs:
            tx_input._write(w)
        w.uint(len(self.outputs), 8)
        for output in self.outputs:
            output._write(w)
        w.uint(self.fee, 8)
        w.fixed(self.tx_hash, 32)
        w.uint(self.poh_tick, 8)
        w.uint(self.locktime, 8)

    @classmethod
    def _read(cls, r: _Reader) -> "TxWire":
        wire_version = r.uint(2)
        version = r.uint(4)
        chain_id = r.uint(4)
        inputs = r.sequence(lambda: TxInputWire._read(r))
        outputs = r.sequence(lambda: TxOutputWire._read(r))
        return cls(
            version=version,
            chain_id=chain_id,
            inputs=inputs,
            outputs=outputs,
            fee=r.uint(8),
            tx_hash=r.take(32),
            poh_tick=r.uint(8),
            locktime=r.uint(8),
            wire_version=wire_version,
        )


# ------------------------------------------------------------------
# Blocks
# ------------------------------------------------------------------


@dataclass
class BlockWire:
    version: int
    block_hash: bytes
    prev_hash: bytes
    height: int
    poh_tick_start: int
    poh_tick_end: int
    state_root: bytes
    total_supply: int
    transactions: list[TxWire] = field(default_factory=list)
    useful_solution: Optional[BlockSolutionWire] = None
    wire_version: int = WIRE_VERSION

    @classmethod
    def from_core(cls, block: Block) -> "BlockWire":
        solution = block.useful_solution
        return cls(
            version=block.version,
            block_hash=bytes(block.block_hash),
            prev_hash=bytes(block.prev_hash),
            height=block.height,
            poh_tick_start=block.poh_tick_start,
            poh_tick_end=block.poh_tick_end,
            state_root=bytes(block.state_root),
            total_supply=block.total_supply,
            transactions=[TxWire.from_core(tx) for tx in block.transactions],
            useful_solution=BlockSolutionWire.from_core(solution) if solution is not None else None,
        )

    def to_core(self) -> Block:
        """Rebuild the block, keeping the stored hash as it is."""
        solution = self.useful_solution.to_core() if self.useful_solution is not None else None
        return Block(
            prev_hash=bytes(self.prev_hash),
            block_hash=bytes(self.block_hash),
            height=self.height,
            poh_tick_start=self.poh_tick_start,
            poh_tick_end=self.poh_tick_end,
            transactions=[tx.to_core() for tx in self.transactions],
            state_root=bytes(self.state_root),
            total_supply=self.total_supply,
            useful_solution=solution,
            version=self.version,
        )

    def encode(self) -> bytes:
        """Serialise to bytes; the first two bytes are the wire version."""
        w = _Writer()
        w.uint(self.wire_version, 2)
        w.uint(self.version, 1)
        w.fixed(self.block_hash, 32)
        w.fixed(self.prev_hash, 32)
        w.uint(self.height, 8)
        w.uint(self.poh_tick_start, 8)
        w.uint(self.poh_tick_end, 8)
        w.uint(len(self.transactions), 8)
        for tx in self.transactions:
            tx._write(w)
        w.fixed(self.state_root, 32)
        w.uint(self.total_supply, 8)
        w.option(self.useful_solution, lambda s: s._write(w))
        return w.getvalue()

    @classmethod
    def decode(cls, data: bytes) -> "BlockWire":
        r = _Reader(data)
        wire_version = r.uint(2)
        version = r.uint(1)
        block_hash = r.take(32)
        prev_hash = r.take(32)
        height = r.uint(8)
        poh_tick_start = r.uint(8)
        poh_tick_end = r.uint(8)
        transactions = r.sequence(lambda: TxWire._read(r))
        return cls(
            version=version,
            block_hash=block_hash,
            prev_hash=prev_hash,
            height=height,
            poh_tick_start=poh_tick_start,
            poh_tick_end=poh_tick_end,
            transactions=transactions,
            state_root=r.take(32),
            total_supply=r.uint(8),
            useful_solution=r.option(lambda: BlockSolutionWire._read(r)),
            wire_version=wire_version,
        )


# ------------------------------------------------------------------
# Version handling
# ------------------------------------------------------------------


def detect_wire_version(data: bytes) -> Optional[int]:
    """The wire version in the first two bytes, or None if there are fewer."""
    if len(data) < 2:
        return None
    return int.from_bytes(data[:2], "little")


def migrate_block(data: bytes) -> BlockWire:
    """Decode stored block bytes of any supported wire version."""
    version = detect_wire_version(data)
    if version is None:
        raise _deserialization_failed("too short")
    if version == WIRE_VERSION:
        return BlockWire.decode(data)
    raise _deserialization_failed(f"unsupported wire version: {version}")