"""Proofs of useful work bound to a Proof-of-History window."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from aevum.hashing import blake3_hash
from aevum.poh import PohGenerator

_DOMAIN = b"AEVUM_POUPR_PROOF_V1"


def _le64(value: int) -> bytes:
    return value.to_bytes(8, "little")


def _le16(value: int) -> bytes:
    return value.to_bytes(2, "little")


@dataclass(frozen=True)
class ZkProofWork:
    tx_hash: bytes
    input_count: int
    output_count: int


@dataclass(frozen=True)
class StorageShardWork:
    shard_id: int
    size_bytes: int
    poh_tick_start: int


@dataclass(frozen=True)
class AiInferenceWork:
    model_hash: bytes
    input_hash: bytes


UsefulWork = Union[ZkProofWork, StorageShardWork, AiInferenceWork]


def _work_bytes(work: UsefulWork) -> bytes:
    if isinstance(work, ZkProofWork):
        return b"\x00" + work.tx_hash + _le16(work.input_count) + _le16(work.output_count)
    if isinstance(work, StorageShardWork):
        return (
            b"\x01"
            + _le64(work.shard_id)
            + _le64(work.size_bytes)
            + _le64(work.poh_tick_start)
        )
    if isinstance(work, AiInferenceWork):
        return b"\x02" + work.model_hash + work.input_hash
    raise TypeError(f"unknown work type: {type(work).__name__}")


def _compute_hash(work: UsefulWork, poh_tick_start: int, poh_tick_end: int) -> bytes:
    return blake3_hash(_DOMAIN, _le64(poh_tick_start), _le64(poh_tick_end), _work_bytes(work))


@dataclass(frozen=True)
class PouprProof:
    work: UsefulWork
    poh_tick_start: int
    poh_tick_end: int
    proof_hash: bytes

    @classmethod
    def _build(cls, work: UsefulWork, start: int, end: int) -> "PouprProof":
        return cls(work, start, end, _compute_hash(work, start, end))

    @classmethod
    def new_zk_proof(cls, tx_hash, input_count, output_count, poh_tick_start, poh_tick_end):
        return cls._build(
            ZkProofWork(tx_hash, input_count, output_count), poh_tick_start, poh_tick_end
        )

    @classmethod
    def new_storage(cls, shard_id, size_bytes, poh_tick_start, poh_tick_end):
        return cls._build(
            StorageShardWork(shard_id, size_bytes, poh_tick_start), poh_tick_start, poh_tick_end
        )

    @classmethod
    def new_ai_inference(cls, model_hash, input_hash, poh_tick_start, poh_tick_end):
        return cls._build(AiInferenceWork(model_hash, input_hash), poh_tick_start, poh_tick_end)

    def verify_time_bounds(self, poh: PohGenerator) -> bool:
        """True when the window is ordered and already reached by the PoH clock."""
        if self.poh_tick_end < self.poh_tick_start:
            return False
        return self.poh_tick_end <= poh.current_tick_number

    def verify_proof_hash(self) -> bool:
        return _compute_hash(self.work, self.poh_tick_start, self.poh_tick_end) == self.proof_hash