"""Proof-of-History tick generator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from aevum.hashing import blake3_hash

_DOMAIN = b"AEVUM_POH_TICK_V1"


def _le64(value: int) -> bytes:
    return value.to_bytes(8, "little")


@dataclass(frozen=True)
class PohTick:
    tick_number: int
    hash: bytes


@dataclass(frozen=True)
class PohSnapshot:
    hash: bytes
    tick_count: int


class PohGenerator:
    """A sequential hash chain; each tick hashes the previous one."""

    def __init__(self, seed: bytes):
        self._hash = blake3_hash(_DOMAIN, b"GENESIS", seed)
        self._tick_count = 0

    @property
    def current_hash(self) -> bytes:
        return self._hash

    @property
    def current_tick_number(self) -> int:
        return self._tick_count

    def tick(self) -> PohTick:
        self._hash = blake3_hash(_DOMAIN, self._hash, _le64(self._tick_count))
        self._tick_count += 1
        return PohTick(self._tick_count, self._hash)

    @staticmethod
    def verify_tick_chain(tick1: PohTick, tick2: PohTick) -> bool:
        """True when tick2 directly follows tick1."""
        if tick2.tick_number != tick1.tick_number + 1:
            return False
        return blake3_hash(_DOMAIN, tick1.hash, _le64(tick1.tick_number)) == tick2.hash

    @staticmethod
    def verify_tick_chain_multi(ticks: Sequence[PohTick]) -> bool:
        return all(
            PohGenerator.verify_tick_chain(a, b) for a, b in zip(ticks, ticks[1:])
        )

    def snapshot(self) -> PohSnapshot:
        return PohSnapshot(self._hash, self._tick_count)

    @classmethod
    def from_snapshot(cls, snapshot: PohSnapshot) -> "PohGenerator":
        generator = cls.__new__(cls)
        generator._hash = snapshot.hash
        generator._tick_count = snapshot.tick_count
        return generator