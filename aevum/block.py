"""Blocks of transactions anchored to a Proof-of-History window."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from aevum.compute import BlockSolution
from aevum.hashing import ZERO_HASH, Blake3
from aevum.transaction import Transaction

_BLOCK_DOMAIN = b"AEVUM_BLOCK_V1"


def _le64(value: int) -> bytes:
    return value.to_bytes(8, "little")


def _balance_ok(tx: Transaction) -> bool:
    """Coinbase always passes; other transactions must create some value."""
    if not tx.inputs:
        return True
    return sum(output.amount for output in tx.outputs) != 0


@dataclass
class Block:
    prev_hash: bytes
    block_hash: bytes
    height: int
    poh_tick_start: int
    poh_tick_end: int
    transactions: list[Transaction] = field(default_factory=list)
    state_root: bytes = ZERO_HASH
    total_supply: int = 0
    useful_solution: Optional[BlockSolution] = None
    version: int = 0x01

    CURRENT_VERSION = 0x01

    @classmethod
    def create(
        cls,
        prev_hash,
        height,
        poh_tick_start,
        poh_tick_end,
        transactions,
        state_root,
        total_supply,
        useful_solution=None,
    ) -> "Block":
        """Build a block and fill in its hash."""
        block = cls(
            prev_hash=prev_hash,
            block_hash=ZERO_HASH,
            height=height,
            poh_tick_start=poh_tick_start,
            poh_tick_end=poh_tick_end,
            transactions=list(transactions),
            state_root=state_root,
            total_supply=total_supply,
            useful_solution=useful_solution,
            version=cls.CURRENT_VERSION,
        )
        block.block_hash = block.compute_hash()
        return block

    @classmethod
    def genesis(cls, transactions) -> "Block":
        return cls.create(ZERO_HASH, 0, 0, 0, transactions, ZERO_HASH, 0, None)

    def is_valid_after(self, prev: "Block") -> bool:
        return (
            self.prev_hash == prev.block_hash
            and self.height == prev.height + 1
            and self.poh_tick_start >= prev.poh_tick_end
        )

    def is_internal_valid(self) -> bool:
        """Structural checks that need no chain state."""
        if not self.transactions:
            return False
        if self.poh_tick_end < self.poh_tick_start:
            return False
        for tx in self.transactions:
            if not _balance_ok(tx):
                return False
            if not tx.inputs and not self.poh_tick_start <= tx.poh_tick <= self.poh_tick_end:
                return False
        return True

    def is_genesis(self) -> bool:
        return self.height == 0 and self.prev_hash == ZERO_HASH

    def compute_hash(self) -> bytes:
        hasher = Blake3()
        hasher.update(_BLOCK_DOMAIN)
        hasher.update(bytes([self.version]))
        hasher.update(self.prev_hash)
        hasher.update(_le64(self.height))
        hasher.update(_le64(self.poh_tick_start))
        hasher.update(_le64(self.poh_tick_end))
        hasher.update(self.state_root)
        hasher.update(_le64(self.total_supply))
        for tx in self.transactions:
            hasher.update(tx.tx_hash)
        if self.useful_solution is not None:
            hasher.update(self.useful_solution.solution)
        return hasher.digest()