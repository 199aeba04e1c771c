"""Escrow contracts that pay miners for a compute task."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional

from aevum.hashing import blake3_hash


class EscrowStatus(enum.Enum):
    FUNDED = "funded"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    REFUNDED = "refunded"


@dataclass
class EscrowContract:
    contract_id: bytes
    customer: bytes
    total_reward: int
    task_id: bytes
    created_height: int
    deadline_height: int
    status: EscrowStatus = EscrowStatus.FUNDED
    winner_bonus_percent: int = 200
    pool_fee_percent: int = 100
    miner_shares: list[tuple[bytes, int]] = field(default_factory=list)
    winner: Optional[bytes] = None

    @classmethod
    def create(cls, customer, total_reward, task_id, created_height, deadline_blocks):
        """A funded contract whose id derives from customer, reward and task."""
        contract_id = blake3_hash(customer, total_reward.to_bytes(8, "little"), task_id)
        return cls(
            contract_id=contract_id,
            customer=customer,
            total_reward=total_reward,
            task_id=task_id,
            created_height=created_height,
            deadline_height=created_height + deadline_blocks,
        )

    def _pool_fee(self) -> int:
        return self.total_reward * self.pool_fee_percent // 10_000

    def add_share(self, miner: bytes, shares: int) -> None:
        for index, (key, existing) in enumerate(self.miner_shares):
            if key == miner:
                self.miner_shares[index] = (key, existing + shares)
                return
        self.miner_shares.append((miner, shares))

    def set_winner(self, winner: bytes) -> None:
        self.winner = winner
        self.status = EscrowStatus.COMPLETED

    def distribute_reward(self) -> list[tuple[bytes, int]]:
        """Payouts per miner by share, the winner's bonus, and any remainder to the customer."""
        if not self.miner_shares:
            return []
        remaining = self.total_reward - self._pool_fee()
        winner_bonus = (
            remaining * self.winner_bonus_percent // 10_000 if self.winner is not None else 0
        )
        base = remaining - winner_bonus
        total_shares = sum(shares for _, shares in self.miner_shares)
        if total_shares == 0:
            return []
        payouts = [
            (miner, base * shares // total_shares)
            for miner, shares in self.miner_shares
            if base * shares // total_shares > 0
        ]
        if self.winner is not None and winner_bonus > 0:
            for index, (key, amount) in enumerate(payouts):
                if key == self.winner:
                    payouts[index] = (key, amount + winner_bonus)
                    break
            else:
                payouts.append((self.winner, winner_bonus))
        refund = remaining - sum(amount for _, amount in payouts)
        if refund > 0:
            payouts.append((self.customer, refund))
        return payouts

    def refund(self) -> list[tuple[bytes, int]]:
        """Mark refunded and return the reward, less the pool fee, to the customer."""
        self.status = EscrowStatus.REFUNDED
        return [(self.customer, self.total_reward - self._pool_fee())]