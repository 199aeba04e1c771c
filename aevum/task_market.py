"""Marketplace where customers place paid compute orders and miners solve them."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from aevum.compute import AnyTaskType, ComputeTask
from aevum.escrow import EscrowContract, EscrowStatus
from aevum.hashing import blake3_hash

logger = logging.getLogger(__name__)

_ORDER_DOMAIN = b"AEVUM_ORDER_V2"
_SOLUTION_DOMAIN = b"AEVUM_SOLUTION_V2"
_DEFAULT_MAX_ORDERS = 100_000


def _le64(value: int) -> bytes:
    return value.to_bytes(8, "little")


def _solution_id(order_id: bytes, chunk_start: int, chunk_end: int, solution: bytes) -> bytes:
    return blake3_hash(_SOLUTION_DOMAIN, order_id, _le64(chunk_start), _le64(chunk_end), solution)


class MarketError(Exception):
    """Raised when an order operation is not allowed."""


class OrderStatus(enum.Enum):
    PENDING = "pending"
    FUNDED = "funded"
    IN_PROGRESS = "in_progress"
    PROPOSED = "proposed"
    SOLVED = "solved"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


@dataclass
class TaskOrder:
    order_id: bytes
    customer: bytes
    task_type: AnyTaskType
    input_data_hash: bytes
    reward: int
    total_combinations: int
    deadline_blocks: int
    status: OrderStatus
    created_at: int
    assigned_miner: Optional[bytes]
    nonce: int


@dataclass
class TaskSolution:
    order_id: bytes
    chunk_start: int
    chunk_end: int
    solution: bytes
    solver: bytes
    block_height: int
    zk_proof: bytes


class TaskMarket:
    """Orders, proposed solutions and escrows, with a fee taken on placement."""

    def __init__(self, fee_percent: int):
        self.fee_percent = fee_percent
        self.pool_fees = 0
        self.max_orders = _DEFAULT_MAX_ORDERS
        self.orders: dict[bytes, TaskOrder] = {}
        self.solutions: dict[bytes, list[TaskSolution]] = {}
        self.escrows: dict[bytes, EscrowContract] = {}

    def _order(self, order_id: bytes) -> TaskOrder:
        order = self.orders.get(order_id)
        if order is None:
            raise MarketError("Order not found")
        return order

    def place_order(self, customer: bytes, task: ComputeTask, current_height: int, nonce: int) -> bytes:
        """Create a pending order for a task and return its id."""
        input_hash = blake3_hash(task.input_data)
        order_id = blake3_hash(
            _ORDER_DOMAIN,
            customer,
            input_hash,
            _le64(task.reward),
            _le64(current_height),
            _le64(nonce),
        )
        fee = task.reward * self.fee_percent // 10_000
        net_reward = task.reward - fee
        self.pool_fees += fee

        order = TaskOrder(
            order_id=order_id,
            customer=customer,
            task_type=task.task_type,
            input_data_hash=input_hash,
            reward=net_reward,
            total_combinations=task.total_combinations,
            deadline_blocks=current_height + task.deadline,
            status=OrderStatus.PENDING,
            created_at=current_height,
            assigned_miner=None,
            nonce=nonce,
        )
        logger.info(
            "Order placed: id=%s, reward=%d, fee=%d, total_comb=%d, pool_fees=%d",
            order_id.hex(), net_reward, fee, task.total_combinations, self.pool_fees,
        )

        if len(self.orders) >= self.max_orders:
            finished = (OrderStatus.EXPIRED, OrderStatus.CANCELLED)
            stale = [oid for oid, o in self.orders.items() if o.status in finished]
            for oid in stale[: self.max_orders // 10]:
                del self.orders[oid]
                self.solutions.pop(oid, None)

        self.orders[order_id] = order
        self.escrows[order_id] = EscrowContract.create(
            customer, task.reward, order_id, current_height, task.deadline
        )
        return order_id

    def fund_order(self, order_id: bytes) -> None:
        order = self._order(order_id)
        if order.status is not OrderStatus.PENDING:
            raise MarketError("Order must be Pending to fund")
        order.status = OrderStatus.FUNDED
        logger.info("Order funded: %s", order_id.hex())

    def accept_order(self, order_id: bytes, miner: bytes) -> None:
        order = self._order(order_id)
        if order.status not in (OrderStatus.FUNDED, OrderStatus.PENDING):
            raise MarketError("Order not available")
        order.status = OrderStatus.IN_PROGRESS
        order.assigned_miner = miner
        logger.info("Order accepted by miner: %s", miner.hex())

    def propose_solution(
        self, order_id, chunk_start, chunk_end, solution, solver, block_height, zk_proof
    ) -> bytes:
        """Attach a solution to an in-progress order and return the solution id."""
        order = self._order(order_id)
        if order.status is not OrderStatus.IN_PROGRESS:
            raise MarketError("Order not in progress")
        if block_height > order.deadline_blocks:
            order.status = OrderStatus.EXPIRED
            raise MarketError("Deadline passed")
        solution = bytes(solution)
        solution_id = _solution_id(order_id, chunk_start, chunk_end, solution)
        self.solutions.setdefault(order_id, []).append(
            TaskSolution(
                order_id=order_id,
                chunk_start=chunk_start,
                chunk_end=chunk_end,
                solution=solution,
                solver=solver,
                block_height=block_height,
                zk_proof=bytes(zk_proof),
            )
        )
        order.status = OrderStatus.PROPOSED
        logger.info("Solution proposed: order=%s", order_id.hex())
        return solution_id

    def verify_solution(self, order_id: bytes, solution_id: bytes) -> None:
        """Mark a proposed order solved if the given solution was proposed for it."""
        order = self._order(order_id)
        if order.status is not OrderStatus.PROPOSED:
            raise MarketError("Order not in Proposed state")
        solutions = self.solutions.get(order_id)
        if solutions is None:
            raise MarketError("No solutions for order")
        if not any(
            _solution_id(order_id, s.chunk_start, s.chunk_end, s.solution) == solution_id
            for s in solutions
        ):
            raise MarketError("Solution not found")
        order.status = OrderStatus.SOLVED
        escrow = self.escrows.get(order_id)
        if escrow is not None and escrow.status in (EscrowStatus.FUNDED, EscrowStatus.IN_PROGRESS):
            payouts = escrow.distribute_reward()
            logger.info(
                "Escrow payout: %d recipients, total reward: %d", len(payouts), escrow.total_reward
            )
            for recipient, amount in payouts:
                logger.info("  Payout: %s -> %d", recipient.hex(), amount)
        logger.info("Solution verified, order solved: %s", order_id.hex())

    def cancel_order(self, order_id: bytes) -> None:
        order = self._order(order_id)
        if order.status is OrderStatus.SOLVED:
            raise MarketError("Already solved")
        order.status = OrderStatus.CANCELLED
        logger.info("Order cancelled: %s", order_id.hex())

    def available_orders(self, current_height: int) -> list[TaskOrder]:
        """Pending or funded orders whose deadline is still ahead."""
        return [
            o
            for o in self.orders.values()
            if o.status in (OrderStatus.PENDING, OrderStatus.FUNDED)
            and o.deadline_blocks > current_height
        ]

    def best_order(self, current_height: int) -> Optional[TaskOrder]:
        """The available order paying most per combination; the last one wins ties."""
        best = None
        best_ratio = 0.0
        for order in self.available_orders(current_height):
            ratio = order.reward / max(order.total_combinations, 1)
            if best is None or ratio >= best_ratio:
                best, best_ratio = order, ratio
        return best

    def order_count(self) -> int:
        return len(self.orders)

    def solution_count(self) -> int:
        return len(self.solutions)