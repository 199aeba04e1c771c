"""Block-level checks of useful-work solutions and transactions."""

from __future__ import annotations

from aevum.block import Block
from aevum.compute import BlockSolution
from aevum.jt_utxo import ZkProof
from aevum.transaction import Transaction


class VerificationError(Exception):
    """Raised when a block fails full verification."""


def verify_useful_solution(solution: BlockSolution) -> bool:
    """The solution must match its task and arrive before any deadline."""
    if not solution.verify():
        return False
    deadline = solution.task.deadline
    return not (deadline > 0 and solution.block_height > deadline)


def verify_transaction_zk(tx: Transaction) -> bool:
    """Every output must carry a proof record; proof contents are not checked here."""
    return all(isinstance(output.zk_proof, ZkProof) for output in tx.outputs)


def verify_block_full(block: Block) -> None:
    if block.useful_solution is not None and not verify_useful_solution(block.useful_solution):
        raise VerificationError("Invalid useful solution")
    if not all(verify_transaction_zk(tx) for tx in block.transactions):
        raise VerificationError("Invalid transaction zk proof")


def score_solution(solution: BlockSolution) -> float:
    """Reward per block of height for a valid solution, otherwise zero."""
    if solution.verify():
        return solution.task.reward / (solution.block_height + 1.0)
    return 0.0