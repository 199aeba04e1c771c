import dataclasses

import pytest

from aevum.block import Block
from aevum.compute import BlockSolution, ComputeTask, TaskType, solution_key
from aevum.hashing import ZERO_HASH
from aevum.transaction import Transaction
from aevum.verifier import (
    VerificationError,
    score_solution,
    verify_block_full,
    verify_transaction_zk,
    verify_useful_solution,
)


def dummy_task(**changes):
    task = ComputeTask(
        task_id=ZERO_HASH,
        task_type=TaskType.DRUG_DISCOVERY,
        input_data=b"\x01\x02\x03",
        reward=100,
        deadline=0,
        verification_key=ZERO_HASH,
        issuer=bytes(32),
        total_combinations=1_000_000,
        chunk_size=1000,
    )
    return dataclasses.replace(task, **changes)


SOL = bytes(8)


def test_verify_valid_solution():
    task = dummy_task(verification_key=solution_key(SOL))
    assert verify_useful_solution(BlockSolution(task, SOL, 100, bytes(32)))


def test_verify_expired_solution():
    task = dummy_task(verification_key=solution_key(SOL), deadline=50)
    assert not verify_useful_solution(BlockSolution(task, SOL, 100, bytes(32)))


def test_verify_wrong_solution():
    task = dummy_task(verification_key=solution_key(SOL))
    assert not verify_useful_solution(BlockSolution(task, b"\x01" * 8, 100, bytes(32)))


def test_score_solution():
    task = dummy_task(reward=500, verification_key=solution_key(SOL))
    assert score_solution(BlockSolution(task, SOL, 10, bytes(32))) > 0.0


def test_score_invalid_solution_is_zero():
    task = dummy_task(reward=500)
    assert score_solution(BlockSolution(task, SOL, 10, bytes(32))) == 0.0


def test_transaction_zk_accepted():
    assert verify_transaction_zk(Transaction()) is True


def test_block_with_invalid_solution_rejected():
    bad = BlockSolution(dummy_task(), SOL, 1, bytes(32))
    block = Block.create(ZERO_HASH, 1, 0, 10, [Transaction()], ZERO_HASH, 0, bad)
    with pytest.raises(VerificationError, match="Invalid useful solution"):
        verify_block_full(block)


def test_block_with_valid_solution_accepted():
    good = BlockSolution(dummy_task(verification_key=solution_key(SOL)), SOL, 1, bytes(32))
    block = Block.create(ZERO_HASH, 1, 0, 10, [Transaction()], ZERO_HASH, 0, good)
    assert verify_block_full(block) is None
    assert block.useful_solution is good