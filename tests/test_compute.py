import pytest

from aevum.compute import (
    BlockSolution,
    ComputeEngine,
    ComputeTask,
    CustomTaskType,
    SubTask,
    TaskType,
    solution_key,
)
from aevum.hashing import ZERO_HASH, blake3_hash


def dummy_task() -> ComputeTask:
    return ComputeTask(
        task_id=ZERO_HASH,
        task_type=TaskType.DRUG_DISCOVERY,
        input_data=bytes([1, 2, 3]),
        reward=1000,
        deadline=0,
        verification_key=ZERO_HASH,
        issuer=bytes(32),
        total_combinations=1_000_000,
        chunk_size=1000,
    )


def test_task_chunking():
    assert dummy_task().get_chunk(0, 10) == (0, 100_000)


def test_subtask_creation():
    engine = ComputeEngine()
    st = engine.create_subtask(dummy_task(), 0, 100)
    assert st.reward_share == 10
    assert st.range_start == 0
    assert len(engine.sub_tasks) == 1


def test_try_solve_range():
    engine = ComputeEngine()
    task = dummy_task()
    task.total_combinations = 100
    task.verification_key = solution_key((42).to_bytes(8, "little"))
    assert engine.try_solve_range(task, 0, 100) == (42).to_bytes(8, "little")


def test_try_solve_range_misses_outside_range():
    engine = ComputeEngine()
    task = dummy_task()
    task.verification_key = solution_key((42).to_bytes(8, "little"))
    assert engine.try_solve_range(task, 0, 42) is None


@pytest.mark.parametrize("index,total", [(0, 0), (10, 10), (11, 10)])
def test_get_chunk_invalid_worker(index, total):
    assert dummy_task().get_chunk(index, total) is None


def test_last_worker_takes_remainder():
    task = dummy_task()
    task.total_combinations = 1003
    assert task.get_chunk(2, 3) == (668, 1003)
    assert task.get_chunk(1, 3) == (334, 668)


def test_create_subtask_invalid_worker_is_none():
    engine = ComputeEngine()
    assert engine.create_subtask(dummy_task(), 5, 5) is None
    assert engine.sub_tasks == {}


def test_create_sets_chunk_size_and_derived_id():
    a = ComputeTask.create(TaskType.AI_TRAINING, b"data", 100, 5, ZERO_HASH, bytes(32), 50_000)
    b = ComputeTask.create(TaskType.AI_TRAINING, b"data", 100, 5, ZERO_HASH, bytes(32), 50_000)
    c = ComputeTask.create(TaskType.AI_TRAINING, b"data", 101, 5, ZERO_HASH, bytes(32), 50_000)
    assert a.chunk_size == 50
    assert a.task_id == b.task_id
    assert a.task_id != c.task_id
    assert len(a.task_id) == 32


def test_input_data_hash():
    assert dummy_task().input_data_hash() == blake3_hash(bytes([1, 2, 3]))


def test_block_solution_verify():
    sol = bytes(8)
    task = dummy_task()
    task.verification_key = solution_key(sol)
    assert BlockSolution(task, sol, 100, bytes(32)).verify() is True
    assert BlockSolution(task, bytes([1]), 100, bytes(32)).verify() is False


def test_empty_solution_never_verifies():
    task = dummy_task()
    task.verification_key = solution_key(b"")
    assert BlockSolution(task, b"", 1, bytes(32)).verify() is False


def test_block_solution_defaults():
    sol = BlockSolution(dummy_task(), b"x", 3, bytes(32))
    assert sol.zk_proof == b""
    assert sol.worker_range is None
    assert sol.pool_id is None


def test_highest_reward_task():
    engine = ComputeEngine()
    assert engine.highest_reward_task() is None
    low = dummy_task()
    low.reward = 5
    high = dummy_task()
    high.reward = 50
    engine.add_task(low)
    engine.add_task(high)
    assert engine.highest_reward_task() is high


def test_highest_reward_tie_picks_last():
    engine = ComputeEngine()
    first, second = dummy_task(), dummy_task()
    second.input_data = b"other"
    engine.add_task(first)
    engine.add_task(second)
    assert engine.highest_reward_task() is second


def test_custom_task_type_equality():
    assert CustomTaskType("x") == CustomTaskType("x")
    assert CustomTaskType("x") != CustomTaskType("y")


def test_subtask_fields():
    st = SubTask(ZERO_HASH, 1, 2, None, 3)
    assert (st.range_start, st.range_end, st.reward_share, st.nonce) == (1, 2, 3, 0)