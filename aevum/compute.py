"""Useful-work compute tasks, solutions and a simple CPU solver."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional, Union

from aevum.hashing import Blake3, blake3_hash

_SOLUTION_DOMAIN = b"AEVUM_SOLUTION_V2"


def _le64(value: int) -> bytes:
    return value.to_bytes(8, "little")


class TaskType(enum.Enum):
    DRUG_DISCOVERY = "drug_discovery"
    CLIMATE_MODELING = "climate_modeling"
    AI_TRAINING = "ai_training"
    ZK_PROOF_GENERATION = "zk_proof_generation"
    IMAGE_GENERATION = "image_generation"
    VIDEO_GENERATION = "video_generation"
    AUDIO_PROCESSING = "audio_processing"
    MOLECULAR_DOCKING = "molecular_docking"


@dataclass(frozen=True)
class CustomTaskType:
    """A task type outside the built-in catalogue."""

    name: str


AnyTaskType = Union[TaskType, CustomTaskType]


def solution_key(solution: bytes) -> bytes:
    """The verification key that a given solution satisfies."""
    return blake3_hash(_SOLUTION_DOMAIN, solution)


@dataclass
class ComputeTask:
    task_id: bytes
    task_type: AnyTaskType
    input_data: bytes
    reward: int
    deadline: int
    verification_key: bytes
    issuer: bytes
    total_combinations: int
    chunk_size: int

    @classmethod
    def create(
        cls,
        task_type,
        input_data,
        reward,
        deadline,
        verification_key,
        issuer,
        total_combinations,
    ) -> "ComputeTask":
        """Build a task whose id is derived from its contents."""
        task_id = blake3_hash(
            b"AEVUM_COMPUTE_TASK_V2",
            input_data,
            _le64(reward),
            _le64(deadline),
            verification_key,
            issuer,
            _le64(total_combinations),
        )
        return cls(
            task_id=task_id,
            task_type=task_type,
            input_data=bytes(input_data),
            reward=reward,
            deadline=deadline,
            verification_key=verification_key,
            issuer=issuer,
            total_combinations=total_combinations,
            chunk_size=total_combinations // 1000,
        )

    def get_chunk(self, worker_index: int, total_workers: int) -> Optional[tuple[int, int]]:
        """Range of combinations for one worker, or None if the worker does not exist."""
        if total_workers == 0 or worker_index >= total_workers:
            return None
        per_worker = self.total_combinations // total_workers
        start = worker_index * per_worker
        if worker_index == total_workers - 1:
            end = self.total_combinations
        else:
            end = start + per_worker
        return start, end

    def input_data_hash(self) -> bytes:
        return blake3_hash(self.input_data)


@dataclass
class SubTask:
    task_id: bytes
    range_start: int
    range_end: int
    assigned_to: Optional[bytes]
    reward_share: int
    nonce: int = 0


@dataclass
class BlockSolution:
    task: ComputeTask
    solution: bytes
    block_height: int
    miner_address: bytes
    zk_proof: bytes = b""
    worker_range: Optional[tuple[int, int]] = None
    pool_id: Optional[bytes] = None

    def verify(self) -> bool:
        """True when the solution hashes to the task's verification key."""
        if not self.solution:
            return False
        return solution_key(self.solution) == self.task.verification_key


class ComputeEngine:
    """Holds active tasks and searches solution ranges on the CPU."""

    def __init__(self):
        self.active_tasks: list[ComputeTask] = []
        self.sub_tasks: dict[bytes, SubTask] = field(default_factory=dict) if False else {}

    def add_task(self, task: ComputeTask) -> None:
        self.active_tasks.append(task)

    def highest_reward_task(self) -> Optional[ComputeTask]:
        """The task with the largest reward; the last one wins ties."""
        best = None
        for task in self.active_tasks:
            if best is None or task.reward >= best.reward:
                best = task
        return best

    def try_solve_range(self, task: ComputeTask, start: int, end: int) -> Optional[bytes]:
        """Search counters in [start, end) for one matching the verification key."""
        for counter in range(start, end):
            candidate = _le64(counter)
            if solution_key(candidate) == task.verification_key:
                return candidate
        return None

    def create_subtask(
        self, task: ComputeTask, worker_index: int, total_workers: int
    ) -> Optional[SubTask]:
        chunk = task.get_chunk(worker_index, total_workers)
        if chunk is None:
            return None
        start, end = chunk
        hasher = Blake3()
        hasher.update(b"AEVUM_SUBTASK")
        hasher.update(task.task_id)
        hasher.update(_le64(start))
        hasher.update(_le64(end))
        subtask = SubTask(
            task_id=task.task_id,
            range_start=start,
            range_end=end,
            assigned_to=None,
            reward_share=task.reward // total_workers,
        )
        self.sub_tasks[hasher.digest()] = SubTask(**vars(subtask))
        return subtask