"""Pool of compute tasks split into chunks that miners claim, solve and get verified."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, replace
from typing import Optional, Union

from aevum.compute import AnyTaskType, ComputeTask
from aevum.hashing import Blake3, blake3_hash

_U64_MAX = (1 << 64) - 1
_MIN_PROOF_LEN = 32
_CHECKED_PROOF_BYTES = 16


class TaskPoolError(Exception):
    """Raised when a pool operation is not allowed in the current state."""


@dataclass(frozen=True)
class TaskChunk:
    task_id: bytes
    chunk_id: int
    range_start: int
    range_end: int
    input_data_hash: bytes
    task_type: AnyTaskType


@dataclass(frozen=True)
class ChunkAvailable:
    pass


@dataclass(frozen=True)
class ChunkAssigned:
    miner: bytes
    assigned_at: int


@dataclass(frozen=True)
class ChunkCompleted:
    miner: bytes
    zk_proof: bytes


@dataclass(frozen=True)
class ChunkVerified:
    validator: bytes


ChunkStatus = Union[ChunkAvailable, ChunkAssigned, ChunkCompleted, ChunkVerified]


@dataclass
class MinerInfo:
    assigned_count: int = 0
    completed_count: int = 0
    expired_count: int = 0
    invalid_proof_count: int = 0
    total_reward: int = 0
    stake: int = 0
    banned_until: int = 0
    max_concurrent_chunks: int = 0

    @property
    def active_chunks(self) -> int:
        finished = self.completed_count + self.expired_count + self.invalid_proof_count
        return max(self.assigned_count - finished, 0)


def calculate_priority(reward: int, total_combinations: int) -> int:
    """Reward per combination, scaled by 10^9 and capped at the u64 range."""
    ratio = reward * 1_000_000_000 // max(total_combinations, 1)
    return min(ratio, _U64_MAX)


def verify_zk_proof(zk_proof: bytes, verification_key: bytes) -> bool:
    """Check that the proof's hash XOR its leading bytes matches the key prefix."""
    if len(zk_proof) < _CHECKED_PROOF_BYTES or len(verification_key) < _CHECKED_PROOF_BYTES:
        return False
    proof_hash = blake3_hash(zk_proof)
    return all(
        h ^ p == k
        for h, p, k in zip(
            proof_hash[:_CHECKED_PROOF_BYTES],
            zk_proof[:_CHECKED_PROOF_BYTES],
            verification_key[:_CHECKED_PROOF_BYTES],
        )
    )


def make_valid_proof(verification_key: bytes) -> bytes:
    """A 64-byte proof whose first 16 bytes are hash(zeros) XOR the key prefix."""
    zeros = bytes(64)
    digest = blake3_hash(zeros)
    prefix = bytes(
        h ^ k
        for h, k in zip(digest[:_CHECKED_PROOF_BYTES], verification_key[:_CHECKED_PROOF_BYTES])
    )
    return prefix + zeros[len(prefix):]


def _chunk_count(task: ComputeTask) -> int:
    return max(-(-task.total_combinations // task.chunk_size), 1)


class TaskPool:
    """Queue of task chunks with per-miner accounting, timeouts and bans."""

    def __init__(self, max_tasks: int, chunk_timeout_blocks: int):
        self.max_tasks = max_tasks
        self.chunk_timeout_blocks = chunk_timeout_blocks
        self.ban_duration_blocks = 1000
        self.max_expired_before_ban = 20
        self.max_invalid_before_ban = 5
        self.max_chunks_per_miner = 100
        self._tasks: dict[bytes, ComputeTask] = {}
        self._chunks: dict[bytes, dict[int, ChunkStatus]] = {}
        self._queue: deque[tuple[bytes, int]] = deque()
        self._solutions: dict[bytes, tuple[bytes, bytes]] = {}
        self._miners: dict[bytes, MinerInfo] = {}

    def add_task(self, task: ComputeTask) -> int:
        """Split a task into chunks, queue them and return the chunk count."""
        if len(self._tasks) >= self.max_tasks:
            raise TaskPoolError("Task pool full")
        num_chunks = _chunk_count(task)
        self._queue.extend((task.task_id, chunk_id) for chunk_id in range(num_chunks))
        self._tasks[task.task_id] = task
        self._chunks[task.task_id] = {chunk_id: ChunkAvailable() for chunk_id in range(num_chunks)}
        return num_chunks

    def get_chunk(self, miner: bytes, current_height: int) -> Optional[TaskChunk]:
        """Assign the next available chunk to a miner, or None if none can be given."""
        self.release_expired_chunks(current_height)
        info = self._miners.get(miner)
        if info is None:
            info = MinerInfo(max_concurrent_chunks=self.max_chunks_per_miner)
            self._miners[miner] = info
        if info.banned_until > 0:
            if current_height < info.banned_until:
                return None
            info.banned_until = 0
        if info.active_chunks >= max(info.max_concurrent_chunks, 1):
            return None
        while self._queue:
            task_id, chunk_id = self._queue.popleft()
            chunk_map = self._chunks.get(task_id)
            if chunk_map is None or not isinstance(chunk_map.get(chunk_id), ChunkAvailable):
                continue
            task = self._tasks.get(task_id)
            if task is None:
                continue
            chunk_map[chunk_id] = ChunkAssigned(miner, current_height)
            info.assigned_count += 1
            return TaskChunk(
                task_id=task_id,
                chunk_id=chunk_id,
                range_start=chunk_id * task.chunk_size,
                range_end=min((chunk_id + 1) * task.chunk_size, task.total_combinations),
                input_data_hash=task.input_data_hash(),
                task_type=task.task_type,
            )
        return None

    def _chunk_map(self, task_id: bytes, chunk_id: int) -> dict[int, ChunkStatus]:
        chunk_map = self._chunks.get(task_id)
        if chunk_map is None:
            raise TaskPoolError("Task not found")
        if chunk_id not in chunk_map:
            raise TaskPoolError("Chunk not found")
        return chunk_map

    def complete_chunk(self, task_id: bytes, chunk_id: int, miner: bytes, zk_proof: bytes) -> None:
        """Record a miner's proof for a chunk assigned to that miner."""
        chunk_map = self._chunk_map(task_id, chunk_id)
        status = chunk_map[chunk_id]
        if not isinstance(status, ChunkAssigned):
            raise TaskPoolError("Chunk not in Assigned state")
        if status.miner != miner:
            raise TaskPoolError("Chunk assigned to different miner")
        if len(zk_proof) < _MIN_PROOF_LEN:
            raise TaskPoolError("ZK proof too short (min 32 bytes)")
        chunk_map[chunk_id] = ChunkCompleted(miner, bytes(zk_proof))
        info = self._miners.get(miner)
        if info is not None:
            info.completed_count += 1

    def verify_chunk(
        self,
        task_id: bytes,
        chunk_id: int,
        validator: bytes,
        verification_key: bytes,
        current_height: int,
    ) -> None:
        """Check a completed chunk's proof; pay the miner or requeue and penalise."""
        chunk_map = self._chunk_map(task_id, chunk_id)
        status = chunk_map[chunk_id]
        if not isinstance(status, ChunkCompleted):
            raise TaskPoolError("Chunk not completed")
        info = self._miners.get(status.miner)
        if not verify_zk_proof(status.zk_proof, verification_key):
            if info is not None:
                info.invalid_proof_count += 1
                if info.invalid_proof_count >= self.max_invalid_before_ban:
                    info.banned_until = current_height + self.ban_duration_blocks
            chunk_map[chunk_id] = ChunkAvailable()
            self._queue.append((task_id, chunk_id))
            raise TaskPoolError("ZK proof verification failed")
        chunk_map[chunk_id] = ChunkVerified(validator)
        task = self._tasks.get(task_id)
        if task is not None and info is not None:
            info.total_reward += task.reward // _chunk_count(task)

    def release_expired_chunks(self, current_height: int) -> int:
        """Return timed-out assignments to the queue and ban repeat offenders."""
        released = 0
        for task_id, chunk_map in self._chunks.items():
            for chunk_id, status in chunk_map.items():
                if not isinstance(status, ChunkAssigned):
                    continue
                if current_height - status.assigned_at > self.chunk_timeout_blocks:
                    info = self._miners.get(status.miner)
                    if info is not None:
                        info.expired_count += 1
                    chunk_map[chunk_id] = ChunkAvailable()
                    self._queue.append((task_id, chunk_id))
                    released += 1
        for info in self._miners.values():
            if info.expired_count >= self.max_expired_before_ban and info.banned_until == 0:
                info.banned_until = current_height + self.ban_duration_blocks
        return released

    def check_task_complete(self, task_id: bytes) -> Optional[tuple[bytes, bytes]]:
        """When every chunk is verified, record and return the task's solution hash."""
        chunk_map = self._chunks.get(task_id)
        if chunk_map is None:
            return None
        if not all(isinstance(status, ChunkVerified) for status in chunk_map.values()):
            return None
        hasher = Blake3()
        hasher.update(b"AEVUM_TASK_SOLUTION")
        hasher.update(task_id)
        for chunk_id in range(len(chunk_map)):
            hasher.update(chunk_id.to_bytes(8, "little"))
        solution_hash = hasher.digest()
        self._solutions[solution_hash] = (task_id, b"")
        self._tasks.pop(task_id, None)
        return solution_hash, b""

    def task_progress(self, task_id: bytes) -> Optional[float]:
        """Fraction of a task's chunks that are verified."""
        chunk_map = self._chunks.get(task_id)
        if not chunk_map:
            return None
        verified = sum(isinstance(status, ChunkVerified) for status in chunk_map.values())
        return verified / len(chunk_map)

    def remove_deadline_expired_tasks(self, current_height: int) -> None:
        expired = [
            task_id
            for task_id, task in self._tasks.items()
            if task.deadline > 0 and task.deadline < current_height
        ]
        for task_id in expired:
            del self._tasks[task_id]
            self._chunks.pop(task_id, None)
        if expired:
            gone = set(expired)
            self._queue = deque(entry for entry in self._queue if entry[0] not in gone)

    def miner_info(self, miner: bytes) -> Optional[MinerInfo]:
        info = self._miners.get(miner)
        return replace(info) if info is not None else None

    def best_task(self) -> Optional[ComputeTask]:
        """The task with the highest priority; the last one wins ties."""
        best = None
        best_priority = -1
        for task in self._tasks.values():
            priority = calculate_priority(task.reward, task.total_combinations)
            if priority >= best_priority:
                best, best_priority = task, priority
        return best

    def tasks_by_type(self, task_type: AnyTaskType) -> list[ComputeTask]:
        return [task for task in self._tasks.values() if task.task_type == task_type]

    def stake_miner(self, miner: bytes, amount: int) -> None:
        self._miners.setdefault(miner, MinerInfo()).stake += amount

    def __len__(self) -> int:
        return len(self._tasks)