"""Tracking of block-range requests while catching up with peers."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Synced:
    pass


@dataclass(frozen=True)
class Syncing:
    start: int
    end: int
    peer: bytes
    started_at: float


@dataclass(frozen=True)
class Failed:
    reason: str


SyncState = Union[Synced, Syncing, Failed]


class ChainSync:
    """Requests blocks in batches and notices when they all arrive or time out."""

    def __init__(self, batch_size: int, request_timeout: float = 30.0):
        self.state: SyncState = Synced()
        self.batch_size = batch_size
        self.request_timeout = request_timeout
        self._requested: set[int] = set()

    def request_blocks(self, start: int, end: int, peer: bytes) -> None:
        """Request heights start..end inclusive, clamped to one batch."""
        end = min(end, start + self.batch_size - 1)
        self.state = Syncing(start, end, peer, time.monotonic())
        self._requested.update(range(start, end + 1))

    def mark_received(self, height: int) -> None:
        self._requested.discard(height)
        if not self._requested:
            self.state = Synced()

    def is_received(self, height: int) -> bool:
        return height not in self._requested

    def finish_sync(self) -> None:
        self.state = Synced()
        self._requested.clear()

    def check_timeout(self) -> None:
        """Fail the sync if the outstanding request is older than the timeout."""
        if isinstance(self.state, Syncing):
            if time.monotonic() - self.state.started_at > self.request_timeout:
                self.state = Failed("Request timeout")
                self._requested.clear()

    def is_synced(self) -> bool:
        return isinstance(self.state, Synced)