"""BLAKE3 hashing (default 32-byte output, unkeyed mode)."""

from __future__ import annotations

import struct
from dataclasses import dataclass

ZERO_HASH = bytes(32)

_MASK = 0xFFFFFFFF
_BLOCK_LEN = 64
_CHUNK_LEN = 1024
_OUT_LEN = 32

_CHUNK_START = 1 << 0
_CHUNK_END = 1 << 1
_PARENT = 1 << 2
_ROOT = 1 << 3

_IV = (
    0x6A09E667,
    0xBB67AE85,
    0x3C6EF372,
    0xA54FF53A,
    0x510E527F,
    0x9B05688C,
    0x1F83D9AB,
    0x5BE0CD19,
)

_PERMUTATION = (2, 6, 3, 10, 7, 0, 4, 13, 1, 11, 12, 5, 9, 14, 15, 8)

# (a, b, c, d, message index x, message index y) for the eight G calls of a round.
_SCHEDULE = (
    (0, 4, 8, 12, 0, 1),
    (1, 5, 9, 13, 2, 3),
    (2, 6, 10, 14, 4, 5),
    (3, 7, 11, 15, 6, 7),
    (0, 5, 10, 15, 8, 9),
    (1, 6, 11, 12, 10, 11),
    (2, 7, 8, 13, 12, 13),
    (3, 4, 9, 14, 14, 15),
)

_WORDS = struct.Struct("<16I")


def _compress(cv, block_words, counter, block_len, flags):
    state = list(cv) + list(_IV[:4]) + [
        counter & _MASK,
        (counter >> 32) & _MASK,
        block_len,
        flags,
    ]
    msg = list(block_words)
    for round_number in range(7):
        for a, b, c, d, x, y in _SCHEDULE:
            sa = (state[a] + state[b] + msg[x]) & _MASK
            sd = state[d] ^ sa
            sd = ((sd >> 16) | (sd << 16)) & _MASK
            sc = (state[c] + sd) & _MASK
            sb = state[b] ^ sc
            sb = ((sb >> 12) | (sb << 20)) & _MASK
            sa = (sa + sb + msg[y]) & _MASK
            sd ^= sa
            sd = ((sd >> 8) | (sd << 24)) & _MASK
            sc = (sc + sd) & _MASK
            sb ^= sc
            sb = ((sb >> 7) | (sb << 25)) & _MASK
            state[a], state[b], state[c], state[d] = sa, sb, sc, sd
        if round_number < 6:
            msg = [msg[i] for i in _PERMUTATION]
    low, high = state[:8], state[8:]
    return [p ^ q for p, q in zip(low, high)] + [p ^ q for p, q in zip(high, cv)]


@dataclass
class _Output:
    input_cv: tuple
    block_words: tuple
    counter: int
    block_len: int
    flags: int

    def chaining_value(self) -> tuple:
        return tuple(
            _compress(self.input_cv, self.block_words, self.counter, self.block_len, self.flags)[:8]
        )

    def root_bytes(self) -> bytes:
        words = _compress(self.input_cv, self.block_words, 0, self.block_len, self.flags | _ROOT)
        return _WORDS.pack(*words)[:_OUT_LEN]


def _parent_output(left_cv, right_cv, key, flags) -> _Output:
    return _Output(key, tuple(left_cv) + tuple(right_cv), 0, _BLOCK_LEN, _PARENT | flags)


class _ChunkState:
    def __init__(self, key, chunk_counter: int, flags: int):
        self.chaining_value = tuple(key)
        self.chunk_counter = chunk_counter
        self.block = bytearray()
        self.blocks_compressed = 0
        self.flags = flags

    def __len__(self) -> int:
        return _BLOCK_LEN * self.blocks_compressed + len(self.block)

    def _start_flag(self) -> int:
        return _CHUNK_START if self.blocks_compressed == 0 else 0

    def update(self, data: memoryview) -> None:
        while data:
            if len(self.block) == _BLOCK_LEN:
                words = _WORDS.unpack(bytes(self.block))
                self.chaining_value = tuple(
                    _compress(
                        self.chaining_value,
                        words,
                        self.chunk_counter,
                        _BLOCK_LEN,
                        self.flags | self._start_flag(),
                    )[:8]
                )
                self.blocks_compressed += 1
                self.block = bytearray()
            take = min(_BLOCK_LEN - len(self.block), len(data))
            self.block += data[:take]
            data = data[take:]

    def output(self) -> _Output:
        padded = bytes(self.block).ljust(_BLOCK_LEN, b"\x00")
        return _Output(
            self.chaining_value,
            _WORDS.unpack(padded),
            self.chunk_counter,
            len(self.block),
            self.flags | self._start_flag() | _CHUNK_END,
        )


class Blake3:
    """Incremental BLAKE3 hasher producing 32-byte digests."""

    def __init__(self):
        self._key = _IV
        self._flags = 0
        self._chunk = _ChunkState(self._key, 0, self._flags)
        self._cv_stack: list[tuple] = []

    def _add_chunk_cv(self, new_cv, total_chunks: int) -> None:
        while total_chunks & 1 == 0:
            new_cv = _parent_output(self._cv_stack.pop(), new_cv, self._key, self._flags).chaining_value()
            total_chunks >>= 1
        self._cv_stack.append(new_cv)

    def update(self, data) -> None:
        """Feed more bytes into the hash."""
        view = memoryview(bytes(data))
        while view:
            if len(self._chunk) == _CHUNK_LEN:
                chunk_cv = self._chunk.output().chaining_value()
                total_chunks = self._chunk.chunk_counter + 1
                self._add_chunk_cv(chunk_cv, total_chunks)
                self._chunk = _ChunkState(self._key, total_chunks, self._flags)
            take = min(_CHUNK_LEN - len(self._chunk), len(view))
            self._chunk.update(view[:take])
            view = view[take:]

    def digest(self) -> bytes:
        """Return the 32-byte digest of everything fed so far."""
        output = self._chunk.output()
        for cv in reversed(self._cv_stack):
            output = _parent_output(cv, output.chaining_value(), self._key, self._flags)
        return output.root_bytes()


def blake3_hash(*args) -> bytes:
    """Hash the concatenation of the given byte strings."""
    hasher = Blake3()
    for part in args:
        hasher.update(part)
    return hasher.digest()