"""Jurisdiction-tagged UTXOs: restriction levels, proofs and taint tracking."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Sequence

CATEGORY_MASK = 0xF000
SUBCATEGORY_MASK = 0x0FF0
JURISDICTION_MASK = 0x000F

CAT_COINBASE = 0x0000
CAT_JURISDICTION = 0x1000
CAT_GLOBAL = 0x2000
CAT_COMPUTE = 0x3000
CAT_RISK_TAG = 0x4000
CAT_SPECIAL = 0xF000

RISK_SANCTIONS = 0x010
RISK_DARKNET = 0x020
RISK_RANSOMWARE = 0x030
RISK_STOLEN = 0x040
RISK_SCAM = 0x050
RISK_MIXER = 0x060
RISK_GAMBLING = 0x070
RISK_NO_KYC_EXCHANGE = 0x080
RISK_FRAUD_SHOP = 0x090
RISK_CHILD_ABUSE = 0x0A0
RISK_HUMAN_TRAFFICKING = 0x0B0

RESTRICTION_COINBASE = CAT_COINBASE | 0x01
RESTRICTION_GLOBAL_CLEAN = CAT_GLOBAL | 0x00
RESTRICTION_PROVENANCE_NULL = CAT_SPECIAL | 0xFF
RESTRICTION_COMPUTE_BASE = CAT_COMPUTE | 0x01
RISK_SANCTIONS_IRAN = CAT_RISK_TAG | RISK_SANCTIONS | 0x03

TAINT_DECAY_INTERVAL = 100_000

_U16_MAX = 0xFFFF
_U64_MAX = (1 << 64) - 1


def is_coinbase(level: int) -> bool:
    return level & CATEGORY_MASK == CAT_COINBASE


def is_jurisdiction(level: int) -> bool:
    return level & CATEGORY_MASK == CAT_JURISDICTION


def is_global(level: int) -> bool:
    return level & CATEGORY_MASK == CAT_GLOBAL


def is_compute(level: int) -> bool:
    return level & CATEGORY_MASK == CAT_COMPUTE


def is_risk_tag(level: int) -> bool:
    return level & CATEGORY_MASK == CAT_RISK_TAG


def is_spendable(level: int, height: int, created_height: int, maturity: int) -> bool:
    """Coinbase outputs must mature; everything else is spendable at once."""
    if is_coinbase(level):
        return max(height - created_height, 0) >= maturity
    return True


def risk_subcategory(level: int) -> int:
    return (level & SUBCATEGORY_MASK) >> 4


def jurisdiction_code(level: int) -> int:
    return level & JURISDICTION_MASK


def decay_taint(taint_distance: int, taint_timestamp: int, current_height: int) -> int:
    """Reduce a taint distance by one for every elapsed decay interval."""
    if taint_timestamp == 0 or current_height <= taint_timestamp:
        return taint_distance
    steps = ((current_height - taint_timestamp) // TAINT_DECAY_INTERVAL) & _U16_MAX
    return max(taint_distance - steps, 0)


class RestrictionKind(enum.Enum):
    GLOBAL_CLEAN = "global_clean"
    RESTRICTED = "restricted"
    PROVENANCE_NULL = "provenance_null"


@dataclass(frozen=True)
class RestrictionLevel:
    kind: RestrictionKind
    allowed: tuple[bytes, ...] = ()

    def __post_init__(self):
        for code in self.allowed:
            if len(code) != 4:
                raise ValueError(f"jurisdiction code must be 4 bytes, got {len(code)}")

    @classmethod
    def global_clean(cls) -> "RestrictionLevel":
        return cls(RestrictionKind.GLOBAL_CLEAN)

    @classmethod
    def restricted(cls, allowed) -> "RestrictionLevel":
        return cls(RestrictionKind.RESTRICTED, tuple(bytes(code) for code in allowed))

    @classmethod
    def provenance_null(cls) -> "RestrictionLevel":
        return cls(RestrictionKind.PROVENANCE_NULL)

    def serialize(self) -> bytes:
        if self.kind is RestrictionKind.GLOBAL_CLEAN:
            return b"\x00"
        if self.kind is RestrictionKind.PROVENANCE_NULL:
            return b"\xff"
        return bytes([0x01, len(self.allowed) & 0xFF]) + b"".join(self.allowed)

    def to_u64(self) -> int:
        if self.kind is RestrictionKind.GLOBAL_CLEAN:
            return RESTRICTION_GLOBAL_CLEAN
        if self.kind is RestrictionKind.PROVENANCE_NULL:
            return RESTRICTION_PROVENANCE_NULL
        if self.allowed:
            return CAT_JURISDICTION | self.allowed[0][0]
        return CAT_JURISDICTION


class ProofScheme(enum.IntEnum):
    HALO2 = 0
    STARK = 1


@dataclass(frozen=True)
class ZkProof:
    scheme: ProofScheme
    version: int
    data: bytes

    @classmethod
    def empty(cls) -> "ZkProof":
        return cls(ProofScheme.HALO2, 0, b"")

    def is_valid(self) -> bool:
        return bool(self.data) and self.version > 0


@dataclass
class JtUtxo:
    owner: bytes
    amount: int
    amount_commitment: bytes
    tag_commitment: bytes
    serial: int
    nullifier: bytes
    tx_hash: bytes
    restriction_level: int
    created_height: int
    output_index: int = 0
    zk_proof: ZkProof = field(default_factory=ZkProof.empty)
    taint_distance: int = 0
    taint_origin: int = CAT_GLOBAL
    taint_timestamp: int = 0

    def is_spendable(self, current_height: int, maturity: int) -> bool:
        return is_spendable(self.restriction_level, current_height, self.created_height, maturity)

    def jurisdiction_code(self) -> int:
        return jurisdiction_code(self.restriction_level)


def compute_taint(inputs: Sequence[JtUtxo], current_height: int) -> tuple[int, int, int]:
    """Taint of outputs spent from inputs: (distance, origin, timestamp)."""
    if not inputs:
        return 0, CAT_GLOBAL, 0
    min_distance = _U16_MAX
    origin = CAT_GLOBAL
    timestamp = _U64_MAX
    for utxo in inputs:
        effective = decay_taint(utxo.taint_distance, utxo.taint_timestamp, current_height)
        if effective < min_distance:
            min_distance = effective
            origin = utxo.taint_origin
            timestamp = utxo.taint_timestamp
    if min_distance == 0:
        return 0, CAT_GLOBAL, 0
    return min(min_distance + 1, _U16_MAX), origin, timestamp