"""Receiving addresses bound to a policy of which restriction levels they accept."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Union

from aevum.hashing import blake3_hash
from aevum.jt_utxo import RestrictionKind, RestrictionLevel

_POLICY_FORMAT_VERSION = 0x01
_ADDRESS_DOMAIN = b"AEVUM_ADDRESS_POLICY_V1"


@dataclass(frozen=True)
class LevelRule:
    """Matches outputs carrying exactly this restriction level."""

    level: RestrictionLevel

    def serialize(self) -> bytes:
        return b"\x10" + self.level.serialize()

    def matches(
        self, level: RestrictionLevel, specific_jurisdiction: Optional[bytes] = None
    ) -> bool:
        return self.level == level


@dataclass(frozen=True)
class JurisdictionRule:
    """Matches outputs usable in a four-byte jurisdiction."""

    code: bytes

    def __post_init__(self):
        if len(self.code) != 4:
            raise ValueError(f"jurisdiction code must be 4 bytes, got {len(self.code)}")

    def serialize(self) -> bytes:
        return b"\x20" + self.code

    def matches(
        self, level: RestrictionLevel, specific_jurisdiction: Optional[bytes] = None
    ) -> bool:
        if specific_jurisdiction is not None:
            return specific_jurisdiction == self.code
        if level.kind is RestrictionKind.RESTRICTED:
            return self.code in level.allowed
        return False


AcceptanceRule = Union[LevelRule, JurisdictionRule]


class PolicyKind(enum.Enum):
    WHITELIST = "whitelist"
    BLACKLIST = "blacklist"
    ACCEPT_ALL = "accept_all"
    REJECT_ALL = "reject_all"


@dataclass(frozen=True)
class AcceptancePolicy:
    kind: PolicyKind
    rules: tuple[AcceptanceRule, ...] = ()

    @classmethod
    def accept_all(cls) -> "AcceptancePolicy":
        return cls(PolicyKind.ACCEPT_ALL)

    @classmethod
    def reject_all(cls) -> "AcceptancePolicy":
        return cls(PolicyKind.REJECT_ALL)

    @classmethod
    def whitelist(cls, rules) -> "AcceptancePolicy":
        return cls(PolicyKind.WHITELIST, tuple(rules))

    @classmethod
    def blacklist(cls, rules) -> "AcceptancePolicy":
        return cls(PolicyKind.BLACKLIST, tuple(rules))

    def _level_listed(self, level: int) -> bool:
        return any(
            isinstance(rule, LevelRule) and rule.level.to_u64() == level for rule in self.rules
        )

    def accepts_level(self, level: int) -> bool:
        """Decide on a numeric restriction level; jurisdiction rules never match here."""
        if self.kind is PolicyKind.ACCEPT_ALL:
            return True
        if self.kind is PolicyKind.REJECT_ALL:
            return False
        if self.kind is PolicyKind.WHITELIST:
            return self._level_listed(level)
        return not self._level_listed(level)

    def serialize(self) -> bytes:
        header = bytes([_POLICY_FORMAT_VERSION])
        if self.kind is PolicyKind.ACCEPT_ALL:
            return header + b"\x00"
        if self.kind is PolicyKind.REJECT_ALL:
            return header + b"\xff"
        tag = 0x01 if self.kind is PolicyKind.WHITELIST else 0x02
        body = b"".join(rule.serialize() for rule in self.rules)
        return header + bytes([tag, len(self.rules) & 0xFF]) + body


@dataclass(frozen=True)
class Address:
    public_key: bytes
    policy_hash: bytes
    version: int = 0x01

    CURRENT_VERSION = 0x01

    @classmethod
    def create(cls, public_key: bytes, policy: AcceptancePolicy) -> "Address":
        """An address whose hash commits to the key and the acceptance policy."""
        policy_hash = blake3_hash(
            _ADDRESS_DOMAIN, bytes([cls.CURRENT_VERSION]), public_key, policy.serialize()
        )
        return cls(bytes(public_key), policy_hash, cls.CURRENT_VERSION)

    def accepts(
        self,
        policy: AcceptancePolicy,
        level: RestrictionLevel,
        specific_jurisdiction: Optional[bytes] = None,
    ) -> bool:
        if policy.kind is PolicyKind.ACCEPT_ALL:
            return True
        if policy.kind is PolicyKind.REJECT_ALL:
            return False
        matched = any(rule.matches(level, specific_jurisdiction) for rule in policy.rules)
        return matched if policy.kind is PolicyKind.WHITELIST else not matched