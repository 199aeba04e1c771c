"""Transactions spending and creating jurisdiction-tagged outputs."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional

from aevum.hashing import ZERO_HASH, Blake3
from aevum.jt_utxo import JtUtxo, ZkProof

CHAIN_ID_MAINNET = 1
CHAIN_ID_TESTNET = 2


def _le64(value: int) -> bytes:
    return value.to_bytes(8, "little")


def _le32(value: int) -> bytes:
    return value.to_bytes(4, "little")


@dataclass
class TxInput:
    tx_hash: bytes
    output_index: int
    nullifier: bytes
    public_key: bytes
    signature: bytes = b""
    signed_hash: bytes = ZERO_HASH
    nonce: int = 0


@dataclass
class TxOutput:
    owner: bytes
    amount: int
    amount_commitment: bytes
    tag_commitment: bytes
    nullifier: bytes
    serial: int
    zk_proof: ZkProof
    tx_hash: bytes
    restriction_level: int
    output_index: int
    view_key_public: bytes = bytes(32)
    encrypted_amount: bytes = bytes(8)
    auth_tag: bytes = bytes(8)

    @classmethod
    def from_jt_utxo(cls, utxo: JtUtxo, index: int) -> "TxOutput":
        return cls(
            owner=utxo.owner,
            amount=utxo.amount,
            amount_commitment=utxo.amount_commitment,
            tag_commitment=utxo.tag_commitment,
            nullifier=utxo.nullifier,
            serial=utxo.serial,
            zk_proof=utxo.zk_proof,
            tx_hash=utxo.tx_hash,
            restriction_level=utxo.restriction_level,
            output_index=index,
        )


@dataclass
class Transaction:
    """A transaction; its hash is computed on creation unless one is given."""

    inputs: list[TxInput] = field(default_factory=list)
    outputs: list[TxOutput] = field(default_factory=list)
    fee: int = 0
    version: int = 1
    chain_id: int = CHAIN_ID_TESTNET
    poh_tick: int = 0
    locktime: int = 0
    tx_hash: Optional[bytes] = None

    def __post_init__(self):
        if self.tx_hash is None:
            self.compute_hash()

    def compute_hash(self) -> bytes:
        """Recompute and store the hash over chain id, version, inputs, outputs and timing."""
        hasher = Blake3()
        hasher.update(_le32(self.chain_id))
        hasher.update(_le32(self.version))
        for tx_input in self.inputs:
            hasher.update(tx_input.tx_hash)
            hasher.update(_le32(tx_input.output_index))
            hasher.update(tx_input.nullifier)
        for output in self.outputs:
            hasher.update(_le64(output.amount))
            hasher.update(output.owner)
            hasher.update(output.amount_commitment)
            hasher.update(output.tag_commitment)
            hasher.update(output.nullifier)
            hasher.update(_le64(output.serial))
            hasher.update(_le64(output.restriction_level))
            hasher.update(_le32(output.output_index))
        hasher.update(_le64(self.fee))
        hasher.update(_le64(self.poh_tick))
        hasher.update(_le64(self.locktime))
        self.tx_hash = hasher.digest()
        return self.tx_hash

    def with_chain_id(self, chain_id: int) -> "Transaction":
        """A copy bound to another chain, with its hash recomputed."""
        return replace(self, chain_id=chain_id, tx_hash=None)

    def sign_input(
        self, tx_hash: bytes, input_index: int, signature: bytes, public_key: bytes
    ) -> None:
        if not 0 <= input_index < len(self.inputs):
            raise IndexError("Input index out of bounds")
        tx_input = self.inputs[input_index]
        tx_input.signature = bytes(signature)
        tx_input.public_key = public_key
        tx_input.signed_hash = tx_hash