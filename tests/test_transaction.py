import pytest

from aevum.hashing import ZERO_HASH
from aevum.jt_utxo import RESTRICTION_GLOBAL_CLEAN, JtUtxo, ZkProof
from aevum.transaction import (
    CHAIN_ID_MAINNET,
    CHAIN_ID_TESTNET,
    Transaction,
    TxInput,
    TxOutput,
)

OWNER = bytes([3]) * 32


def make_output(amount=100, serial=1, index=0):
    return TxOutput(
        owner=OWNER,
        amount=amount,
        amount_commitment=bytes([4]) * 32,
        tag_commitment=bytes([5]) * 32,
        nullifier=bytes([6]) * 32,
        serial=serial,
        zk_proof=ZkProof.empty(),
        tx_hash=ZERO_HASH,
        restriction_level=RESTRICTION_GLOBAL_CLEAN,
        output_index=index,
    )


def make_input():
    return TxInput(
        tx_hash=ZERO_HASH, output_index=0, nullifier=bytes([9]) * 32, public_key=OWNER
    )


def test_defaults():
    tx = Transaction()
    assert tx.version == 1
    assert tx.chain_id == CHAIN_ID_TESTNET
    assert len(tx.tx_hash) == 32


def test_hash_is_deterministic():
    a = Transaction([make_input()], [make_output()], 5)
    b = Transaction([make_input()], [make_output()], 5)
    assert a.tx_hash == b.tx_hash


def test_hash_depends_on_fee_and_outputs():
    base = Transaction([make_input()], [make_output()], 5)
    assert Transaction([make_input()], [make_output()], 6).tx_hash != base.tx_hash
    assert Transaction([make_input()], [make_output(amount=101)], 5).tx_hash != base.tx_hash
    assert Transaction([make_input()], [make_output(index=1)], 5).tx_hash != base.tx_hash


def test_compute_hash_tracks_poh_tick():
    tx = Transaction([], [make_output()], 0)
    before = tx.tx_hash
    tx.poh_tick = 42
    after = tx.compute_hash()
    assert after != before
    assert tx.tx_hash == after


def test_with_chain_id_recomputes_hash():
    tx = Transaction([], [make_output()], 0)
    mainnet = tx.with_chain_id(CHAIN_ID_MAINNET)
    assert mainnet.chain_id == CHAIN_ID_MAINNET
    assert tx.chain_id == CHAIN_ID_TESTNET
    assert mainnet.tx_hash != tx.tx_hash
    assert mainnet.with_chain_id(CHAIN_ID_TESTNET).tx_hash == tx.tx_hash


def test_explicit_hash_is_kept():
    tx = Transaction([], [], 0, tx_hash=bytes([8]) * 32)
    assert tx.tx_hash == bytes([8]) * 32


def test_sign_input_sets_fields():
    tx = Transaction([make_input()], [make_output()], 0)
    signer = bytes([2]) * 32
    tx.sign_input(tx.tx_hash, 0, b"\x01" * 64, signer)
    assert tx.inputs[0].signature == b"\x01" * 64
    assert tx.inputs[0].public_key == signer
    assert tx.inputs[0].signed_hash == tx.tx_hash


@pytest.mark.parametrize("index", [1, -1])
def test_sign_input_out_of_bounds(index):
    tx = Transaction([make_input()], [make_output()], 0)
    with pytest.raises(IndexError, match="Input index out of bounds"):
        tx.sign_input(tx.tx_hash, index, b"\x01" * 64, OWNER)


def test_signature_does_not_change_hash():
    tx = Transaction([make_input()], [make_output()], 0)
    before = tx.compute_hash()
    tx.sign_input(before, 0, b"\x02" * 64, OWNER)
    assert tx.compute_hash() == before


def test_output_from_jt_utxo():
    utxo = JtUtxo(
        owner=OWNER,
        amount=500,
        amount_commitment=bytes([4]) * 32,
        tag_commitment=bytes([5]) * 32,
        serial=7,
        nullifier=bytes([6]) * 32,
        tx_hash=bytes([1]) * 32,
        restriction_level=RESTRICTION_GLOBAL_CLEAN,
        created_height=3,
    )
    out = TxOutput.from_jt_utxo(utxo, 2)
    assert out.amount == 500
    assert out.owner == OWNER
    assert out.serial == 7
    assert out.nullifier == utxo.nullifier
    assert out.tx_hash == utxo.tx_hash
    assert out.restriction_level == RESTRICTION_GLOBAL_CLEAN
    assert out.output_index == 2
    assert out.view_key_public == bytes(32)
    assert out.encrypted_amount == bytes(8)