import pytest

from aevum import economics


def test_initial_reward_is_5_billion_satoshi():
    assert economics.block_reward_satoshi(0) == 5_000_000_000


def test_halving_reduces_reward():
    assert economics.block_reward_satoshi(210_000) == 2_500_000_000
    assert economics.block_reward_satoshi(420_000) == 1_250_000_000
    assert economics.block_reward_satoshi(630_000) == 625_000_000


def test_reward_zero_after_64_halvings():
    assert economics.block_reward_satoshi(64 * 210_000) == 0


def test_reward_in_aev():
    assert economics.block_reward_aev(0) == pytest.approx(50.0)


def test_fee_is_0_01_percent():
    assert economics.calculate_fee(100_000_000) == (10_000, 1_000)


def test_fee_minimum_1_satoshi():
    fee, _ = economics.calculate_fee(100)
    assert fee == 1


def test_max_supply_is_21_million_aev():
    assert economics.check_supply(0, 2_100_000_000_000_000)
    assert not economics.check_supply(0, 2_100_000_000_000_001)
    assert economics.supply_aev(2_100_000_000_000_000) == pytest.approx(21_000_000.0)


def test_supply_check_respects_max():
    top = economics.MAX_SUPPLY_SATOSHI
    assert economics.check_supply(top - 1000, 500)
    assert not economics.check_supply(top, 1)


def test_supply_conversions():
    assert economics.supply_aev(economics.MAX_SUPPLY_SATOSHI) == pytest.approx(21_000_000.0)
    assert economics.supply_progress(economics.MAX_SUPPLY_SATOSHI) == pytest.approx(1.0)
    assert economics.supply_progress(0) == 0.0


def test_blocks_until_halving_correct():
    assert economics.blocks_until_halving(0) == 210_000
    assert economics.blocks_until_halving(209_999) == 1
    assert economics.blocks_until_halving(210_000) == 210_000