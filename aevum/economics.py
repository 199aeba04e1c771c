"""Monetary policy: block rewards, halvings, fees and supply limits."""

from __future__ import annotations

SATOSHI_PER_AEV = 100_000_000
INITIAL_REWARD_SATOSHI = 5_000_000_000
HALVING_INTERVAL = 210_000
MAX_SUPPLY_AEV = 21_000_000
MAX_SUPPLY_SATOSHI = MAX_SUPPLY_AEV * SATOSHI_PER_AEV
FEE_BPS = 1
DEVELOPER_SHARE_BPS = 1000


def block_reward_satoshi(height: int) -> int:
    """Block subsidy at a height, halved every interval, zero after 64 halvings."""
    halvings = height // HALVING_INTERVAL
    if halvings >= 64:
        return 0
    return INITIAL_REWARD_SATOSHI >> halvings


def block_reward_aev(height: int) -> float:
    return block_reward_satoshi(height) / SATOSHI_PER_AEV


def calculate_fee(amount_satoshi: int) -> tuple[int, int]:
    """Return (total fee, developer cut); the fee is at least one satoshi."""
    total_fee = amount_satoshi * FEE_BPS // 10_000
    developer_cut = total_fee * DEVELOPER_SHARE_BPS // 10_000
    return max(total_fee, 1), developer_cut


def check_supply(current_supply: int, additional: int) -> bool:
    return current_supply + additional <= MAX_SUPPLY_SATOSHI


def supply_aev(supply_satoshi: int) -> float:
    return supply_satoshi / SATOSHI_PER_AEV


def supply_progress(supply_satoshi: int) -> float:
    return supply_satoshi / MAX_SUPPLY_SATOSHI


def blocks_until_halving(height: int) -> int:
    return HALVING_INTERVAL - height % HALVING_INTERVAL