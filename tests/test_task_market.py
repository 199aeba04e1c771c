import pytest

from aevum.compute import ComputeTask, TaskType
from aevum.task_market import MarketError, OrderStatus, TaskMarket


def make_task(reward, total):
    return ComputeTask(
        task_id=bytes(32),
        task_type=TaskType.DRUG_DISCOVERY,
        input_data=bytes([1, 2, 3]),
        reward=reward,
        deadline=100,
        verification_key=bytes(32),
        issuer=bytes([1]) * 32,
        total_combinations=total,
        chunk_size=max(total // 1000, 1),
    )


def in_progress_market():
    market = TaskMarket(0)
    order_id = market.place_order(bytes([1]) * 32, make_task(500, 500_000), 0, 1)
    market.fund_order(order_id)
    market.accept_order(order_id, bytes([9]) * 32)
    return market, order_id


def test_place_and_fund():
    market = TaskMarket(100)
    order_id = market.place_order(bytes([1]) * 32, make_task(1000, 1_000_000), 0, 1)
    assert market.order_count() == 1
    assert market.pool_fees == 10
    assert market.orders[order_id].reward == 990
    market.fund_order(order_id)
    assert market.orders[order_id].status is OrderStatus.FUNDED


def test_full_cycle():
    market, order_id = in_progress_market()
    sid = market.propose_solution(order_id, 0, 1000, b"\x01", bytes([9]) * 32, 10, b"")
    market.verify_solution(order_id, sid)
    assert market.orders[order_id].status is OrderStatus.SOLVED
    assert market.solution_count() == 1


def test_verify_fake_solution_fails():
    market, order_id = in_progress_market()
    market.propose_solution(order_id, 0, 10, b"\x01", bytes([9]) * 32, 10, b"")
    with pytest.raises(MarketError, match="Solution not found"):
        market.verify_solution(order_id, bytes(32))
    assert market.orders[order_id].status is OrderStatus.PROPOSED


def test_best_order_by_ratio():
    market = TaskMarket(0)
    market.place_order(bytes([1]) * 32, make_task(1000, 10_000_000), 0, 1)
    market.place_order(bytes([2]) * 32, make_task(100, 100_000), 0, 2)
    best = market.best_order(0)
    assert best.customer == bytes([2]) * 32


def test_order_id_is_deterministic():
    first = TaskMarket(0).place_order(bytes([1]) * 32, make_task(10, 100), 5, 7)
    second = TaskMarket(0).place_order(bytes([1]) * 32, make_task(10, 100), 5, 7)
    other = TaskMarket(0).place_order(bytes([1]) * 32, make_task(10, 100), 5, 8)
    assert first == second
    assert first != other
    assert len(first) == 32


def test_fund_twice_fails():
    market = TaskMarket(0)
    order_id = market.place_order(bytes([1]) * 32, make_task(10, 100), 0, 1)
    market.fund_order(order_id)
    with pytest.raises(MarketError, match="Pending"):
        market.fund_order(order_id)


def test_unknown_order():
    with pytest.raises(MarketError, match="Order not found"):
        TaskMarket(0).accept_order(bytes(32), bytes(32))


def test_deadline_passed_expires_order():
    market, order_id = in_progress_market()
    with pytest.raises(MarketError, match="Deadline passed"):
        market.propose_solution(order_id, 0, 10, b"\x01", bytes([9]) * 32, 101, b"")
    assert market.orders[order_id].status is OrderStatus.EXPIRED


def test_cancel_solved_fails():
    market, order_id = in_progress_market()
    sid = market.propose_solution(order_id, 0, 10, b"\x01", bytes([9]) * 32, 10, b"")
    market.verify_solution(order_id, sid)
    with pytest.raises(MarketError, match="Already solved"):
        market.cancel_order(order_id)


def test_cancelled_order_not_available():
    market = TaskMarket(0)
    order_id = market.place_order(bytes([1]) * 32, make_task(10, 100), 0, 1)
    assert len(market.available_orders(0)) == 1
    market.cancel_order(order_id)
    assert market.available_orders(0) == []
    assert market.best_order(0) is None


def test_available_orders_respect_deadline():
    market = TaskMarket(0)
    market.place_order(bytes([1]) * 32, make_task(10, 100), 0, 1)
    assert len(market.available_orders(99)) == 1
    assert market.available_orders(100) == []


def test_accept_after_in_progress_fails():
    market, order_id = in_progress_market()
    with pytest.raises(MarketError, match="Order not available"):
        market.accept_order(order_id, bytes([3]) * 32)