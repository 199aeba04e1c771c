from dataclasses import replace

from aevum.poh import PohGenerator, PohSnapshot, PohTick


def test_new_generator_starts_at_zero():
    gen = PohGenerator(b"seed")
    assert gen.current_tick_number == 0
    assert len(gen.current_hash) == 32


def test_same_seed_is_deterministic():
    assert PohGenerator(b"seed").current_hash == PohGenerator(b"seed").current_hash
    assert PohGenerator(b"seed").current_hash != PohGenerator(b"other").current_hash


def test_tick_advances():
    gen = PohGenerator(b"seed")
    start = gen.current_hash
    tick = gen.tick()
    assert tick.tick_number == 1
    assert tick.hash == gen.current_hash
    assert tick.hash != start
    assert gen.current_tick_number == 1


def test_consecutive_ticks_verify():
    gen = PohGenerator(b"seed")
    t1 = gen.tick()
    t2 = gen.tick()
    assert PohGenerator.verify_tick_chain(t1, t2) is True


def test_out_of_order_ticks_fail():
    gen = PohGenerator(b"seed")
    t1 = gen.tick()
    t2 = gen.tick()
    assert PohGenerator.verify_tick_chain(t2, t1) is False


def test_skipped_tick_fails():
    gen = PohGenerator(b"seed")
    t1 = gen.tick()
    gen.tick()
    t3 = gen.tick()
    assert PohGenerator.verify_tick_chain(t1, t3) is False


def test_tampered_hash_fails():
    gen = PohGenerator(b"seed")
    t1 = gen.tick()
    t2 = gen.tick()
    forged = replace(t2, hash=bytes(32))
    assert PohGenerator.verify_tick_chain(t1, forged) is False


def test_multi_chain():
    gen = PohGenerator(b"seed")
    ticks = [gen.tick() for _ in range(6)]
    assert PohGenerator.verify_tick_chain_multi(ticks) is True
    broken = ticks[:3] + ticks[4:]
    assert PohGenerator.verify_tick_chain_multi(broken) is False


def test_short_chains_are_valid():
    assert PohGenerator.verify_tick_chain_multi([]) is True
    assert PohGenerator.verify_tick_chain_multi([PohTick(5, bytes(32))]) is True


def test_snapshot_round_trip():
    gen = PohGenerator(b"seed")
    for _ in range(3):
        gen.tick()
    snap = gen.snapshot()
    assert snap == PohSnapshot(gen.current_hash, 3)
    restored = PohGenerator.from_snapshot(snap)
    assert restored.current_tick_number == 3
    assert restored.tick() == gen.tick()


def test_ticks_from_restored_generator_chain():
    gen = PohGenerator(b"seed")
    last = gen.tick()
    restored = PohGenerator.from_snapshot(gen.snapshot())
    assert PohGenerator.verify_tick_chain(last, restored.tick()) is True