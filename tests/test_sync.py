import time

from aevum.sync import ChainSync, Failed, Synced, Syncing

PEER = bytes([7]) + bytes(19)


def test_new_sync_is_synced():
    assert ChainSync(100).is_synced()


def test_request_blocks_changes_state():
    sync = ChainSync(100)
    sync.request_blocks(0, 9, PEER)
    assert not sync.is_synced()
    assert isinstance(sync.state, Syncing)
    assert (sync.state.start, sync.state.end, sync.state.peer) == (0, 9, PEER)


def test_batch_clamped_to_size():
    sync = ChainSync(100)
    sync.request_blocks(0, 9999, PEER)
    assert sync.state.end == 99
    assert not sync.is_received(99)
    assert sync.is_received(100)


def test_mark_received_tracks_heights():
    sync = ChainSync(100)
    sync.request_blocks(0, 5, PEER)
    sync.mark_received(0)
    sync.mark_received(1)
    assert sync.is_received(0)
    assert not sync.is_received(3)


def test_all_received_completes_sync():
    sync = ChainSync(100)
    sync.request_blocks(0, 2, PEER)
    for height in range(3):
        sync.mark_received(height)
    assert sync.is_synced()
    assert sync.state == Synced()


def test_timeout_changes_to_failed():
    sync = ChainSync(100, request_timeout=0.001)
    sync.request_blocks(0, 10, PEER)
    time.sleep(0.01)
    sync.check_timeout()
    assert sync.state == Failed("Request timeout")
    assert sync.is_received(5)


def test_no_timeout_before_deadline():
    sync = ChainSync(100)
    sync.request_blocks(0, 10, PEER)
    sync.check_timeout()
    assert not sync.is_synced()
    assert (sync.state.start, sync.state.end) == (0, 10)
    assert not sync.is_received(5)


def test_finish_sync_clears_requests():
    sync = ChainSync(10)
    sync.request_blocks(5, 8, PEER)
    sync.finish_sync()
    assert sync.is_synced()
    assert sync.is_received(6)