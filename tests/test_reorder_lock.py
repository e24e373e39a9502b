"""
Tests for the reorder lock manager.
"""
import threading
import time

import pytest

from shiptivity.reorder_lock import ReorderLockManager, ReorderLockTimeout


@pytest.fixture
def lock_manager():
    return ReorderLockManager(timeout_seconds=1)


def test_lock_state_while_held(lock_manager):
    """Test that status reflects the holder and is cleared on exit."""
    with lock_manager.acquire_reorder_lock("reorder:1"):
        assert lock_manager.is_locked() is True
        assert lock_manager.get_current_operation() == "reorder:1"
        status = lock_manager.get_status()
        assert status["held_by_thread"] == threading.get_ident()
        assert status["timeout_seconds"] == 1

    assert lock_manager.is_locked() is False
    assert lock_manager.get_current_operation() is None
    assert lock_manager.get_status()["held_for_seconds"] == 0


def test_reentrant_for_same_thread(lock_manager):
    """Test that the holding thread can nest and keeps the outer operation name."""
    with lock_manager.acquire_reorder_lock("repair_lanes"):
        with lock_manager.acquire_reorder_lock("reorder:2", timeout_seconds=0):
            assert lock_manager.get_current_operation() == "repair_lanes"
        assert lock_manager.is_locked() is True

    assert lock_manager.is_locked() is False


def test_released_when_body_raises(lock_manager):
    with pytest.raises(ValueError):
        with lock_manager.acquire_reorder_lock("reorder:3"):
            raise ValueError("boom")

    assert lock_manager.is_locked() is False


def test_second_thread_times_out(lock_manager):
    """Test that a competing thread gives up after its timeout."""
    errors = []

    def compete():
        try:
            with lock_manager.acquire_reorder_lock("reorder:competitor", timeout_seconds=0.05):
                pass
        except ReorderLockTimeout as exc:
            errors.append(exc)

    with lock_manager.acquire_reorder_lock("reorder:holder"):
        worker = threading.Thread(target=compete)
        worker.start()
        worker.join(5)

    assert len(errors) == 1
    assert isinstance(errors[0], RuntimeError)


def test_second_thread_waits_for_release(lock_manager):
    """Test that reorders run one after the other instead of failing."""
    order = []
    started = threading.Event()

    def first():
        with lock_manager.acquire_reorder_lock("first"):
            started.set()
            time.sleep(0.1)
            order.append("first")

    def second():
        started.wait(5)
        with lock_manager.acquire_reorder_lock("second"):
            order.append("second")

    threads = [threading.Thread(target=first), threading.Thread(target=second)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(5)

    assert order == ["first", "second"]
