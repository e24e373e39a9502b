"""
Tests for the client reorder service layer.
Runs the service against an in-memory SQLite database through ClientStore.
"""
import threading
from unittest.mock import patch

import pytest

from shiptivity import create_app
from shiptivity.clients.service import ClientNotFoundError, ReorderError, ReorderService
from shiptivity.clients.store import ClientStore
from shiptivity.models import Client, db
from shiptivity.reorder_lock import ReorderLockManager, ReorderLockTimeout
from shiptivity.seed import build_clients


@pytest.fixture
def app():
    """Create Flask application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'CREATE_TABLES_ON_STARTUP': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def board(app):
    """A(1), B(2), C(3) in backlog; D(4) in in-progress."""
    db.session.add_all(build_clients([
        ("A", None, "backlog"),
        ("B", None, "backlog"),
        ("C", None, "backlog"),
        ("D", None, "in-progress"),
    ]))
    db.session.commit()


@pytest.fixture
def service(app):
    return ReorderService(store=ClientStore(db.session), lock_manager=ReorderLockManager())


def positions(snapshot):
    return {c['id']: (c['status'], c['priority']) for c in snapshot}


# ==============================================================================
# CLIENT STORE TESTS
# ==============================================================================

class TestClientStore:
    """Tests for the read-all / update-one store."""

    def test_fetch_all_ordered_by_id(self, board):
        clients = ClientStore().fetch_all()
        assert [c.id for c in clients] == [1, 2, 3, 4]

    def test_fetch_all_by_lane(self, board):
        clients = ClientStore().fetch_all(status='in-progress')
        assert [c.id for c in clients] == [4]

    def test_fetch_by_id_missing_returns_none(self, board):
        assert ClientStore().fetch_by_id(99) is None

    def test_partial_update_leaves_other_fields(self, board):
        store = ClientStore()
        assert store.update_status_and_priority(2, priority=5) is True
        store.commit()

        client = store.fetch_by_id(2)
        assert client.status == 'backlog'
        assert client.priority == 5
        assert client.name == 'B'

    def test_update_unknown_client_reports_failure(self, board):
        assert ClientStore().update_status_and_priority(99, status='complete', priority=1) is False


# ==============================================================================
# REORDER SERVICE TESTS
# ==============================================================================

class TestReorderService:
    """Tests for ReorderService.reorder against the database."""

    def test_priority_move_is_persisted(self, board, service):
        """Moving A to priority 3: B->1, C->2, A->3."""
        snapshot = service.reorder(1, priority=3)

        assert positions(snapshot) == {
            1: ('backlog', 3), 2: ('backlog', 1), 3: ('backlog', 2), 4: ('in-progress', 1),
        }
        assert Client.query.filter_by(id=1).first().priority == 3

    def test_lane_move_goes_to_bottom(self, board, service):
        """Moving A to in-progress puts it under D and pulls B and C up."""
        snapshot = service.reorder(1, status='in-progress')

        assert positions(snapshot) == {
            1: ('in-progress', 2), 2: ('backlog', 1), 3: ('backlog', 2), 4: ('in-progress', 1),
        }

    def test_lane_move_with_priority(self, board, service):
        snapshot = service.reorder(3, status='in-progress', priority=1)

        assert positions(snapshot) == {
            1: ('backlog', 1), 2: ('backlog', 2), 3: ('in-progress', 1), 4: ('in-progress', 2),
        }

    def test_no_op_returns_same_snapshot(self, board, service):
        before = service.snapshot()
        after = service.reorder(1, status='backlog', priority=1)
        assert after == before

    def test_returned_snapshot_is_read_under_lock(self, board, service):
        """The board returned by a reorder is read before the lock is released."""
        real_snapshot = ReorderService.snapshot
        held = []

        def recording_snapshot(self, status=None):
            held.append(self.lock_manager.is_locked())
            return real_snapshot(self, status=status)

        with patch.object(ReorderService, 'snapshot', new=recording_snapshot):
            snapshot = service.reorder(1, priority=3)

        assert held == [True]
        assert positions(snapshot)[1] == ('backlog', 3)
        assert service.lock_manager.is_locked() is False

    def test_snapshot_keeps_names(self, board, service):
        snapshot = service.reorder(2, status='complete')
        assert {c['id']: c['name'] for c in snapshot} == {1: 'A', 2: 'B', 3: 'C', 4: 'D'}

    def test_unknown_client_raises(self, board, service):
        with pytest.raises(ClientNotFoundError):
            service.reorder(99, priority=1)

    def test_failed_write_rolls_back_whole_reorder(self, board, service):
        """A store write matching no row leaves every lane as it was."""
        before = service.snapshot()
        real_update = ClientStore.update_status_and_priority
        calls = {'count': 0}

        def flaky_update(store, client_id, status=None, priority=None):
            calls['count'] += 1
            if calls['count'] == 2:
                return False
            return real_update(store, client_id, status=status, priority=priority)

        with patch.object(ClientStore, 'update_status_and_priority', new=flaky_update):
            with pytest.raises(ReorderError):
                service.reorder(1, priority=3)

        assert calls['count'] == 2
        assert service.snapshot() == before

    def test_write_exception_rolls_back(self, board, service):
        with patch.object(ClientStore, 'commit', side_effect=RuntimeError("disk full")):
            with pytest.raises(RuntimeError):
                service.reorder(1, status='complete')

        assert positions(service.snapshot())[1] == ('backlog', 1)

    def test_lock_timeout_when_another_reorder_runs(self, board):
        """A reorder waits for the running one and gives up after its timeout."""
        lock_manager = ReorderLockManager()
        service = ReorderService(store=ClientStore(db.session), lock_manager=lock_manager, lock_timeout=0.05)
        holding = threading.Event()
        release = threading.Event()

        def hold_lock():
            with lock_manager.acquire_reorder_lock("other reorder"):
                holding.set()
                release.wait(5)

        holder = threading.Thread(target=hold_lock)
        holder.start()
        try:
            assert holding.wait(5)
            with pytest.raises(ReorderLockTimeout):
                service.reorder(1, priority=2)
        finally:
            release.set()
            holder.join()

        assert positions(service.snapshot())[1] == ('backlog', 1)
        assert lock_manager.is_locked() is False


# ==============================================================================
# LANE REPAIR TESTS
# ==============================================================================

class TestLaneRepair:
    """Tests for audit_lanes and repair_lanes."""

    def test_audit_and_repair_broken_lane(self, board, service):
        store = ClientStore()
        store.update_status_and_priority(2, priority=7)
        store.commit()

        report = service.audit_lanes()
        assert report['lanes']['backlog']['missing'] == [2]

        applied = service.repair_lanes()

        assert len(applied) == 2
        assert service.audit_lanes() == {'lanes': {}, 'unknown_status': []}
        assert positions(service.snapshot())[2] == ('backlog', 3)
