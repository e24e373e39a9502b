"""
Tests for the seed and lane audit scripts.
"""
import pytest

from shiptivity import create_app
from shiptivity.clients.engine import LaneAuditEngine
from shiptivity.models import Client, db
from shiptivity.scripts.lane_audit import lane_audit
from shiptivity.seed import SAMPLE_CLIENTS, build_clients, seed_clients


@pytest.fixture
def app():
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


# ==============================================================================
# SEED TESTS
# ==============================================================================

def test_build_clients_ranks_each_lane():
    clients = build_clients()

    assert len(clients) == len(SAMPLE_CLIENTS)
    report = LaneAuditEngine.find_lane_violations([c.to_dict() for c in clients])
    assert report == {'lanes': {}, 'unknown_status': []}


def test_seed_only_when_empty(app):
    assert seed_clients() == len(SAMPLE_CLIENTS)
    assert seed_clients() == 0
    assert Client.query.count() == len(SAMPLE_CLIENTS)


def test_seed_force_replaces_board(app):
    seed_clients()

    created = seed_clients(rows=[("Solo", None, "complete")], force=True)

    assert created == 1
    assert [(c.name, c.status, c.priority) for c in Client.query.all()] == [("Solo", "complete", 1)]


# ==============================================================================
# LANE AUDIT SCRIPT TESTS
# ==============================================================================

def test_lane_audit_dry_run_changes_nothing(app):
    seed_clients()
    Client.query.filter_by(id=3).update({Client.priority: 40})
    db.session.commit()

    result = lane_audit(execute=False)

    assert result['executed'] is False
    assert 'backlog' in result['lanes']
    assert result['planned_updates'] > 0
    assert result['applied_updates'] == 0
    assert Client.query.filter_by(id=3).first().priority == 40


def test_lane_audit_execute_repairs(app):
    seed_clients()
    Client.query.filter_by(id=3).update({Client.priority: 40})
    db.session.commit()

    result = lane_audit(execute=True)

    assert result['applied_updates'] == result['planned_updates']
    snapshot = [c.to_dict() for c in Client.query.all()]
    assert LaneAuditEngine.find_lane_violations(snapshot)['lanes'] == {}


def test_lane_audit_healthy_board(app):
    seed_clients()

    result = lane_audit(execute=True)

    assert result['lanes'] == {}
    assert result['planned_updates'] == 0
    assert result['applied_updates'] == 0
