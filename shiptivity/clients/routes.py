from flask import current_app, jsonify, request

from shiptivity.clients import clients_bp
from shiptivity.clients.engine import ClientValidationEngine
from shiptivity.clients.service import ClientNotFoundError, ReorderService
from shiptivity.clients.store import ClientStore
from shiptivity.logging_config import get_logger
from shiptivity.models import db
from shiptivity.reorder_lock import ReorderLockTimeout

logger = get_logger(__name__)


def _invalid(message, long_message):
    return jsonify({
        "message": message,
        "long_message": long_message,
    }), 400


def _invalid_id(long_message):
    return _invalid("Invalid id provided.", long_message)


def _reorder_service():
    return ReorderService(
        store=ClientStore(db.session),
        lock_timeout=current_app.config.get("REORDER_LOCK_TIMEOUT_SECONDS"),
    )


def _load_client_id(raw_id):
    """Returns (client_id, error_response)."""
    is_valid, client_id, error_msg = ClientValidationEngine.validate_client_id(raw_id)
    if not is_valid:
        return None, _invalid_id(error_msg)

    if ClientStore(db.session).fetch_by_id(client_id) is None:
        return None, _invalid_id("Cannot find client with that id.")
    return client_id, None


@clients_bp.route("/clients", methods=["GET"])
def list_clients():
    """List all clients, optionally filtered by ?status=backlog|in-progress|complete"""
    status = request.args.get("status")
    if status is not None:
        is_valid, status, error_msg = ClientValidationEngine.validate_status(status)
        if not is_valid:
            return _invalid("Invalid status provided.", error_msg)

    try:
        return jsonify(_reorder_service().snapshot(status=status)), 200
    except Exception as exc:
        logger.error("Error listing clients", error=str(exc), exc_info=True)
        return jsonify({
            "error": "Failed to list clients",
            "details": str(exc)
        }), 500


@clients_bp.route("/clients/<client_id>", methods=["GET"])
def get_client(client_id):
    client_id, error_response = _load_client_id(client_id)
    if error_response:
        return error_response

    return jsonify(ClientStore(db.session).fetch_by_id(client_id).to_dict()), 200


@clients_bp.route("/clients/<client_id>", methods=["PUT"])
def update_client(client_id):
    """
    Move a client to another lane and/or priority.

    Body (JSON, both optional):
        status: 'backlog' | 'in-progress' | 'complete'
        priority: positive integer, 1 = top of the lane

    Without a priority, a lane change puts the client at the bottom of the new
    lane. Every other client in the old and new lanes is shifted so each lane
    stays ranked 1..N. Returns the full list of clients.
    """
    client_id, error_response = _load_client_id(client_id)
    if error_response:
        return error_response

    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return _invalid("Invalid request body.", "Body must be a JSON object.")

    is_valid, status, error_msg = ClientValidationEngine.validate_status(data.get("status"))
    if not is_valid:
        return _invalid("Invalid status provided.", error_msg)

    is_valid, priority, error_msg = ClientValidationEngine.validate_priority(data.get("priority"))
    if not is_valid:
        return _invalid("Invalid priority provided.", error_msg)

    try:
        clients = _reorder_service().reorder(client_id, status=status, priority=priority)
        return jsonify(clients), 200
    except ClientNotFoundError:
        return _invalid_id("Cannot find client with that id.")
    except ReorderLockTimeout as exc:
        logger.warning("Reorder lock timeout", client_id=client_id, error=str(exc))
        return jsonify({
            "error": "Another reorder is in progress, try again",
            "details": str(exc)
        }), 503
    except Exception as exc:
        logger.error("Error updating client", client_id=client_id, error=str(exc), exc_info=True)
        db.session.rollback()
        return jsonify({
            "error": "Failed to update client",
            "details": str(exc)
        }), 500


@clients_bp.route("/lanes/audit", methods=["GET"])
def audit_lanes():
    """Report lanes whose priorities are not exactly 1..N (read-only)."""
    try:
        report = _reorder_service().audit_lanes()
        report["healthy"] = not report["lanes"] and not report["unknown_status"]
        return jsonify(report), 200
    except Exception as exc:
        logger.error("Error auditing lanes", error=str(exc), exc_info=True)
        return jsonify({
            "error": "Failed to audit lanes",
            "details": str(exc)
        }), 500
