"""
Clients Module
Flask Blueprint for the client board: listing clients per status lane and
moving them between lanes and priorities.
"""
from flask import Blueprint

clients_bp = Blueprint("clients", __name__)

from shiptivity.clients import routes  # noqa: E402,F401
