"""
Seed the clients table with a starter board.

Usage:
    python -m shiptivity.seed            # Seed only if the table is empty
    python -m shiptivity.seed --force    # Wipe existing clients first
"""
import argparse

from sqlalchemy.exc import SQLAlchemyError

from shiptivity.models import db, Client
from shiptivity.clients.engine import LaneAuditEngine
from shiptivity.logging_config import get_logger

logger = get_logger(__name__)

# (name, description, status) in board order; priorities are assigned per lane
SAMPLE_CLIENTS = [
    ("Stark, White and Abbott", "Cloned Optimal Architecture", "in-progress"),
    ("Wiza LLC", "Exclusive Bandwidth-Monitored Implementation", "complete"),
    ("Nolan LLC", "Vision-Oriented 4Thgeneration Graphicaluserinterface", "backlog"),
    ("Thompson PLC", "Streamlined Regional Knowledgeuser", "in-progress"),
    ("Walker-Williamson", "Team-Oriented 6Thgeneration Matrix", "in-progress"),
    ("Boehm and Sons", "Automated Systematic Paradigm", "backlog"),
    ("Runolfsson, Hegmann and Block", "Integrated Transitional Strategy", "backlog"),
    ("Schumm-Labadie", "Operative Heuristic Challenge", "backlog"),
    ("Kohler Group", "Re-Contextualized Multi-Tasking Attitude", "backlog"),
    ("Romaguera Inc", "Managed Foreground Toolset", "backlog"),
    ("Reilly-King", "Future-Proofed Interactive Toolset", "complete"),
    ("Emard, Champlin and Runolfsdottir", "Devolved Needs-Based Capability", "backlog"),
    ("Fritsch, Cronin and Wolff", "Open-Source 3Rdgeneration Website", "complete"),
    ("Borer LLC", "Profit-Focused Incremental Orchestration", "backlog"),
    ("Emmerich-Ankunding", "User-Centric Stable Extranet", "in-progress"),
    ("Willms-Abbott", "Progressive Bandwidth-Monitored Access", "in-progress"),
    ("Brekke PLC", "Intuitive User-Facing Customerloyalty", "complete"),
    ("Bins, Toy and Klocko", "Integrated Assymetric Software", "backlog"),
    ("Hodkiewicz-Hayes", "Programmable Systematic Securedline", "backlog"),
    ("Murphy, Lang and Ferry", "Organized Explicit Access", "backlog"),
]


def build_clients(rows=SAMPLE_CLIENTS):
    """Turn (name, description, status) rows into Client objects ranked 1..N per lane."""
    next_priority = {}
    clients = []
    for client_id, (name, description, status) in enumerate(rows, start=1):
        priority = next_priority.get(status, 1)
        next_priority[status] = priority + 1
        clients.append(Client(
            id=client_id,
            name=name,
            description=description,
            status=status,
            priority=priority,
        ))
    return clients


def seed_clients(rows=SAMPLE_CLIENTS, force=False):
    """
    Insert the starter board.

    Args:
        rows: (name, description, status) tuples in board order
        force: Delete existing clients before seeding

    Returns:
        Number of clients created (0 when the table already had data)
    """
    existing = Client.query.count()
    if existing and not force:
        logger.info("Clients table already populated, skipping seed", existing=existing)
        return 0

    try:
        if existing:
            Client.query.delete()
        clients = build_clients(rows)
        db.session.add_all(clients)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Seeding clients failed", error=str(exc), exc_info=True)
        raise

    report = LaneAuditEngine.find_lane_violations([c.to_dict() for c in clients])
    logger.info("Seeded clients", created=len(clients), lane_violations=len(report["lanes"]))
    return len(clients)


if __name__ == "__main__":
    from shiptivity import create_app

    parser = argparse.ArgumentParser(description="Seed the clients table with a starter board.")
    parser.add_argument("--force", action="store_true", help="Delete existing clients before seeding")
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        db.create_all()
        created = seed_clients(force=args.force)
        print(f"Created {created} clients")
