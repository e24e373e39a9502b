"""
Client store: the read-all / update-one persistence seam the reorder service writes through.
"""
from typing import List, Optional
from shiptivity.models import db, Client


class ClientStore:
    """SQLAlchemy-backed access to client records.

    Bound to a session (the Flask-SQLAlchemy scoped session by default) so the
    whole reorder shares one transaction until ``commit`` or ``rollback``.
    """

    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    def fetch_all(self, status: Optional[str] = None, for_update: bool = False) -> List[Client]:
        """Full scan ordered by id, optionally limited to one lane.

        ``for_update`` row-locks the result on databases that support it
        (PostgreSQL); SQLite ignores it and serializes writers on its own.
        """
        query = self.session.query(Client)
        if status is not None:
            query = query.filter(Client.status == status)
        if for_update:
            query = query.with_for_update()
        return query.order_by(Client.id).all()

    def fetch_by_id(self, client_id: int) -> Optional[Client]:
        return self.session.query(Client).filter_by(id=client_id).first()

    def update_status_and_priority(self, client_id: int, status: Optional[str] = None,
                                   priority: Optional[int] = None) -> bool:
        """Partial update of one client. Returns False when no row matched."""
        values = {}
        if status is not None:
            values[Client.status] = status
        if priority is not None:
            values[Client.priority] = priority
        if not values:
            return True

        matched = (
            self.session.query(Client)
            .filter(Client.id == client_id)
            .update(values, synchronize_session="evaluate")
        )
        return matched == 1

    def commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()
