"""
Service layer for client reordering.
Runs the pure engine against the client store inside one lock and one transaction.
"""
from typing import Optional, List, Dict

from shiptivity.clients.engine import (
    ClientReorderRequest,
    ClientUpdate,
    LaneAuditEngine,
    ReorderingEngine,
)
from shiptivity.clients.store import ClientStore
from shiptivity.logging_config import OperationContext, get_logger
from shiptivity.reorder_lock import ReorderLockManager, reorder_lock_manager

logger = get_logger(__name__)


class ReorderError(Exception):
    """A reorder could not be applied; nothing from it was committed."""


class ClientNotFoundError(ReorderError):
    """The target client is not on the board."""

    def __init__(self, client_id):
        super().__init__(f"Client {client_id} not found")
        self.client_id = client_id


class ReorderService:
    """Applies lane/priority changes while keeping every lane ranked 1..N."""

    def __init__(self, store: Optional[ClientStore] = None,
                 lock_manager: Optional[ReorderLockManager] = None,
                 lock_timeout: Optional[float] = None):
        self.store = store if store is not None else ClientStore()
        self.lock_manager = lock_manager if lock_manager is not None else reorder_lock_manager
        self.lock_timeout = lock_timeout

    def snapshot(self, status: Optional[str] = None) -> List[Dict]:
        return [client.to_dict() for client in self.store.fetch_all(status=status)]

    def reorder(self, client_id: int, status: Optional[str] = None,
                priority: Optional[int] = None) -> List[Dict]:
        """
        Move a client to a new lane and/or priority and shift its neighbours.

        Args:
            client_id: Target client
            status: New lane, or None to stay in the current one
            priority: New priority, or None (bottom of the new lane on a lane change)

        Returns:
            Full board snapshot after the change

        Raises:
            ClientNotFoundError: If the client disappeared before the lock was taken
            ReorderError: If any store write failed (the reorder is rolled back)
            ReorderLockTimeout: If another reorder held the lock too long
        """
        request = ClientReorderRequest(client_id=client_id, status=status, priority=priority)

        with self.lock_manager.acquire_reorder_lock(f"reorder:{client_id}", self.lock_timeout):
            with OperationContext("reorder", client_id=client_id, status=status, priority=priority):
                try:
                    clients = [c.to_dict() for c in self.store.fetch_all(for_update=True)]
                    if ReorderingEngine.find_client(clients, client_id) is None:
                        raise ClientNotFoundError(client_id)

                    updates = ReorderingEngine.calculate_updates(request, clients)
                    self._apply(updates)
                    self.store.commit()
                except Exception:
                    self.store.rollback()
                    raise

                logger.info("Reorder applied", client_id=client_id, updates=len(updates))

            # Read before releasing so a queued reorder can't leak into this result
            return self.snapshot()

    def audit_lanes(self) -> Dict:
        """Read-only report of lanes that are not ranked 1..N."""
        return LaneAuditEngine.find_lane_violations(self.snapshot())

    def repair_lanes(self) -> List[ClientUpdate]:
        """Renumber broken lanes to 1..N in one transaction. Returns the applied updates."""
        with self.lock_manager.acquire_reorder_lock("repair_lanes", self.lock_timeout):
            with OperationContext("repair_lanes"):
                try:
                    clients = [c.to_dict() for c in self.store.fetch_all(for_update=True)]
                    updates = LaneAuditEngine.compact_lanes(clients)
                    self._apply(updates)
                    self.store.commit()
                except Exception:
                    self.store.rollback()
                    raise
        return updates

    def _apply(self, updates: List[ClientUpdate]):
        for update in updates:
            ok = self.store.update_status_and_priority(
                update.client_id, status=update.status, priority=update.priority
            )
            if not ok:
                logger.error(
                    "Client update matched no row",
                    client_id=update.client_id,
                    status=update.status,
                    priority=update.priority,
                )
                raise ReorderError(f"Failed to update client {update.client_id}")
