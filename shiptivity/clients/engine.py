"""
Pure business logic engine for client lane ordering.
Contains no database dependencies - works with plain client dicts
(``{'id', 'status', 'priority', ...}``) and returns the updates to persist.
"""
from typing import Optional, List, Tuple, Dict
from dataclasses import dataclass
from collections import defaultdict
from enum import Enum
import logging
import re

logger = logging.getLogger(__name__)

VALID_STATUSES = ('backlog', 'in-progress', 'complete')

# Largest value a signed 64-bit INTEGER column holds
MAX_CLIENT_ID = 2 ** 63 - 1

DIGITS = re.compile(r"[0-9]+")


class ChangeKind(Enum):
    NO_OP = "no_op"
    PRIORITY_ONLY = "priority_only"
    STATUS_ONLY = "status_only"
    STATUS_AND_PRIORITY = "status_and_priority"


@dataclass
class ClientReorderRequest:
    """Value object representing a requested lane/priority change."""
    client_id: int
    status: Optional[str] = None
    priority: Optional[int] = None


@dataclass(frozen=True)
class ClientUpdate:
    """One store write. ``status`` of None leaves the lane unchanged."""
    client_id: int
    priority: int
    status: Optional[str] = None


class ClientValidationEngine:
    """Validation of raw request values before they reach the reordering engine."""

    @staticmethod
    def validate_client_id(raw_id) -> Tuple[bool, Optional[int], Optional[str]]:
        """
        Validate a client identifier.

        Returns:
            (is_valid, normalized_id, error_message)
        """
        if isinstance(raw_id, bool):
            return False, None, "Id can only be integer."
        if isinstance(raw_id, int):
            normalized = raw_id
        else:
            text = str(raw_id).strip() if raw_id is not None else ''
            if not DIGITS.fullmatch(text):
                return False, None, "Id can only be integer."
            normalized = int(text)

        if not 1 <= normalized <= MAX_CLIENT_ID:
            return False, None, "Id can only be integer."
        return True, normalized, None

    @staticmethod
    def validate_status(status) -> Tuple[bool, Optional[str], Optional[str]]:
        """
        Validate a lane name. None means "not given" and is accepted.

        Returns:
            (is_valid, normalized_status, error_message)
        """
        if status is None:
            return True, None, None

        if status not in VALID_STATUSES:
            return False, None, (
                "Status can only be one of the following: "
                f"[{' | '.join(VALID_STATUSES)}]."
            )
        return True, status, None

    @staticmethod
    def validate_priority(priority) -> Tuple[bool, Optional[int], Optional[str]]:
        """
        Validate a requested priority.
        - None means "not given"
        - Must be a positive integer; 0 is not a rank
        - Integral strings ("3") are accepted, booleans and fractions are not

        Returns:
            (is_valid, normalized_priority, error_message)
        """
        error = "Priority can only be positive integer."
        if priority is None:
            return True, None, None
        if isinstance(priority, bool):
            return False, None, error

        if isinstance(priority, int):
            normalized = priority
        elif isinstance(priority, float):
            if not priority.is_integer():
                return False, None, error
            normalized = int(priority)
        elif isinstance(priority, str) and DIGITS.fullmatch(priority.strip()):
            normalized = int(priority.strip())
        else:
            return False, None, error

        if normalized < 1:
            return False, None, error
        return True, normalized, None


class ReorderingEngine:
    """Pure business logic for lane reordering calculations."""

    @staticmethod
    def find_client(clients: List[Dict], client_id: int) -> Optional[Dict]:
        return next((c for c in clients if c.get('id') == client_id), None)

    @staticmethod
    def lane_members(clients: List[Dict], status: str, exclude_id: Optional[int] = None) -> List[Dict]:
        """Return the clients in a lane sorted by priority, optionally excluding one."""
        members = [
            c for c in clients
            if c.get('status') == status and c.get('id') != exclude_id
        ]
        members.sort(key=lambda c: (c.get('priority'), c.get('id')))
        return members

    @staticmethod
    def clamp_priority(client: Dict, status: Optional[str], priority: Optional[int],
                       clients: List[Dict]) -> Optional[int]:
        """
        Bound a requested priority to the slots the destination lane can hold.

        A move within the lane can reach 1..N; a move into another lane can
        reach 1..N+1 (the new bottom). Anything beyond would open a gap.
        """
        if priority is None:
            return None

        target_status = status if status is not None else client.get('status')
        others = ReorderingEngine.lane_members(clients, target_status, exclude_id=client.get('id'))
        upper = len(others) + 1
        if priority > upper:
            logger.info(
                f"Clamping priority {priority} to {upper} for client {client.get('id')} in lane '{target_status}'"
            )
            return upper
        return priority

    @staticmethod
    def classify_change(client: Dict, status: Optional[str], priority: Optional[int]) -> ChangeKind:
        """Decide which of the four reorder cases a request falls into."""
        status_changed = status is not None and status != client.get('status')
        priority_changed = priority is not None and priority != client.get('priority')

        if status_changed:
            return ChangeKind.STATUS_AND_PRIORITY if priority is not None else ChangeKind.STATUS_ONLY
        if priority_changed:
            return ChangeKind.PRIORITY_ONLY
        return ChangeKind.NO_OP

    @staticmethod
    def _occupants_by_priority(clients: List[Dict], status: str, exclude_id: int) -> Dict[int, List[Dict]]:
        occupants = defaultdict(list)
        for c in ReorderingEngine.lane_members(clients, status, exclude_id=exclude_id):
            occupants[c.get('priority')].append(c)
        return occupants

    @staticmethod
    def _close_gap(clients: List[Dict], status: str, old_priority: int, exclude_id: int) -> List[ClientUpdate]:
        """Pull up every client below a vacated slot in ``status``."""
        return [
            ClientUpdate(c.get('id'), c.get('priority') - 1)
            for c in ReorderingEngine.lane_members(clients, status, exclude_id=exclude_id)
            if c.get('priority') > old_priority
        ]

    @staticmethod
    def handle_priority_change(client: Dict, new_priority: int, clients: List[Dict]) -> List[ClientUpdate]:
        """
        Move a client within its own lane.

        Walks one slot per step from the new priority toward the old one and
        shifts whoever sits there one step toward the vacated slot. Empty
        slots are skipped without ending the walk.
        """
        old_priority = client.get('priority')
        occupants = ReorderingEngine._occupants_by_priority(clients, client.get('status'), client.get('id'))
        updates = []

        # Moving up makes room by pushing neighbours down, and vice versa
        step = 1 if new_priority < old_priority else -1
        current = new_priority
        while current != old_priority:
            for neighbour in occupants.get(current, []):
                updates.append(ClientUpdate(neighbour.get('id'), current + step))
            current += step

        updates.append(ClientUpdate(client.get('id'), new_priority))
        return updates

    @staticmethod
    def handle_status_change(client: Dict, new_status: str, clients: List[Dict]) -> List[ClientUpdate]:
        """Move a client to the bottom of another lane and close the gap it leaves."""
        new_lane = ReorderingEngine.lane_members(clients, new_status, exclude_id=client.get('id'))
        bottom = max((c.get('priority') for c in new_lane), default=0) + 1

        updates = [ClientUpdate(client.get('id'), bottom, new_status)]
        updates.extend(
            ReorderingEngine._close_gap(clients, client.get('status'), client.get('priority'), client.get('id'))
        )
        return updates

    @staticmethod
    def handle_status_and_priority_change(client: Dict, new_status: str, new_priority: int,
                                          clients: List[Dict]) -> List[ClientUpdate]:
        """Insert a client at a given slot of another lane and close the gap it leaves."""
        updates = [
            ClientUpdate(c.get('id'), c.get('priority') + 1)
            for c in ReorderingEngine.lane_members(clients, new_status, exclude_id=client.get('id'))
            if c.get('priority') >= new_priority
        ]
        updates.append(ClientUpdate(client.get('id'), new_priority, new_status))
        updates.extend(
            ReorderingEngine._close_gap(clients, client.get('status'), client.get('priority'), client.get('id'))
        )
        return updates

    @staticmethod
    def calculate_updates(request: ClientReorderRequest, clients: List[Dict]) -> List[ClientUpdate]:
        """
        Calculate all client updates needed for the requested change.

        Args:
            request: ClientReorderRequest value object
            clients: Full board snapshot as dicts

        Returns: Ordered list of ClientUpdate to apply one by one

        Raises:
            KeyError: If the target client is not in the snapshot
        """
        client = ReorderingEngine.find_client(clients, request.client_id)
        if client is None:
            raise KeyError(request.client_id)

        priority = ReorderingEngine.clamp_priority(client, request.status, request.priority, clients)
        kind = ReorderingEngine.classify_change(client, request.status, priority)

        if kind is ChangeKind.PRIORITY_ONLY:
            return ReorderingEngine.handle_priority_change(client, priority, clients)
        if kind is ChangeKind.STATUS_ONLY:
            return ReorderingEngine.handle_status_change(client, request.status, clients)
        if kind is ChangeKind.STATUS_AND_PRIORITY:
            return ReorderingEngine.handle_status_and_priority_change(client, request.status, priority, clients)
        return []

    @staticmethod
    def apply_updates(clients: List[Dict], updates: List[ClientUpdate]) -> List[Dict]:
        """Return a new snapshot with the updates applied in order."""
        by_id = {c.get('id'): dict(c) for c in clients}
        for update in updates:
            row = by_id[update.client_id]
            row['priority'] = update.priority
            if update.status is not None:
                row['status'] = update.status
        return [by_id[c.get('id')] for c in clients]


class LaneAuditEngine:
    """Detection and repair of lanes that lost their 1..N ranking."""

    @staticmethod
    def find_lane_violations(clients: List[Dict]) -> Dict:
        """
        Report every lane whose priorities are not exactly 1..N.

        Returns:
            dict with 'lanes' (lane -> problems) and 'unknown_status' (client ids)
        """
        lanes = {}
        for status in VALID_STATUSES:
            members = ReorderingEngine.lane_members(clients, status)
            count = len(members)
            seen = defaultdict(list)
            for c in members:
                seen[c.get('priority')].append(c.get('id'))

            duplicates = {p: ids for p, ids in seen.items() if len(ids) > 1}
            missing = [p for p in range(1, count + 1) if p not in seen]
            out_of_range = [
                c.get('id') for c in members
                if not isinstance(c.get('priority'), int) or not 1 <= c.get('priority') <= count
            ]

            if duplicates or missing or out_of_range:
                lanes[status] = {
                    'count': count,
                    'duplicates': duplicates,
                    'missing': missing,
                    'out_of_range': out_of_range,
                }

        unknown = [c.get('id') for c in clients if c.get('status') not in VALID_STATUSES]
        return {'lanes': lanes, 'unknown_status': unknown}

    @staticmethod
    def compact_lanes(clients: List[Dict]) -> List[ClientUpdate]:
        """Renumber every lane to 1..N, keeping the current (priority, id) order."""
        updates = []
        for status in VALID_STATUSES:
            for rank, c in enumerate(ReorderingEngine.lane_members(clients, status), start=1):
                if c.get('priority') != rank:
                    updates.append(ClientUpdate(c.get('id'), rank))
        return updates
