import threading
import logging
from contextlib import contextmanager
from typing import Optional
from datetime import datetime

logger = logging.getLogger(__name__)


class ReorderLockTimeout(RuntimeError):
    """Raised when a reorder could not enter the lock within its timeout."""


class ReorderLockManager:
    """
    Serializes reorder operations inside this process.

    A reorder reads the board, computes shifts and writes them back; two of
    those interleaving on the same lanes lose updates. Callers queue on the
    lock until the running reorder finishes or their timeout expires.
    """

    def __init__(self, timeout_seconds: int = 30):
        self._lock = threading.RLock()  # Reentrant for the holding thread
        self._state_lock = threading.Lock()
        self._depth = 0
        self._current_operation = None
        self._holder_thread_id = None
        self._acquired_at: Optional[datetime] = None
        self._timeout_seconds = timeout_seconds

    def is_locked(self) -> bool:
        """Check if a reorder is currently running"""
        with self._state_lock:
            return self._depth > 0

    def get_current_operation(self) -> Optional[str]:
        """Get the name of the operation holding the lock"""
        with self._state_lock:
            return self._current_operation if self._depth > 0 else None

    @contextmanager
    def acquire_reorder_lock(self, operation_name: str, timeout_seconds: Optional[float] = None):
        """
        Context manager to acquire the reorder lock

        Args:
            operation_name: Name of the operation acquiring the lock
            timeout_seconds: How long to wait for a running reorder to finish

        Raises:
            ReorderLockTimeout: If the lock could not be acquired in time
        """
        timeout = self._timeout_seconds if timeout_seconds is None else timeout_seconds
        if not self._lock.acquire(timeout=timeout):
            holder = self.get_current_operation()
            logger.warning(
                f"Reorder lock held by '{holder}'. "
                f"Gave up waiting after {timeout}s for '{operation_name}'"
            )
            raise ReorderLockTimeout(f"Reorder lock acquisition timed out after {timeout}s for '{operation_name}'")

        try:
            with self._state_lock:
                if self._depth == 0:
                    self._current_operation = operation_name
                    self._holder_thread_id = threading.get_ident()
                    self._acquired_at = datetime.now()
                    logger.info(f"Reorder lock acquired for operation: {operation_name}")
                else:
                    logger.info(f"Re-entrant reorder lock for operation: {operation_name}")
                self._depth += 1

            yield

        finally:
            with self._state_lock:
                self._depth -= 1
                if self._depth == 0:
                    self._current_operation = None
                    self._holder_thread_id = None
                    self._acquired_at = None
                    logger.info(f"Reorder lock released for operation: {operation_name}")
            self._lock.release()

    def get_status(self) -> dict:
        """Get current status of the lock manager"""
        with self._state_lock:
            acquired_at = self._acquired_at
            return {
                "is_locked": self._depth > 0,
                "current_operation": self._current_operation,
                "timestamp": datetime.now().isoformat(),
                "held_by_thread": self._holder_thread_id,
                "held_for_seconds": (datetime.now() - acquired_at).total_seconds() if acquired_at else 0,
                "timeout_seconds": self._timeout_seconds,
            }


# Global instance - create once and reuse
reorder_lock_manager = ReorderLockManager()
