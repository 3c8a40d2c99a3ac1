"""Audit Logger Service - fire-and-forget writes to the audit trail."""

import asyncio
import logging

from tokengate.errors import StoreError
from tokengate.schemas.audit import AuditLogEntry
from tokengate.store.base import TokenStore

logger = logging.getLogger(__name__)


class AuditLogger:
    """Writes audit entries without holding up the caller.

    Each entry is persisted on its own task. A failed write is logged and
    dropped: audit problems never change the response a client receives.
    """

    # Maximum concurrent write tasks to prevent unbounded task creation
    MAX_PENDING_WRITES = 1000

    def __init__(self, store: TokenStore):
        self._store = store
        self._pending: set[asyncio.Task] = set()
        self.dropped = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    def record(self, entry: AuditLogEntry) -> None:
        """Schedule ``entry`` for persistence and return immediately."""
        if len(self._pending) >= self.MAX_PENDING_WRITES:
            self.dropped += 1
            logger.warning(
                f"Audit write limit reached ({self.MAX_PENDING_WRITES}), "
                f"dropping {entry.type.value} entry for {entry.endpoint}"
            )
            return

        task = asyncio.create_task(self._write(entry))
        # Strong reference until done; the event loop only keeps weak ones
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write(self, entry: AuditLogEntry) -> None:
        try:
            await self._store.append_audit_log(entry)
        except StoreError as e:
            self.dropped += 1
            logger.error(f"Audit entry not persisted ({entry.type.value} {entry.endpoint}): {e}")
        except Exception:
            self.dropped += 1
            logger.exception(f"Unexpected error persisting audit entry for {entry.endpoint}")

    async def flush(self) -> None:
        """Wait for all scheduled writes to finish."""
        while self._pending:
            tasks = list(self._pending)
            await asyncio.gather(*tasks, return_exceptions=True)
            self._pending.difference_update(tasks)
