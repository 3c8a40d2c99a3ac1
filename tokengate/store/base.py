"""Abstract persistence interface for issued tokens and audit entries."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from tokengate.schemas.audit import AuditLogEntry
from tokengate.schemas.token import TokenRecord


class TokenStore(ABC):
    """Persistence operations the gateway depends on.

    Implementations must make every call individually atomic: no operation
    spans more than one transaction, so a request cancelled mid-flight
    leaves the store consistent and any call can be retried.

    Failures to reach the backend are raised as ``StoreError``.
    """

    @abstractmethod
    async def upsert_token(
        self, record: TokenRecord, match: Mapping[str, Any] | None = None
    ) -> TokenRecord:
        """Insert ``record``, or atomically replace the record matching ``match``.

        Concurrent upserts with the same ``match`` converge on the last writer.
        """

    @abstractmethod
    async def find_enabled_token(self, user: str, scope: list[str]) -> TokenRecord | None:
        """Return the enabled token of ``user`` carrying exactly ``scope``."""

    @abstractmethod
    async def remove_tokens(self, filters: Mapping[str, Any]) -> int:
        """Delete matching tokens.

        Returns the number removed; raises ``NothingToRemoveError`` when zero.
        """

    @abstractmethod
    async def list_tokens(self, filters: Mapping[str, Any] | None = None) -> list[TokenRecord]:
        """List matching tokens ordered by issue time."""

    @abstractmethod
    async def remove_expired_tokens(self, now: datetime) -> int:
        """Delete tokens whose expiry is before ``now``. Returns count removed."""

    @abstractmethod
    async def append_audit_log(self, entry: AuditLogEntry) -> None:
        """Persist one audit entry."""

    @abstractmethod
    async def list_audit_logs(
        self,
        filters: Mapping[str, Any] | None = None,
        newest_first: bool = True,
    ) -> list[AuditLogEntry]:
        """List matching audit entries ordered by time."""

    async def close(self) -> None:
        """Release backend resources."""
        return None
