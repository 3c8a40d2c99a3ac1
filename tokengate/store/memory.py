"""In-memory token store for tests and single-process development."""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from tokengate.errors import NothingToRemoveError, StoreError
from tokengate.schemas.audit import AuditLogEntry
from tokengate.schemas.token import TokenRecord, TokenStatus
from tokengate.store.base import TokenStore


def _matches(item: Any, filters: Mapping[str, Any] | None) -> bool:
    if not filters:
        return True
    return all(getattr(item, key, None) == value for key, value in filters.items())


class InMemoryTokenStore(TokenStore):
    """Dict-backed store.

    Methods never await between reading and writing, so each call is atomic
    with respect to other coroutines on the same event loop. State is lost
    on restart.
    """

    def __init__(self) -> None:
        self._tokens: dict[str, TokenRecord] = {}
        self._audit_logs: list[AuditLogEntry] = []

    async def upsert_token(
        self, record: TokenRecord, match: Mapping[str, Any] | None = None
    ) -> TokenRecord:
        if match is None:
            if record.user in self._tokens:
                raise StoreError(f"Token for {record.user} already exists")
        else:
            for user, existing in list(self._tokens.items()):
                if _matches(existing, match):
                    del self._tokens[user]
        self._tokens[record.user] = record.model_copy(deep=True)
        return record.model_copy(deep=True)

    async def find_enabled_token(self, user: str, scope: list[str]) -> TokenRecord | None:
        record = self._tokens.get(user)
        if record is None or record.status != TokenStatus.ENABLED:
            return None
        if list(record.scope) != list(scope):
            return None
        return record.model_copy(deep=True)

    async def remove_tokens(self, filters: Mapping[str, Any]) -> int:
        doomed = [user for user, record in self._tokens.items() if _matches(record, filters)]
        if not doomed:
            raise NothingToRemoveError(f"No tokens match {dict(filters)}")
        for user in doomed:
            del self._tokens[user]
        return len(doomed)

    async def list_tokens(self, filters: Mapping[str, Any] | None = None) -> list[TokenRecord]:
        records = [r for r in self._tokens.values() if _matches(r, filters)]
        records.sort(key=lambda r: r.issued_at)
        return [r.model_copy(deep=True) for r in records]

    async def remove_expired_tokens(self, now: datetime) -> int:
        expired = [
            user
            for user, record in self._tokens.items()
            if record.expires_at is not None and record.expires_at < now
        ]
        for user in expired:
            del self._tokens[user]
        return len(expired)

    async def append_audit_log(self, entry: AuditLogEntry) -> None:
        self._audit_logs.append(entry.model_copy(deep=True))

    async def list_audit_logs(
        self,
        filters: Mapping[str, Any] | None = None,
        newest_first: bool = True,
    ) -> list[AuditLogEntry]:
        entries = [e for e in self._audit_logs if _matches(e, filters)]
        # Stable sort keeps insertion order for entries sharing a timestamp
        entries.sort(key=lambda e: e.time, reverse=newest_first)
        return [e.model_copy(deep=True) for e in entries]
