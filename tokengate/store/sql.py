"""PostgreSQL token store on async SQLAlchemy."""

from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import delete, desc, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from tokengate.core.config import Settings
from tokengate.core.database import create_engine, create_session_maker, init_models
from tokengate.core.logging import get_logger
from tokengate.errors import NothingToRemoveError, StoreError
from tokengate.models import AuditLog, IssuedToken
from tokengate.schemas.audit import AuditLogEntry
from tokengate.schemas.token import TokenRecord
from tokengate.store.base import TokenStore

logger = get_logger("store.sql")

# Columns with a unique constraint, usable as an upsert match key
UPSERT_KEYS = frozenset({"user"})


def _conditions(model: type, filters: Mapping[str, Any] | None) -> list[Any]:
    conditions = []
    for key, value in (filters or {}).items():
        column = getattr(model, key, None)
        if column is None:
            raise ValueError(f"Unknown filter field for {model.__name__}: {key}")
        if isinstance(value, Enum):
            value = value.value
        conditions.append(column == value)
    return conditions


class SQLTokenStore(TokenStore):
    """Token store backed by the ``tokens`` and ``audit_logs`` tables.

    Every method opens its own session and commits before returning.
    """

    def __init__(self, engine: AsyncEngine):
        self._engine = engine
        self._session_maker = create_session_maker(engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SQLTokenStore":
        return cls(create_engine(settings))

    async def create_tables(self) -> None:
        await init_models(self._engine)

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_maker() as session:
                async with session.begin():
                    yield session
        except IntegrityError as e:
            logger.warning(f"{operation} rejected by constraint: {e.orig}")
            raise StoreError(f"{operation} violates a constraint") from e
        except (SQLAlchemyError, OSError) as e:
            logger.exception(f"{operation} failed")
            raise StoreError(f"{operation} failed: {e}") from e

    async def upsert_token(
        self, record: TokenRecord, match: Mapping[str, Any] | None = None
    ) -> TokenRecord:
        values = record.model_dump(mode="python")
        values["status"] = record.status.value

        if match is None:
            stmt = pg_insert(IssuedToken).values(**values)
        else:
            if not set(match) <= UPSERT_KEYS:
                raise ValueError(f"Upsert match keys must be among {sorted(UPSERT_KEYS)}")
            if any(values[key] != value for key, value in match.items()):
                raise ValueError("Upsert match must agree with the record being written")
            # ON CONFLICT makes find-and-replace a single atomic statement
            stmt = pg_insert(IssuedToken).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=[IssuedToken.user],
                set_={key: value for key, value in values.items() if key != "user"},
            )

        async with self._transaction("upsert_token") as session:
            result = await session.execute(stmt.returning(IssuedToken))
            return result.scalar_one().to_record()

    async def find_enabled_token(self, user: str, scope: list[str]) -> TokenRecord | None:
        async with self._transaction("find_enabled_token") as session:
            result = await session.execute(
                select(IssuedToken).where(
                    IssuedToken.user == user,
                    IssuedToken.status == "enabled",
                )
            )
            token = result.scalar_one_or_none()
            if token is None or list(token.scope) != list(scope):
                return None
            return token.to_record()

    async def remove_tokens(self, filters: Mapping[str, Any]) -> int:
        async with self._transaction("remove_tokens") as session:
            result: CursorResult[Any] = await session.execute(  # type: ignore[assignment]
                delete(IssuedToken).where(*_conditions(IssuedToken, filters))
            )
            removed = result.rowcount
        if removed == 0:
            raise NothingToRemoveError(f"No tokens match {dict(filters)}")
        return removed

    async def list_tokens(self, filters: Mapping[str, Any] | None = None) -> list[TokenRecord]:
        async with self._transaction("list_tokens") as session:
            result = await session.execute(
                select(IssuedToken)
                .where(*_conditions(IssuedToken, filters))
                .order_by(IssuedToken.issued_at)
            )
            return [token.to_record() for token in result.scalars().all()]

    async def remove_expired_tokens(self, now: datetime) -> int:
        async with self._transaction("remove_expired_tokens") as session:
            result: CursorResult[Any] = await session.execute(  # type: ignore[assignment]
                delete(IssuedToken).where(IssuedToken.expires_at < now)
            )
            return result.rowcount

    async def append_audit_log(self, entry: AuditLogEntry) -> None:
        async with self._transaction("append_audit_log") as session:
            session.add(AuditLog.from_entry(entry))

    async def list_audit_logs(
        self,
        filters: Mapping[str, Any] | None = None,
        newest_first: bool = True,
    ) -> list[AuditLogEntry]:
        order = desc(AuditLog.time) if newest_first else AuditLog.time
        async with self._transaction("list_audit_logs") as session:
            result = await session.execute(
                select(AuditLog).where(*_conditions(AuditLog, filters)).order_by(order)
            )
            return [log.to_entry() for log in result.scalars().all()]

    async def close(self) -> None:
        await self._engine.dispose()
