"""Tests for the PostgreSQL token store.

Skipped unless PostgreSQL is reachable (TEST_DATABASE_URL or testcontainers).
"""

import asyncio
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

import tokengate.models  # noqa: F401
from tokengate.core.database import Base
from tokengate.errors import NothingToRemoveError, StoreError
from tokengate.schemas.audit import AuditLogEntry, AuditType
from tokengate.schemas.token import TokenRecord, TokenStatus
from tokengate.store.sql import SQLTokenStore

NOW = datetime(2030, 1, 1, tzinfo=UTC)


def make_record(user: str = "alice", scope=None, token: str = "a.b.c", **overrides) -> TokenRecord:
    values = {
        "user": user,
        "token_string": token,
        "scope": scope or ["General.Access"],
        "validity": "1 hour",
        "authority": "admin",
        "issued_at": NOW,
        "expires_at": NOW + timedelta(hours=1),
    }
    values.update(overrides)
    return TokenRecord(**values)


@pytest_asyncio.fixture
async def store(postgres_url):
    engine = create_async_engine(postgres_url, poolclass=NullPool)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
    except (OSError, SQLAlchemyError) as e:
        await engine.dispose()
        pytest.skip(f"PostgreSQL not available: {e}")

    sql_store = SQLTokenStore(engine)
    yield sql_store

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await sql_store.close()


class TestSQLTokens:
    @pytest.mark.asyncio
    async def test_insert_and_find(self, store):
        stored = await store.upsert_token(make_record())

        found = await store.find_enabled_token("alice", ["General.Access"])

        assert stored.user == "alice"
        assert found is not None
        assert found.token_string == "a.b.c"
        assert found.issued_at == NOW

    @pytest.mark.asyncio
    async def test_insert_without_match_rejects_duplicate_user(self, store):
        await store.upsert_token(make_record())
        with pytest.raises(StoreError):
            await store.upsert_token(make_record(token="d.e.f"))

    @pytest.mark.asyncio
    async def test_upsert_by_user_replaces(self, store):
        await store.upsert_token(make_record(), match={"user": "alice"})
        await store.upsert_token(
            make_record(scope=["Tokens.List"], token="d.e.f"), match={"user": "alice"}
        )

        tokens = await store.list_tokens({"user": "alice"})

        assert len(tokens) == 1
        assert tokens[0].scope == ["Tokens.List"]

    @pytest.mark.asyncio
    async def test_concurrent_upserts_converge_on_one_record(self, store):
        await asyncio.gather(
            *(
                store.upsert_token(make_record(token=f"t.{i}.x"), match={"user": "alice"})
                for i in range(10)
            )
        )
        assert len(await store.list_tokens()) == 1

    @pytest.mark.asyncio
    async def test_upsert_rejects_unsupported_match(self, store):
        with pytest.raises(ValueError):
            await store.upsert_token(make_record(), match={"authority": "admin"})
        with pytest.raises(ValueError):
            await store.upsert_token(make_record(), match={"user": "bob"})

    @pytest.mark.asyncio
    async def test_find_requires_enabled_status_and_scope(self, store):
        await store.upsert_token(make_record(status=TokenStatus.DISABLED))
        assert await store.find_enabled_token("alice", ["General.Access"]) is None

        await store.upsert_token(make_record(scope=["Tokens.List"]), match={"user": "alice"})
        assert await store.find_enabled_token("alice", ["General.Access"]) is None

    @pytest.mark.asyncio
    async def test_remove_tokens(self, store):
        await store.upsert_token(make_record())
        assert await store.remove_tokens({"user": "alice"}) == 1
        with pytest.raises(NothingToRemoveError):
            await store.remove_tokens({"user": "alice"})

    @pytest.mark.asyncio
    async def test_remove_expired_tokens(self, store):
        await store.upsert_token(make_record("alice", expires_at=NOW - timedelta(seconds=1)))
        await store.upsert_token(make_record("bob"))

        assert await store.remove_expired_tokens(NOW) == 1
        assert [r.user for r in await store.list_tokens()] == ["bob"]


class TestSQLAuditLogs:
    @pytest.mark.asyncio
    async def test_append_and_list_newest_first(self, store):
        for minutes in (0, 2, 1):
            await store.append_audit_log(
                AuditLogEntry(
                    type=AuditType.REQUEST,
                    user=f"user-{minutes}",
                    time=NOW + timedelta(minutes=minutes),
                    payload={"scope": ["General.Access"]},
                    info={"route": "generate"},
                )
            )

        entries = await store.list_audit_logs()

        assert [e.user for e in entries] == ["user-2", "user-1", "user-0"]
        assert entries[0].payload == {"scope": ["General.Access"]}
        assert entries[0].info == {"route": "generate"}

    @pytest.mark.asyncio
    async def test_filter_by_type(self, store):
        await store.append_audit_log(AuditLogEntry(type=AuditType.REQUEST, user="alice"))
        await store.append_audit_log(AuditLogEntry(type=AuditType.ERROR, user="alice"))

        errors = await store.list_audit_logs({"type": AuditType.ERROR})

        assert [e.type for e in errors] == [AuditType.ERROR]
