"""Token lifecycle operations: bootstrap, generate, invalidate and listings."""

from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from tokengate.core.logging import get_logger
from tokengate.errors import InvalidPayloadError, NoDataAvailableError
from tokengate.schemas.audit import AuditLogEntry, AuditType
from tokengate.schemas.token import TokenClaims, TokenRecord, TokenStatus
from tokengate.services.audit import AuditLogger
from tokengate.services.codec import TokenCodec
from tokengate.services.context import RequestContext
from tokengate.store.base import TokenStore

logger = get_logger("lifecycle")

ADMIN_USER = "admin"


class TokenLifecycleManager:
    """Issues, revokes and lists tokens.

    Every issued token is upserted keyed by its user, so a user holds at
    most one token and generating again replaces the previous one.
    """

    def __init__(
        self,
        codec: TokenCodec,
        store: TokenStore,
        audit: AuditLogger,
        admin_scope: Iterable[str],
        bootstrap_validity: str = "10 minutes",
        clock: Callable[[], datetime] | None = None,
    ):
        self._codec = codec
        self._store = store
        self._audit = audit
        self.admin_scope = list(admin_scope)
        self.bootstrap_validity = bootstrap_validity
        self._clock = clock or (lambda: datetime.now(UTC))

    async def _issue(
        self, user: str, scope: list[str], validity: str | int, authority: str
    ) -> TokenRecord:
        try:
            claims = TokenClaims(id=user, scope=scope, validity=validity)
        except ValidationError as e:
            raise InvalidPayloadError(f"Token claims: {e.errors()[0]['msg']}") from e

        issued_at = self._clock()
        token = self._codec.sign(claims.model_dump(), issued_at=issued_at)
        record = TokenRecord(
            user=user,
            token_string=token,
            scope=claims.scope,
            validity=str(validity),
            status=TokenStatus.ENABLED,
            authority=authority,
            issued_at=issued_at,
            expires_at=self._codec.expiry_for(validity, issued_at),
        )
        return await self._store.upsert_token(record, match={"user": user})

    def _record_operation(
        self, requester: str, message: str, context: RequestContext | None, **info: Any
    ) -> None:
        self._audit.record(
            AuditLogEntry(
                type=AuditType.OPERATION,
                user=requester,
                remote_address=context.remote_address if context else "",
                raw_authorization_header=context.authorization if context else "",
                method=context.method if context else "",
                endpoint=context.endpoint if context else "",
                payload=context.payload if context else None,
                info={"message": message, **info},
            )
        )

    async def bootstrap_admin(self) -> TokenRecord:
        """Issue (or replace) the short-lived admin token."""
        record = await self._issue(
            ADMIN_USER, self.admin_scope, self.bootstrap_validity, authority=ADMIN_USER
        )
        message = (
            f"Bootstrap admin token valid for {self.bootstrap_validity} "
            f"with: {', '.join(record.scope)}"
        )
        logger.info(message, extra={"event": "bootstrap", "requester": ADMIN_USER})
        logger.debug(f"Admin token: {record.token_string}")
        self._record_operation(ADMIN_USER, message, None, target=ADMIN_USER)
        return record

    async def generate(
        self,
        issuer_claims: Mapping[str, Any],
        user: str,
        scope: Any,
        validity: str | int | None = None,
        context: RequestContext | None = None,
    ) -> dict[str, str]:
        issuer = str(issuer_claims.get("id", ""))
        if validity is None:
            validity = self._codec.default_validity
        record = await self._issue(user, scope, validity, authority=issuer)

        message = (
            f"{issuer} generated a {validity} valid token for {user} "
            f"with: {', '.join(record.scope)}"
        )
        logger.info(message, extra={"event": "generate", "requester": issuer})
        self._record_operation(issuer, message, context, target=user)
        return {"token": record.token_string}

    async def invalidate(self, user: str, context: RequestContext | None = None) -> dict[str, int]:
        removed = await self._store.remove_tokens({"user": user})

        requester = context.requester if context else ADMIN_USER
        message = f"{requester} invalidated {removed} token(s) of {user}"
        logger.info(message, extra={"event": "invalidate", "requester": requester})
        self._record_operation(requester, message, context, target=user, removedCount=removed)
        return {"removedCount": removed}

    async def list_tokens(self, filters: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        records = await self._store.list_tokens(filters or None)
        if filters and not records:
            raise NoDataAvailableError(f"No tokens match {dict(filters)}")
        return [record.to_json() for record in records]

    async def list_logs(
        self, filters: Mapping[str, Any] | None = None, newest_first: bool = True
    ) -> list[dict[str, Any]]:
        entries = await self._store.list_audit_logs(filters or None, newest_first=newest_first)
        if filters and not entries:
            raise NoDataAvailableError(f"No audit entries match {dict(filters)}")
        return [entry.to_json() for entry in entries]

    async def purge_expired(self) -> int:
        """Delete expired token rows. Returns the number removed."""
        removed = await self._store.remove_expired_tokens(self._clock())
        if removed:
            logger.info(f"Purged {removed} expired token(s)")
        return removed
