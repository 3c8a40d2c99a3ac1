"""Error translation at the client boundary."""

import logging

from tokengate.errors import GatewayError
from tokengate.schemas.audit import AuditLogEntry, AuditType
from tokengate.services.audit import AuditLogger
from tokengate.services.context import GatewayResponse, RequestContext

logger = logging.getLogger(__name__)


class ErrorTranslator:
    """Turns a pipeline failure into one client response and one audit entry."""

    def __init__(self, audit: AuditLogger):
        self._audit = audit

    def audit_entry(self, ctx: RequestContext, error: GatewayError) -> AuditLogEntry:
        spec = error.spec
        return AuditLogEntry(
            type=AuditType.ERROR,
            user=ctx.requester,
            remote_address=ctx.remote_address,
            raw_authorization_header=ctx.authorization,
            method=ctx.method,
            endpoint=ctx.endpoint,
            payload=ctx.payload,
            info={
                "kind": error.kind.value,
                "status": spec.status,
                "code": spec.code,
                "message": spec.message,
                "detail": error.detail,
                "scope": ctx.requester_scope,
            },
        )

    def handle(self, ctx: RequestContext, error: GatewayError) -> GatewayResponse:
        spec = error.spec
        scope = ", ".join(ctx.requester_scope) or "Unknown Scope"
        log = logger.error if spec.status >= 500 else logger.warning
        log(
            f"{error.kind.value}: {ctx.method} {ctx.endpoint} accessed by {ctx.requester} "
            f"from {ctx.remote_address or 'unknown'} using {scope} ({error.detail})",
            extra={
                "event": "rejected",
                "kind": error.kind.value,
                "requester": ctx.requester,
                "endpoint": ctx.endpoint,
                "method": ctx.method,
                "remote_address": ctx.remote_address,
            },
        )
        self._audit.record(self.audit_entry(ctx, error))
        return GatewayResponse(status_code=spec.status, body=spec.envelope())
