"""Authentication and authorization pipeline.

Every protected request runs the same ordered stages:

    authenticate -> confirm liveness -> validate -> authorize -> audit -> dispatch

Each stage returns ``None`` to continue or a ``GatewayError`` value to stop.
The first error short-circuits the remaining stages and is handed to the
ErrorTranslator, so no later stage has side effects for a rejected request.
"""

import re
from collections.abc import Iterable

from pydantic import ValidationError

from tokengate.core.logging import get_logger
from tokengate.errors import (
    GatewayError,
    InternalError,
    InvalidPayloadError,
    JsonWebTokenError,
    MalformedBodyError,
    SignatureError,
    SignatureFailure,
    TokenExpiredError,
)
from tokengate.schemas.audit import AuditLogEntry, AuditType
from tokengate.schemas.token import TokenClaims
from tokengate.services.audit import AuditLogger
from tokengate.services.codec import TokenCodec
from tokengate.services.context import (
    GatewayResponse,
    Operation,
    PipelineState,
    RequestContext,
    RouteSpec,
)
from tokengate.services.errors import ErrorTranslator
from tokengate.services.permissions import GENERAL_ACCESS, PermissionEvaluator
from tokengate.store.base import TokenStore

logger = get_logger("pipeline")

# Three base64url segments: header.payload.signature
BEARER_RE = re.compile(r"^Bearer ([A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+)$")


class AuthPipeline:
    """Runs a request through the gate before handing it to its operation."""

    def __init__(
        self,
        codec: TokenCodec,
        store: TokenStore,
        audit: AuditLogger,
        translator: ErrorTranslator,
        evaluator: PermissionEvaluator | None = None,
        global_permissions: Iterable[str] = (GENERAL_ACCESS,),
    ):
        self._codec = codec
        self._store = store
        self._audit = audit
        self._translator = translator
        self._evaluator = evaluator or PermissionEvaluator()
        self.global_permissions = tuple(global_permissions)

    async def process(
        self, ctx: RequestContext, route: RouteSpec, operation: Operation
    ) -> GatewayResponse:
        """Run every stage in order and return the client response."""
        stages = (
            (self.authenticate, PipelineState.AUTHENTICATED),
            (self.confirm_liveness, None),
            (self.validate, PipelineState.VALIDATED),
            (self.authorize, PipelineState.AUTHORIZED),
            (self.record_request, PipelineState.AUDITED),
        )
        for stage, next_state in stages:
            error = await stage(ctx, route)
            if error is not None:
                return self.reject(ctx, error)
            if next_state is not None:
                ctx.state = next_state

        try:
            response = await operation(ctx)
        except GatewayError as e:
            return self.reject(ctx, e)
        except Exception as e:
            logger.exception(f"Operation {route.name} failed")
            return self.reject(ctx, InternalError(f"{route.name}: {type(e).__name__}: {e}"))

        ctx.state = PipelineState.DISPATCHED
        return response

    def reject(self, ctx: RequestContext, error: GatewayError) -> GatewayResponse:
        ctx.state = PipelineState.REJECTED
        return self._translator.handle(ctx, error)

    async def authenticate(self, ctx: RequestContext, route: RouteSpec) -> GatewayError | None:
        match = BEARER_RE.match(ctx.authorization or "")
        if not match:
            return InvalidPayloadError("Authorization header is not a Bearer token")

        token = match.group(1)
        try:
            claims = self._codec.verify(token)
        except SignatureError as e:
            if e.subkind is SignatureFailure.EXPIRED:
                return TokenExpiredError(e.detail)
            return JsonWebTokenError(e.detail)

        ctx.token = token
        ctx.claims = claims
        return None

    async def confirm_liveness(self, ctx: RequestContext, route: RouteSpec) -> GatewayError | None:
        """Reject correctly signed tokens that were revoked or replaced."""
        claims = ctx.claims or {}
        user = claims.get("id")
        scope = claims.get("scope")
        if not isinstance(user, str) or not isinstance(scope, list):
            # Left for structural validation to report
            return None

        try:
            record = await self._store.find_enabled_token(user, scope)
        except GatewayError as e:
            return e
        if record is None:
            return JsonWebTokenError(f"No enabled token for {user} with this scope")
        if record.token_string != ctx.token:
            return JsonWebTokenError(f"Token for {user} has been replaced")
        return None

    async def validate(self, ctx: RequestContext, route: RouteSpec) -> GatewayError | None:
        try:
            TokenClaims.model_validate(ctx.claims or {})
        except ValidationError as e:
            return InvalidPayloadError(f"Token claims: {e.errors()[0]['msg']}")

        if ctx.body_error is not None:
            return MalformedBodyError(ctx.body_error)
        if ctx.payload is not None and not isinstance(ctx.payload, dict):
            return InvalidPayloadError("Request body must be a JSON object")
        return None

    async def authorize(self, ctx: RequestContext, route: RouteSpec) -> GatewayError | None:
        granted = ctx.requester_scope
        return self._evaluator.enforce(self.global_permissions, granted) or self._evaluator.enforce(
            route.permissions, granted
        )

    async def record_request(self, ctx: RequestContext, route: RouteSpec) -> GatewayError | None:
        if route.audited:
            self._audit.record(
                AuditLogEntry(
                    type=AuditType.REQUEST,
                    user=ctx.requester,
                    remote_address=ctx.remote_address,
                    raw_authorization_header=ctx.authorization,
                    method=ctx.method,
                    endpoint=ctx.endpoint,
                    payload=ctx.payload,
                    info={"route": route.name, "scope": ctx.requester_scope},
                )
            )
        return None
