"""Token management endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from tokengate.api.deps import build_context, get_gateway, parse_as, respond
from tokengate.schemas.token import (
    RemovedResponse,
    TokenCreatedResponse,
    TokenFilter,
    TokenGenerateRequest,
)
from tokengate.services.context import GatewayResponse, RequestContext, RouteSpec
from tokengate.services.gateway import Gateway
from tokengate.services.permissions import TOKENS_GENERATE, TOKENS_LIST

router = APIRouter(prefix="/tokens", tags=["tokens"])

GENERATE_ROUTE = RouteSpec("generate", (TOKENS_GENERATE,))
INVALIDATE_ROUTE = RouteSpec("invalidate", (TOKENS_GENERATE,))
LIST_ROUTE = RouteSpec("list_tokens", (TOKENS_GENERATE, TOKENS_LIST))


@router.post("/{user}", status_code=201)
async def generate_token(
    user: str,
    ctx: RequestContext = Depends(build_context),
    gateway: Gateway = Depends(get_gateway),
) -> JSONResponse:
    """Issue a token for ``user``, replacing any token they already hold."""

    async def operation(ctx: RequestContext) -> GatewayResponse:
        body = parse_as(TokenGenerateRequest, ctx.payload or {})
        result = await gateway.lifecycle.generate(
            ctx.claims or {}, user, body.scope, body.validity, context=ctx
        )
        return GatewayResponse(201, TokenCreatedResponse(**result).to_json())

    return respond(await gateway.pipeline.process(ctx, GENERATE_ROUTE, operation))


@router.delete("/{user}")
async def invalidate_tokens(
    user: str,
    ctx: RequestContext = Depends(build_context),
    gateway: Gateway = Depends(get_gateway),
) -> JSONResponse:
    """Revoke every token held by ``user``."""

    async def operation(ctx: RequestContext) -> GatewayResponse:
        result = await gateway.lifecycle.invalidate(user, context=ctx)
        return GatewayResponse(200, RemovedResponse(removed_count=result["removedCount"]).to_json())

    return respond(await gateway.pipeline.process(ctx, INVALIDATE_ROUTE, operation))


@router.get("")
async def list_tokens(
    ctx: RequestContext = Depends(build_context),
    gateway: Gateway = Depends(get_gateway),
) -> JSONResponse:
    """List issued tokens, optionally filtered by ``user`` and ``status``."""

    async def operation(ctx: RequestContext) -> GatewayResponse:
        filters = parse_as(TokenFilter, ctx.query).as_filter()
        return GatewayResponse(200, await gateway.lifecycle.list_tokens(filters))

    return respond(await gateway.pipeline.process(ctx, LIST_ROUTE, operation))
