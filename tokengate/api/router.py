"""tokengate API Router - aggregates all gated routes."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from tokengate.api import logs, tokens
from tokengate.api.deps import build_context, get_gateway, respond
from tokengate.errors import NoDataAvailableError
from tokengate.services.context import GatewayResponse, RequestContext, RouteSpec
from tokengate.services.gateway import Gateway

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]

# Unknown paths still pass the global gate before answering
UNKNOWN_ROUTE = RouteSpec("unknown")

api_router = APIRouter()
api_router.include_router(tokens.router)
api_router.include_router(logs.router)


@api_router.api_route("/{path:path}", methods=ALL_METHODS, include_in_schema=False)
async def unknown_route(
    path: str,
    ctx: RequestContext = Depends(build_context),
    gateway: Gateway = Depends(get_gateway),
) -> JSONResponse:
    async def operation(ctx: RequestContext) -> GatewayResponse:
        raise NoDataAvailableError(f"No route for {ctx.method} /{path}")

    return respond(await gateway.pipeline.process(ctx, UNKNOWN_ROUTE, operation))
