"""Audit log endpoint."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from tokengate.api.deps import build_context, get_gateway, parse_as, respond
from tokengate.schemas.audit import AuditLogFilter
from tokengate.services.context import GatewayResponse, RequestContext, RouteSpec
from tokengate.services.gateway import Gateway
from tokengate.services.permissions import GENERAL_LOGS

router = APIRouter(prefix="/logs", tags=["logs"])

# Reading the trail is not itself recorded
LIST_LOGS_ROUTE = RouteSpec("list_logs", (GENERAL_LOGS,), audited=False)


@router.get("")
async def list_logs(
    ctx: RequestContext = Depends(build_context),
    gateway: Gateway = Depends(get_gateway),
) -> JSONResponse:
    """List audit entries, newest first.

    Query parameters: type, user, method, endpoint, remoteAddress.
    """

    async def operation(ctx: RequestContext) -> GatewayResponse:
        filters = parse_as(AuditLogFilter, ctx.query).as_filter()
        return GatewayResponse(200, await gateway.lifecycle.list_logs(filters, newest_first=True))

    return respond(await gateway.pipeline.process(ctx, LIST_LOGS_ROUTE, operation))
