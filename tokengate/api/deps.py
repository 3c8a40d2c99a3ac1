"""Request plumbing shared by the route modules."""

import json
from typing import Any, TypeVar

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from tokengate.core.request_utils import get_client_ip
from tokengate.errors import InvalidPayloadError
from tokengate.services.context import GatewayResponse, RequestContext
from tokengate.services.gateway import Gateway

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_gateway(request: Request) -> Gateway:
    """Gateway built by create_app and stored on app.state."""
    return request.app.state.gateway


async def build_context(request: Request) -> RequestContext:
    """Capture the raw request for the pipeline.

    The body is parsed here but never validated, so malformed input is
    reported by the pipeline after authentication rather than by FastAPI.
    """
    payload: Any = None
    body_error = None
    body = await request.body()
    if body.strip():
        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            body_error = f"Request body is not valid JSON: {e}"

    return RequestContext(
        method=request.method,
        endpoint=request.url.path,
        remote_address=get_client_ip(request),
        authorization=request.headers.get("Authorization", ""),
        path_params=dict(request.path_params),
        query=dict(request.query_params),
        payload=payload,
        body_error=body_error,
    )


def parse_as(model: type[ModelT], data: Any) -> ModelT:
    """Validate request data, reporting failures as InvalidPayloadError."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        error = e.errors()[0]
        location = ".".join(str(part) for part in error["loc"]) or "body"
        raise InvalidPayloadError(f"{location}: {error['msg']}") from e


def respond(result: GatewayResponse) -> JSONResponse:
    return JSONResponse(status_code=result.status_code, content=result.body)
