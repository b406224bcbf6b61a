"""Relay endpoint - POST/OPTIONS /ai-proxy."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from ai_proxy.app.services.relay import RelayService

router = APIRouter()

RELAY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def get_relay_service(request: Request) -> RelayService:
    """Relay service built once at startup by create_app."""
    return request.app.state.relay_service


@router.api_route("/ai-proxy", methods=RELAY_METHODS, response_model=None)
async def relay(
    request: Request,
    service: Annotated[RelayService, Depends(get_relay_service)],
) -> Response:
    """Authorize the caller and relay the chat request upstream.

    Accepts every method so that non-POST verbs get the relay's own 405 body
    and OPTIONS gets the CORS preflight answer.

    Returns:
        Upstream status and JSON body on success, ``{"error", "message"?, "details"?}``
        otherwise, always with CORS headers
    """
    body = await request.body()
    result = await service.handle(request.method, request.headers, body)

    if result.body is None:
        return Response(content=b"", status_code=result.status_code, headers=result.headers)
    return JSONResponse(content=result.body, status_code=result.status_code, headers=result.headers)
