"""Health check endpoints.

- /health is a plain liveness probe
- /healthz reports whether the relay can actually serve requests
"""

import json
from typing import Any

from fastapi import APIRouter, Request, Response

from ai_proxy.app.authz.credentials import resolve_api_key
from ai_proxy.app.config import Settings
from ai_proxy.app.errors import ServiceMisconfiguredError

router = APIRouter()


def check_document_store(settings: Settings) -> tuple[bool, str]:
    """Check document store connection parameters are present.

    Returns:
        (is_ok, status_message)
    """
    if settings.document_store_configured:
        return (True, "configured")
    return (False, "not_configured")


def check_upstream_secret(settings: Settings) -> tuple[bool, str]:
    """Check the upstream API key is present and well-formed.

    Returns:
        (is_ok, status_message)
    """
    try:
        resolve_api_key(settings)
    except ServiceMisconfiguredError:
        return (False, "misconfigured")
    return (True, "configured")


@router.get("/health")
async def health() -> dict[str, str]:
    """Simple health check for Docker/k8s.

    Returns:
        200 OK always (application is running)
    """
    return {"status": "ok"}


@router.get("/healthz", response_model=None)
async def healthz(request: Request) -> dict[str, Any] | Response:
    """Readiness check.

    Checks:
    - Document store connection parameters
    - Upstream API key

    Returns:
        200 with component status if the relay can serve requests
        503 if any component is misconfigured
    """
    settings: Settings = request.app.state.settings

    store_ok, store_status = check_document_store(settings)
    secret_ok, secret_status = check_upstream_secret(settings)

    core_ok = store_ok and secret_ok

    response_body = {
        "status": "ok" if core_ok else "degraded",
        "components": {
            "document_store": store_status,
            "upstream_secret": secret_status,
        },
    }

    if not core_ok:
        return Response(
            content=json.dumps(response_body),
            status_code=503,
            media_type="application/json",
        )

    return response_body
