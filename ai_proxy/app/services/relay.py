"""Request relay service.

Runs the full sequence for one inbound request: origin and method checks,
caller authentication, body validation, tenant authorization, credential
resolution, and the single upstream call. The route only adapts HTTP in and
out of this service.
"""

import json
import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from ai_proxy.app.api.auth import Authenticator
from ai_proxy.app.api.cors import CorsPolicy
from ai_proxy.app.authz.credentials import resolve_api_key
from ai_proxy.app.authz.pipeline import AuthorizationPipeline, AuthorizedTenant, FeatureGate
from ai_proxy.app.config import Settings
from ai_proxy.app.db.context import RequestContext
from ai_proxy.app.errors import (
    BadRequestError,
    ForbiddenError,
    MethodNotAllowedError,
    ProxyError,
)
from ai_proxy.app.llm.client import InferenceClient
from ai_proxy.app.llm.prompt import build_analytics_messages
from ai_proxy.app.models.requests import ProxyRequest
from ai_proxy.app.utils.logging import StructuredStepLogger
from ai_proxy.app.utils.metrics import PrometheusRelayMetrics

logger = logging.getLogger(__name__)


@dataclass
class RelayResult:
    """HTTP-level outcome of one relay request. ``body=None`` means empty body."""

    status_code: int
    body: Any
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class UpstreamRequest:
    """What gets sent upstream for an authorized request."""

    model: str
    max_tokens: int
    messages: list[dict[str, Any]]


def parse_request_body(raw: bytes) -> ProxyRequest:
    """Parse and validate the inbound JSON body.

    Raises:
        BadRequestError: Malformed JSON, missing fields, or invalid structure
    """
    try:
        data = json.loads(raw) if raw else None
    except ValueError as e:
        raise BadRequestError("Invalid JSON in request body") from e

    if not isinstance(data, dict):
        raise BadRequestError("Invalid JSON in request body")

    if not (data.get("tenantRef") or data.get("restaurantId")):
        raise BadRequestError("tenantRef is required")

    messages = data.get("messages")
    has_messages = isinstance(messages, list) and len(messages) > 0
    if not has_messages and data.get("analyticsData") is None:
        raise BadRequestError("messages array or analyticsData is required")

    try:
        return ProxyRequest.model_validate(data)
    except ValidationError as e:
        raise BadRequestError(
            "Invalid request body",
            details=e.errors(include_url=False, include_context=False, include_input=False),
        ) from e


class RelayService:
    """Authorizes requests and relays them to the upstream inference API."""

    def __init__(
        self,
        settings: Settings,
        authenticator: Authenticator,
        pipeline: AuthorizationPipeline,
        inference_client: InferenceClient,
        cors: CorsPolicy | None = None,
        gates: Mapping[str, FeatureGate] | None = None,
        metrics: PrometheusRelayMetrics | None = None,
    ) -> None:
        self._settings = settings
        self._authenticator = authenticator
        self._pipeline = pipeline
        self._inference_client = inference_client
        self._cors = cors or CorsPolicy.from_settings(settings)
        # Both variants are gated by the same flag unless configured otherwise
        self._gates = (
            dict(gates) if gates else {"messages": pipeline.gate, "analytics": pipeline.gate}
        )
        self._metrics = metrics or PrometheusRelayMetrics()

    async def handle(self, method: str, headers: Mapping[str, str], body: bytes) -> RelayResult:
        """Handle one inbound request.

        Args:
            method: HTTP method
            headers: Inbound headers (lower-case names)
            body: Raw request body

        Returns:
            RelayResult carrying status, JSON body and CORS headers
        """
        request_id = uuid.uuid4().hex[:12]
        steps = StructuredStepLogger(request_id)

        decision = self._cors.evaluate(headers)
        cors_headers = self._cors.headers_for(decision)

        # Preflight is never rejected; unknown origins get the default allow-origin
        if method.upper() == "OPTIONS":
            return RelayResult(200, None, cors_headers)

        if decision.rejected:
            if self._cors.reject_unknown_origins:
                steps.failed("origin", f"Origin not allowed: {decision.origin}")
                self._metrics.inc_rejection("origin")
                self._metrics.record_request("unknown", "rejected")
                body_out = ForbiddenError("Origin not allowed").to_body()
                return RelayResult(403, body_out, cors_headers)
            logger.warning(
                f"[{request_id}] Unrecognized origin {decision.origin!r}, "
                f"answering with default origin {decision.allow_origin}"
            )

        if method.upper() != "POST":
            steps.failed("method", f"Method not allowed: {method}")
            self._metrics.inc_rejection("method")
            self._metrics.record_request("unknown", "rejected")
            body_out = MethodNotAllowedError("Method not allowed").to_body()
            return RelayResult(405, body_out, cors_headers)

        stage = "identity"
        variant = "unknown"
        try:
            caller = await self._authenticator.authenticate(headers)
            ctx = RequestContext(request_id=request_id, caller=caller)
            steps.passed("identity", f"Authenticated user: {caller.user_id}", source=caller.source)

            stage = "body"
            request = parse_request_body(body)
            variant = request.variant
            steps.passed("body", f"Parsed {variant} request for tenant {request.tenant_ref}")

            stage = "authorization"
            authorized = await self._pipeline.authorize(
                ctx, request.tenant_ref, gate=self._gates.get(variant)
            )

            stage = "secret"
            api_key = resolve_api_key(self._settings)

            stage = "upstream"
            upstream_request = self.build_upstream_request(request, authorized)
            steps.passed(
                "upstream",
                "Calling Claude API",
                model=upstream_request.model,
                max_tokens=upstream_request.max_tokens,
                message_count=len(upstream_request.messages),
            )
            response = await self._inference_client.create_message(
                api_key=api_key,
                model=upstream_request.model,
                max_tokens=upstream_request.max_tokens,
                messages=upstream_request.messages,
            )
        except ProxyError as e:
            if stage != "upstream":
                self._metrics.inc_rejection(stage)
            if stage in ("identity", "body"):
                steps.failed(stage, e.error)
            outcome = "upstream_error" if stage == "upstream" else "rejected"
            self._metrics.record_request(variant, outcome)
            return RelayResult(e.status_code, e.to_body(), cors_headers)
        except Exception:
            logger.exception(f"[{request_id}] Unhandled error during {stage}")
            self._metrics.record_request(variant, "internal_error")
            body_out = {"error": "Internal server error", "message": "An unexpected error occurred"}
            return RelayResult(500, body_out, cors_headers)

        self._metrics.record_request(variant, "success")
        return RelayResult(response.status_code, response.body, cors_headers)

    def build_upstream_request(
        self, request: ProxyRequest, authorized: AuthorizedTenant
    ) -> UpstreamRequest:
        """Pick model, token limit and messages for the upstream call."""
        model = request.model or self._settings.default_model

        if request.messages:
            return UpstreamRequest(
                model=model,
                max_tokens=request.max_tokens or self._settings.default_max_tokens,
                messages=[m.model_dump() for m in request.messages],
            )

        if request.analytics_data is None:
            raise BadRequestError("messages array or analyticsData is required")
        return UpstreamRequest(
            model=model,
            max_tokens=request.max_tokens or self._settings.analytics_max_tokens,
            messages=build_analytics_messages(request.analytics_data, authorized.tenant.name),
        )
