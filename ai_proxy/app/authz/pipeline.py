"""Tenant authorization pipeline.

Subscription check, tenant lookup, ownership check and feature-flag check,
run in that order for every request variant. Each step raises a typed
ProxyError on failure; document store errors are translated here, at the
call that produced them.
"""

import json
from dataclasses import dataclass, field
from typing import Any

from ai_proxy.app.db.context import RequestContext
from ai_proxy.app.db.repositories import DocumentStore
from ai_proxy.app.errors import (
    BadRequestError,
    DocumentNotFoundError,
    DocumentStoreError,
    ForbiddenError,
    NotFoundError,
    ProxyError,
    ServiceMisconfiguredError,
)
from ai_proxy.app.models.common import TenantRecord, UserRecord
from ai_proxy.app.utils.logging import StructuredStepLogger

AI_ANALYTICS_FLAG = "aiAnalyticsEnabled"
PAID_TIERS = ("starter", "growth", "pro")


@dataclass(frozen=True)
class FeatureGate:
    """What a caller needs before the gated feature may be used."""

    flag_name: str = AI_ANALYTICS_FLAG
    allowed_tiers: tuple[str, ...] = PAID_TIERS
    feature_label: str = "AI Analytics"
    settings_hint: str = "Settings → Analytics AI"


@dataclass(frozen=True)
class AuthorizedTenant:
    """Result of a successful authorization."""

    user: UserRecord
    tenant: TenantRecord
    settings: dict[str, Any] = field(default_factory=dict)


class AuthorizationPipeline:
    """Runs the tenant authorization steps against the document store."""

    def __init__(
        self,
        store: DocumentStore,
        gate: FeatureGate | None = None,
        users_collection_id: str = "users",
        tenants_collection_id: str = "restaurants",
    ) -> None:
        self._store = store
        self.gate = gate or FeatureGate()
        self._users_collection_id = users_collection_id
        self._tenants_collection_id = tenants_collection_id

    async def authorize(
        self, ctx: RequestContext, tenant_ref: str, gate: FeatureGate | None = None
    ) -> AuthorizedTenant:
        """Authorize ``ctx.caller`` to use the gated feature on ``tenant_ref``.

        ``gate`` overrides the pipeline default for one call.

        Raises:
            NotFoundError: User or tenant document absent
            ForbiddenError: No paid tier, or caller does not own the tenant
            BadRequestError: Feature flag not enabled on the tenant
            ServiceMisconfiguredError: Tenant settings unparseable
            ProxyError: Document store failure (500)
        """
        gate = gate or self.gate
        steps = StructuredStepLogger.for_context(ctx)

        user = await self.check_subscription(ctx, gate, steps)
        tenant = await self.fetch_tenant(ctx, tenant_ref, steps)
        self.check_ownership(ctx, tenant, gate, steps)
        settings = self.check_feature_flag(tenant, gate, steps)

        return AuthorizedTenant(user=user, tenant=tenant, settings=settings)

    async def check_subscription(
        self, ctx: RequestContext, gate: FeatureGate, steps: StructuredStepLogger
    ) -> UserRecord:
        steps.passed("subscription", f"Fetching user {ctx.user_id} to validate subscription")
        try:
            document = await self._store.get_document(self._users_collection_id, ctx.user_id)
        except DocumentNotFoundError as e:
            steps.failed("subscription", f"Failed to fetch user: {e}")
            raise NotFoundError("User not found") from e
        except DocumentStoreError as e:
            steps.failed("subscription", f"Document store error fetching user: {e}")
            raise ProxyError(
                "Internal server error", message="Unable to verify subscription"
            ) from e

        user = UserRecord.from_document(document)
        if user.subscription not in gate.allowed_tiers:
            steps.failed(
                "subscription",
                f"User does not have valid subscription: {user.subscription}",
                subscription=user.subscription,
            )
            tiers = _human_list([t.capitalize() for t in gate.allowed_tiers])
            raise ForbiddenError(
                f"{gate.feature_label} requires an active subscription",
                message=f"Please subscribe to a plan ({tiers}) to use {gate.feature_label}",
            )

        steps.passed("subscription", f"User has valid subscription: {user.subscription}")
        return user

    async def fetch_tenant(
        self, ctx: RequestContext, tenant_ref: str, steps: StructuredStepLogger
    ) -> TenantRecord:
        steps.passed("tenant", f"Fetching restaurant {tenant_ref}", tenant_ref=tenant_ref)
        try:
            document = await self._store.get_document(self._tenants_collection_id, tenant_ref)
        except DocumentNotFoundError as e:
            steps.failed("tenant", f"Failed to fetch restaurant: {e}", tenant_ref=tenant_ref)
            raise NotFoundError("Restaurant not found", message="Invalid restaurant ID") from e
        except DocumentStoreError as e:
            steps.failed("tenant", f"Document store error fetching restaurant: {e}")
            raise ProxyError("Internal server error", message="Unable to load restaurant") from e

        return TenantRecord.from_document(document)

    def check_ownership(
        self,
        ctx: RequestContext,
        tenant: TenantRecord,
        gate: FeatureGate,
        steps: StructuredStepLogger,
    ) -> None:
        if tenant.owner_id != ctx.user_id:
            steps.failed(
                "ownership",
                f"User {ctx.user_id} does not own restaurant {tenant.id} "
                f"(owner: {tenant.owner_id})",
            )
            raise ForbiddenError(
                "Access denied",
                message=(
                    "You do not have permission to access this restaurant's "
                    f"{gate.feature_label}"
                ),
            )
        steps.passed("ownership", "Ownership validated")

    def check_feature_flag(
        self, tenant: TenantRecord, gate: FeatureGate, steps: StructuredStepLogger
    ) -> dict[str, Any]:
        settings = parse_tenant_settings(tenant.settings)
        if settings is None:
            steps.failed("feature_flag", f"Failed to parse settings for restaurant {tenant.id}")
            raise ServiceMisconfiguredError("Invalid restaurant settings format")

        if settings.get(gate.flag_name) is not True:
            steps.failed(
                "feature_flag",
                f"{gate.flag_name} not enabled for restaurant {tenant.id}",
            )
            raise BadRequestError(
                f"{gate.feature_label} not enabled",
                message=f"Please enable {gate.feature_label} in {gate.settings_hint}",
            )

        steps.passed("feature_flag", f"{gate.flag_name} enabled")
        return settings


def parse_tenant_settings(raw: str | dict[str, Any] | None) -> dict[str, Any] | None:
    """Parse the serialized settings blob.

    Absent or empty settings parse to an empty dict. Returns None when the blob
    is present but is not a JSON object.
    """
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str):
        return None
    try:
        settings = json.loads(raw)
    except ValueError:
        return None
    return settings if isinstance(settings, dict) else None


def _human_list(items: list[str]) -> str:
    """Join as "A, B, or C"."""
    if len(items) <= 2:
        return " or ".join(items)
    return f"{', '.join(items[:-1])}, or {items[-1]}"
