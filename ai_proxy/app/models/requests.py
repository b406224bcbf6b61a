"""Inbound request body for the relay endpoint."""

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ai_proxy.app.models.analytics import AnalyticsData


class ChatMessage(BaseModel):
    """One message in Messages API format.

    Unknown keys such as ``cache_control`` are kept and forwarded as sent.
    """

    model_config = ConfigDict(extra="allow")

    role: Literal["user", "assistant"]
    content: str | list[dict[str, Any]]


class ProxyRequest(BaseModel):
    """Body of POST /ai-proxy.

    Carries a tenant reference and either raw chat messages or an analytics
    payload from which the prompt is rendered server-side.
    """

    model_config = ConfigDict(populate_by_name=True)

    tenant_ref: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("tenantRef", "restaurantId", "tenant_ref"),
        serialization_alias="tenantRef",
    )
    messages: list[ChatMessage] | None = None
    analytics_data: AnalyticsData | None = Field(
        default=None,
        validation_alias=AliasChoices("analyticsData", "analytics_data"),
        serialization_alias="analyticsData",
    )
    model: str | None = Field(default=None, min_length=1)
    max_tokens: int | None = Field(default=None, ge=1, le=8192)

    @property
    def variant(self) -> Literal["messages", "analytics"]:
        """Which request variant this body represents; messages win when both are sent."""
        return "messages" if self.messages else "analytics"
