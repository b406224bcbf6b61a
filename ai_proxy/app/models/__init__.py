"""Models package - re-exports for convenience."""

from ai_proxy.app.models.analytics import (
    AnalyticsData,
    FeedbackComment,
    FeedbackSummary,
    ProductSale,
    SessionMetrics,
)
from ai_proxy.app.models.common import CallerIdentity, TenantRecord, UserRecord
from ai_proxy.app.models.requests import ChatMessage, ProxyRequest

__all__ = [
    # Analytics
    "AnalyticsData",
    "FeedbackComment",
    "FeedbackSummary",
    "ProductSale",
    "SessionMetrics",
    # Records
    "CallerIdentity",
    "TenantRecord",
    "UserRecord",
    # Requests
    "ChatMessage",
    "ProxyRequest",
]
