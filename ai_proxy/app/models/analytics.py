"""Structured analytics payload sent by the dashboard."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductSale(_CamelModel):
    """Sales figures for one menu item."""

    name: str
    quantity: int = Field(default=0, ge=0)
    revenue: float = Field(default=0.0, ge=0)
    average_rating: float | None = Field(default=None, ge=0, le=5)


class SessionMetrics(_CamelModel):
    """Aggregate ordering-session metrics for the period."""

    total_sessions: int = Field(default=0, ge=0)
    total_orders: int = Field(default=0, ge=0)
    average_order_value: float = Field(default=0.0, ge=0)
    conversion_rate: float = Field(default=0.0, ge=0, le=100)
    average_session_minutes: float = Field(default=0.0, ge=0)


class FeedbackComment(_CamelModel):
    """One free-text customer comment."""

    rating: int | None = Field(default=None, ge=1, le=5)
    comment: str = ""


class FeedbackSummary(_CamelModel):
    """Customer feedback: rating histogram plus comments."""

    average_rating: float | None = Field(default=None, ge=0, le=5)
    rating_counts: dict[int, int] = Field(default_factory=dict)
    comments: list[FeedbackComment] = Field(default_factory=list)


class AnalyticsData(_CamelModel):
    """Analytics snapshot from which the insight prompt is rendered."""

    period: str | None = None
    product_sales: list[ProductSale] = Field(default_factory=list)
    session_metrics: SessionMetrics = Field(default_factory=SessionMetrics)
    feedback: FeedbackSummary = Field(default_factory=FeedbackSummary)
