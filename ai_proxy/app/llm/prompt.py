"""Analytics insight prompt rendering.

Turns a structured analytics snapshot into a fixed-template prompt. Output is
bounded (product, comment and comment-length caps) and deterministic: the
same snapshot always renders the same text.
"""

from ai_proxy.app.models.analytics import AnalyticsData, FeedbackComment, ProductSale

MAX_PRODUCTS = 10
MAX_COMMENTS = 20
MAX_COMMENT_CHARS = 200
LOW_RATING_THRESHOLD = 3.5

INSTRUCTIONS = """Based on this data, provide:
1. Three key insights about sales performance and customer behavior
2. Menu items that deserve promotion, rework, or removal, with reasons
3. Concrete, low-cost actions to improve conversion and order value
4. Recurring themes in customer feedback and how to address them

Keep the response concise and practical. Use the exact figures provided;
do not invent data that is not present above."""


def truncate_comment(text: str, limit: int = MAX_COMMENT_CHARS) -> str:
    """Collapse whitespace and cap at ``limit`` characters (ellipsis included)."""
    collapsed = " ".join(text.split())
    if len(collapsed) <= limit:
        return collapsed
    return collapsed[: limit - 3].rstrip() + "..."


def _money(value: float) -> str:
    return f"${value:,.2f}"


def _rating(value: float) -> str:
    return f"{value:.1f}/5"


def _product_line(index: int, product: ProductSale) -> str:
    line = f"{index}. {product.name}: {product.quantity:,} sold, {_money(product.revenue)} revenue"
    if product.average_rating is not None:
        line += f", rating {_rating(product.average_rating)}"
    return line


def _comment_line(comment: FeedbackComment) -> str:
    rating = f"{comment.rating}/5" if comment.rating is not None else "unrated"
    return f'- ({rating}) "{truncate_comment(comment.comment)}"'


def top_products(data: AnalyticsData) -> list[ProductSale]:
    """First MAX_PRODUCTS products; the dashboard sends them best-selling first."""
    return data.product_sales[:MAX_PRODUCTS]


def selected_comments(data: AnalyticsData) -> list[FeedbackComment]:
    """Non-blank comments among the first MAX_COMMENTS."""
    return [c for c in data.feedback.comments[:MAX_COMMENTS] if c.comment.strip()]


def low_rated_top_seller(data: AnalyticsData) -> ProductSale | None:
    """Top seller when its average rating is below LOW_RATING_THRESHOLD."""
    if not data.product_sales:
        return None
    top = data.product_sales[0]
    if top.average_rating is not None and top.average_rating < LOW_RATING_THRESHOLD:
        return top
    return None


def build_analytics_prompt(data: AnalyticsData, restaurant_name: str | None = None) -> str:
    """Render the insight prompt for an analytics snapshot."""
    lines: list[str] = []

    subject = restaurant_name or "this restaurant"
    period = f" ({data.period})" if data.period else ""
    lines.append(
        f"You are a restaurant analytics assistant. Analyze the following data for "
        f"{subject}{period} and provide actionable business insights."
    )
    lines.append("")

    # Products
    lines.append(f"## Top Products (up to {MAX_PRODUCTS})")
    products = top_products(data)
    if products:
        for i, product in enumerate(products, start=1):
            lines.append(_product_line(i, product))
    else:
        lines.append("- No sales data available")
    lines.append("")

    # Sessions
    metrics = data.session_metrics
    lines.append("## Session Metrics")
    lines.append(f"- Total sessions: {metrics.total_sessions:,}")
    lines.append(f"- Total orders: {metrics.total_orders:,}")
    lines.append(f"- Conversion rate: {metrics.conversion_rate:.1f}%")
    lines.append(f"- Average order value: {_money(metrics.average_order_value)}")
    lines.append(f"- Average session duration: {metrics.average_session_minutes:.1f} min")
    lines.append("")

    # Ratings histogram, 5 stars down to 1
    feedback = data.feedback
    lines.append("## Customer Feedback")
    average = _rating(feedback.average_rating) if feedback.average_rating is not None else "n/a"
    lines.append(f"- Average rating: {average}")
    for stars in range(5, 0, -1):
        count = feedback.rating_counts.get(stars, 0)
        label = "star" if stars == 1 else "stars"
        lines.append(f"- {stars} {label}: {count:,}")
    lines.append("")

    lines.append(f"## Customer Comments (up to {MAX_COMMENTS})")
    comments = selected_comments(data)
    if comments:
        for comment in comments:
            lines.append(_comment_line(comment))
    else:
        lines.append("- No comments")
    lines.append("")

    flagged = low_rated_top_seller(data)
    if flagged is not None and flagged.average_rating is not None:
        lines.append("## Attention")
        lines.append(
            f'- Top seller "{flagged.name}" has a low average rating '
            f"({_rating(flagged.average_rating)}). Explain likely causes and how to fix them "
            "without hurting sales."
        )
        lines.append("")

    lines.append(INSTRUCTIONS)
    return "\n".join(lines)


def build_analytics_messages(
    data: AnalyticsData, restaurant_name: str | None = None
) -> list[dict[str, str]]:
    """Wrap the rendered prompt as a single user message."""
    return [{"role": "user", "content": build_analytics_prompt(data, restaurant_name)}]
