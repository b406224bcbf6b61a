"""Upstream credential resolution."""

import logging

from ai_proxy.app.config import Settings
from ai_proxy.app.errors import ServiceMisconfiguredError

logger = logging.getLogger(__name__)

CLAUDE_KEY_PREFIX = "sk-ant-"


def resolve_api_key(settings: Settings) -> str:
    """Return the configured upstream API key.

    Raises:
        ServiceMisconfiguredError: Key missing or not in the expected format
    """
    secret = settings.claude_api_key
    api_key = secret.get_secret_value().strip() if secret is not None else ""

    if not api_key:
        logger.error("Claude API key not configured (CLAUDE_API_KEY is empty)")
        raise _misconfigured()
    if not api_key.startswith(CLAUDE_KEY_PREFIX):
        logger.error(f"Claude API key does not start with {CLAUDE_KEY_PREFIX!r}")
        raise _misconfigured()

    return api_key


def _misconfigured() -> ServiceMisconfiguredError:
    return ServiceMisconfiguredError(
        "Service configuration error",
        message="AI Analytics service is not properly configured. Please contact support.",
    )
