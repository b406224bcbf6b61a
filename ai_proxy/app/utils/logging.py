"""Structured logging for the relay validation steps."""

import logging
from typing import Any

from ai_proxy.app.db.context import RequestContext

logger = logging.getLogger(__name__)


class StructuredStepLogger:
    """One log line per validation step, info on pass and error on failure."""

    def __init__(self, request_id: str) -> None:
        self.request_id = request_id

    @classmethod
    def for_context(cls, ctx: RequestContext) -> "StructuredStepLogger":
        return cls(ctx.request_id)

    def _log_data(self, step: str, outcome: str, fields: dict[str, Any]) -> dict[str, Any]:
        return {"request_id": self.request_id, "step": step, "outcome": outcome, **fields}

    def passed(self, step: str, message: str, **fields: Any) -> None:
        """Log a step that succeeded."""
        log_data = self._log_data(step, "ok", fields)
        logger.info(f"[{self.request_id}] {step}: {message}", extra={"structured": log_data})

    def failed(self, step: str, message: str, **fields: Any) -> None:
        """Log a step that rejected the request."""
        log_data = self._log_data(step, "rejected", fields)
        logger.error(f"[{self.request_id}] {step}: {message}", extra={"structured": log_data})
