"""Logging setup with OpenTelemetry trace correlation."""

from __future__ import annotations

import json
import logging
import sys

from opentelemetry import trace

_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}
_RESET = "\033[0m"


def _current_trace_ids() -> tuple[str, str]:
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return "", ""
    return format(span_context.trace_id, "032x"), format(span_context.span_id, "016x")


class OTelColorFormatter(logging.Formatter):
    """Colored console formatter that stamps the active trace/span ids onto each record."""

    def __init__(self, fmt: str | None = None, *, use_color: bool = True, as_json: bool = False):
        super().__init__(fmt or "%(asctime)s %(levelname)s [%(name)s] %(message)s%(trace_suffix)s")
        self.use_color = use_color
        self.as_json = as_json

    def format(self, record: logging.LogRecord) -> str:
        trace_id, span_id = _current_trace_ids()
        record.trace_id = trace_id
        record.span_id = span_id
        record.trace_suffix = f" trace_id={trace_id} span_id={span_id}" if trace_id else ""

        if self.as_json:
            payload = {
                "time": self.formatTime(record),
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
            }
            if trace_id:
                payload["trace_id"] = trace_id
                payload["span_id"] = span_id
            if record.exc_info:
                payload["exc_info"] = self.formatException(record.exc_info)
            return json.dumps(payload)

        message = super().format(record)
        if self.use_color and record.levelno in _COLORS:
            return f"{_COLORS[record.levelno]}{message}{_RESET}"
        return message


def setup_logging(level: str | int = "INFO", *, json_output: bool = False, logger_name: str = "omnicontext") -> logging.Logger:
    """Attach an OTelColorFormatter handler to the omnicontext logger tree.

    Calling it twice replaces the previous handler instead of stacking a second one.
    """
    logger = logging.getLogger(logger_name)
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if getattr(handler, "_omnicontext_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(OTelColorFormatter(use_color=not json_output and sys.stderr.isatty(), as_json=json_output))
    handler._omnicontext_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger
