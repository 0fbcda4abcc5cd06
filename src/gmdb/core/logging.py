import logging
import os
import sys
from typing import Any, Literal, TextIO

import structlog

LogFormat = Literal["json", "plain", "auto"]


def _should_use_json_format(file: TextIO) -> bool:
    """Determine if JSON format should be used based on environment."""
    # Check if running in CI
    ci_vars = ["CI", "CONTINUOUS_INTEGRATION", "GITHUB_ACTIONS", "JENKINS_URL"]
    if any(os.environ.get(var) for var in ci_vars):
        return True

    # Check if the log stream is redirected (not a TTY)
    return bool(not file.isatty())


def setup_logging(
    format_type: LogFormat = "auto",
    level: str = "info",
    file: TextIO | None = None,
) -> None:
    """
    Setup structured logging with format control.

    Logs are written to stderr by default; stdout carries extracted values.

    Args:
        format_type: "json" for JSON output, "plain" for human-readable,
                "auto" to auto-detect based on TTY/CI.
        level: minimum level name (debug, info, warning, error).
        file: stream to write log lines to.
    """
    file = file or sys.stderr
    use_json = format_type == "json" or (
        format_type == "auto" and _should_use_json_format(file)
    )

    if use_json:
        processors: list[Any] = [
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ]

    min_level = logging.getLevelName(level.upper())
    if not isinstance(min_level, int):
        min_level = logging.INFO

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        logger_factory=structlog.PrintLoggerFactory(file=file),
        cache_logger_on_first_use=False,  # CLI may swap stderr between runs
    )


log = structlog.get_logger()
