"""Structured run logging utilities.

Responsibilities:
- Emit concise, deterministic phase-level runtime logs through `loguru`.
- Keep secrets and provider payloads out of log lines.
"""

from __future__ import annotations

import sys
from typing import TextIO

from loguru import logger as _loguru_logger


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
        if context[key] is not None
    ]
    if not tokens:
        return ""
    return " " + " ".join(tokens)


class RunLogger:
    """Emit deterministic phase logs for generation jobs and CLI commands.

    Log lines never contain API keys. Credentials are referenced by pool index only.
    """

    def __init__(self, sink: TextIO | None = None, *, verbose: bool = False) -> None:
        """Initialize logger sink and configure deterministic formatting."""

        self._sink = sink or sys.stderr
        self.verbose = verbose
        _loguru_logger.remove()
        _loguru_logger.add(
            self._sink,
            format="{message}",
            level="DEBUG" if verbose else "INFO",
            colorize=False,
        )

    def _emit(self, level: str, event: str, stage: str, **context: object) -> None:
        """Emit one structured runtime log line."""

        line = f"[phase] level={level} stage={stage} event={event}{_format_context(context)}"
        _loguru_logger.log(level, line)

    def log_stage_start(self, stage: str, **context: object) -> None:
        """Emit a stage-start runtime event."""

        self._emit("INFO", "start", stage, **context)

    def log_stage_complete(self, stage: str, **context: object) -> None:
        """Emit a stage-complete runtime event."""

        self._emit("INFO", "complete", stage, **context)

    def log_stage_failure(self, stage: str, error_type: str, **context: object) -> None:
        """Emit a stage-failure runtime event without sensitive payload details."""

        self._emit("ERROR", "failure", stage, error_type=error_type, **context)

    def log_event(self, level: str, stage: str, event: str, **context: object) -> None:
        """Emit an arbitrary named event at the given level."""

        self._emit(level, event, stage, **context)

    def log_attempt_failure(
        self,
        stage: str,
        *,
        attempt: int,
        credential_index: int,
        failure_kind: str,
        retryable: bool,
        **context: object,
    ) -> None:
        """Emit one failed provider attempt inside the failover loop."""

        self._emit(
            "WARNING",
            "attempt_failed",
            stage,
            attempt=attempt,
            key_index=credential_index,
            failure_kind=failure_kind,
            retryable=str(retryable).lower(),
            **context,
        )
