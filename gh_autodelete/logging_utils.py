"""Logging utilities for gh-autodelete."""

from __future__ import annotations

import json
import logging
import sys

from gh_autodelete.errors import AppError


class StructuredFormatter(logging.Formatter):
    """Formatter that can emit JSON lines when configured.

    Records carrying an `outcome` render the outcome dictionary in JSON mode.
    Records carrying an `app_error` render as `Error: <message>` plus a hint
    line in text mode, and as an error object in JSON mode.
    """

    def __init__(self, json_mode: bool = False):
        super().__init__()
        self.json_mode = json_mode

    def format(self, record: logging.LogRecord) -> str:
        error = getattr(record, "app_error", None)
        if isinstance(error, AppError):
            return self._format_error(error)
        if self.json_mode and hasattr(record, "outcome"):
            return json.dumps(record.outcome.to_dict())
        if self.json_mode:
            payload = {"level": record.levelname, "message": record.getMessage()}
            event = getattr(record, "event", None)
            if event:
                payload["event"] = event
            return json.dumps(payload)
        return f"[{record.levelname:<7}] {record.getMessage()}"

    def _format_error(self, error: AppError) -> str:
        if self.json_mode:
            payload = {
                "level": "ERROR",
                "error": error.kind.value,
                "message": error.message,
                "exit_code": error.exit_code,
            }
            if error.remedy:
                payload["remedy"] = error.remedy
            return json.dumps(payload)
        lines = [f"Error: {error.message}"]
        if error.remedy:
            lines.append(f"Hint: {error.remedy}")
        return "\n".join(lines)


def setup_logging(json_mode: bool = False, verbose: bool = False) -> logging.Logger:
    logger = logging.getLogger("gh-autodelete")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter(json_mode=json_mode))
    logger.addHandler(handler)
    return logger
