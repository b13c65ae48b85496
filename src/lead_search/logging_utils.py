"""Logging helpers."""

from __future__ import annotations

import logging
from typing import Any

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def configure_logging(verbose: bool = False) -> None:
    """Configure application logging once for CLI usage."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


def get_logger() -> logging.Logger:
    """Return the module logger used across the package."""
    return logging.getLogger("lead_search")


class RunLogger(logging.LoggerAdapter):
    """Logger adapter that tags every record with the run id."""

    def process(self, msg: str, kwargs: Any) -> tuple[str, Any]:
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return f"[{extra.get('run_id', '-')}] {msg}", kwargs


def run_logger(logger: logging.Logger, run_id: str) -> RunLogger:
    """Wrap a logger so messages carry ``run_id`` as structured context."""
    return RunLogger(logger, {"run_id": run_id})
