"""Logging utilities for cpan2spec runs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, MutableMapping, Tuple

_LOGGER_NAME = "cpan2spec"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the cpan2spec hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


class DistributionLogger(logging.LoggerAdapter):
    """Prefixes every message with the distribution being processed."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        label = (self.extra or {}).get("distribution", "?")
        return f"{label}: {msg}", kwargs


def for_distribution(logger: logging.Logger, label: str) -> DistributionLogger:
    """Wrap ``logger`` so diagnostics name the distribution they concern."""
    return DistributionLogger(logger, {"distribution": label})


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the cpan2spec logger with console output and optional file sink."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Drop handlers left over from a previous invocation in the same process.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    # Diagnostics go to stderr so dependency reports on stdout stay parseable.
    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter("[cpan2spec] %(levelname)s %(message)s"))
    logger.addHandler(console)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


__all__ = ["DistributionLogger", "configure_logging", "for_distribution", "get_logger"]
