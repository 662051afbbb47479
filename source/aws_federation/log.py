# ABOUTME: Debug logging configuration for the credential tooling
# ABOUTME: Logs go to stderr so stdout stays reserved for credential output

"""Logging setup shared by the CLI and library entry points."""

import logging
import os
import sys

LOGGER_NAME = "aws_federation"
DEBUG_ENV = "AWS_FEDERATION_DEBUG"


def debug_enabled() -> bool:
    return os.getenv(DEBUG_ENV, "").lower() in ("1", "true", "yes", "y")


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Configure stderr logging, at DEBUG when requested by flag or environment."""
    level = logging.DEBUG if verbose or debug_enabled() else logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    return logger


def redact(value: str | None, keep: int = 8) -> str:
    """Shorten a secret so it can be safely written to a debug log."""
    if not value:
        return "<empty>"
    if len(value) <= keep:
        return "***"
    return f"{value[:keep]}***"
