"""Shared utilities."""

from .logging_config import JSONFormatter, get_logger, setup_logging

__all__ = ["JSONFormatter", "get_logger", "setup_logging"]
