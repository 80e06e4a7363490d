r"""Utilities shared by the request engine."""

from __future__ import annotations

__all__ = [
    "StructuredFormatter",
    "clear_correlation_id",
    "enable_structured_logging",
    "get_correlation_id",
    "log_structured",
    "set_correlation_id",
]

from h2tp.utils.structured_logging import (
    StructuredFormatter,
    clear_correlation_id,
    enable_structured_logging,
    get_correlation_id,
    log_structured,
    set_correlation_id,
)
