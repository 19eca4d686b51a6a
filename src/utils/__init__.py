# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cross-cutting helpers: structlog setup and UTC calendar dates."""

from src.utils.datetime import add_days, utc_now, utc_today
from src.utils.logging import bind_context, clear_context, setup_logging

__all__ = [
    "setup_logging",
    "bind_context",
    "clear_context",
    "utc_now",
    "utc_today",
    "add_days",
]
