# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Mapping from ledger errors to HTTP errors."""

import logging

from fastapi import HTTPException, status

from src.domains.ledger.errors import (
    CompensationFailedError,
    LedgerConflictError,
    LedgerError,
    LedgerNotFoundError,
    LedgerValidationError,
)

logger = logging.getLogger(__name__)


def ledger_http_exception(error: LedgerError) -> HTTPException:
    """Convert a ledger error to an HTTPException.

    Validation and conflict errors become 400, missing records 404.
    Integrity and store failures become 500; their messages are generic
    descriptions of the failed action and carry no driver text.

    Args:
        error: Ledger error raised by a service.

    Returns:
        HTTPException to raise from the route.
    """
    if isinstance(error, LedgerNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))

    if isinstance(error, (LedgerValidationError, LedgerConflictError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))

    if isinstance(error, CompensationFailedError):
        logger.error("Unreconciled ledger rows: %s", error.dangling)
    else:
        logger.error("Ledger operation failed: %s", error, exc_info=error)

    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(error) or "Internal server error",
    )
