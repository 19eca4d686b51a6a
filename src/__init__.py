"""Tuition Ledger Backend.

Enrollment, installment payment and instructor salary ledger for an
education back office.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
