# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Ledger database migrations.

Contains migrations for:
- Catalog tables read by the ledger (courses, users, batches)
- Enrollments, payments and payment installments
- Batch expenses
"""
