# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for the tuition ledger.

Each domain module provides a service that orchestrates ledger store
operations for one kind of event.

Domains:
    ledger: Store interface, errors, records and batch locks.
    enrollment: Discount policy, installment schedules and enrollment.
    payment: Installment payment recording and overdue sweep.
    salary: Instructor profit-share salary recalculation.
    finance: Batch income and expense overview, batch deletion.
"""
