# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""EduPortal: role-scoped student and parent portal views.

Aggregates attendance, schedules, payments, notifications and dashboard
counters for a student or for a parent and their linked students.
"""

__version__ = "0.1.0"
