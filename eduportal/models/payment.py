# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Payment schemas."""

import datetime as dt
from decimal import Decimal

from eduportal.models.common import CamelModel


class PaymentView(CamelModel):
    id: str
    student_id: str
    student_name: str
    amount: Decimal
    method: str
    date: dt.date
    status: str
    note: str | None = None
