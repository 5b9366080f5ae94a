# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Stats domain package."""

from eduportal.domains.stats.service import StatsAggregator

__all__ = ["StatsAggregator"]
