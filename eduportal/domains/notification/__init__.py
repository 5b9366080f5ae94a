# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification domain package."""

from eduportal.domains.notification.service import (
    NotificationStateManager,
    RecipientLockRegistry,
    default_lock_registry,
)

__all__ = [
    "NotificationStateManager",
    "RecipientLockRegistry",
    "default_lock_registry",
]
