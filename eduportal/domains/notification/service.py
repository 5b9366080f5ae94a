# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification state manager.

This module provides the NotificationStateManager class for:
- Listing the notifications visible to a caller with their read state
- Marking one notification, or every notification in scope, as read
- Counting distinct unread notifications

Read state lives on recipient rows and only moves from unread to read.
Transitions are conditional updates (``WHERE is_read = false``), run
while holding the locks of every recipient in the caller's scope, and
committed before the locks are released. A concurrent listing of the
same recipient therefore sees either the state before or after a bulk
transition, never a mix.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from collections import defaultdict
from collections.abc import AsyncIterator, Collection
from contextlib import AsyncExitStack, asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession

from eduportal.core.errors import NotFoundError
from eduportal.domains.relationship.service import SubjectScope
from eduportal.infrastructure.database.models import Notification, NotificationRecipient
from eduportal.infrastructure.database.store import EntityStore
from eduportal.models.notification import MarkReadResult, NotificationView, RelatedEntity
from eduportal.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class RecipientLockRegistry:
    """Per-recipient ``asyncio.Lock`` objects, created on first use.

    Locks for several recipients are always acquired in sorted order so
    overlapping scopes (a parent and one of their students) cannot
    deadlock. Unused locks are released with their last reference.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def lock_for(self, recipient_id: str) -> asyncio.Lock:
        lock = self._locks.get(recipient_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[recipient_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, recipient_ids: Collection[str]) -> AsyncIterator[None]:
        """Hold the locks of every given recipient for the block."""
        async with AsyncExitStack() as stack:
            for recipient_id in sorted(set(recipient_ids)):
                await stack.enter_async_context(self.lock_for(recipient_id))
            yield


default_lock_registry = RecipientLockRegistry()


def _to_view(
    notification: Notification,
    rows: list[NotificationRecipient],
    student_names: dict[str, str],
) -> NotificationView:
    student_id = notification.related_student_id
    return NotificationView(
        id=notification.id,
        title=notification.title,
        message=notification.message,
        type=notification.notification_type,
        is_read=all(row.is_read for row in rows),
        created_at=ensure_utc(notification.created_at),
        updated_at=ensure_utc(notification.updated_at),
        related_to=RelatedEntity(
            type=notification.related_type,
            id=notification.related_id,
            student_id=student_id,
            student_name=student_names.get(student_id) if student_id else None,
        ),
    )


class NotificationStateManager:
    """Reads and transitions notification read state for one caller scope.

    Attributes:
        store: Entity store used for notification lookups and updates.
        locks: Registry serialising work per recipient.
    """

    def __init__(
        self,
        db: AsyncSession,
        store: EntityStore | None = None,
        locks: RecipientLockRegistry | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            db: Async database session.
            store: Optional pre-built entity store sharing the session.
            locks: Lock registry, defaults to the process-wide registry.
        """
        self.store = store or EntityStore(db)
        self.locks = locks or default_lock_registry

    async def list_for(
        self,
        scope: SubjectScope,
        related_type: str | None = None,
        unread_only: bool = False,
        limit: int | None = None,
    ) -> list[NotificationView]:
        """List notifications addressed to the caller or their subjects.

        Args:
            scope: Resolved caller scope.
            related_type: Only return notifications about this entity type.
            unread_only: Only return notifications still unread in scope.
            limit: Maximum number of notifications returned.

        Returns:
            Notifications newest first.
        """
        recipient_ids = scope.recipient_ids
        async with self.locks.hold(recipient_ids):
            rows = await self.store.notification_rows(recipient_ids, related_type)

        grouped: dict[str, list[NotificationRecipient]] = defaultdict(list)
        notifications: dict[str, Notification] = {}
        for row in rows:
            grouped[row.notification_id].append(row)
            notifications[row.notification_id] = row.notification

        related_ids = {
            n.related_student_id for n in notifications.values() if n.related_student_id
        }
        people = await self.store.get_people(related_ids)
        student_names = {person_id: person.full_name for person_id, person in people.items()}

        views = [
            _to_view(notification, grouped[notification_id], student_names)
            for notification_id, notification in notifications.items()
        ]
        if unread_only:
            views = [view for view in views if not view.is_read]
        views.sort(key=lambda view: (view.created_at, view.id), reverse=True)

        if limit is not None:
            views = views[:limit]
        return views

    async def mark_read(self, scope: SubjectScope, notification_id: str) -> MarkReadResult:
        """Mark one notification as read for every recipient in scope.

        Marking an already read notification succeeds and transitions
        nothing.

        Args:
            scope: Resolved caller scope.
            notification_id: Notification to mark.

        Returns:
            Number of recipient rows that moved to read.

        Raises:
            NotFoundError: If the notification is not addressed to the
                caller or one of their subjects.
        """
        recipient_ids = scope.recipient_ids
        async with self.locks.hold(recipient_ids):
            if not await self.store.notification_in_scope(notification_id, recipient_ids):
                raise NotFoundError("notification", str(notification_id))
            transitioned = await self.store.mark_recipients_read(
                [str(notification_id)],
                recipient_ids,
                utc_now(),
            )
            await self.store.commit()

        logger.info(
            "Marked notification %s read for caller %s: %d row(s)",
            notification_id,
            scope.caller.caller_id,
            transitioned,
        )
        return MarkReadResult(transitioned=transitioned)

    async def mark_all_read(self, scope: SubjectScope) -> MarkReadResult:
        """Mark every unread notification in scope as read.

        Args:
            scope: Resolved caller scope.

        Returns:
            Number of recipient rows that moved to read.
        """
        recipient_ids = scope.recipient_ids
        async with self.locks.hold(recipient_ids):
            notification_ids = await self.store.unread_notification_ids(recipient_ids)
            transitioned = await self.store.mark_recipients_read(
                notification_ids,
                recipient_ids,
                utc_now(),
            )
            await self.store.commit()

        logger.info(
            "Marked all notifications read for caller %s: %d row(s)",
            scope.caller.caller_id,
            transitioned,
        )
        return MarkReadResult(transitioned=transitioned)

    async def unread_count(self, scope: SubjectScope) -> int:
        """Count distinct notifications with an unread row in scope."""
        return await self.store.count_unread_notifications(scope.recipient_ids)
