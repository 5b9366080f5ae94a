# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for the entity store.

This package provides the SQLAlchemy async engine and sessions, the ORM
models and the batched EntityStore queries.

Example:
    from eduportal.infrastructure.database import get_session, EntityStore

    async with get_session() as session:
        store = EntityStore(session)
        children = await store.students_of_parent(parent_id)
"""

from eduportal.infrastructure.database.connection import (
    DatabaseError,
    build_engine,
    build_sessionmaker,
    check_database_connection,
    close_database,
    get_engine,
    get_session,
    get_sessionmaker,
    init_database,
)
from eduportal.infrastructure.database.store import EntityStore

__all__ = [
    "DatabaseError",
    "EntityStore",
    "build_engine",
    "build_sessionmaker",
    "check_database_connection",
    "close_database",
    "get_engine",
    "get_session",
    "get_sessionmaker",
    "init_database",
]
