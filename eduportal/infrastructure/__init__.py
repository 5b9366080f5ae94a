# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Infrastructure layer.

This package contains the database engine, ORM models, Alembic
migrations and the entity store used by the domain services.
"""
