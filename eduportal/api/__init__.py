# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""HTTP API layer for EduPortal.

The API authenticates the caller, hands an explicit CallerContext to the
domain services and wraps their results in the portal envelope.
"""
