# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Portal domain package.

Profile, children, course and payment views shared by the student and
parent portals.
"""

from eduportal.domains.portal.service import PortalService

__all__ = ["PortalService"]
