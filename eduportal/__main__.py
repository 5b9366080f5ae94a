# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Run the EduPortal API with uvicorn.

Usage:
    python -m eduportal
"""

import uvicorn

from eduportal.core.config import get_settings


def main() -> None:
    """Serve the application factory with the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "eduportal.api.app:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
        workers=1 if settings.api.reload else settings.api.workers,
        reload=settings.api.reload,
        log_config=None,
    )


if __name__ == "__main__":
    main()
