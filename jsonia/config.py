"""
Jsonia configuration — all environment variables in one place.

Read from environment at import time. Nothing here is mandatory; every
setting has a development default.
"""

from __future__ import annotations

import os


class Settings:
    """Runtime settings from environment variables."""

    # Component lookup
    PROJECT_DIR: str = os.environ.get("JSONIA_PROJECT_DIR", "")
    SHARED_COMPONENTS_DIR: str = os.environ.get("JSONIA_SHARED_COMPONENTS_DIR", "")

    # Editor behaviour
    EDITOR_MODE: bool = os.environ.get("JSONIA_EDITOR_MODE", "true").lower() == "true"
    STATE_DISPLAY_ID: str = os.environ.get("JSONIA_STATE_DISPLAY_ID", "stateDisplay")

    # Network
    API_BASE_URL: str = os.environ.get("JSONIA_API_BASE_URL", "")
    API_TIMEOUT: float = float(os.environ.get("JSONIA_API_TIMEOUT", "30"))

    # Logging
    LOG_LEVEL: str = os.environ.get("JSONIA_LOG_LEVEL", "INFO").upper()

    @property
    def project_dir(self) -> str:
        return self.PROJECT_DIR or os.getcwd()

    @property
    def shared_dirs(self) -> list[str]:
        """Shared component roots, os.pathsep separated."""
        if not self.SHARED_COMPONENTS_DIR:
            return []
        return [p for p in self.SHARED_COMPONENTS_DIR.split(os.pathsep) if p]


# Singleton instance
settings = Settings()
