"""Centralised settings for notemap.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("NOTEMAP_WORKSPACE", Path.home() / ".notemap")
        )
    )
    storage_backend: str = field(
        default_factory=lambda: os.environ.get("NOTEMAP_STORAGE", "memory")
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite database file."""
        return self.workspace_dir / "notemap.db"

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "db" / "schema.sql"

    @property
    def store_dir(self) -> Path:
        """Directory holding the persisted client store."""
        return self.workspace_dir / "store"

    # ------------------------------------------------------------------
    # Data defaults
    # ------------------------------------------------------------------
    default_user_id: int = field(
        default_factory=lambda: int(os.environ.get("NOTEMAP_DEFAULT_USER_ID", "1"))
    )
    seed_demo: bool = field(
        default_factory=lambda: _env_bool("NOTEMAP_SEED_DEMO", "true")
    )

    # ------------------------------------------------------------------
    # HTTP server
    # ------------------------------------------------------------------
    host: str = field(
        default_factory=lambda: os.environ.get("NOTEMAP_HOST", "127.0.0.1")
    )
    port: int = field(
        default_factory=lambda: int(os.environ.get("NOTEMAP_PORT", "5000"))
    )
    cors_origins: list[str] = field(
        default_factory=lambda: [
            o.strip()
            for o in os.environ.get("NOTEMAP_CORS_ORIGINS", "*").split(",")
            if o.strip()
        ]
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("NOTEMAP_LOG_LEVEL", "INFO")
    )

    def ensure_workspace(self) -> None:
        """Create the workspace directory if it does not exist."""
        self.workspace_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton; import this everywhere:
#   from notemap.config import settings
settings = Settings()
