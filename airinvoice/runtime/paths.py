"""Centralized path management for airinvoice.

Every file the application reads or writes lives under one project root, taken
from ``AIRINVOICE_HOME`` or the current working directory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

HOME_ENV_VAR = "AIRINVOICE_HOME"


def _get_project_root() -> Path:
    """Determine the project root directory."""
    configured = os.environ.get(HOME_ENV_VAR, "").strip()
    if configured:
        return Path(configured).expanduser()
    return Path.cwd()


@dataclass
class ProjectPaths:
    """Container for all project-related paths."""

    root: Path = field(default_factory=_get_project_root)

    def __post_init__(self) -> None:
        self.root = Path(self.root).resolve()

    # --- Configuration paths ---
    @property
    def config(self) -> Path:
        """Configuration directory (config/)."""
        return self.root / "config"

    @property
    def settings_file(self) -> Path:
        """Portal and invoice settings TOML file."""
        return self.config / "airinvoice.toml"

    @property
    def airline_rules(self) -> Path:
        """Project-level airline issuer markers TOML file."""
        return self.config / "airlines.toml"

    # --- Data paths ---
    @property
    def data(self) -> Path:
        """Data directory (data/)."""
        return self.root / "data"

    @property
    def passengers_json(self) -> Path:
        """Persisted passenger records."""
        return self.data / "passengers.json"

    @property
    def roster_csv(self) -> Path:
        """Passenger roster used to seed the store on first start."""
        return self.data / "data.csv"

    # --- Documents ---
    @property
    def uploads(self) -> Path:
        """Acquired invoice documents, served under /uploads."""
        return self.root / "uploads"

    def ensure_data_directories(self) -> None:
        """Create data and document directories if they don't exist."""
        self.data.mkdir(parents=True, exist_ok=True)
        self.uploads.mkdir(parents=True, exist_ok=True)


_paths: ProjectPaths | None = None


def get_paths() -> ProjectPaths:
    """Get the singleton ProjectPaths instance."""
    global _paths
    if _paths is None:
        _paths = ProjectPaths()
    return _paths


def set_project_root(root: Path | str | None) -> ProjectPaths:
    """Point the singleton at another root; ``None`` re-reads the environment."""
    global _paths
    _paths = ProjectPaths() if root is None else ProjectPaths(root=Path(root))
    return _paths
