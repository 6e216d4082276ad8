"""Runtime infrastructure for airinvoice.

This package provides process/runtime services including:
- Logging setup via get_logger()
- Path resolution via get_paths(), ProjectPaths
- Settings via get_settings(), load_settings()
- Airline issuer markers via load_issuer_markers()
- The passenger store via get_passenger_store()

The portal agent (Playwright) and the HTTP server (FastAPI) live in
``runtime.portal_agent`` and ``runtime.invoice_server`` and are imported
explicitly by their callers.

Usage:
    from airinvoice.runtime import get_logger, get_paths

    logger = get_logger(__name__)
    paths = get_paths()
    print(paths.root, paths.passengers_json)
"""

from airinvoice.runtime.logging import (
    DEFAULT_LOG_LEVEL,
    LOG_FORMAT,
    LOG_FORMAT_DEBUG,
    configure_logging,
    get_logger,
    set_log_level,
)
from airinvoice.runtime.paths import ProjectPaths, get_paths, set_project_root
from airinvoice.runtime.settings import PortalSettings, Settings, get_settings, load_settings, reset_settings
from airinvoice.runtime.airline_rules import load_issuer_markers
from airinvoice.runtime.passenger_storage import PassengerStore, StoreState, get_passenger_store

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "set_log_level",
    "DEFAULT_LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FORMAT_DEBUG",
    # Paths
    "get_paths",
    "set_project_root",
    "ProjectPaths",
    # Settings
    "Settings",
    "PortalSettings",
    "get_settings",
    "load_settings",
    "reset_settings",
    # Rules
    "load_issuer_markers",
    # Storage
    "PassengerStore",
    "StoreState",
    "get_passenger_store",
]
