"""Runtime settings loaded from config/airinvoice.toml and the environment.

Example config/airinvoice.toml::

    [portal]
    url = "https://thaiair.thaiairways.com/ETAXPrint/pages/passengerPages/passengerHomePage.jsp"
    navigation_timeout = 30
    element_timeout = 10
    poll_interval = 1
    poll_attempts = 15
    headless = true
    fallback = true

    [invoices]
    high_value_threshold = 30000

Environment overrides: AIRINVOICE_PORTAL_URL, AIRINVOICE_FALLBACK,
AIRINVOICE_HIGH_VALUE_THRESHOLD.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from decimal import Decimal
from pathlib import Path
from typing import Any

from airinvoice.domain.summary import DEFAULT_HIGH_VALUE_THRESHOLD, coerce_threshold
from airinvoice.runtime.logging import get_logger
from airinvoice.runtime.paths import get_paths

logger = get_logger(__name__)

DEFAULT_PORTAL_URL = "https://thaiair.thaiairways.com/ETAXPrint/pages/passengerPages/passengerHomePage.jsp"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
DEFAULT_BROWSER_ARGS: tuple[str, ...] = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class PortalSettings:
    """How the acquisition agent talks to the airline portal. Durations are seconds."""

    url: str = DEFAULT_PORTAL_URL
    navigation_timeout: float = 30.0
    element_timeout: float = 10.0
    poll_interval: float = 1.0
    poll_attempts: int = 15
    headless: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    browser_args: tuple[str, ...] = DEFAULT_BROWSER_ARGS
    fallback_enabled: bool = True


@dataclass(frozen=True)
class Settings:
    portal: PortalSettings = field(default_factory=PortalSettings)
    high_value_threshold: Decimal = DEFAULT_HIGH_VALUE_THRESHOLD


def _parse_bool(raw: str) -> bool | None:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return None


def _load_toml(path: Path) -> dict[str, Any]:
    """Load TOML file and return parsed dict; missing files map to empty dict."""
    if not path.exists():
        return {}
    with open(path, "rb") as f:
        data = tomllib.load(f)
    return data if isinstance(data, dict) else {}


def _portal_from_config(section: dict[str, Any]) -> PortalSettings:
    defaults = PortalSettings()
    try:
        return PortalSettings(
            url=str(section.get("url", defaults.url)),
            navigation_timeout=float(section.get("navigation_timeout", defaults.navigation_timeout)),
            element_timeout=float(section.get("element_timeout", defaults.element_timeout)),
            poll_interval=float(section.get("poll_interval", defaults.poll_interval)),
            poll_attempts=int(section.get("poll_attempts", defaults.poll_attempts)),
            headless=bool(section.get("headless", defaults.headless)),
            user_agent=str(section.get("user_agent", defaults.user_agent)),
            browser_args=tuple(str(arg) for arg in section.get("browser_args", defaults.browser_args)),
            fallback_enabled=bool(section.get("fallback", defaults.fallback_enabled)),
        )
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid [portal] settings: {exc}") from exc


def _apply_env_overrides(settings: Settings, environ: Mapping[str, str]) -> Settings:
    portal = settings.portal

    url = environ.get("AIRINVOICE_PORTAL_URL", "").strip()
    if url:
        portal = replace(portal, url=url)

    fallback_raw = environ.get("AIRINVOICE_FALLBACK")
    if fallback_raw is not None:
        fallback = _parse_bool(fallback_raw)
        if fallback is None:
            logger.warning("Ignoring AIRINVOICE_FALLBACK=%r (expected true/false)", fallback_raw)
        else:
            portal = replace(portal, fallback_enabled=fallback)

    threshold = settings.high_value_threshold
    threshold_raw = environ.get("AIRINVOICE_HIGH_VALUE_THRESHOLD")
    if threshold_raw is not None:
        threshold = coerce_threshold(threshold_raw, default=threshold)

    return replace(settings, portal=portal, high_value_threshold=threshold)


def load_settings(
    config_path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """
    Build settings from the TOML file, then apply environment overrides.

    Args:
        config_path: Optional TOML path override. If None, uses the project path.
        environ: Environment mapping; defaults to ``os.environ``.

    Raises:
        ValueError: The settings file holds values of the wrong type.
        tomllib.TOMLDecodeError: The settings file is not valid TOML.
    """
    path = Path(config_path) if config_path is not None else get_paths().settings_file
    config = _load_toml(path)

    portal_section = config.get("portal", {})
    invoices_section = config.get("invoices", {})
    settings = Settings(
        portal=_portal_from_config(portal_section if isinstance(portal_section, dict) else {}),
        high_value_threshold=coerce_threshold(
            invoices_section.get("high_value_threshold") if isinstance(invoices_section, dict) else None
        ),
    )
    return _apply_env_overrides(settings, os.environ if environ is None else environ)


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None
