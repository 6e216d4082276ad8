"""Runtime loader for airline issuer markers.

config/airlines.toml adds project-specific airlines ahead of the built-in ones::

    [[airlines]]
    name = "Akasa Air"
    patterns = ["AKASA AIR", "SNV AVIATION"]

Patterns are literal keywords matched case-insensitively with flexible
whitespace between words.
"""

from __future__ import annotations

import tomllib
from functools import lru_cache
from pathlib import Path

from airinvoice.invoice.patterns import DEFAULT_ISSUER_MARKERS, IssuerMarker, keyword_to_pattern
from airinvoice.runtime.paths import get_paths


@lru_cache(maxsize=4)
def load_issuer_markers(config_path: str | None = None) -> tuple[IssuerMarker, ...]:
    """
    Load issuer markers from airlines.toml followed by the built-in defaults.

    Args:
        config_path: Optional TOML path override. If None, uses default project path.

    Returns:
        Tuple of markers; configured airlines come first so they win ties.
    """
    path = Path(config_path) if config_path is not None else get_paths().airline_rules
    if not path.exists():
        return DEFAULT_ISSUER_MARKERS

    with open(path, "rb") as f:
        config = tomllib.load(f)

    configured: list[IssuerMarker] = []
    for rule in config.get("airlines", []):
        name = str(rule.get("name", "")).strip()
        keywords = [str(keyword) for keyword in rule.get("patterns", []) if str(keyword).strip()]
        if not name or not keywords:
            continue
        configured.append(IssuerMarker(name, tuple(keyword_to_pattern(keyword) for keyword in keywords)))
    return tuple(configured) + DEFAULT_ISSUER_MARKERS
