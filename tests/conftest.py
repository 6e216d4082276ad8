"""Shared pytest fixtures/options for airinvoice tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from airinvoice.application.passengers import workflow as workflow_module
from airinvoice.runtime import passenger_storage, paths, portal_agent, settings
from airinvoice.runtime.airline_rules import load_issuer_markers


def pytest_addoption(parser):
    """Custom pytest option for the live portal test."""
    parser.addoption(
        "--airinvoice-portal-mode",
        action="store",
        default="offline",
        choices=["offline", "live"],
        help=(
            "Portal mode for tests/test_live_portal.py: offline (skip) or live "
            "(drive the real airline portal with Playwright)."
        ),
    )


@pytest.fixture
def project_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Point every process-wide singleton at an empty project directory."""
    for name in ("AIRINVOICE_PORTAL_URL", "AIRINVOICE_FALLBACK", "AIRINVOICE_HIGH_VALUE_THRESHOLD"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AIRINVOICE_HOME", str(tmp_path))

    # monkeypatch restores the original singletons on teardown.
    monkeypatch.setattr(paths, "_paths", None)
    monkeypatch.setattr(settings, "_settings", None)
    monkeypatch.setattr(passenger_storage, "_store", None)
    monkeypatch.setattr(portal_agent, "_agent", None)
    monkeypatch.setattr(workflow_module, "_workflow", None)
    load_issuer_markers.cache_clear()

    paths.set_project_root(tmp_path)
    yield tmp_path

    load_issuer_markers.cache_clear()
