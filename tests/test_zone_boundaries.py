"""Trust-zone dependency rules for the airinvoice package.

Zones:
  - Pure: domain/, invoice/ (no I/O, no framework imports)
  - Privileged: runtime/ (filesystem, browser, HTTP server)
  - Orchestrator: application/, cli/
"""

from __future__ import annotations

import ast
import importlib.util
from pathlib import Path

_ROOT = Path(__file__).resolve().parents[1]
_PACKAGE = _ROOT / "airinvoice"
_ZONES: dict[tuple[str, ...], str] = {
    ("domain",): "Pure",
    ("invoice",): "Pure",
    ("runtime",): "Privileged",
    ("application",): "Orchestrator",
    ("cli",): "Orchestrator",
}
_ALLOWED_TARGET_ZONES = {
    "Privileged": {"Privileged", "Pure"},
    "Orchestrator": {"Privileged", "Orchestrator", "Pure"},
    "Pure": {"Pure"},
}
_PURE_FORBIDDEN_THIRD_PARTY = ("fastapi", "starlette", "uvicorn", "playwright", "pdfplumber", "httpx")


def _zone_for_parts(parts: tuple[str, ...]) -> str | None:
    for prefix, zone in sorted(_ZONES.items(), key=lambda item: len(item[0]), reverse=True):
        if parts[: len(prefix)] == prefix:
            return zone
    return None


def _module_name_for_file(path: Path) -> str:
    parts = list(path.relative_to(_ROOT).with_suffix("").parts)
    if parts and parts[-1] == "__init__":
        parts = parts[:-1]
    return ".".join(parts)


def _imported_modules(path: Path) -> list[str]:
    module_name = _module_name_for_file(path)
    current_package = module_name if path.name == "__init__.py" else module_name.rsplit(".", 1)[0]
    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))

    imports: list[str] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            imports.extend(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom):
            if node.level == 0:
                if node.module:
                    imports.append(node.module)
                continue
            rel_name = "." * node.level + (node.module or "")
            imports.append(importlib.util.resolve_name(rel_name, current_package))
    return imports


def _zoned_files() -> list[tuple[Path, str]]:
    files: list[tuple[Path, str]] = []
    for path in sorted(_PACKAGE.rglob("*.py")):
        zone = _zone_for_parts(path.relative_to(_PACKAGE).parts)
        if zone is not None:
            files.append((path, zone))
    return files


def test_every_zone_directory_exists() -> None:
    missing = [str(Path(*parts)) for parts in _ZONES if not (_PACKAGE / Path(*parts)).is_dir()]
    assert not missing, "Zone directories missing: " + ", ".join(missing)


def test_zone_import_boundaries() -> None:
    violations: list[str] = []

    for path, source_zone in _zoned_files():
        rel = path.relative_to(_ROOT)
        for module in _imported_modules(path):
            if not module.startswith("airinvoice."):
                continue
            target_zone = _zone_for_parts(tuple(module.split(".")[1:]))
            if target_zone is None:
                continue
            if target_zone not in _ALLOWED_TARGET_ZONES[source_zone]:
                violations.append(f"{rel}: {source_zone} imports {module} ({target_zone})")

    assert not violations, "Trust-zone import violations:\n" + "\n".join(violations)


def test_pure_modules_avoid_io_frameworks() -> None:
    violations: list[str] = []

    for path, zone in _zoned_files():
        if zone != "Pure":
            continue
        for module in _imported_modules(path):
            if module.split(".")[0] in _PURE_FORBIDDEN_THIRD_PARTY:
                violations.append(f"{path.relative_to(_ROOT)} imports {module}")

    assert not violations, "Pure modules importing I/O frameworks:\n" + "\n".join(violations)
