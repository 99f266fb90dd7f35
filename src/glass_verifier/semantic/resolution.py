"""Locating implementation modules and their relative imports on disk.

Implementations arrive as text, detached from any file tree. To resolve
their relative imports we infer where the module would live in the
project from its dotted unit id.
"""

from __future__ import annotations

import os
from pathlib import Path

from glass_verifier.semantic.registry import SOURCE_EXTENSIONS

_TS_SUFFIXES = [".ts", ".tsx", "/index.ts", ".js", "/index.js"]


def virtual_path(unit_id: str, language: str) -> str:
    """Path used to name an in-memory implementation module."""
    ext = SOURCE_EXTENSIONS.get(language, [".txt"])[0]
    return os.path.join("__glass_verify__", unit_id.replace(".", "/") + ext)


def source_candidates(unit_id: str, project_root: Path, language: str) -> list[Path]:
    """Conventional on-disk locations for a unit, most specific first."""
    parts = unit_id.split(".")
    src = project_root / "src"
    candidates: list[Path] = []

    for ext in SOURCE_EXTENSIONS.get(language, []):
        if len(parts) == 2:
            mod, name = parts
            candidates.append(src / mod / f"{name}{ext}")
            candidates.append(src / mod / f"{name}.glass")
            candidates.append(src / mod / f"index{ext}")
        candidates.append(src.joinpath(*parts[:-1], f"{parts[-1]}{ext}"))
        candidates.append(src.joinpath(*parts[:-1], f"{parts[-1]}.glass"))

    # Preserve order, drop duplicates
    return list(dict.fromkeys(candidates))


def infer_source_path(
    unit_id: str,
    project_root: Path,
    language: str,
    implementation_path: str | None = None,
) -> Path | None:
    """Best guess at where a unit's implementation lives."""
    if implementation_path:
        path = Path(implementation_path)
        return path if path.is_absolute() else project_root / path

    for candidate in source_candidates(unit_id, project_root, language):
        if candidate.exists():
            return candidate
    return None


def import_candidates(specifier: str, base_dir: Path, language: str) -> list[Path]:
    """Files a relative import specifier may refer to."""
    if language == "python":
        level = len(specifier) - len(specifier.lstrip("."))
        rest = specifier[level:].replace(".", "/")
        target = base_dir
        for _ in range(level - 1):
            target = target.parent
        if rest:
            target = target / rest
            return [target.with_name(target.name + ".py"), target / "__init__.py"]
        return [target / "__init__.py"]

    resolved = os.path.normpath(base_dir / specifier)
    candidates = [Path(resolved + suffix) for suffix in _TS_SUFFIXES]
    if specifier.endswith(".js"):
        # ESM-style "./x.js" specifiers point at x.ts sources
        candidates.insert(0, Path(resolved[:-3] + ".ts"))
    if Path(resolved).suffix:
        candidates.insert(0, Path(resolved))
    return candidates


def resolve_import(specifier: str, base_dir: Path, language: str) -> str | None:
    """Resolve a relative import to an existing file, or None."""
    if not specifier.startswith("."):
        return None
    for candidate in import_candidates(specifier, base_dir, language):
        if candidate.is_file():
            return str(candidate)
    return None
