"""Shared analysis context for building semantic models in batches.

Setting up analysis (loading project configuration, constructing
tree-sitter parsers, probing the file system for imports) costs far more
than analysing a single small module. An AnalysisContext pays that cost
once and shares it across every unit verified under one project root.

The context is not thread-safe. Workers verifying units in parallel should
each construct their own context.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, replace
from pathlib import Path

import structlog

from glass_verifier.config import AnalysisConfig, load_analysis_config
from glass_verifier.models import Unit
from glass_verifier.semantic.base import ImportRef, ModelBuilder, SemanticModel
from glass_verifier.semantic.registry import create_builder
from glass_verifier.semantic.resolution import (
    infer_source_path,
    resolve_import,
    virtual_path,
)

logger = structlog.get_logger()

# Parse cache entries kept per context
DEFAULT_MAX_MODELS = 1024


@dataclass
class ContextStats:
    """Parse cache statistics."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    degraded: int = 0  # Units whose source could not be modelled

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


class AnalysisContext:
    """Parse cache, import-resolution table and configuration for one project.

    The parse cache holds at most ``max_models`` entries and evicts the
    oldest first. The import table is bounded by the project's files.
    """

    def __init__(
        self,
        project_root: Path | str | None = None,
        config: AnalysisConfig | None = None,
        max_models: int = DEFAULT_MAX_MODELS,
    ) -> None:
        self._project_root = Path(project_root) if project_root is not None else None
        self._config = config
        self._config_pinned = config is not None
        self._builders: dict[str, ModelBuilder | None] = {}
        self.max_models = max_models
        self._models: dict[tuple[str, str, str | None, str], SemanticModel | None] = {}
        self._imports: dict[tuple[str, str, str], str | None] = {}
        self.stats = ContextStats()

    @property
    def project_root(self) -> Path:
        if self._project_root is None:
            self._project_root = Path.cwd()
        return self._project_root

    @property
    def config(self) -> AnalysisConfig:
        if self._config is None:
            self._config = load_analysis_config(self.project_root)
        return self._config

    def configure(self, project_root: Path | str) -> None:
        """Point the context at ``project_root``.

        Switching to a different root drops every cached entry so no
        configuration or import resolution leaks across projects.
        """
        root = Path(project_root)
        if self._project_root is not None and root.resolve() == self._project_root.resolve():
            return
        if self._project_root is not None:
            logger.info(
                "Analysis context switching project root",
                old_root=str(self._project_root),
                new_root=str(root),
            )
            self.reset()
        self._project_root = root

    def reset(self) -> None:
        """Clear cached models, import resolutions, builders and loaded config."""
        self._models.clear()
        self._imports.clear()
        self._builders.clear()
        if not self._config_pinned:
            self._config = None
        self.stats = ContextStats()
        logger.info("Analysis cache reset")

    # ------------------------------------------------------------------
    # Model building
    # ------------------------------------------------------------------

    def build_model(self, unit: Unit) -> SemanticModel | None:
        """Build (or fetch from cache) the semantic model of a unit.

        Returns None when the unit's language has no builder or its
        implementation cannot be parsed; callers verify it text-only.
        """
        language = unit.language.value
        digest = hashlib.sha256(unit.implementation_text.encode("utf-8")).hexdigest()
        key = (language, unit.id, unit.implementation_path, digest)

        if key in self._models:
            self.stats.hits += 1
            return self._models[key]
        self.stats.misses += 1

        builder = self._builder(language)
        if builder is None:
            logger.info("No semantic builder for language, verifying text only",
                        unit_id=unit.id, language=language)
            model = None
        else:
            file_path = unit.implementation_path or virtual_path(unit.id, language)
            model = builder.build(unit.implementation_text, file_path, self.config)
            if model is None:
                logger.warning("Implementation has syntax errors, degrading to text matching",
                               unit_id=unit.id, language=language)
            else:
                model = replace(model, imports=self._resolve_imports(unit, model))
                logger.debug("Semantic model built", unit_id=unit.id, language=language,
                             functions=len(model.functions))

        if model is None:
            self.stats.degraded += 1
        self._store(key, model)
        return model

    def _store(self, key: tuple[str, str, str | None, str], model: SemanticModel | None) -> None:
        # Oldest entries go first; dicts keep insertion order
        while self._models and len(self._models) >= self.max_models:
            del self._models[next(iter(self._models))]
            self.stats.evictions += 1
        self._models[key] = model

    def build_models(self, units: list[Unit]) -> dict[str, SemanticModel | None]:
        """Build models for a batch of units sharing this context."""
        return {unit.id: self.build_model(unit) for unit in units}

    def _builder(self, language: str) -> ModelBuilder | None:
        if language not in self._builders:
            self._builders[language] = create_builder(language)
        return self._builders[language]

    # ------------------------------------------------------------------
    # Import resolution
    # ------------------------------------------------------------------

    def resolve_import(self, specifier: str, base_dir: Path, language: str) -> str | None:
        key = (str(base_dir), specifier, language)
        if key not in self._imports:
            self._imports[key] = resolve_import(specifier, base_dir, language)
            if self._imports[key] is None and specifier.startswith("."):
                logger.debug("Unresolved relative import", specifier=specifier,
                             base_dir=str(base_dir))
        return self._imports[key]

    def _resolve_imports(self, unit: Unit, model: SemanticModel) -> tuple[ImportRef, ...]:
        if not any(ref.is_relative for ref in model.imports):
            return model.imports

        language = unit.language.value
        source_path = infer_source_path(
            unit.id, self.project_root, language, unit.implementation_path,
        )
        base_dir = source_path.parent if source_path is not None else self.project_root / "src"

        return tuple(
            ImportRef(
                specifier=ref.specifier,
                resolved_path=self.resolve_import(ref.specifier, base_dir, language),
            ) if ref.is_relative else ref
            for ref in model.imports
        )


_default_context: AnalysisContext | None = None


def default_context() -> AnalysisContext:
    """Process-wide context used when callers do not supply their own."""
    global _default_context
    if _default_context is None:
        _default_context = AnalysisContext()
    return _default_context


def reset_analysis_cache() -> None:
    """Discard the process-wide context's cached state.

    Call between test cases, or in long-lived processes after the project
    configuration changes.
    """
    global _default_context
    if _default_context is not None:
        _default_context.reset()
    _default_context = None
