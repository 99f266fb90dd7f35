"""Tests for the shared analysis context and import resolution."""
from pathlib import Path

import pytest
from structlog.testing import capture_logs

from glass_verifier.config import AnalysisConfig
from glass_verifier.exceptions import UnsupportedLanguageError
from glass_verifier.models import TargetLanguage
from glass_verifier.semantic import (
    AnalysisContext,
    create_builder,
    default_context,
    reset_analysis_cache,
    supported_languages,
)
from glass_verifier.semantic.resolution import (
    import_candidates,
    infer_source_path,
    resolve_import,
    source_candidates,
    virtual_path,
)


class TestModelCache:
    """Tests for parse caching."""

    def test_cache_hit_on_identical_unit(self, context, unit_factory):
        unit = unit_factory("mod.fn", "function fn() { return 1; }")

        first = context.build_model(unit)
        second = context.build_model(unit)

        assert first is second
        assert context.stats.misses == 1
        assert context.stats.hits == 1
        assert context.stats.hit_rate == 0.5

    def test_changed_text_is_rebuilt(self, context, unit_factory):
        context.build_model(unit_factory("mod.fn", "function fn() { return 1; }"))
        model = context.build_model(unit_factory("mod.fn", "function fn() { return 2; }"))

        assert context.stats.misses == 2
        assert model is not None

    def test_build_models_batch(self, context, unit_factory):
        units = [
            unit_factory("a.one", "function one() {}"),
            unit_factory("b.two", "def two():\n    pass\n", language=TargetLanguage.PYTHON),
            unit_factory("c.three", "fn three() {}", language=TargetLanguage.RUST),
        ]
        models = context.build_models(units)

        assert models["a.one"].language == "typescript"
        assert models["b.two"].language == "python"
        assert models["c.three"] is None
        assert context.stats.degraded == 1

    def test_syntax_error_logged(self, context, unit_factory):
        unit = unit_factory("bad.unit", "function broken( {")

        with capture_logs() as logs:
            model = context.build_model(unit)

        assert model is None
        warnings = [log for log in logs if log["log_level"] == "warning"]
        assert warnings
        assert warnings[0]["unit_id"] == "bad.unit"

    def test_failed_parse_is_cached(self, context, unit_factory):
        unit = unit_factory("bad.unit", "function broken( {")
        context.build_model(unit)
        context.build_model(unit)

        assert context.stats.hits == 1
        assert context.stats.degraded == 1

    def test_recovery_config_keeps_partial_model(self, tmp_path, unit_factory):
        context = AnalysisContext(tmp_path, config=AnalysisConfig(recover_syntax_errors=True))
        model = context.build_model(unit_factory("bad.unit", "function broken( {"))

        assert model is not None
        assert model.parse_ok is False

    def test_config_loaded_from_project_root(self, tmp_path, unit_factory):
        (tmp_path / ".glass.yml").write_text("recover_syntax_errors: true\n")
        context = AnalysisContext(tmp_path)

        assert context.config.recover_syntax_errors is True
        assert context.build_model(unit_factory("bad.unit", "function broken( {")) is not None

    def test_tsconfig_strict_off_still_rejects_syntax_errors(self, tmp_path, unit_factory):
        (tmp_path / "tsconfig.json").write_text('{"compilerOptions": {"strict": false}}')
        context = AnalysisContext(tmp_path)

        assert context.config.strict is False
        assert context.build_model(unit_factory("bad.unit", "function broken( {")) is None
        assert context.stats.degraded == 1

    def test_implementation_path_is_part_of_cache_key(self, context, unit_factory):
        code = "export const view = (p) => <div>{p.name}</div>;"
        as_tsx = unit_factory("ui.view", code).model_copy(
            update={"implementation_path": "src/ui/view.tsx"},
        )
        as_ts = as_tsx.model_copy(update={"implementation_path": "src/ui/view.ts"})

        tsx_model = context.build_model(as_tsx)
        ts_model = context.build_model(as_ts)

        assert context.stats.misses == 2
        assert tsx_model is not None
        assert ts_model is not tsx_model

    def test_cache_is_bounded(self, tmp_path, unit_factory):
        context = AnalysisContext(tmp_path, max_models=2)
        units = [unit_factory(f"mod.fn{i}", f"function fn{i}() {{}}") for i in range(3)]
        for unit in units:
            context.build_model(unit)

        assert context.stats.evictions == 1
        context.build_model(units[0])
        assert context.stats.hits == 0
        context.build_model(units[2])
        assert context.stats.hits == 1


class TestReset:
    """Tests for reset and reconfiguration."""

    def test_reset_clears_cache(self, context, unit_factory):
        unit = unit_factory("mod.fn", "function fn() {}")
        context.build_model(unit)

        context.reset()
        context.build_model(unit)

        assert context.stats.hits == 0
        assert context.stats.misses == 1

    def test_reset_reloads_config(self, tmp_path):
        context = AnalysisContext(tmp_path)
        assert context.config.strict is True

        (tmp_path / ".glass.yml").write_text("strict: false\n")
        assert context.config.strict is True
        context.reset()
        assert context.config.strict is False

    def test_pinned_config_survives_reset(self, tmp_path):
        config = AnalysisConfig(target="ES2015")
        context = AnalysisContext(tmp_path, config=config)
        context.reset()

        assert context.config is config

    def test_configure_same_root_keeps_cache(self, context, unit_factory, tmp_path):
        unit = unit_factory("mod.fn", "function fn() {}")
        context.build_model(unit)

        context.configure(tmp_path)
        context.build_model(unit)

        assert context.stats.hits == 1

    def test_configure_new_root_resets(self, context, unit_factory, tmp_path):
        unit = unit_factory("mod.fn", "function fn() {}")
        context.build_model(unit)
        other = tmp_path / "other"
        other.mkdir()

        context.configure(other)
        context.build_model(unit)

        assert context.project_root == other
        assert context.stats.hits == 0

    def test_default_context_is_shared(self):
        assert default_context() is default_context()

    def test_reset_analysis_cache_replaces_default(self):
        first = default_context()
        reset_analysis_cache()
        assert default_context() is not first


class TestImportResolution:
    """Tests for resolving relative imports against the project tree."""

    def test_typescript_import_resolved(self, tmp_path, unit_factory):
        src = tmp_path / "src" / "auth"
        src.mkdir(parents=True)
        (src / "login.ts").write_text("")
        (src / "db.ts").write_text("")
        (src / "utils").mkdir()
        (src / "utils" / "index.ts").write_text("")

        context = AnalysisContext(tmp_path)
        unit = unit_factory(
            "auth.login",
            'import { db } from "./db";\nimport { hash } from "./utils";\n'
            'import { x } from "./missing";\nimport express from "express";\n',
        )
        model = context.build_model(unit)

        resolved = {ref.specifier: ref.resolved_path for ref in model.imports}
        assert resolved["./db"] == str(src / "db.ts")
        assert resolved["./utils"] == str(src / "utils" / "index.ts")
        assert resolved["./missing"] is None
        assert resolved["express"] is None

    def test_esm_js_specifier_maps_to_ts(self, tmp_path):
        (tmp_path / "helper.ts").write_text("")
        assert resolve_import("./helper.js", tmp_path, "typescript") == str(tmp_path / "helper.ts")

    def test_python_relative_import(self, tmp_path):
        pkg = tmp_path / "pkg"
        (pkg / "sub").mkdir(parents=True)
        (pkg / "models.py").write_text("")
        (pkg / "__init__.py").write_text("")

        assert resolve_import(".models", pkg, "python") == str(pkg / "models.py")
        assert resolve_import("..models", pkg / "sub", "python") == str(pkg / "models.py")
        assert resolve_import("..", pkg / "sub", "python") == str(pkg / "__init__.py")

    def test_bare_specifier_never_resolved(self, tmp_path):
        (tmp_path / "lodash.ts").write_text("")
        assert resolve_import("lodash", tmp_path, "typescript") is None

    def test_resolution_cached(self, context, tmp_path):
        (tmp_path / "a.ts").write_text("")
        first = context.resolve_import("./a", tmp_path, "typescript")
        (tmp_path / "a.ts").unlink()

        assert context.resolve_import("./a", tmp_path, "typescript") == first

    def test_import_candidates_order(self, tmp_path):
        candidates = import_candidates("./db", tmp_path, "typescript")
        assert [c.name for c in candidates] == ["db.ts", "db.tsx", "index.ts", "db.js", "index.js"]


class TestSourcePaths:
    """Tests for locating a unit's module on disk."""

    def test_virtual_path(self):
        assert virtual_path("auth.login", "typescript") == str(Path("__glass_verify__/auth/login.ts"))
        assert virtual_path("auth.login", "python").endswith("login.py")
        assert virtual_path("x.y", "unknown").endswith(".txt")

    def test_source_candidates_two_part_id(self, tmp_path):
        candidates = source_candidates("auth.login", tmp_path, "typescript")
        assert candidates[0] == tmp_path / "src" / "auth" / "login.ts"
        assert tmp_path / "src" / "auth" / "index.ts" in candidates
        assert len(candidates) == len(set(candidates))

    def test_infer_source_path_prefers_existing(self, tmp_path):
        index = tmp_path / "src" / "auth" / "index.ts"
        index.parent.mkdir(parents=True)
        index.write_text("")

        assert infer_source_path("auth.login", tmp_path, "typescript") == index

    def test_explicit_implementation_path(self, tmp_path):
        path = infer_source_path("auth.login", tmp_path, "typescript", "lib/login.ts")
        assert path == tmp_path / "lib" / "login.ts"

    def test_no_source_found(self, tmp_path):
        assert infer_source_path("auth.login", tmp_path, "typescript") is None


class TestRegistry:
    """Tests for builder lookup."""

    def test_supported_languages(self):
        assert supported_languages() == ["javascript", "python", "typescript"]

    def test_unsupported_language(self):
        assert create_builder("rust") is None
        with pytest.raises(UnsupportedLanguageError):
            create_builder(TargetLanguage.RUST, required=True)
