"""Analysis configuration loaded from the project root."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

from glass_verifier.exceptions import ConfigError

logger = structlog.get_logger()

# Searched in order; the first existing file wins.
GLASS_CONFIG_NAMES = [".glass.yml", ".glass.yaml", "glass.config.yml"]
TSCONFIG_NAME = "tsconfig.json"


@dataclass
class AnalysisConfig:
    """Settings shared by every unit analyzed under one project root."""

    strict: bool = True  # Type-checking strictness, as declared by tsconfig
    declaration: bool = False  # Analysis never emits declarations
    target: str = "ES2020"
    default_language: str = "typescript"

    # Keep partial models of modules with syntax errors. Only a Glass config
    # file can turn this on; exposure checks still use the text oracle.
    recover_syntax_errors: bool = False

    # Callee roots and names treated as logging / printing
    log_sinks: list[str] = field(default_factory=lambda: [
        "console",
        "logger",
        "logging",
        "log",
        "print",
        "println",
        "eprint",
        "eprintln",
        "dbg",
        "tracing",
        "structlog",
        "sys.stdout",
        "sys.stderr",
        "process.stdout",
        "process.stderr",
    ])

    # Callee names whose arguments are consumed without being exposed
    safe_calls: list[str] = field(default_factory=lambda: [
        "compare",
        "compareSync",
        "compare_digest",
        "checkpw",
        "hashpw",
        "hash",
        "hashSync",
        "verify",
        "timingSafeEqual",
        "sha256",
        "digest",
    ])

    source: str | None = None  # Path of the file the config came from


def _bool_setting(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"'{key}' must be true or false, got {value!r}")
    return value


def _str_setting(data: dict[str, Any], key: str, default: str) -> str:
    value = data.get(key, default)
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a string, got {value!r}")
    return value


def _names_setting(data: dict[str, Any], key: str) -> list[str]:
    value = data[key]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"'{key}' must be a list of names, got {value!r}")
    return list(value)


def parse_config(content: str | dict[str, Any], source: str | None = None) -> AnalysisConfig:
    """Parse configuration from a YAML string or dict.

    Settings may live at the top level or under a ``verification:`` key.

    Raises:
        ConfigError: If the YAML is malformed or a setting has the wrong type.
    """
    if isinstance(content, str):
        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML: {e}") from e
    else:
        data = content

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    if "verification" in data:
        data = data["verification"]
        if not isinstance(data, dict):
            raise ConfigError("'verification' must be a mapping")

    config = AnalysisConfig(source=source)
    config.strict = _bool_setting(data, "strict", config.strict)
    config.declaration = _bool_setting(data, "declaration", config.declaration)
    config.recover_syntax_errors = _bool_setting(
        data, "recover_syntax_errors", config.recover_syntax_errors,
    )
    config.target = _str_setting(data, "target", config.target)
    config.default_language = _str_setting(data, "language", config.default_language)

    if "log_sinks" in data:
        config.log_sinks = _names_setting(data, "log_sinks")
    if "extra_log_sinks" in data:
        config.log_sinks.extend(_names_setting(data, "extra_log_sinks"))
    if "safe_calls" in data:
        config.safe_calls = _names_setting(data, "safe_calls")

    return config


def _parse_tsconfig(path: Path) -> AnalysisConfig:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        # tsconfig.json may carry comments (JSONC)
        logger.warning("Unreadable tsconfig, using defaults", path=str(path), error=str(e))
        return AnalysisConfig()

    options = data.get("compilerOptions", {}) if isinstance(data, dict) else None
    if options is None:
        options = {}
    if not isinstance(options, dict):
        logger.warning("Malformed tsconfig compilerOptions, using defaults", path=str(path))
        return AnalysisConfig()

    config = AnalysisConfig(source=str(path))
    strict = options.get("strict", config.strict)
    target = options.get("target", config.target)
    if isinstance(strict, bool):
        config.strict = strict
    else:
        logger.warning("Ignoring non-boolean tsconfig strict", path=str(path), value=repr(strict))
    if isinstance(target, str):
        config.target = target
    else:
        logger.warning("Ignoring non-string tsconfig target", path=str(path), value=repr(target))
    # Declaration emission is irrelevant to analysis and always disabled
    config.declaration = False
    return config


def load_analysis_config(project_root: Path | str) -> AnalysisConfig:
    """Load configuration for a project, falling back to built-in defaults.

    Raises:
        ConfigError: If a Glass config file exists but cannot be used.
    """
    project_root = Path(project_root)

    for name in GLASS_CONFIG_NAMES:
        config_file = project_root / name
        if config_file.exists():
            logger.info("Loading analysis config", path=str(config_file))
            try:
                content = config_file.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise ConfigError(f"Cannot read {config_file}: {e}") from e
            return parse_config(content, source=str(config_file))

    tsconfig = project_root / TSCONFIG_NAME
    if tsconfig.exists():
        logger.info("Loading analysis config", path=str(tsconfig))
        return _parse_tsconfig(tsconfig)

    logger.debug("No analysis config found, using defaults", root=str(project_root))
    return AnalysisConfig()
