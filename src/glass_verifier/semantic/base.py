"""Semantic model shared by all language builders."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from glass_verifier.config import AnalysisConfig


@dataclass(frozen=True)
class Parameter:
    """A function parameter.

    ``destructured`` holds ``(field, local_name)`` pairs for object
    destructuring patterns such as ``function f({ name, id: userId })``.
    """

    name: str
    type_hint: str | None = None
    destructured: tuple[tuple[str, str], ...] = ()

    @property
    def destructured_fields(self) -> list[str]:
        return [field_name for field_name, _ in self.destructured]


@dataclass(frozen=True)
class FunctionSignature:
    """A top-level function declared by the module."""

    name: str
    line: int
    parameters: tuple[Parameter, ...] = ()
    return_type: str | None = None
    is_async: bool = False


@dataclass(frozen=True)
class CallSite:
    """A call expression and the names appearing in its arguments."""

    callee: str
    line: int
    arguments: frozenset[str] = frozenset()


@dataclass(frozen=True)
class ErrorHandler:
    """A catch / except block and the error types it tests."""

    line: int
    error_types: frozenset[str] = frozenset()


@dataclass(frozen=True)
class ImportRef:
    """An import specifier and the local file it resolved to, if any."""

    specifier: str
    resolved_path: str | None = None

    @property
    def is_relative(self) -> bool:
        return self.specifier.startswith(".")


@dataclass(frozen=True)
class SemanticModel:
    """Queryable view of one implementation module."""

    language: str
    tree: Any = field(compare=False, repr=False)
    functions: tuple[FunctionSignature, ...] = ()
    identifiers: frozenset[str] = frozenset()
    member_paths: frozenset[str] = frozenset()
    calls: tuple[CallSite, ...] = ()
    error_handlers: tuple[ErrorHandler, ...] = ()
    imports: tuple[ImportRef, ...] = ()
    parse_ok: bool = True

    @property
    def parameters(self) -> list[Parameter]:
        return [p for fn in self.functions for p in fn.parameters]

    @property
    def handled_error_types(self) -> frozenset[str]:
        types: set[str] = set()
        for handler in self.error_handlers:
            types.update(handler.error_types)
        return frozenset(types)

    @property
    def return_types(self) -> list[str]:
        return [fn.return_type for fn in self.functions if fn.return_type]

    def get_function(self, name: str) -> FunctionSignature | None:
        for fn in self.functions:
            if fn.name == name:
                return fn
        return None


def strip_interpreter_directive(source: str, comment_prefix: str) -> str:
    """Replace a leading ``#!`` line with a comment, keeping line numbers."""
    if not source.startswith("#!"):
        return source
    _, newline, rest = source.partition("\n")
    return f"{comment_prefix} (shebang removed){newline}{rest}"


class ModelBuilder(ABC):
    """Abstract base class for semantic model builders."""

    @property
    @abstractmethod
    def language(self) -> str:
        """Get the language this builder handles."""
        pass

    @property
    @abstractmethod
    def file_extensions(self) -> list[str]:
        """Get file extensions this builder handles."""
        pass

    @property
    def comment_prefix(self) -> str:
        return "//"

    def build(
        self,
        source: str,
        file_path: str = "",
        config: AnalysisConfig | None = None,
    ) -> SemanticModel | None:
        """Build a model of ``source``, or None when it cannot be parsed."""
        text = strip_interpreter_directive(source, self.comment_prefix)
        return self._build(text, file_path, config or AnalysisConfig())

    @abstractmethod
    def _build(
        self,
        source: str,
        file_path: str,
        config: AnalysisConfig,
    ) -> SemanticModel | None:
        pass

    def can_build(self, file_path: str) -> bool:
        """Check if this builder can handle the given file."""
        return any(file_path.endswith(ext) for ext in self.file_extensions)
