"""Language to semantic model builder lookup."""

from glass_verifier.exceptions import UnsupportedLanguageError
from glass_verifier.models import TargetLanguage
from glass_verifier.semantic.base import ModelBuilder
from glass_verifier.semantic.python_builder import PythonModelBuilder
from glass_verifier.semantic.typescript_builder import TypeScriptModelBuilder

BUILDERS: dict[str, type[ModelBuilder]] = {
    TargetLanguage.TYPESCRIPT.value: TypeScriptModelBuilder,
    TargetLanguage.JAVASCRIPT.value: TypeScriptModelBuilder,
    TargetLanguage.PYTHON.value: PythonModelBuilder,
}

# Extensions implementation files are stored under, per language
SOURCE_EXTENSIONS: dict[str, list[str]] = {
    TargetLanguage.TYPESCRIPT.value: [".ts", ".tsx"],
    TargetLanguage.JAVASCRIPT.value: [".js", ".jsx"],
    TargetLanguage.PYTHON.value: [".py"],
    TargetLanguage.RUST.value: [".rs"],
}


def create_builder(language: str | TargetLanguage, required: bool = False) -> ModelBuilder | None:
    """Create the builder for ``language``.

    Returns None for languages without a builder unless ``required`` is set,
    in which case UnsupportedLanguageError is raised.
    """
    key = language.value if isinstance(language, TargetLanguage) else str(language)
    builder_cls = BUILDERS.get(key)
    if builder_cls is None:
        if required:
            raise UnsupportedLanguageError(f"No semantic model builder for language: {key}")
        return None
    return builder_cls()


def supported_languages() -> list[str]:
    return sorted(BUILDERS)
