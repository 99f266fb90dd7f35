"""Semantic model builders for implementation modules."""

from glass_verifier.semantic.base import (
    CallSite,
    ErrorHandler,
    FunctionSignature,
    ImportRef,
    ModelBuilder,
    Parameter,
    SemanticModel,
)
from glass_verifier.semantic.context import (
    AnalysisContext,
    default_context,
    reset_analysis_cache,
)
from glass_verifier.semantic.python_builder import PythonModelBuilder
from glass_verifier.semantic.registry import create_builder, supported_languages
from glass_verifier.semantic.typescript_builder import TypeScriptModelBuilder

__all__ = [
    "AnalysisContext",
    "CallSite",
    "ErrorHandler",
    "FunctionSignature",
    "ImportRef",
    "ModelBuilder",
    "Parameter",
    "PythonModelBuilder",
    "SemanticModel",
    "TypeScriptModelBuilder",
    "create_builder",
    "default_context",
    "reset_analysis_cache",
    "supported_languages",
]
