"""Exceptions raised by the Glass verifier.

Ordinary verification outcomes are never exceptions; these cover
infrastructure problems the caller has to fix (bad configuration,
explicit requests for a language with no builder).
"""


class GlassVerifierError(Exception):
    """Base class for verifier errors."""

    pass


class ConfigError(GlassVerifierError):
    """Project configuration file could not be read."""

    pass


class UnsupportedLanguageError(GlassVerifierError):
    """No semantic model builder is registered for a language."""

    pass
