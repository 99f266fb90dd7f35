"""Text-level matching over implementation source and clause text.

Word-boundary search is the baseline oracle for every rule. It is crude
(an identifier mentioned only in dead code or a comment still counts) but
it needs no parse tree, so it works for every language and for modules
that fail to parse. Semantic model checks are layered on top of it.
"""

from __future__ import annotations

import re
from functools import lru_cache

# JS identifiers may contain "$", so \b alone is not a reliable boundary
_IDENT_CHARS = r"[\w$]"
_DOTTED_IDENT = r"[A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)*"

SUBJECT_PATTERN = re.compile(rf"^\s*({_DOTTED_IDENT})")
RESULT_IS_PATTERN = re.compile(r"^\s*result\s+is\s+([A-Za-z_$][\w$]*)\s*$")
EXPOSURE_PATTERN = re.compile(
    r"\b(?:never|not|no)\b[\w\s,]*?\b(?:exposed|logged|printed|leaked|disclosed|revealed)\b",
    re.IGNORECASE,
)
MEMORY_PATTERN = re.compile(
    r"\b(?:in memory|held|retained|zeroed|wiped|lifetime)\b",
    re.IGNORECASE,
)


@lru_cache(maxsize=512)
def _word_pattern(word: str) -> re.Pattern[str]:
    return re.compile(rf"(?<!{_IDENT_CHARS}){re.escape(word)}(?!{_IDENT_CHARS})")


def contains_word(text: str, word: str) -> bool:
    """Whole-word search: ``Error`` does not match ``ErrorHandler``."""
    if not word:
        return False
    return _word_pattern(word).search(text) is not None


def clause_subject(text: str) -> str | None:
    """Leading dotted identifier of a clause (``input.name is String`` -> ``input.name``)."""
    match = SUBJECT_PATTERN.match(text)
    return match.group(1) if match else None


def leaf(path: str) -> str:
    return path.rsplit(".", 1)[-1]


def result_type(text: str) -> str | None:
    """Type named by a ``result is <Type>`` guarantee."""
    match = RESULT_IS_PATTERN.match(text)
    return match.group(1) if match else None


def is_exposure_clause(text: str) -> bool:
    return EXPOSURE_PATTERN.search(text) is not None


# Filler words skipped when looking for the identifier an exposure clause protects
_EXPOSURE_FILLER = frozenset({
    "never", "not", "no", "is", "are", "be", "must", "should", "will", "shall",
    "the", "a", "an", "any", "ever",
    "exposed", "logged", "printed", "leaked", "disclosed", "revealed",
})
_TOKEN_PATTERN = re.compile(_DOTTED_IDENT)


def exposure_subject(text: str) -> str | None:
    """Identifier an exposure clause protects.

    ``user.password_hash never exposed`` -> ``user.password_hash``;
    ``no secret logged`` -> ``secret``. None when the clause names nothing
    before its exposure verb.
    """
    match = EXPOSURE_PATTERN.search(text)
    if match is None:
        return None
    for token in _TOKEN_PATTERN.findall(text[:match.end()]):
        if token.lower() not in _EXPOSURE_FILLER:
            return token
    return None


def is_memory_clause(text: str) -> bool:
    return MEMORY_PATTERN.search(text) is not None


# Receivers that carry a logger as an attribute: self.logger.info(...)
_RECEIVERS = ("self.", "this.", "cls.")


def is_sink_callee(callee: str, sinks: list[str]) -> bool:
    """Whether a call target is a logging / printing function.

    Sinks match at the root of the callee: ``console.log``, ``logger.info``
    and ``self.logger.info`` match the sinks ``console`` and ``logger``,
    ``Math.log`` does not match ``log``.
    """
    for receiver in _RECEIVERS:
        if callee.startswith(receiver):
            callee = callee[len(receiver):]
            break
    return any(callee == sink or callee.startswith(sink + ".") for sink in sinks)


def is_safe_callee(callee: str, safe_calls: list[str]) -> bool:
    return leaf(callee) in safe_calls


@lru_cache(maxsize=64)
def _sink_call_pattern(sinks: tuple[str, ...]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(s) for s in sorted(sinks, key=len, reverse=True))
    # Optional "!" admits Rust print macros
    return re.compile(
        rf"(?<![\w$.])(?:(?:self|this|cls)\.)?(?:{alternatives})(?:\.[\w$]+)*!?\s*\("
    )


@lru_cache(maxsize=64)
def _leaf_call_pattern(names: tuple[str, ...]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(n) for n in sorted(names, key=len, reverse=True))
    return re.compile(rf"(?<![\w$])(?:{alternatives})\s*\(")


def _argument_end(text: str, open_paren: int) -> int:
    """Index of the parenthesis closing ``text[open_paren]``.

    Parentheses inside string literals are ignored. An unclosed call, as
    found in broken source, runs to the end of the text.
    """
    depth = 0
    quote = None
    i = open_paren
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 1
            elif ch == quote:
                quote = None
        elif ch in "\"'`":
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return len(text)


def _argument_spans(text: str, pattern: re.Pattern[str]) -> list[tuple[int, int]]:
    spans = []
    for match in pattern.finditer(text):
        open_paren = match.end() - 1
        spans.append((open_paren + 1, _argument_end(text, open_paren)))
    return spans


def text_logs_word(text: str, word: str, sinks: list[str]) -> bool:
    """Text fallback: a sink call whose argument list mentions ``word``.

    Argument lists are matched across lines up to their closing parenthesis.
    """
    if not sinks or not word:
        return False
    return any(
        contains_word(text[start:end], word)
        for start, end in _argument_spans(text, _sink_call_pattern(tuple(sinks)))
    )


def word_only_in_calls(text: str, word: str, names: list[str]) -> bool:
    """Whether every whole-word occurrence of ``word`` sits inside the
    argument list of a call to one of ``names`` (matched by leaf name).
    """
    if not names or not word:
        return False
    occurrences = [m.start() for m in _word_pattern(word).finditer(text)]
    if not occurrences:
        return False
    spans = _argument_spans(text, _leaf_call_pattern(tuple(names)))
    return all(any(start <= pos < end for start, end in spans) for pos in occurrences)
