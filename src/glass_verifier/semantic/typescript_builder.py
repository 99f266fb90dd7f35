"""TypeScript/JavaScript semantic model builder using tree-sitter."""

from __future__ import annotations

from collections.abc import Iterator

import structlog
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from glass_verifier.config import AnalysisConfig
from glass_verifier.semantic.base import (
    CallSite,
    ErrorHandler,
    FunctionSignature,
    ImportRef,
    ModelBuilder,
    Parameter,
    SemanticModel,
)

logger = structlog.get_logger()

TS_LANGUAGE = Language(tree_sitter_typescript.language_typescript())
TSX_LANGUAGE = Language(tree_sitter_typescript.language_tsx())

_FUNCTION_VALUES = {"arrow_function", "function_expression", "function", "generator_function"}
_FUNCTION_DECLARATIONS = {"function_declaration", "generator_function_declaration"}
_IDENTIFIER_TYPES = {"identifier", "property_identifier", "shorthand_property_identifier"}
_STRING_TYPES = {"string", "template_string"}


def _text(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf8")


def _walk(node: Node, prune: frozenset[str] = frozenset()) -> Iterator[Node]:
    """Pre-order walk in source order, not descending into ``prune`` types."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        if current.type in prune and current is not node:
            continue
        stack.extend(reversed(current.children))


def _line(node: Node) -> int:
    return node.start_point[0] + 1


def _dotted(node: Node | None) -> str | None:
    """Dotted path of an identifier / member / string-subscript chain."""
    if node is None:
        return None
    if node.type in ("identifier", "this"):
        return _text(node)
    if node.type == "member_expression":
        base = _dotted(node.child_by_field_name("object"))
        prop = node.child_by_field_name("property")
        if base and prop is not None and prop.type in ("property_identifier", "private_property_identifier"):
            return f"{base}.{_text(prop)}"
        return None
    if node.type == "subscript_expression":
        index = node.child_by_field_name("index")
        if index is not None and index.type == "string":
            base = _dotted(node.child_by_field_name("object"))
            key = _unquote(_text(index))
            return f"{base}.{key}" if base and key else None
    return None


def _unquote(value: str) -> str:
    return value.strip("'\"`")


def _type_text(annotation: Node | None) -> str | None:
    """Text of a type annotation without its leading colon."""
    if annotation is None:
        return None
    text = _text(annotation).strip()
    return text[1:].strip() if text.startswith(":") else text


class TypeScriptModelBuilder(ModelBuilder):
    """Builds semantic models of TypeScript and JavaScript modules."""

    def __init__(self) -> None:
        self._parsers = {
            "typescript": Parser(TS_LANGUAGE),
            "tsx": Parser(TSX_LANGUAGE),
        }

    @property
    def language(self) -> str:
        return "typescript"

    @property
    def file_extensions(self) -> list[str]:
        return [".ts", ".tsx", ".js", ".jsx", ".mts", ".cts"]

    def _build(self, source: str, file_path: str, config: AnalysisConfig) -> SemanticModel | None:
        grammar = "tsx" if file_path.endswith((".tsx", ".jsx")) else "typescript"
        tree = self._parsers[grammar].parse(source.encode("utf8"))
        root = tree.root_node

        if root.has_error and not config.recover_syntax_errors:
            logger.debug("TypeScript parse failed", path=file_path, grammar=grammar)
            return None

        identifiers: set[str] = set()
        member_paths: set[str] = set()
        calls: list[CallSite] = []
        handlers: list[ErrorHandler] = []
        imports: list[ImportRef] = []

        # Parameter declarations are signatures, not references
        for node in _walk(root, prune=frozenset({"formal_parameters"})):
            if node.type == "formal_parameters":
                continue

            if node.type in _IDENTIFIER_TYPES:
                identifiers.add(_text(node))

            elif node.type in ("member_expression", "subscript_expression"):
                path = _dotted(node)
                if path:
                    member_paths.add(path)
                    if node.type == "subscript_expression":
                        identifiers.add(path.rsplit(".", 1)[-1])

            elif node.type == "call_expression":
                call = self._call_site(node)
                calls.append(call)
                if call.callee == "require":
                    imports.extend(self._require_specifier(node))

            elif node.type == "catch_clause":
                handlers.append(ErrorHandler(
                    line=_line(node),
                    error_types=frozenset(self._handled_types(node)),
                ))

            elif node.type in ("import_statement", "export_statement"):
                source_node = node.child_by_field_name("source")
                if source_node is not None:
                    imports.append(ImportRef(specifier=_unquote(_text(source_node))))

        return SemanticModel(
            language=self.language,
            tree=tree,
            functions=tuple(self._top_level_functions(root)),
            identifiers=frozenset(identifiers),
            member_paths=frozenset(member_paths),
            calls=tuple(calls),
            error_handlers=tuple(handlers),
            imports=tuple(imports),
            parse_ok=not root.has_error,
        )

    # ------------------------------------------------------------------
    # Signatures
    # ------------------------------------------------------------------

    def _top_level_functions(self, root: Node) -> Iterator[FunctionSignature]:
        for child in root.named_children:
            declarations = [child]
            if child.type == "export_statement":
                declarations = [c for c in child.named_children if c.type != "comment"]

            for decl in declarations:
                if decl.type in _FUNCTION_DECLARATIONS:
                    yield self._signature(_text(decl.child_by_field_name("name")), decl)
                elif decl.type in ("lexical_declaration", "variable_declaration"):
                    for declarator in decl.named_children:
                        if declarator.type != "variable_declarator":
                            continue
                        value = declarator.child_by_field_name("value")
                        if value is not None and value.type in _FUNCTION_VALUES:
                            name = _text(declarator.child_by_field_name("name"))
                            yield self._signature(name, value)

    def _signature(self, name: str, node: Node) -> FunctionSignature:
        parameters: list[Parameter] = []
        params_node = node.child_by_field_name("parameters")
        if params_node is not None:
            for param in params_node.named_children:
                parsed = self._parameter(param)
                if parsed is not None:
                    parameters.append(parsed)
        else:
            # Arrow function with a single bare parameter: x => ...
            single = node.child_by_field_name("parameter")
            if single is not None:
                parameters.append(Parameter(name=_text(single)))

        return FunctionSignature(
            name=name,
            line=_line(node),
            parameters=tuple(parameters),
            return_type=_type_text(node.child_by_field_name("return_type")),
            is_async=any(c.type == "async" for c in node.children),
        )

    def _parameter(self, param: Node) -> Parameter | None:
        if param.type == "comment":
            return None

        pattern = param.child_by_field_name("pattern") or param
        type_hint = _type_text(param.child_by_field_name("type"))

        if pattern.type == "assignment_pattern":
            pattern = pattern.child_by_field_name("left") or pattern
        if pattern.type == "rest_pattern" and pattern.named_children:
            pattern = pattern.named_children[0]

        if pattern.type == "object_pattern":
            return Parameter(
                name=_text(pattern),
                type_hint=type_hint,
                destructured=tuple(self._destructured(pattern)),
            )
        return Parameter(name=_text(pattern), type_hint=type_hint)

    def _destructured(self, pattern: Node) -> Iterator[tuple[str, str]]:
        for prop in pattern.named_children:
            if prop.type == "shorthand_property_identifier_pattern":
                name = _text(prop)
                yield name, name
            elif prop.type == "pair_pattern":
                key = _text(prop.child_by_field_name("key"))
                value = prop.child_by_field_name("value")
                if value is not None and value.type == "assignment_pattern":
                    value = value.child_by_field_name("left")
                local = _text(value) if value is not None and value.type == "identifier" else key
                yield key, local
            elif prop.type == "object_assignment_pattern":
                left = prop.child_by_field_name("left")
                name = _text(left)
                yield name, name

    # ------------------------------------------------------------------
    # Calls, handlers, imports
    # ------------------------------------------------------------------

    def _call_site(self, node: Node) -> CallSite:
        function = node.child_by_field_name("function")
        callee = _dotted(function) or _text(function)
        names: set[str] = set()
        arguments = node.child_by_field_name("arguments")
        if arguments is not None:
            for child in _walk(arguments):
                if child.type in _IDENTIFIER_TYPES:
                    names.add(_text(child))
                elif child.type in ("member_expression", "subscript_expression"):
                    path = _dotted(child)
                    if path:
                        names.add(path)
                        names.add(path.rsplit(".", 1)[-1])
        return CallSite(callee=callee, line=_line(node), arguments=frozenset(names))

    def _require_specifier(self, node: Node) -> list[ImportRef]:
        arguments = node.child_by_field_name("arguments")
        if arguments is None or not arguments.named_children:
            return []
        first = arguments.named_children[0]
        if first.type != "string":
            return []
        return [ImportRef(specifier=_unquote(_text(first)))]

    def _handled_types(self, clause: Node) -> set[str]:
        types: set[str] = set()

        annotation = _type_text(clause.child_by_field_name("type"))
        if annotation and annotation not in ("unknown", "any"):
            types.add(annotation)

        body = clause.child_by_field_name("body")
        if body is None:
            return types

        for node in _walk(body):
            if node.type != "binary_expression":
                continue
            operator = node.child_by_field_name("operator")
            op = operator.type if operator is not None else ""
            left = node.child_by_field_name("left")
            right = node.child_by_field_name("right")

            if op == "instanceof":
                path = _dotted(right)
                if path:
                    types.add(path.rsplit(".", 1)[-1])

            elif op in ("===", "=="):
                # e.name === "NetworkError" / e.code === "ETIMEDOUT"
                for member, literal in ((left, right), (right, left)):
                    if (
                        member is not None
                        and literal is not None
                        and member.type == "member_expression"
                        and literal.type in _STRING_TYPES
                        and _text(member.child_by_field_name("property")) in ("name", "code", "type")
                    ):
                        types.add(_unquote(_text(literal)))
        return types
