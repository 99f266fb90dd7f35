"""Python semantic model builder using the ast module."""

import ast

import structlog

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


class PythonModelBuilder(ModelBuilder):
    """Builds semantic models of Python implementation modules."""

    @property
    def language(self) -> str:
        return "python"

    @property
    def file_extensions(self) -> list[str]:
        return [".py", ".pyi"]

    @property
    def comment_prefix(self) -> str:
        return "#"

    def _build(self, source: str, file_path: str, config: AnalysisConfig) -> SemanticModel | None:
        try:
            tree = ast.parse(source, filename=file_path or "<implementation>")
        except SyntaxError as e:
            logger.debug("Python parse failed", path=file_path, error=str(e))
            return None

        identifiers: set[str] = set()
        member_paths: set[str] = set()
        calls: list[CallSite] = []
        handlers: list[ErrorHandler] = []
        imports: list[ImportRef] = []

        for node in ast.walk(tree):
            if isinstance(node, ast.Name):
                identifiers.add(node.id)

            elif isinstance(node, ast.Attribute):
                identifiers.add(node.attr)
                path = _dotted(node)
                if path:
                    member_paths.add(path)

            elif isinstance(node, ast.Subscript):
                path = _dotted(node)
                if path:
                    member_paths.add(path)
                    identifiers.add(path.rsplit(".", 1)[-1])

            elif isinstance(node, ast.Call):
                calls.append(CallSite(
                    callee=_dotted(node.func) or ast.unparse(node.func),
                    line=node.lineno,
                    arguments=frozenset(_argument_names(node)),
                ))

            elif isinstance(node, ast.ExceptHandler):
                handlers.append(ErrorHandler(
                    line=node.lineno,
                    error_types=frozenset(_handled_types(node)),
                ))

            elif isinstance(node, ast.Import):
                for alias in node.names:
                    imports.append(ImportRef(specifier=alias.name))

            elif isinstance(node, ast.ImportFrom):
                specifier = "." * node.level + (node.module or "")
                imports.append(ImportRef(specifier=specifier))

        functions = [
            self._signature(node)
            for node in tree.body
            if isinstance(node, ast.FunctionDef | ast.AsyncFunctionDef)
        ]

        # ast.walk is breadth-first; keep call sites in source order
        calls.sort(key=lambda c: c.line)
        handlers.sort(key=lambda h: h.line)

        return SemanticModel(
            language=self.language,
            tree=tree,
            functions=tuple(functions),
            identifiers=frozenset(identifiers),
            member_paths=frozenset(member_paths),
            calls=tuple(calls),
            error_handlers=tuple(handlers),
            imports=tuple(imports),
            parse_ok=True,
        )

    def _signature(self, node: ast.FunctionDef | ast.AsyncFunctionDef) -> FunctionSignature:
        args = node.args
        positional = [*args.posonlyargs, *args.args, *args.kwonlyargs]
        if args.vararg:
            positional.append(args.vararg)
        if args.kwarg:
            positional.append(args.kwarg)

        return FunctionSignature(
            name=node.name,
            line=node.lineno,
            parameters=tuple(
                Parameter(name=arg.arg, type_hint=_annotation(arg.annotation))
                for arg in positional
            ),
            return_type=_annotation(node.returns),
            is_async=isinstance(node, ast.AsyncFunctionDef),
        )


def _annotation(annotation: ast.expr | None) -> str | None:
    if annotation is None:
        return None
    return ast.unparse(annotation)


def _dotted(node: ast.AST) -> str | None:
    """Dotted path of a name / attribute / string-subscript chain.

    ``input.user["name"]`` becomes ``input.user.name``; anything else
    (calls, computed subscripts) yields None.
    """
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        base = _dotted(node.value)
        return f"{base}.{node.attr}" if base else None
    if isinstance(node, ast.Subscript):
        key = node.slice
        if isinstance(key, ast.Constant) and isinstance(key.value, str):
            base = _dotted(node.value)
            return f"{base}.{key.value}" if base else None
    return None


def _argument_names(call: ast.Call) -> set[str]:
    names: set[str] = set()
    values = [*call.args, *(kw.value for kw in call.keywords)]
    for value in values:
        for child in ast.walk(value):
            if isinstance(child, ast.Name):
                names.add(child.id)
            elif isinstance(child, ast.Attribute | ast.Subscript):
                path = _dotted(child)
                if path:
                    names.add(path)
                    names.add(path.rsplit(".", 1)[-1])
                elif isinstance(child, ast.Attribute):
                    names.add(child.attr)
    return names


def _handled_types(handler: ast.ExceptHandler) -> set[str]:
    types: set[str] = set()

    def add(expr: ast.expr | None) -> None:
        if expr is None:
            return
        if isinstance(expr, ast.Tuple):
            for elt in expr.elts:
                add(elt)
            return
        path = _dotted(expr)
        if path:
            types.add(path.rsplit(".", 1)[-1])

    add(handler.type)

    # isinstance(err, SomeError) tests inside the handler body
    for stmt in handler.body:
        for child in ast.walk(stmt):
            if (
                isinstance(child, ast.Call)
                and isinstance(child.func, ast.Name)
                and child.func.id == "isinstance"
                and len(child.args) == 2
            ):
                add(child.args[1])
    return types
