# Licensed under the Apache License, Version 2.0
from __future__ import annotations

import ast
import logging
from typing import List, Optional, Union

from ...domain.models import Document, Range, Symbol, SymbolKind
from ...ports.symbols import SymbolServicePort

logger = logging.getLogger(__name__)

_ENUM_BASES = {"Enum", "IntEnum", "StrEnum", "Flag", "IntFlag"}


def _base_name(node: ast.expr) -> str:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return ""


def _node_range(node: ast.AST) -> Range:
    line = node.lineno - 1
    end_line = (getattr(node, "end_lineno", None) or node.lineno) - 1
    end_col = getattr(node, "end_col_offset", None) or 0
    return Range.of(line, node.col_offset, end_line, end_col)


def _target_names(node: Union[ast.Assign, ast.AnnAssign]) -> List[str]:
    targets = node.targets if isinstance(node, ast.Assign) else [node.target]
    return [t.id for t in targets if isinstance(t, ast.Name)]


class _OutlineCollector(ast.NodeVisitor):
    """Collect declarations, tracking the enclosing class/function scope."""

    def __init__(self) -> None:
        self.symbols: List[Symbol] = []
        self._scope: List[tuple[str, str]] = []

    def _container(self) -> Optional[str]:
        if not self._scope:
            return None
        return ".".join(name for _, name in self._scope)

    def _in(self, kind: str) -> bool:
        return bool(self._scope) and self._scope[-1][0] == kind

    def _add(self, name: str, kind: SymbolKind, node: ast.AST) -> None:
        self.symbols.append(Symbol(name, kind, _node_range(node), self._container()))

    def visit_ClassDef(self, node: ast.ClassDef) -> None:  # noqa: N802
        is_enum = any(_base_name(b) in _ENUM_BASES for b in node.bases)
        self._add(node.name, SymbolKind.ENUM if is_enum else SymbolKind.CLASS, node)
        self._scope.append(("class", node.name))
        self.generic_visit(node)
        self._scope.pop()

    def visit_FunctionDef(self, node: ast.FunctionDef) -> None:  # noqa: N802
        self._function(node)

    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> None:  # noqa: N802
        self._function(node)

    def _function(self, node: Union[ast.FunctionDef, ast.AsyncFunctionDef]) -> None:
        if self._in("class"):
            decorators = {_base_name(d) for d in node.decorator_list}
            if node.name == "__init__":
                kind = SymbolKind.CONSTRUCTOR
            elif "property" in decorators or "cached_property" in decorators:
                kind = SymbolKind.PROPERTY
            else:
                kind = SymbolKind.METHOD
        else:
            kind = SymbolKind.FUNCTION
        self._add(node.name, kind, node)
        self._scope.append(("function", node.name))
        self.generic_visit(node)
        self._scope.pop()

    def visit_Assign(self, node: ast.Assign) -> None:  # noqa: N802
        self._assignment(node)

    def visit_AnnAssign(self, node: ast.AnnAssign) -> None:  # noqa: N802
        self._assignment(node)

    def _assignment(self, node: Union[ast.Assign, ast.AnnAssign]) -> None:
        # Locals inside functions are not declarations.
        if self._in("function"):
            return
        for name in _target_names(node):
            if self._in("class"):
                kind = SymbolKind.FIELD
            elif name.isupper():
                kind = SymbolKind.CONSTANT
            else:
                kind = SymbolKind.VARIABLE
            self._add(name, kind, node)


class PythonSymbolAdapter(SymbolServicePort):
    """Symbol service for Python sources, built on the stdlib AST."""

    def outline(self, document: Document) -> List[Symbol]:
        try:
            # Rejoined on "\n" so ast numbers lines the same way git does.
            tree = ast.parse("\n".join(document.lines))
        except (SyntaxError, ValueError) as e:
            logger.debug("PythonSymbolAdapter: cannot parse %s: %s", document.path, e)
            return []
        collector = _OutlineCollector()
        collector.visit(tree)
        return sorted(
            collector.symbols,
            key=lambda s: (s.range.start.line, s.range.start.character, s.name),
        )

    async def fetch_symbols(self, document: Document) -> List[Symbol]:
        return self.outline(document)
