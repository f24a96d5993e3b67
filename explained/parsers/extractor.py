"""Extraction of ``expl`` markers from Python function definitions.

Validates every marker in a function body, then rewrites a copy of the
function so each ``expl(value, "explanation")`` call is replaced by its
bare ``value`` expression, collecting the value/explanation pairs in
source order.
"""

import ast
import copy
import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from explained.errors import LiteralTypeError, UsageError
from explained.parsers.directives import DirectiveKind, directive_name
from explained.parsers.structure import ExplanationPair

logger = logging.getLogger(__name__)

FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]

DEFAULT_MARKER = "expl"


def is_explained_definition(node: ast.AST) -> bool:
    """Check whether a node is a function definition decorated with ``@explained``."""
    return isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and any(
        directive_name(d) == DirectiveKind.EXPLAINED.value for d in node.decorator_list
    )


@dataclass
class ExtractionResult:
    """Outcome of extracting markers from one function.

    Attributes:
        node: Rewritten copy of the function definition.
        pairs: Collected pairs in source order.
    """

    node: FunctionNode
    pairs: list[ExplanationPair] = field(default_factory=list)


class _MarkerEraser(ast.NodeTransformer):
    """Replaces marker calls by their value expression."""

    def __init__(self, extractor: "AnnotationExtractor") -> None:
        self._extractor = extractor
        self.collected: list[tuple[tuple[int, int], ExplanationPair]] = []

    def visit_Call(self, node: ast.Call) -> ast.AST:
        if not self._extractor.is_marker(node):
            return self.generic_visit(node)

        value, explanation = node.args
        pair = ExplanationPair(
            value=self._extractor.value_text(value),
            explanation=explanation.value,
        )
        self.collected.append(((node.lineno, node.col_offset), pair))
        # Markers nested inside the value are erased too.
        return self.visit(value)

    def visit_FunctionDef(self, node: ast.FunctionDef) -> ast.AST:
        if is_explained_definition(node):
            return node
        return self.generic_visit(node)

    visit_AsyncFunctionDef = visit_FunctionDef


class AnnotationExtractor:
    """Finds, validates and erases explanation markers.

    A marker is a call to ``expl`` by bare name or as an attribute
    (``explained.expl``) with exactly two positional arguments: the value
    expression and a string literal explaining it.
    """

    def __init__(self, marker: str = DEFAULT_MARKER, source: Optional[str] = None) -> None:
        """Initialize the extractor.

        Args:
            marker: Name of the marker callable.
            source: Source code the nodes were parsed from. When given,
                table values keep the author's exact spelling instead of
                the normalized ``ast.unparse`` form.
        """
        self.marker = marker
        self.source = source

    def is_marker(self, node: ast.AST) -> bool:
        """Check whether a node is a call to the marker."""
        if not isinstance(node, ast.Call):
            return False
        func = node.func
        if isinstance(func, ast.Name):
            return func.id == self.marker
        if isinstance(func, ast.Attribute):
            return func.attr == self.marker
        return False

    def find_markers(self, node: ast.AST) -> list[ast.Call]:
        """List every marker call under a node, in source order.

        Nested ``@explained`` definitions own their markers and are not
        searched.

        Args:
            node: Any AST node. For function definitions only the body
                is searched.

        Returns:
            Marker call nodes sorted by position.
        """
        pending = list(node.body if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) else [node])
        markers = []
        while pending:
            current = pending.pop()
            if is_explained_definition(current):
                continue
            if self.is_marker(current):
                markers.append(current)
            pending.extend(ast.iter_child_nodes(current))
        return sorted(markers, key=lambda n: (n.lineno, n.col_offset))

    def validate(self, node: ast.AST) -> None:
        """Check the shape of every marker under a node.

        Args:
            node: The function definition (or other node) to check.

        Raises:
            UsageError: If a marker does not take exactly two positional
                arguments.
            LiteralTypeError: If a marker's explanation is not a string
                literal.
        """
        for call in self.find_markers(node):
            self._validate_marker(call)

    def extract(self, node: FunctionNode) -> ExtractionResult:
        """Erase the markers of a function and collect their pairs.

        The given node is left untouched; the result holds a rewritten
        deep copy. A body without markers comes back unchanged with an
        empty pair list.

        Args:
            node: An ast.FunctionDef or ast.AsyncFunctionDef node.

        Returns:
            An ExtractionResult with the rewritten node and the pairs.

        Raises:
            UsageError: If ``node`` is not a function definition or a
                marker is malformed.
            LiteralTypeError: If a marker's explanation is not a string
                literal.
        """
        if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            raise UsageError(
                "Explanations can only be attached to a function, "
                f"not {type(node).__name__}"
            )
        self.validate(node)

        rewritten = copy.deepcopy(node)
        eraser = _MarkerEraser(self)
        rewritten.body = [eraser.visit(stmt) for stmt in rewritten.body]
        ast.fix_missing_locations(rewritten)

        pairs = [pair for _, pair in sorted(eraser.collected, key=lambda item: item[0])]
        logger.debug("Extracted %d explanations from %s", len(pairs), node.name)
        return ExtractionResult(node=rewritten, pairs=pairs)

    def value_text(self, node: ast.expr) -> str:
        """Return the text shown in the table for a value expression.

        Args:
            node: The value argument of a marker.

        Returns:
            The exact source segment when available and on one line,
            otherwise ``ast.unparse`` of the node.
        """
        if self.source is not None:
            segment = ast.get_source_segment(self.source, node)
            if segment and "\n" not in segment:
                return segment
        return ast.unparse(node)

    def _validate_marker(self, call: ast.Call) -> None:
        location = f"line {call.lineno}"
        if (
            call.keywords
            or len(call.args) != 2
            or any(isinstance(arg, ast.Starred) for arg in call.args)
        ):
            raise UsageError(
                f"{self.marker}() takes exactly two positional arguments "
                f"(value, explanation) at {location}"
            )
        explanation = call.args[1]
        if not (isinstance(explanation, ast.Constant) and isinstance(explanation.value, str)):
            raise LiteralTypeError(
                f"{self.marker}() explanation must be a string literal, "
                f"got {ast.unparse(explanation)} at {location}"
            )
