"""Docstring composition for explained functions.

Builds the block made of a summary message and its rendered table,
adds it to a function's structured docstring, optionally exports it,
and splices finished docstrings back into function syntax trees.
"""

import ast
import logging
from typing import Iterable, Optional

from explained.output.export import ExplanationExporter
from explained.output.table import render_table
from explained.parsers.extractor import FunctionNode
from explained.parsers.structure import (
    DocComment,
    DocSection,
    ExplanationPair,
    SectionKind,
)
from explained.utils.config import ExplanationConfig

logger = logging.getLogger(__name__)


class DocumentationComposer:
    """Composes explanation tables into function docstrings.

    Honors the export path and suppress-in-docs settings of an
    ExplanationConfig. The export happens for every composed function,
    whether or not the table ends up in the docstring.
    """

    def __init__(
        self,
        config: Optional[ExplanationConfig] = None,
        exporter: Optional[ExplanationExporter] = None,
    ) -> None:
        """Initialize the composer.

        Args:
            config: Export and suppression settings. Defaults to an
                ExplanationConfig with both disabled.
            exporter: Writer for exported blocks. Created from
                ``config.export_path`` when not provided.
        """
        self.config = config or ExplanationConfig()
        if exporter is None and self.config.export_path:
            exporter = ExplanationExporter(self.config.export_path)
        self.exporter = exporter

    def compose_block(self, message: str, pairs: Iterable[ExplanationPair]) -> str:
        """Return the summary message followed by its rendered table."""
        return message + "\n" + render_table(list(pairs))

    def compose(
        self,
        message: str,
        pairs: Iterable[ExplanationPair],
        existing: Optional[str] = None,
    ) -> str:
        """Compose the docstring text for a function.

        Args:
            message: Summary message of the table.
            pairs: Rows of the table.
            existing: The function's current docstring, if any.

        Returns:
            ``existing`` followed by a blank line and the block, or just
            the block when there is no existing docstring.
        """
        block = self.compose_block(message, pairs)
        if existing:
            return existing + "\n\n" + block
        return block

    def apply(
        self,
        doc: DocComment,
        message: str,
        pairs: Iterable[ExplanationPair],
    ) -> DocComment:
        """Add a function's own table to its docstring model.

        Args:
            doc: The function's structured docstring, edited in place.
            message: Summary message of the table.
            pairs: Rows of the table.

        Returns:
            The same DocComment, for chaining.
        """
        pairs = list(pairs)
        if self.exporter is not None:
            self.exporter.write(self.compose_block(message, pairs))
        if self.config.suppress_in_docs:
            logger.debug("Explanations suppressed in docs, leaving docstring as is")
            return doc
        doc.add(DocSection(kind=SectionKind.OWN, message=message, pairs=pairs))
        return doc


def docstring_node(node: FunctionNode) -> Optional[ast.Expr]:
    """Return the docstring statement of a function node, if present."""
    if not node.body:
        return None
    first = node.body[0]
    if (
        isinstance(first, ast.Expr)
        and isinstance(first.value, ast.Constant)
        and isinstance(first.value.value, str)
    ):
        return first
    return None


def indent_docstring(text: str, indent: str) -> str:
    """Indent every line but the first so the docstring sits in its body."""
    lines = text.split("\n")
    indented = [lines[0]] + [indent + line if line else line for line in lines[1:]]
    if len(lines) > 1:
        # Closing quotes line up with the body.
        indented[-1] = indented[-1] if indented[-1].strip() else indent
    return "\n".join(indented)


def insert_docstring(node: FunctionNode, text: str, indent: str = "") -> FunctionNode:
    """Replace or insert the docstring of a function node.

    Args:
        node: Function definition to edit in place.
        text: Docstring text, without indentation.
        indent: Indentation of the function body, applied to every line
            after the first.

    Returns:
        The edited node.
    """
    value = indent_docstring(text, indent) if indent else text
    existing = docstring_node(node)
    if existing is not None:
        existing.value = ast.Constant(value=value)
    else:
        node.body.insert(0, ast.Expr(value=ast.Constant(value=value)))
    ast.fix_missing_locations(node)
    return node
