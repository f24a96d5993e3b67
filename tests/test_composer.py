"""Tests for docstring composition and export."""

import ast
import textwrap
from pathlib import Path

import pytest

from explained.generators.composer import (
    DocumentationComposer,
    docstring_node,
    indent_docstring,
    insert_docstring,
)
from explained.output.export import ExplanationExporter
from explained.output.table import render_table
from explained.parsers.structure import DocComment, ExplanationPair, SectionKind
from explained.utils.config import ExplanationConfig


@pytest.fixture
def pairs() -> list[ExplanationPair]:
    """Sample value/explanation pairs."""
    return [
        ExplanationPair("0", "The value passed in was low"),
        ExplanationPair("1", "The value passed in was high"),
    ]


@pytest.fixture
def composer() -> DocumentationComposer:
    """Create a composer without export or suppression."""
    return DocumentationComposer(ExplanationConfig())


class TestCompose:
    """Tests for composing docstring text."""

    def test_block(self, composer: DocumentationComposer, pairs: list[ExplanationPair]) -> None:
        assert composer.compose_block("Returns:", pairs) == "Returns:\n" + render_table(pairs)

    def test_without_existing(
        self, composer: DocumentationComposer, pairs: list[ExplanationPair]
    ) -> None:
        assert composer.compose("Returns:", pairs) == "Returns:\n" + render_table(pairs)

    def test_with_existing(
        self, composer: DocumentationComposer, pairs: list[ExplanationPair]
    ) -> None:
        text = composer.compose("Returns:", pairs, existing="Classifies a value.")
        assert text == "Classifies a value.\n\nReturns:\n" + render_table(pairs)


class TestApply:
    """Tests for adding a function's own table to its docstring model."""

    def test_adds_own_section(
        self, composer: DocumentationComposer, pairs: list[ExplanationPair]
    ) -> None:
        doc = composer.apply(DocComment(original="Classifies."), "Returns:", pairs)
        assert doc.own_section() is not None
        assert doc.own_section().kind == SectionKind.OWN
        assert doc.render() == composer.compose("Returns:", pairs, existing="Classifies.")

    def test_suppressed(self, pairs: list[ExplanationPair]) -> None:
        composer = DocumentationComposer(ExplanationConfig(suppress_in_docs=True))
        doc = composer.apply(DocComment(original="Classifies."), "Returns:", pairs)
        assert doc.sections == []
        assert doc.render() == "Classifies."

    def test_export_written(self, tmp_path: Path, pairs: list[ExplanationPair]) -> None:
        export = tmp_path / "codes.rst"
        composer = DocumentationComposer(ExplanationConfig(export_path=str(export)))
        composer.apply(DocComment(), "Returns:", pairs)
        assert export.read_text() == "Returns:\n" + render_table(pairs)

    def test_export_when_suppressed(
        self, tmp_path: Path, pairs: list[ExplanationPair]
    ) -> None:
        export = tmp_path / "codes.rst"
        composer = DocumentationComposer(
            ExplanationConfig(export_path=str(export), suppress_in_docs=True)
        )
        doc = composer.apply(DocComment(), "Returns:", pairs)
        assert doc.render() is None
        assert export.exists()

    def test_last_export_wins(self, tmp_path: Path, pairs: list[ExplanationPair]) -> None:
        export = tmp_path / "codes.rst"
        composer = DocumentationComposer(ExplanationConfig(export_path=str(export)))
        composer.apply(DocComment(), "First:", pairs)
        composer.apply(DocComment(), "Second:", pairs[:1])
        assert export.read_text() == "Second:\n" + render_table(pairs[:1])

    def test_explicit_exporter(self, tmp_path: Path, pairs: list[ExplanationPair]) -> None:
        export = tmp_path / "nested" / "codes.txt"
        composer = DocumentationComposer(exporter=ExplanationExporter(str(export)))
        composer.apply(DocComment(), "Returns:", pairs)
        assert export.exists()

    def test_no_export_by_default(self, composer: DocumentationComposer) -> None:
        assert composer.exporter is None


class TestInsertDocstring:
    """Tests for splicing docstrings into function nodes."""

    def test_insert_when_missing(self) -> None:
        node = ast.parse("def f():\n    return 1\n").body[0]
        insert_docstring(node, "New doc.")
        assert docstring_node(node) is not None
        assert ast.get_docstring(node) == "New doc."
        assert len(node.body) == 2

    def test_replace_existing(self) -> None:
        node = ast.parse('def f():\n    """Old."""\n    return 1\n').body[0]
        insert_docstring(node, "New doc.")
        assert ast.get_docstring(node) == "New doc."
        assert len(node.body) == 2

    def test_indented_round_trip(self, pairs: list[ExplanationPair]) -> None:
        text = "Returns:\n" + render_table(pairs)
        node = ast.parse("def f():\n    return 1\n").body[0]
        insert_docstring(node, text, indent="    ")
        reparsed = ast.parse(ast.unparse(node)).body[0]
        assert ast.get_docstring(reparsed) == text.rstrip("\n")

    def test_docstring_node_ignores_other_statements(self) -> None:
        node = ast.parse("def f():\n    x = 'not a docstring'\n").body[0]
        assert docstring_node(node) is None


class TestIndentDocstring:
    """Tests for indent_docstring."""

    def test_first_line_untouched(self) -> None:
        assert indent_docstring("One\nTwo", "    ") == "One\n    Two"

    def test_blank_lines_stay_empty(self) -> None:
        assert indent_docstring("One\n\nTwo", "  ") == "One\n\n  Two"

    def test_closing_line_aligned(self) -> None:
        assert indent_docstring("One\nTwo\n", "    ") == "One\n    Two\n    "

    def test_single_line(self) -> None:
        assert indent_docstring("One", "    ") == "One"
