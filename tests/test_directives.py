"""Tests for recognizing explanation decorators in source."""

import ast
import textwrap

import pytest

from explained.errors import LiteralTypeError, UsageError
from explained.parsers.directives import (
    DirectiveKind,
    directive_name,
    parse_directive,
    parse_directives,
)


def _decorator(expression: str) -> ast.expr:
    """Parse a single decorator expression."""
    return ast.parse(f"@{expression}\ndef f():\n    pass\n").body[0].decorator_list[0]


class TestDirectiveName:
    """Tests for directive_name."""

    def test_bare_name(self) -> None:
        assert directive_name(_decorator('explained("Returns:")')) == "explained"

    def test_attribute(self) -> None:
        assert directive_name(_decorator('explained.merge_explanations(["a"])')) == (
            "merge_explanations"
        )

    def test_unrelated(self) -> None:
        assert directive_name(_decorator("staticmethod")) is None


class TestParseDirective:
    """Tests for parse_directive."""

    def test_explained(self) -> None:
        directive = parse_directive(_decorator('explained("Returns:")'))
        assert directive.kind == DirectiveKind.EXPLAINED
        assert directive.argument == "Returns:"
        assert directive.line_number == 1

    def test_add_explanation(self) -> None:
        directive = parse_directive(_decorator('add_explanation(("", "hello"))'))
        assert directive.argument == ("", "hello")

    def test_add_explanations(self) -> None:
        directive = parse_directive(
            _decorator('add_explanations([("test", "hello"), ("test2", "world")])')
        )
        assert directive.argument == [("test", "hello"), ("test2", "world")]

    def test_merge_explanations(self) -> None:
        directive = parse_directive(_decorator('merge_explanations(["hello", "world"])'))
        assert directive.argument == ["hello", "world"]

    def test_unrelated_returns_none(self) -> None:
        assert parse_directive(_decorator("functools.cache")) is None

    def test_non_literal_argument(self) -> None:
        with pytest.raises(LiteralTypeError):
            parse_directive(_decorator("explained(MESSAGE)"))

    def test_wrong_shape(self) -> None:
        with pytest.raises(LiteralTypeError):
            parse_directive(_decorator('add_explanation("hello")'))

    def test_merge_needs_names(self) -> None:
        with pytest.raises(LiteralTypeError):
            parse_directive(_decorator("merge_explanations([1, 2])"))

    def test_not_called(self) -> None:
        with pytest.raises(UsageError):
            parse_directive(_decorator("explained"))

    def test_keyword_arguments(self) -> None:
        with pytest.raises(UsageError):
            parse_directive(_decorator('explained("Returns:", name="x")'))


class TestParseDirectives:
    """Tests for parse_directives."""

    def test_application_order(self) -> None:
        source = textwrap.dedent("""\
            @merge_explanations(["hello"])
            @staticmethod
            @explained("Returns:")
            def f():
                pass
        """)
        node = ast.parse(source).body[0]
        kinds = [d.kind for d in parse_directives(node)]
        assert kinds == [DirectiveKind.EXPLAINED, DirectiveKind.MERGE_EXPLANATIONS]

    def test_no_decorators(self) -> None:
        node = ast.parse("def f():\n    pass\n").body[0]
        assert parse_directives(node) == []
