"""Tests for the expl marker extractor."""

import ast
import textwrap

import pytest

from explained.errors import LiteralTypeError, UsageError
from explained.parsers.extractor import AnnotationExtractor
from explained.parsers.structure import ExplanationPair


def _function(source: str) -> tuple[ast.FunctionDef, str]:
    """Parse a dedented source and return its first definition."""
    source = textwrap.dedent(source)
    return ast.parse(source).body[0], source


@pytest.fixture
def hello() -> tuple[ast.FunctionDef, str]:
    """The ``hello`` example function with two markers."""
    return _function("""\
        def hello():
            \"\"\"This is a test\"\"\"
            status = expl(100, "When normal execution is complete")
            print(expl("This is a test", "When we're testing the explanations module"))
            return status
    """)


class TestExtract:
    """Tests for AnnotationExtractor.extract."""

    def test_pairs_in_source_order(self, hello: tuple[ast.FunctionDef, str]) -> None:
        node, source = hello
        result = AnnotationExtractor(source=source).extract(node)
        assert result.pairs == [
            ExplanationPair("100", "When normal execution is complete"),
            ExplanationPair(
                '"This is a test"', "When we're testing the explanations module"
            ),
        ]

    def test_markers_erased(self, hello: tuple[ast.FunctionDef, str]) -> None:
        node, source = hello
        result = AnnotationExtractor(source=source).extract(node)
        rewritten = ast.unparse(result.node)
        assert "expl(" not in rewritten
        assert "status = 100" in rewritten
        assert "print('This is a test')" in rewritten

    def test_input_not_modified(self, hello: tuple[ast.FunctionDef, str]) -> None:
        node, source = hello
        extractor = AnnotationExtractor(source=source)
        extractor.extract(node)
        assert len(extractor.find_markers(node)) == 2

    def test_no_markers_is_unchanged(self) -> None:
        node, source = _function("""\
            def plain(x):
                return x + 1
        """)
        result = AnnotationExtractor(source=source).extract(node)
        assert result.pairs == []
        assert ast.dump(result.node) == ast.dump(node)

    def test_extract_twice_is_idempotent(self, hello: tuple[ast.FunctionDef, str]) -> None:
        node, source = hello
        extractor = AnnotationExtractor(source=source)
        first = extractor.extract(node)
        second = extractor.extract(first.node)
        assert second.pairs == []
        assert ast.dump(second.node) == ast.dump(first.node)

    def test_nested_marker(self) -> None:
        node, source = _function("""\
            def nested():
                return expl(expl(1, "inner") + 1, "outer")
        """)
        result = AnnotationExtractor(source=source).extract(node)
        assert [p.explanation for p in result.pairs] == ["outer", "inner"]
        assert result.pairs[0].value == 'expl(1, "inner") + 1'
        assert "return 1 + 1" in ast.unparse(result.node)

    def test_nested_explained_function_keeps_its_markers(self) -> None:
        node, source = _function("""\
            def outer():
                @explained("Inner returns:")
                def inner():
                    return expl(1, "One")

                helper = lambda: expl(2, "Two")
                return helper()
        """)
        extractor = AnnotationExtractor(source=source)
        result = extractor.extract(node)
        assert result.pairs == [ExplanationPair("2", "Two")]
        assert len(extractor.find_markers(node)) == 1
        assert "expl(1, 'One')" in ast.unparse(result.node)

    def test_attribute_marker(self) -> None:
        node, source = _function("""\
            def qualified():
                return explained.expl(0, "Always zero")
        """)
        result = AnnotationExtractor(source=source).extract(node)
        assert result.pairs == [ExplanationPair("0", "Always zero")]

    def test_markers_in_branches(self) -> None:
        node, source = _function("""\
            def classify(value):
                if value <= 100:
                    return expl(0, "low")
                elif value <= 10_000:
                    return expl(1, "medium")
                return expl(2, "high")
        """)
        result = AnnotationExtractor(source=source).extract(node)
        assert [p.explanation for p in result.pairs] == ["low", "medium", "high"]

    def test_unparse_without_source(self) -> None:
        node, _ = _function("""\
            def hello():
                return expl("text", "A string")
        """)
        result = AnnotationExtractor().extract(node)
        assert result.pairs[0].value == "'text'"

    def test_multiline_value_falls_back_to_unparse(self) -> None:
        node, source = _function("""\
            def multi():
                return expl(
                    (1,
                     2),
                    "A tuple",
                )
        """)
        result = AnnotationExtractor(source=source).extract(node)
        assert result.pairs[0].value == "(1, 2)"

    def test_custom_marker(self) -> None:
        node, source = _function("""\
            def custom():
                return why(3, "Three")
        """)
        result = AnnotationExtractor(marker="why", source=source).extract(node)
        assert result.pairs == [ExplanationPair("3", "Three")]

    def test_class_rejected(self) -> None:
        node, _ = _function("""\
            class NotAFunction:
                pass
        """)
        with pytest.raises(UsageError):
            AnnotationExtractor().extract(node)  # type: ignore[arg-type]


class TestValidate:
    """Tests for marker validation."""

    def test_non_literal_explanation(self) -> None:
        node, _ = _function("""\
            def bad(reason):
                return expl(1, reason)
        """)
        with pytest.raises(LiteralTypeError):
            AnnotationExtractor().validate(node)

    def test_fstring_explanation(self) -> None:
        node, _ = _function("""\
            def bad(reason):
                return expl(1, f"because {reason}")
        """)
        with pytest.raises(LiteralTypeError):
            AnnotationExtractor().extract(node)

    def test_wrong_arity(self) -> None:
        node, _ = _function("""\
            def bad():
                return expl(1)
        """)
        with pytest.raises(UsageError):
            AnnotationExtractor().extract(node)

    def test_keyword_arguments(self) -> None:
        node, _ = _function("""\
            def bad():
                return expl(1, explanation="One")
        """)
        with pytest.raises(UsageError):
            AnnotationExtractor().extract(node)

    def test_literal_type_error_is_type_error(self) -> None:
        assert issubclass(LiteralTypeError, TypeError)


class TestFindMarkers:
    """Tests for find_markers."""

    def test_ignores_other_calls(self) -> None:
        node, _ = _function("""\
            def calls():
                print("hello")
                return len("abc")
        """)
        assert AnnotationExtractor().find_markers(node) == []

    def test_sorted_by_position(self) -> None:
        node, _ = _function("""\
            def pair():
                return (expl(1, "a"), expl(2, "b"))
        """)
        markers = AnnotationExtractor().find_markers(node)
        assert [m.args[1].value for m in markers] == ["a", "b"]
