"""Recognition of explanation decorators in a syntax tree.

The source pass reads ``@explained(...)``, ``@add_explanation(...)``,
``@add_explanations(...)`` and ``@merge_explanations(...)`` straight
from the decorator list and evaluates their literal arguments, the
same way a compiler would see them.
"""

import ast
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from explained.errors import LiteralTypeError, UsageError

logger = logging.getLogger(__name__)


class DirectiveKind(str, Enum):
    """Explanation decorators, named as they are written in source."""

    EXPLAINED = "explained"
    ADD_EXPLANATION = "add_explanation"
    ADD_EXPLANATIONS = "add_explanations"
    MERGE_EXPLANATIONS = "merge_explanations"


DIRECTIVE_NAMES = frozenset(kind.value for kind in DirectiveKind)


@dataclass
class Directive:
    """A parsed explanation decorator.

    Attributes:
        kind: Which decorator it is.
        argument: Its evaluated literal argument.
        line_number: Line of the decorator in the source.
    """

    kind: DirectiveKind
    argument: Any
    line_number: int = 0


def directive_name(node: ast.expr) -> Optional[str]:
    """Return the decorator's name if it is an explanation directive.

    Both ``@explained(...)`` and ``@module.explained(...)`` are
    recognized.

    Args:
        node: A decorator expression.

    Returns:
        The directive name, or None for any other decorator.
    """
    target = node.func if isinstance(node, ast.Call) else node
    if isinstance(target, ast.Name):
        name = target.id
    elif isinstance(target, ast.Attribute):
        name = target.attr
    else:
        return None
    return name if name in DIRECTIVE_NAMES else None


def _is_reference(item: Any) -> bool:
    return (
        isinstance(item, tuple)
        and len(item) == 2
        and all(isinstance(part, str) for part in item)
    )


def _check_argument(kind: DirectiveKind, argument: Any, line: int) -> None:
    """Check the evaluated argument has the shape the directive needs."""
    if kind == DirectiveKind.EXPLAINED:
        ok = isinstance(argument, str)
        expected = "a message string"
    elif kind == DirectiveKind.ADD_EXPLANATION:
        ok = _is_reference(argument)
        expected = "a (message, name) tuple"
    elif kind == DirectiveKind.ADD_EXPLANATIONS:
        ok = isinstance(argument, (list, tuple)) and all(_is_reference(i) for i in argument)
        expected = "a list of (message, name) tuples"
    else:
        ok = isinstance(argument, (list, tuple)) and all(isinstance(i, str) for i in argument)
        expected = "a list of names"
    if not ok:
        raise LiteralTypeError(
            f"@{kind.value} at line {line} expects {expected}, got {argument!r}"
        )


def parse_directive(node: ast.expr) -> Optional[Directive]:
    """Parse one decorator into a Directive.

    Args:
        node: A decorator expression.

    Returns:
        The parsed Directive, or None if the decorator is unrelated.

    Raises:
        UsageError: If the directive is not called with one argument.
        LiteralTypeError: If the argument is not a literal of the
            expected shape.
    """
    name = directive_name(node)
    if name is None:
        return None
    kind = DirectiveKind(name)
    line = getattr(node, "lineno", 0)

    if not isinstance(node, ast.Call) or len(node.args) != 1 or node.keywords:
        raise UsageError(f"@{name} at line {line} takes exactly one positional argument")

    try:
        argument = ast.literal_eval(node.args[0])
    except ValueError:
        raise LiteralTypeError(
            f"@{name} at line {line} needs a literal argument, "
            f"got {ast.unparse(node.args[0])}"
        ) from None
    _check_argument(kind, argument, line)
    return Directive(kind=kind, argument=argument, line_number=line)


def parse_directives(node: ast.AST) -> list[Directive]:
    """Parse the explanation directives of a definition.

    Args:
        node: A function or class definition.

    Returns:
        Directives in application order, innermost decorator first.
    """
    directives = []
    for decorator in reversed(getattr(node, "decorator_list", [])):
        directive = parse_directive(decorator)
        if directive is not None:
            directives.append(directive)
    return directives
