"""Decorator API for documenting values in-line.

Explaining the values a function can return in a hand-written table
tends to go stale: somebody changes a branch and forgets the table.
``@explained`` keeps each explanation next to the value it describes::

    @explained("This function can return the following:")
    def classify(value: int) -> int:
        if value <= 100:
            return expl(0, "The value passed in was low (<100)")
        if value <= 10_000:
            return expl(1, "The value passed in was medium (>100, <10_000)")
        return expl(2, "The value passed in was high (>10_000)")

When the ``def`` statement runs, the function is recompiled without the
``expl`` calls and the table is appended to its docstring. Calling the
function afterwards costs nothing extra.

Tables registered this way can be pulled into other docstrings with
``add_explanation``, ``add_explanations`` and ``merge_explanations``,
stacked above ``@explained``.
"""

import ast
import inspect
import logging
import textwrap
import types
from typing import Any, Callable, Iterable, Optional, Sequence, TypeVar

from explained.errors import UsageError
from explained.generators import crossref
from explained.generators.composer import DocumentationComposer
from explained.generators.registry import ExplanationRegistry
from explained.parsers.directives import DIRECTIVE_NAMES, DirectiveKind, directive_name
from explained.parsers.extractor import DEFAULT_MARKER, AnnotationExtractor, FunctionNode
from explained.parsers.structure import DocComment
from explained.utils.config import ExplanationConfig

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

_FACTORY_NAME = "__explained_factory__"

default_registry = ExplanationRegistry()


def expl(value: Any, explanation: str) -> Any:
    """Mark a value with its explanation inside an ``@explained`` body.

    ``@explained`` removes every call to this function from the bodies
    it rewrites, so reaching it at runtime means it was used somewhere
    it is not processed.

    Raises:
        UsageError: Always.
    """
    raise UsageError("expl() can't be used outside a function decorated with @explained")


def _registry(registry: Optional[ExplanationRegistry]) -> ExplanationRegistry:
    return registry if registry is not None else default_registry


def _require_function(obj: Any, directive: str) -> None:
    if not inspect.isfunction(obj):
        raise UsageError(
            f"@{directive} can only be applied to a function, not {type(obj).__name__}"
        )


def _doc_comment(func: Any) -> DocComment:
    """Return the structured docstring of a function, creating it if needed."""
    doc = getattr(func, "__explanations__", None)
    if doc is None:
        doc = DocComment(original=inspect.cleandoc(func.__doc__) if func.__doc__ else None)
    return doc


def _store_doc(func: Any, doc: DocComment) -> None:
    func.__explanations__ = doc
    func.__doc__ = doc.render()


def _registry_name(func: Any) -> str:
    return getattr(func, "__explained_name__", None) or func.__name__


def _parse_function(func: Any) -> tuple[FunctionNode, str, int]:
    """Parse the source of a function.

    Returns:
        The function definition node, the dedented source it was parsed
        from and the line the source starts on in its file.
    """
    try:
        lines, first_line = inspect.getsourcelines(func)
    except (OSError, TypeError) as e:
        raise UsageError(f"Cannot read the source of {func.__qualname__}: {e}") from e

    source = textwrap.dedent("".join(lines))
    tree = ast.parse(source)
    node = tree.body[0] if tree.body else None
    if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
        raise UsageError(f"@explained can only be applied to a def statement ({func.__qualname__})")
    return node, source, first_line


def _strip_decorators(node: FunctionNode) -> None:
    """Drop the decorators before recompiling the function.

    Decorators below ``@explained`` were applied to the function we
    received; re-running them on the recompiled body is not possible,
    so only explanation directives may sit there.
    """
    names = [directive_name(d) for d in node.decorator_list]
    if DirectiveKind.EXPLAINED.value in names:
        below = node.decorator_list[names.index(DirectiveKind.EXPLAINED.value) + 1:]
        foreign = [ast.unparse(d) for d in below if directive_name(d) not in DIRECTIVE_NAMES]
        if foreign:
            raise UsageError(
                f"@explained must be the innermost decorator of {node.name}, "
                f"found {', '.join(foreign)} below it"
            )
    node.decorator_list = []


def _find_code(code: types.CodeType, name: str) -> types.CodeType:
    for const in code.co_consts:
        if isinstance(const, types.CodeType) and const.co_name == name:
            return const
    raise LookupError(f"No code object named {name}")


def _owner_class(func: Any) -> Optional[str]:
    """Return the name of the class a function was defined in, if any."""
    parts = func.__qualname__.split(".")
    if len(parts) > 1 and parts[-2] != "<locals>":
        return parts[-2]
    return None


def _recompile(func: Any, node: FunctionNode, first_line: int) -> Any:
    """Compile a rewritten definition into a function replacing ``func``.

    The definition is compiled inside a factory that declares the
    original free variables, so the new code closes over the same cells
    as the original function. Methods get the factory wrapped in a class
    of the same name, so private names are mangled as before.
    """
    freevars = func.__code__.co_freevars
    lines = [f"def {_FACTORY_NAME}():"]
    lines += [f"    {name} = None" for name in freevars]
    lines.append("    pass")
    owner = _owner_class(func)
    if owner:
        lines = [f"class {owner}:"] + [f"    {line}" for line in lines]
    module = ast.parse("\n".join(lines) + "\n")
    factory = module.body[0].body[0] if owner else module.body[0]

    ast.increment_lineno(node, first_line - 1)
    factory.body[-1:] = [node, ast.Return(value=ast.Name(id=node.name, ctx=ast.Load()))]
    ast.fix_missing_locations(module)

    filename = inspect.getsourcefile(func) or func.__code__.co_filename
    code = compile(module, filename, "exec")
    if owner:
        code = _find_code(code, owner)
    func_code = _find_code(_find_code(code, _FACTORY_NAME), node.name)
    if hasattr(func_code, "co_qualname"):
        func_code = func_code.replace(co_qualname=func.__qualname__)

    cells = dict(zip(freevars, func.__closure__ or ()))
    closure = tuple(cells[name] for name in func_code.co_freevars)

    new_func = types.FunctionType(
        func_code,
        func.__globals__,
        func.__name__,
        func.__defaults__,
        closure or None,
    )
    new_func.__kwdefaults__ = func.__kwdefaults__
    new_func.__qualname__ = func.__qualname__
    new_func.__module__ = func.__module__
    new_func.__annotations__ = dict(func.__annotations__)
    new_func.__dict__.update(func.__dict__)
    return new_func


def explained(
    message: str,
    *,
    registry: Optional[ExplanationRegistry] = None,
    config: Optional[ExplanationConfig] = None,
    name: Optional[str] = None,
    marker: str = DEFAULT_MARKER,
) -> Callable[[F], F]:
    """Append a table of the function's ``expl`` markers to its docstring.

    Every ``expl(value, "explanation")`` call in the body is replaced by
    ``value`` and becomes one row of the table, in source order. The
    message is placed right above the table. When an export path is
    configured the message and table are also written to that file.

    Args:
        message: Summary message shown before the table.
        registry: Registry to record the table in, for later
            cross-references. Defaults to the module-level registry.
        config: Export and suppression settings. Defaults to the
            EXPLAINED_EXPORT and EXPLAINED_NO_DOC environment variables.
        name: Registry key. Defaults to the function's ``__name__``.
        marker: Name of the marker callable.

    Returns:
        A decorator returning the rewritten function.

    Raises:
        UsageError: If applied to anything but a plain function, if
            other decorators sit below it, or if a marker is malformed.
        LiteralTypeError: If a marker's explanation is not a string
            literal.
    """
    if not isinstance(message, str):
        raise UsageError(f"@explained expects a message string, got {message!r}")

    def decorator(func: F) -> F:
        _require_function(func, DirectiveKind.EXPLAINED.value)
        node, source, first_line = _parse_function(func)
        _strip_decorators(node)

        extractor = AnnotationExtractor(marker=marker, source=source)
        result = extractor.extract(node)
        new_func = _recompile(func, result.node, first_line)

        composer = DocumentationComposer(
            config if config is not None else ExplanationConfig.from_env()
        )
        doc = composer.apply(_doc_comment(func), message, result.pairs)

        key = name or func.__name__
        _registry(registry).register(key, message, result.pairs)
        new_func.__explained_name__ = key
        _store_doc(new_func, doc)
        logger.debug("Explained %s with %d values", func.__qualname__, len(result.pairs))
        return new_func

    return decorator


def add_explanation(
    reference: tuple[str, Any],
    *,
    registry: Optional[ExplanationRegistry] = None,
) -> Callable[[F], F]:
    """Append another function's explanation table to the docstring.

    Args:
        reference: ``(message, function)`` where ``function`` is a
            registered name or an explained function. An empty message
            reuses the referenced function's own summary message.
        registry: Registry to look the reference up in.

    Raises:
        ExplanationNotFoundError: If the reference was never registered.
    """

    def decorator(func: F) -> F:
        _require_function(func, DirectiveKind.ADD_EXPLANATION.value)
        doc = crossref.add_explanation(_doc_comment(func), _registry(registry), reference)
        _store_doc(func, doc)
        return func

    return decorator


def add_explanations(
    references: Iterable[tuple[str, Any]],
    *,
    registry: Optional[ExplanationRegistry] = None,
) -> Callable[[F], F]:
    """Same as ``add_explanation`` for several references, in order."""
    references = list(references)

    def decorator(func: F) -> F:
        _require_function(func, DirectiveKind.ADD_EXPLANATIONS.value)
        doc = crossref.add_explanations(_doc_comment(func), _registry(registry), references)
        _store_doc(func, doc)
        return func

    return decorator


def merge_explanations(
    others: Sequence[Any],
    *,
    registry: Optional[ExplanationRegistry] = None,
) -> Callable[[F], F]:
    """Merge other functions' tables into this function's own table.

    The result is one table sharing this function's summary message:
    its own rows first, then each other function's rows in list order.
    The function must already be processed by ``@explained``.

    Raises:
        ExplanationNotFoundError: If this function or any of ``others``
            was never registered.
    """
    others = list(others)

    def decorator(func: F) -> F:
        _require_function(func, DirectiveKind.MERGE_EXPLANATIONS.value)
        doc = _doc_comment(func)
        crossref.merge_explanations(doc, _registry(registry), _registry_name(func), others)
        _store_doc(func, doc)
        return func

    return decorator
