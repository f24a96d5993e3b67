"""Cross-reference operations between explained functions.

Lets one function's docstring include the explanation tables other
functions registered earlier, either as separate blocks or merged into
the function's own table. Every referenced name is checked against the
registry before the docstring is touched.
"""

import logging
from typing import Any, Callable, Iterable, Sequence, Union

from explained.errors import UsageError
from explained.generators.registry import ExplanationRegistry
from explained.parsers.structure import (
    DocComment,
    DocSection,
    ExplanationPair,
    SectionKind,
)

logger = logging.getLogger(__name__)

Reference = Union[str, Callable[..., Any]]


def reference_name(reference: Reference) -> str:
    """Resolve a reference to its registry name.

    Args:
        reference: A registry name, or a function already processed by
            ``@explained``.

    Returns:
        The registry key of the referenced function.

    Raises:
        UsageError: If the reference is neither a name nor a function.
    """
    if isinstance(reference, str):
        return reference
    name = getattr(reference, "__explained_name__", None) or getattr(
        reference, "__name__", None
    )
    if not name:
        raise UsageError(f"Cannot reference explanations of {reference!r}")
    return name


def _unpack(item: Any) -> tuple[str, str]:
    """Split an ``(override message, reference)`` item."""
    try:
        message, reference = item
    except (TypeError, ValueError):
        raise UsageError(
            f"Expected a (message, name) pair, got {item!r}"
        ) from None
    return message or "", reference_name(reference)


def add_explanation(
    doc: DocComment,
    registry: ExplanationRegistry,
    reference: tuple[str, Reference],
) -> DocComment:
    """Append another function's table to a docstring.

    The block starts with the override message, or with the referenced
    function's own summary message when the override is empty.

    Args:
        doc: Docstring to extend, edited in place.
        registry: Registry holding the referenced record.
        reference: ``(override message, referenced name)`` pair.

    Returns:
        The same DocComment.

    Raises:
        ExplanationNotFoundError: If the referenced name is unknown.
    """
    message, name = _unpack(reference)
    record = registry.lookup(name)
    doc.add(
        DocSection(
            kind=SectionKind.REFERENCE,
            message=message or record.message,
            pairs=list(record.pairs),
            source=name,
        )
    )
    logger.debug("Added explanations of %s", name)
    return doc


def add_explanations(
    doc: DocComment,
    registry: ExplanationRegistry,
    references: Iterable[tuple[str, Reference]],
) -> DocComment:
    """Append several functions' tables, one block each, in list order.

    Raises:
        ExplanationNotFoundError: If any referenced name is unknown; in
            that case the docstring is left unchanged.
    """
    references = [_unpack(item) for item in references]
    registry.require(name for _, name in references)
    for reference in references:
        add_explanation(doc, registry, reference)
    return doc


def merge_explanations(
    doc: DocComment,
    registry: ExplanationRegistry,
    current: str,
    others: Sequence[Reference],
) -> list[ExplanationPair]:
    """Merge other functions' tables into the current function's table.

    The combined rows are the current function's registered pairs
    followed by each other function's pairs, in list order. They replace
    the rows of the docstring's own section, which keeps the current
    function's summary message. When the own section was suppressed the
    docstring is left as it is. Neither registry record changes.

    Args:
        doc: The current function's docstring, edited in place.
        registry: Registry holding all records involved.
        current: Registry name of the current function.
        others: Names (or explained functions) to merge, in order.

    Returns:
        The combined pairs.

    Raises:
        ExplanationNotFoundError: If ``current`` or any other name is
            unknown.
    """
    names = [reference_name(other) for other in others]
    records = registry.require(names)
    own = registry.lookup(current)

    combined = list(own.pairs)
    for record in records:
        combined.extend(record.pairs)

    section = doc.own_section()
    if section is None:
        logger.debug("No own explanation table in %s docstring to merge into", current)
    else:
        section.pairs = list(combined)
    logger.debug("Merged %d tables into %s", len(records), current)
    return combined
