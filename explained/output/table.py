"""Fixed-width rendering of explanation tables.

Tables use the reStructuredText "simple table" layout, so a rendered
table reads well inside a docstring and is valid markup when exported
to an ``.rst`` file::

    ====  =================================
    100   When normal execution is complete
    ====  =================================
"""

import logging
from typing import Protocol, Sequence

logger = logging.getLogger(__name__)

_COLUMN_GAP = 2


class _Row(Protocol):
    value: str
    explanation: str


def _separator(value_width: int, explanation_width: int) -> str:
    return (
        "=" * (value_width - _COLUMN_GAP)
        + " " * _COLUMN_GAP
        + "=" * (explanation_width - _COLUMN_GAP)
    )


def render_table(pairs: Sequence[_Row]) -> str:
    """Render value/explanation pairs as a two-column text table.

    Each column is as wide as its longest entry plus a two-space gap.
    Rows keep the order of ``pairs``. Every line, including the closing
    separator, ends with a newline. Column content is not escaped, so
    values containing newlines break the layout.

    Args:
        pairs: Rows to render, each with ``value`` and ``explanation``.

    Returns:
        The rendered table, or an empty string when ``pairs`` is empty.
    """
    if not pairs:
        logger.debug("No explanation pairs to render")
        return ""

    value_width = max(len(p.value) for p in pairs) + _COLUMN_GAP
    explanation_width = max(len(p.explanation) for p in pairs) + _COLUMN_GAP
    separator = _separator(value_width, explanation_width)

    lines = [separator]
    for pair in pairs:
        lines.append(
            pair.value.ljust(value_width) + pair.explanation.ljust(explanation_width)
        )
    lines.append(separator)
    return "\n".join(lines) + "\n"
