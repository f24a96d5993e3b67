"""Explained.

Keeps the documentation of return values and messages next to the code
that produces them, and assembles it into docstring tables.
"""

__version__ = "0.1.0"

from explained.decorators import (  # noqa: E402
    add_explanation,
    add_explanations,
    default_registry,
    expl,
    explained,
    merge_explanations,
)
from explained.errors import (  # noqa: E402
    ExplanationError,
    ExplanationNotFoundError,
    LiteralTypeError,
    UsageError,
)

__all__ = [
    "ExplanationError",
    "ExplanationNotFoundError",
    "LiteralTypeError",
    "UsageError",
    "add_explanation",
    "add_explanations",
    "default_registry",
    "expl",
    "explained",
    "merge_explanations",
]
