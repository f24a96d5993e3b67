"""Data models for explanation tables and generated docstrings.

Defines the value/explanation pairs collected from ``expl`` markers,
the per-function records kept in the registry, and the structured
docstring model the composer and cross-reference operations edit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional

from explained.output.table import render_table


@dataclass(frozen=True)
class ExplanationPair:
    """A single row of an explanation table.

    Attributes:
        value: Source text of the annotated value expression.
        explanation: Free-text description of when the value occurs.
    """

    value: str
    explanation: str

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary.

        Returns:
            Dictionary representation of this pair.
        """
        return {"value": self.value, "explanation": self.explanation}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExplanationPair:
        """Deserialize from a dictionary.

        Args:
            data: Dictionary with ``value`` and ``explanation`` keys.

        Returns:
            A new ExplanationPair instance.
        """
        return cls(value=data["value"], explanation=data["explanation"])


@dataclass(frozen=True)
class ExplanationRecord:
    """The registered explanation table of one annotated function.

    Attributes:
        name: Registry key of the function.
        message: Summary message placed before the table.
        pairs: Collected pairs in source order.
    """

    name: str
    message: str
    pairs: tuple[ExplanationPair, ...] = ()

    @property
    def table(self) -> str:
        """The rendered table for this record's pairs."""
        return render_table(self.pairs)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary.

        Returns:
            Dictionary representation of this record.
        """
        return {
            "name": self.name,
            "message": self.message,
            "pairs": [p.to_dict() for p in self.pairs],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExplanationRecord:
        """Deserialize from a dictionary.

        Args:
            data: Dictionary with record fields.

        Returns:
            A new ExplanationRecord instance.
        """
        return cls(
            name=data["name"],
            message=data["message"],
            pairs=tuple(ExplanationPair.from_dict(p) for p in data.get("pairs", [])),
        )


class SectionKind(str, Enum):
    """Origin of a generated docstring section."""

    OWN = "own"
    REFERENCE = "reference"


@dataclass
class DocSection:
    """One generated block of a docstring.

    Attributes:
        kind: Whether the table belongs to the function itself or was
            copied from another function.
        message: Text placed before the table.
        pairs: Rows of the table.
        source: Registry name the section was copied from, if any.
    """

    kind: SectionKind
    message: str
    pairs: list[ExplanationPair] = field(default_factory=list)
    source: Optional[str] = None

    def render(self) -> str:
        """Render the section as docstring text.

        Returns:
            The message followed by the rendered table.
        """
        separator = "\n" if self.kind == SectionKind.OWN else "\n\n"
        return self.message + separator + render_table(self.pairs)


@dataclass
class DocComment:
    """A docstring split into its hand-written part and generated sections.

    Attributes:
        original: The docstring written by the author, if any.
        sections: Generated sections in the order they were added.
    """

    original: Optional[str] = None
    sections: list[DocSection] = field(default_factory=list)

    def add(self, section: DocSection) -> DocSection:
        self.sections.append(section)
        return section

    def own_section(self) -> Optional[DocSection]:
        """Return the section holding the function's own table, if any."""
        for section in self.sections:
            if section.kind == SectionKind.OWN:
                return section
        return None

    def render(self) -> Optional[str]:
        """Render the full docstring text.

        Returns:
            The original docstring and every section joined by blank
            lines, or None if there is nothing to render.
        """
        parts = [self.original] if self.original else []
        parts.extend(section.render() for section in self.sections)
        if not parts:
            return None
        return "\n\n".join(parts)


def as_pairs(items: Iterable[Any]) -> list[ExplanationPair]:
    """Coerce ``(value, explanation)`` tuples or pairs into ExplanationPairs."""
    pairs = []
    for item in items:
        if isinstance(item, ExplanationPair):
            pairs.append(item)
        else:
            value, explanation = item
            pairs.append(ExplanationPair(value=str(value), explanation=explanation))
    return pairs
