"""Error types raised while processing explanation annotations.

Every error is raised while a function is being decorated or while a
source pass runs, never when the rewritten function is later called.
"""


class ExplanationError(Exception):
    """Base class for all explanation processing errors."""


class UsageError(ExplanationError):
    """An annotation was attached to, or used in, the wrong place.

    Covers directives applied to something that is not a function,
    ``expl`` markers outside an ``@explained`` body, and markers or
    directives with the wrong number or kind of arguments.
    """


class ExplanationNotFoundError(ExplanationError, LookupError):
    """A cross-reference names a function that was never registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Explanation for '{name}' not found")
        self.name = name


class LiteralTypeError(ExplanationError, TypeError):
    """An argument that must be a literal is a runtime expression."""
