"""Registry of explanation tables, keyed by function name.

A registry lives for one documentation pass: the source processor
creates one per processed module, while the decorator API shares a
process-wide default instance.
"""

import logging
from typing import Iterable, Iterator

from explained.errors import ExplanationNotFoundError
from explained.parsers.structure import ExplanationPair, ExplanationRecord, as_pairs

logger = logging.getLogger(__name__)


class ExplanationRegistry:
    """Maps function names to their registered explanation records.

    Records are immutable once registered. Registering a name again
    replaces the previous record.
    """

    def __init__(self) -> None:
        self._records: dict[str, ExplanationRecord] = {}

    def register(
        self,
        name: str,
        message: str,
        pairs: Iterable[ExplanationPair],
    ) -> ExplanationRecord:
        """Register the explanation table of a function.

        Args:
            name: Registry key, usually the function name.
            message: Summary message of the table.
            pairs: Value/explanation pairs in table order.

        Returns:
            The newly stored record.
        """
        if name in self._records:
            logger.debug("Replacing registered explanations for %s", name)
        record = ExplanationRecord(name=name, message=message, pairs=tuple(as_pairs(pairs)))
        self._records[name] = record
        logger.debug("Registered %d explanations for %s", len(record.pairs), name)
        return record

    def lookup(self, name: str) -> ExplanationRecord:
        """Return the record registered under a name.

        Args:
            name: Registry key to look up.

        Returns:
            The registered record.

        Raises:
            ExplanationNotFoundError: If nothing is registered under ``name``.
        """
        try:
            return self._records[name]
        except KeyError:
            raise ExplanationNotFoundError(name) from None

    def require(self, names: Iterable[str]) -> list[ExplanationRecord]:
        """Look up several names, failing before returning any record."""
        return [self.lookup(name) for name in names]

    def names(self) -> list[str]:
        return list(self._records)

    def records(self) -> list[ExplanationRecord]:
        return list(self._records.values())

    def clear(self) -> None:
        self._records.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ExplanationRecord]:
        return iter(self.records())
