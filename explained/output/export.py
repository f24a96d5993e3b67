"""Export of composed explanation blocks to a text file."""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class ExplanationExporter:
    """Writes composed explanation text to a fixed path.

    Every write replaces the whole file, so when several functions
    export to the same path only the last one's block remains.
    """

    def __init__(self, path: str) -> None:
        self.path = Path(path)

    def write(self, text: str) -> Path:
        """Overwrite the export file with ``text``.

        Args:
            text: Composed message and table.

        Returns:
            Path of the written file.
        """
        if self.path.parent != Path("."):
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(text, encoding="utf-8")
        logger.info("Exported explanations to %s", self.path)
        return self.path
