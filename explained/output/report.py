"""Report generation for registered explanation tables.

Collects the records of one or more explanation passes into a single
reStructuredText or Markdown document, for example to publish the exit
codes of a command-line tool next to its other documentation.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence

from explained.generators.template_manager import TemplateManager
from explained.parsers.structure import ExplanationRecord

logger = logging.getLogger(__name__)

_EXTENSIONS = {"rst": ".rst", "md": ".md"}


class ReportWriter:
    """Writes explanation reports through Jinja2 templates."""

    def __init__(
        self,
        output_dir: str = "docs/generated",
        template_manager: Optional[TemplateManager] = None,
    ) -> None:
        """Initialize the report writer.

        Args:
            output_dir: Directory used when no explicit output path is
                given.
            template_manager: Template manager for the report templates.
                Creates a default instance if not provided.
        """
        self.output_dir = Path(output_dir)
        self.templates = template_manager or TemplateManager()

    def render(
        self,
        records: Sequence[ExplanationRecord],
        title: str = "Explanations",
        fmt: str = "rst",
    ) -> str:
        """Render a report without writing it."""
        return self.templates.render_report(records, title=title, fmt=fmt)

    def write(
        self,
        records: Sequence[ExplanationRecord],
        output: Optional[str] = None,
        title: str = "Explanations",
        fmt: str = "rst",
    ) -> Path:
        """Render a report and write it to disk.

        Args:
            records: Records to include, in order.
            output: Target file. Defaults to ``explanations.<ext>`` in
                the output directory.
            title: Report title.
            fmt: ``rst`` or ``md``.

        Returns:
            Path to the written report.
        """
        content = self.render(records, title=title, fmt=fmt)
        if output:
            path = Path(output)
        else:
            path = self.output_dir / f"explanations{_EXTENSIONS.get(fmt, '.txt')}"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

        logger.info("Wrote explanation report (%d records): %s", len(records), path)
        return path
