"""Template manager for loading and rendering Jinja2 report templates.

Provides a centralized interface for rendering explanation reports
from Jinja2 templates stored in the templates/ directory.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Sequence

from jinja2 import Environment, FileSystemLoader

from explained.parsers.structure import ExplanationRecord

logger = logging.getLogger(__name__)

_DEFAULT_TEMPLATES_DIR = Path(__file__).parent.parent / "templates"

REPORT_TEMPLATES = {
    "rst": "report.rst.j2",
    "md": "report.md.j2",
}


class TemplateManager:
    """Loads and renders Jinja2 templates for explanation reports."""

    def __init__(self, templates_dir: Optional[str] = None) -> None:
        """Initialize the template manager.

        Args:
            templates_dir: Path to the templates directory. Uses the
                package's templates/ directory if not specified.
        """
        self._templates_path = (
            Path(templates_dir) if templates_dir else _DEFAULT_TEMPLATES_DIR
        )

        if not self._templates_path.exists():
            logger.warning("Templates directory not found: %s", self._templates_path)

        self._env = Environment(
            loader=FileSystemLoader(str(self._templates_path)),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        logger.debug("Template manager initialized with: %s", self._templates_path)

    def render_report(
        self,
        records: Sequence[ExplanationRecord],
        title: str = "Explanations",
        fmt: str = "rst",
    ) -> str:
        """Render a report listing every record with its table.

        Args:
            records: Records to include, in order.
            title: Report title.
            fmt: ``rst`` or ``md``.

        Returns:
            Rendered report text.

        Raises:
            ValueError: If ``fmt`` is not a known report format.
        """
        if fmt not in REPORT_TEMPLATES:
            raise ValueError(
                f"Unknown report format {fmt!r}, expected one of {sorted(REPORT_TEMPLATES)}"
            )
        return self._render(REPORT_TEMPLATES[fmt], records=list(records), title=title)

    def _render(self, template_name: str, **kwargs: Any) -> str:
        """Render a template with the given context variables.

        Raises:
            TemplateNotFound: If the template file does not exist.
        """
        template = self._env.get_template(template_name)
        rendered = template.render(**kwargs)
        logger.debug("Rendered template %s (%d chars)", template_name, len(rendered))
        return rendered

    def list_templates(self) -> list[str]:
        """List all available template files."""
        return self._env.list_templates()
