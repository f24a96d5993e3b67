"""CLI commands for the explanation table generator.

Provides the Click-based command group 'explain' with subcommands for
rewriting annotated modules, showing composed docstrings, and writing
explanation reports.
"""

import logging
from pathlib import Path
from typing import Optional

import click

from explained import __version__
from explained.errors import ExplanationError
from explained.generators.registry import ExplanationRegistry
from explained.generators.source_pass import ProcessedModule, SourceProcessor
from explained.output.report import ReportWriter
from explained.utils.config import AppConfig, ExplanationConfig, load_config
from explained.utils.logging import setup_logging

logger = logging.getLogger(__name__)

_EXCLUDE = {"__pycache__", ".git", ".venv", "venv", "build", "dist"}


def _collect_files(path: str) -> list[Path]:
    """Collect all Python source files from a path.

    Args:
        path: File or directory path to scan.

    Returns:
        List of source file paths.
    """
    root = Path(path)
    if root.is_file():
        return [root]
    return [
        f
        for f in sorted(root.rglob("*.py"))
        if not any(part in _EXCLUDE for part in f.parts)
    ]


def _explanation_config(
    config: AppConfig, export_path: Optional[str], no_doc: bool
) -> ExplanationConfig:
    """Apply command-line overrides to the configured explanation settings."""
    return ExplanationConfig(
        export_path=export_path if export_path is not None else config.explanations.export_path,
        suppress_in_docs=no_doc or config.explanations.suppress_in_docs,
    )


def _process(processor: SourceProcessor, file_path: Path) -> ProcessedModule:
    """Run the explanation pass, turning annotation errors into CLI errors."""
    try:
        return processor.process_file(str(file_path))
    except ExplanationError as e:
        raise click.ClickException(f"{file_path}: {e}") from e
    except SyntaxError as e:
        raise click.ClickException(f"{file_path}: invalid Python syntax: {e}") from e


@click.group()
@click.version_option(version=__version__, prog_name="explained")
def explain() -> None:
    """Explained: generate value tables from in-line explanations."""
    config = load_config()
    setup_logging(
        level=config.logging.level,
        log_format=config.logging.format,
        log_file=config.logging.file,
    )


@explain.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output", "-o", type=click.Path(), default=None, help="Output file path."
)
@click.option(
    "--export",
    "export_path",
    type=click.Path(),
    default=None,
    help="Also write each composed table to this file.",
)
@click.option("--no-doc", is_flag=True, help="Keep tables out of docstrings.")
def build(
    path: str, output: Optional[str], export_path: Optional[str], no_doc: bool
) -> None:
    """Rewrite a module with its explanation tables in the docstrings.

    Removes the expl markers and explanation decorators, and prints the
    resulting source or writes it to --output.
    """
    config = load_config()
    processor = SourceProcessor(config=_explanation_config(config, export_path, no_doc))
    processed = _process(processor, Path(path))

    if output is None:
        click.echo(processed.source, nl=False)
        return

    Path(output).write_text(processed.source, encoding="utf-8")
    click.echo(
        f"Rewrote {len(processed.functions)} explained functions to {output}"
    )


@explain.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def show(path: str) -> None:
    """Show the composed docstring of every explained function."""
    processor = SourceProcessor()
    processed = _process(processor, Path(path))

    if not processed.functions:
        click.echo("No explained functions found")
        return

    for function in processed.functions:
        click.echo(f"{function.qualname} (line {function.line_number})")
        click.echo(function.docstring or "")
        click.echo("")


@explain.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True))
@click.option(
    "--format",
    "report_format",
    type=click.Choice(["rst", "md"]),
    default=None,
    help="Report format.",
)
@click.option(
    "--output", "-o", type=click.Path(), default=None, help="Output file path."
)
@click.option("--title", default=None, help="Report title.")
def report(
    paths: tuple[str, ...],
    report_format: Optional[str],
    output: Optional[str],
    title: Optional[str],
) -> None:
    """Write a report of all explanation tables found in PATHS.

    Every module is processed in its own pass; cross-references only
    resolve within a module.
    """
    config = load_config()
    files = [f for path in paths for f in _collect_files(path)]
    click.echo(f"Found {len(files)} Python files")

    records = []
    for file_path in files:
        processor = SourceProcessor(registry=ExplanationRegistry())
        records.extend(_process(processor, file_path).records)

    writer = ReportWriter(output_dir=config.output.output_dir)
    written = writer.write(
        records,
        output=output,
        title=title or config.output.report_title,
        fmt=report_format or config.output.report_format,
    )
    click.echo(f"Report with {len(records)} tables written to {written}")
