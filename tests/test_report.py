"""Tests for the explanation report writer."""

from pathlib import Path

import pytest

from explained.output.report import ReportWriter
from explained.parsers.structure import ExplanationPair, ExplanationRecord


@pytest.fixture
def writer(tmp_path: Path) -> ReportWriter:
    """Create a ReportWriter with a temp output directory."""
    return ReportWriter(output_dir=str(tmp_path / "docs"))


@pytest.fixture
def records() -> list[ExplanationRecord]:
    """Sample registry records."""
    return [
        ExplanationRecord(
            name="main",
            message="Exit codes:",
            pairs=(ExplanationPair("0", "Success"),),
        )
    ]


class TestReportWriter:
    """Tests for ReportWriter."""

    def test_default_path_rst(
        self, writer: ReportWriter, records: list[ExplanationRecord], tmp_path: Path
    ) -> None:
        path = writer.write(records)
        assert path == tmp_path / "docs" / "explanations.rst"
        assert "Exit codes:" in path.read_text()

    def test_default_path_md(
        self, writer: ReportWriter, records: list[ExplanationRecord], tmp_path: Path
    ) -> None:
        path = writer.write(records, fmt="md")
        assert path == tmp_path / "docs" / "explanations.md"

    def test_explicit_output(
        self, writer: ReportWriter, records: list[ExplanationRecord], tmp_path: Path
    ) -> None:
        output = tmp_path / "out" / "EXIT_CODES.rst"
        path = writer.write(records, output=str(output), title="CLI")
        assert path == output
        assert path.read_text().startswith("CLI\n===\n")

    def test_render_matches_write(
        self, writer: ReportWriter, records: list[ExplanationRecord]
    ) -> None:
        path = writer.write(records)
        assert path.read_text() == writer.render(records)

    def test_no_records(self, writer: ReportWriter) -> None:
        content = writer.render([], title="Empty")
        assert content.startswith("Empty\n=====\n")
