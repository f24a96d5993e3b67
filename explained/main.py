"""Entry point for the explanation table generator.

Delegates to the Click command group.
"""

from explained.cli.commands import explain


def main() -> None:
    """Launch the CLI."""
    explain(prog_name="explain")


if __name__ == "__main__":
    main()
