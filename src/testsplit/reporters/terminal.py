"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

console = Console()

_MAX_SAMPLE_LENGTH = 50


class CLIReporter:
    """Rich terminal output reporter for split tasks.

    Also satisfies ``SplitObserver`` so tasks can report progress through it.
    """

    def __init__(self, target: Console | None = None) -> None:
        """Initialize the CLI reporter."""
        self.console = target or console

    def print_header(self, title: str) -> None:
        """Print a bold header."""
        self.console.print(f"\n[bold cyan]{title}[/bold cyan]\n")

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(f"[dim]{message}[/dim]")

    # ── SplitObserver ──────────────────────────────────────────────────

    def info(self, message: str) -> None:
        self.print_info(message)

    def warning(self, message: str) -> None:
        self.print_warning(message)

    # ── Group summaries ────────────────────────────────────────────────

    def print_group_summary(
        self,
        groups: Mapping[int, Sequence[str]],
        written: Sequence[Path] = (),
    ) -> None:
        """Print a table of group sizes, first entries and output files."""
        total = sum(len(ids) for ids in groups.values())
        if total == 0:
            self.console.print("  [dim]Nothing to split[/dim]")
            return

        table = Table(title="Groups", title_style="bold cyan")
        table.add_column("Group", justify="right", style="bold")
        table.add_column("Size", justify="right")
        table.add_column("First entry")
        table.add_column("File", style="dim")

        for position, index in enumerate(sorted(groups)):
            ids = groups[index]
            file_name = "-"
            if position < len(written):
                file_name = self._strip_workdir(str(written[position]))
            table.add_row(str(index), str(len(ids)), self._truncate(ids[0]), file_name)

        self.console.print(table)
        self.console.print(
            f"\n[bold]{total}[/bold] entries across [bold]{len(groups)}[/bold] groups"
        )

    def print_group_names(self, names: Sequence[str]) -> None:
        """Print the annotation groups found in a suite."""
        if not names:
            self.print_warning("No @group annotations found")
            return
        for name in names:
            self.console.print(f"  • {name}")

    def _truncate(self, text: str) -> str:
        if len(text) <= _MAX_SAMPLE_LENGTH:
            return text
        return f"…{text[-(_MAX_SAMPLE_LENGTH - 1):]}"

    def _strip_workdir(self, file_path: str) -> str:
        """Strip the current working directory from file path for cleaner display.

        Args:
            file_path: Full or relative file path.

        Returns:
            Path relative to current working directory.
        """
        cwd = Path.cwd()
        try:
            return str(Path(file_path).relative_to(cwd))
        except ValueError:
            return file_path


reporter = CLIReporter()
