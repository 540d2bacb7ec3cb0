"""Output reporters for testsplit."""

from testsplit.reporters.terminal import CLIReporter, reporter

__all__ = ["CLIReporter", "reporter"]
