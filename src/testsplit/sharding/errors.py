"""Exceptions raised while building and writing test groups."""

from __future__ import annotations


class SplitError(Exception):
    """Base exception for all test-splitting failures."""


class MissingDependencyError(SplitError):
    """Raised when the test loader a task needs is not importable."""


class InvalidConfigurationError(SplitError, ValueError):
    """Raised when a split is configured with unusable values (e.g. zero groups)."""


class InventoryError(SplitError):
    """Raised when a test loader fails to enumerate the suite."""


class NoValidGroupsError(SplitError):
    """Raised when none of the requested annotation groups exist."""

    def __init__(self, unknown: list[str]) -> None:
        self.unknown = list(unknown)
        names = ", ".join(self.unknown) or "<none>"
        super().__init__(f"No valid groups provided (unknown: {names})")


class GroupWriteError(SplitError, OSError):
    """Raised when a group file cannot be written."""
