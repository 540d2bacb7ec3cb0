"""Split tasks: fetch an inventory, partition it, write the group files.

Three tasks share the same pipeline and differ only in where the
inventory comes from:

* ``SplitTestsTask`` — every test case the configured loader finds.
* ``SplitTestFilesTask`` — test files found by filename pattern; no test
  code is imported.
* ``SplitGroupsTask`` — test cases carrying any of the requested
  ``@group`` annotations, merged and de-duplicated.

Each ``run()`` is one synchronous pass.  Fatal problems raise a
``SplitError`` subclass before anything is written, except write failures
which stop the run part-way through.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from testsplit.config import validate_config
from testsplit.sharding.annotations import build_group_set, select_groups
from testsplit.sharding.errors import InvalidConfigurationError, NoValidGroupsError
from testsplit.sharding.inventory import discover_test_files, get_loader, list_tests
from testsplit.sharding.observer import LoggingObserver
from testsplit.sharding.splitter import partition
from testsplit.sharding.writer import write_groups

if TYPE_CHECKING:
    from pathlib import Path

    from testsplit.config import SplitConfig
    from testsplit.sharding.annotations import GroupSelection
    from testsplit.sharding.inventory import SuiteLoader
    from testsplit.sharding.observer import SplitObserver

logger = logging.getLogger(__name__)


@dataclass
class SplitReport:
    """Outcome of a completed split."""

    groups: dict[int, list[str]] = field(default_factory=dict)
    """Identifiers assigned to each 1-based group index."""

    written: list[Path] = field(default_factory=list)
    """Group files written, in index order."""

    unknown_groups: list[str] = field(default_factory=list)
    """Requested annotation groups that matched no tests."""

    @property
    def total(self) -> int:
        """Number of identifiers distributed across all groups."""
        return sum(len(ids) for ids in self.groups.values())


class SplitTask(ABC):
    """Shared configuration handling and partition/write step."""

    def __init__(
        self,
        config: SplitConfig,
        *,
        loader: SuiteLoader | None = None,
        observer: SplitObserver | None = None,
    ) -> None:
        errors = validate_config(config, check_loader=loader is None)
        if errors:
            raise InvalidConfigurationError("; ".join(errors))
        self.config = config
        self.observer: SplitObserver = observer or LoggingObserver()
        self._loader = loader

    @property
    def loader(self) -> SuiteLoader:
        """The test loader, resolved from the config on first use."""
        if self._loader is None:
            self._loader = get_loader(self.config.loader, project_root=self.config.root_path)
        return self._loader

    @abstractmethod
    def inventory(self) -> list[str]:
        """Return the ordered identifiers this task distributes."""

    @abstractmethod
    def run(self) -> SplitReport:
        """Build the inventory, partition it and write the group files."""

    def split(self, inventory: list[str]) -> dict[int, list[str]]:
        """Partition *inventory* into the configured number of groups."""
        return partition(inventory, self.config.num_groups)

    def _partition_and_write(self, inventory: list[str]) -> SplitReport:
        groups = self.split(inventory)
        written = write_groups(groups, self.config.groups_prefix, self.observer)
        return SplitReport(groups=groups, written=written)


class SplitTestsTask(SplitTask):
    """Split individual test cases into groups.

    Example::

        config = SplitConfig(num_groups=5, groups_to="tests/_log/paratest_")
        SplitTestsTask(config).run()
    """

    def inventory(self) -> list[str]:
        return list_tests(self.config.tests_path, self.loader)

    def run(self) -> SplitReport:
        tests = self.inventory()
        self.observer.info(f"Processing {len(tests)} tests")
        return self._partition_and_write(tests)


class SplitTestFilesTask(SplitTask):
    """Split test files into groups without loading any tests.

    Paths in the group files are relative to ``config.project_root``.
    """

    def inventory(self) -> list[str]:
        return discover_test_files(
            self.config.root_path,
            self.config.tests_from,
            self.config.file_patterns,
        )

    def run(self) -> SplitReport:
        files = self.inventory()
        self.observer.info(f"Processing {len(files)} files")
        return self._partition_and_write(files)


class SplitGroupsTask(SplitTask):
    """Split the tests of selected ``@group`` annotations into groups.

    The number of output groups (``config.num_groups``) is independent of
    how many annotation groups are selected.
    """

    def tests_by_group(self) -> dict[str, list[str]]:
        """Scan the suite and map each annotation group to its test ids."""
        return build_group_set(self.loader.load_tests(self.config.tests_path))

    def group_names(self) -> list[str]:
        """Return every annotation group declared in the suite."""
        return list(self.tests_by_group())

    def _report_unknown(self, names: list[str]) -> None:
        for name in names:
            self.observer.warning(f"Unknown group: {name}")

    def select(self) -> GroupSelection:
        """Select the configured groups, reporting unknown names.

        Raises:
            NoValidGroupsError: If none of ``config.groups`` exist.  Unknown
                names are reported to the observer first.
        """
        try:
            selection = select_groups(self.tests_by_group(), self.config.groups)
        except NoValidGroupsError as exc:
            self._report_unknown(exc.unknown)
            raise
        self._report_unknown(selection.unknown)
        return selection

    def inventory(self) -> list[str]:
        """Return the de-duplicated tests of the selected groups."""
        return self.select().tests

    def run(self) -> SplitReport:
        selection = self.select()
        self.observer.info(f"Processing {len(selection.matched)} groups.")
        report = self._partition_and_write(selection.tests)
        report.unknown_groups = selection.unknown
        return report
