"""Test and file inventories — the ordered lists that get partitioned.

Two sources are supported:

* A **test loader** enumerates individual test cases together with their
  documentation text (needed for ``@group`` annotations).  Loaders are
  looked up by name with ``get_loader``.
* **File discovery** walks the test directory for files whose names match
  glob patterns.  It never imports test code, so it works even when no
  loader is available.

Both return their items in a stable order so repeated runs against an
unchanged suite produce identical groups.
"""

from __future__ import annotations

import contextlib
import io
import logging
import unittest
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from testsplit.sharding.errors import (
    InvalidConfigurationError,
    InventoryError,
    MissingDependencyError,
)

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_FILE_PATTERNS = ("test_*.py", "*_test.py", "*Test.py")
"""Filename globs matched by ``discover_test_files`` when none are configured."""

_UNITTEST_PATTERN = "test*.py"


@dataclass(frozen=True)
class CaseInfo:
    """A single loaded test case."""

    name: str
    """Stable full name of the test (e.g. ``pkg.test_mod.TestCls.test_x``)."""

    doc: str = ""
    """Documentation text attached to the test, ``""`` when absent."""


class SuiteLoader(Protocol):
    """Anything that can enumerate the test cases under a directory."""

    def load_tests(self, root: Path) -> list[CaseInfo]:
        """Return every test case under *root* in discovery order."""
        ...


# ── unittest ─────────────────────────────────────────────────────


def _iter_cases(suite: unittest.TestSuite) -> Iterator[unittest.TestCase]:
    for test in suite:
        if isinstance(test, unittest.TestSuite):
            yield from _iter_cases(test)
        else:
            yield test


def _method_doc(test: unittest.TestCase) -> str:
    method_name = getattr(test, "_testMethodName", None)
    if method_name is None:
        return ""
    method = getattr(test, method_name, None)
    return getattr(method, "__doc__", None) or ""


class UnittestLoader:
    """Loads tests with the standard library's ``unittest`` discovery.

    When the test directory is a package, discovery imports it from the
    first ancestor that is not a package (never above *project_root*), so
    relative imports inside the suite resolve and test ids carry the
    package path.
    """

    name = "unittest"

    def __init__(
        self,
        pattern: str = _UNITTEST_PATTERN,
        project_root: Path | None = None,
    ) -> None:
        self.pattern = pattern
        self.project_root = project_root

    def _top_level_dir(self, root: Path) -> Path:
        top = root
        while (
            (top / "__init__.py").is_file()
            and top != self.project_root
            and top.parent != top
        ):
            top = top.parent
        return top

    def load_tests(self, root: Path) -> list[CaseInfo]:
        loader = unittest.TestLoader()
        top_level = self._top_level_dir(root)
        try:
            suite = loader.discover(
                str(root), pattern=self.pattern, top_level_dir=str(top_level)
            )
        except ImportError as exc:
            msg = f"Cannot discover unittest tests in {root}: {exc}"
            raise InventoryError(msg) from exc

        if loader.errors:
            msg = f"Failed to import tests under {root}:\n{loader.errors[0]}"
            raise InventoryError(msg)

        tests = [CaseInfo(name=case.id(), doc=_method_doc(case)) for case in _iter_cases(suite)]
        logger.debug("unittest discovered %d tests under %s", len(tests), root)
        return tests


# ── pytest ───────────────────────────────────────────────────────


class _CollectedItems:
    """pytest plugin that records the items of a ``--collect-only`` session."""

    def __init__(self) -> None:
        self.tests: list[CaseInfo] = []

    def pytest_collection_finish(self, session: Any) -> None:
        for item in session.items:
            obj = getattr(item, "obj", None)
            doc = getattr(obj, "__doc__", None) or ""
            self.tests.append(CaseInfo(name=item.nodeid, doc=doc))


class PytestLoader:
    """Loads tests through an in-process ``pytest --collect-only`` run.

    Node ids are relative to *project_root* when one is given.  pytest's
    own terminal output is captured and only surfaces in error messages.
    """

    name = "pytest"

    def __init__(self, project_root: Path | None = None) -> None:
        self.project_root = project_root

    def load_tests(self, root: Path) -> list[CaseInfo]:
        try:
            import pytest  # noqa: PLC0415
        except ImportError as exc:
            msg = "The pytest loader requires pytest to be installed (pip install pytest)"
            raise MissingDependencyError(msg) from exc

        args = ["--collect-only", "-q", "-p", "no:cacheprovider"]
        if self.project_root is not None:
            args.append(f"--rootdir={self.project_root}")
        args.append(str(root))

        collector = _CollectedItems()
        output = io.StringIO()
        with contextlib.redirect_stdout(output):
            exit_code = pytest.main(args, plugins=[collector])
        if exit_code not in (pytest.ExitCode.OK, pytest.ExitCode.NO_TESTS_COLLECTED):
            msg = (
                f"pytest collection failed under {root} (exit code {int(exit_code)}):\n"
                f"{output.getvalue().strip()}"
            )
            raise InventoryError(msg)

        logger.debug("pytest collected %d tests under %s", len(collector.tests), root)
        return collector.tests


# ── Registry ─────────────────────────────────────────────────────

_LOADERS: dict[str, type[UnittestLoader] | type[PytestLoader]] = {
    UnittestLoader.name: UnittestLoader,
    PytestLoader.name: PytestLoader,
}


def available_loaders() -> list[str]:
    """Return the names accepted by ``get_loader``."""
    return sorted(_LOADERS)


def get_loader(name: str, project_root: Path | None = None) -> SuiteLoader:
    """Instantiate the test loader registered under *name*.

    *project_root* anchors the test ids the loader produces.

    Raises:
        InvalidConfigurationError: If no loader has that name.
    """
    loader_cls = _LOADERS.get(name)
    if loader_cls is None:
        msg = f"Unknown test loader {name!r} (available: {', '.join(available_loaders())})"
        raise InvalidConfigurationError(msg)
    return loader_cls(project_root=project_root)


def list_tests(root: Path, loader: SuiteLoader) -> list[str]:
    """Return the full names of all tests under *root* in loader order."""
    return [test.name for test in loader.load_tests(root)]


# ── Files ────────────────────────────────────────────────────────


def discover_test_files(
    project_root: Path,
    tests_from: str | Path,
    patterns: Sequence[str] = DEFAULT_FILE_PATTERNS,
) -> list[str]:
    """Discover test files by filename pattern.

    Args:
        project_root: Directory the returned paths are relative to.
        tests_from: Directory to search, relative to *project_root*.
        patterns: Filename globs such as ``test_*.py`` or ``*Test.py``.

    Returns:
        Sorted, unique POSIX paths relative to *project_root*.  Empty when
        the search directory does not exist.
    """
    search_root = project_root / tests_from
    if not search_root.is_dir():
        logger.debug("Test directory %s does not exist", search_root)
        return []

    files: set[str] = set()
    for pattern in patterns:
        files.update(
            path.relative_to(project_root).as_posix()
            for path in search_root.rglob(pattern)
            if path.is_file()
        )
    return sorted(files)
