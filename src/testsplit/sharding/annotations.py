"""Annotation-based test groups.

Tests declare the groups they belong to in their documentation text,
one ``@group <name>`` line per group::

    def test_checkout(self):
        '''Checkout happy path.

        @group smoke
        @group payments
        '''

``build_group_set`` turns a loaded suite into a mapping of group name to
test ids, and ``select_groups`` flattens a caller's chosen groups into a
single inventory ready for partitioning.

The line pattern is not anchored: any line containing ``group`` followed
by whitespace counts, so prose such as "runs as a group of three" also
declares a group named ``of three``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from testsplit.sharding.errors import NoValidGroupsError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from testsplit.sharding.inventory import CaseInfo

logger = logging.getLogger(__name__)

_GROUP_LINE_RE = re.compile(r"group\s(.*)$")


@dataclass
class GroupSelection:
    """Result of selecting named groups out of a group set."""

    tests: list[str] = field(default_factory=list)
    """Flattened, de-duplicated test ids of all matched groups."""

    matched: list[str] = field(default_factory=list)
    """Requested group names that exist, in request order."""

    unknown: list[str] = field(default_factory=list)
    """Requested group names with no tests, in request order."""


def extract_groups(doc: str) -> list[str]:
    """Return the group names declared in *doc*, one per matching line.

    Repeated declarations are returned repeatedly.
    """
    names: list[str] = []
    for line in doc.splitlines():
        match = _GROUP_LINE_RE.search(line)
        if match is None:
            continue
        name = match.group(1).strip()
        if name:
            names.append(name)
    return names


def build_group_set(tests: Iterable[CaseInfo]) -> dict[str, list[str]]:
    """Map each declared group name to the ids of the tests declaring it.

    Keys appear in first-seen order and test ids in suite order.  A test
    that declares the same group on two lines is listed twice.
    """
    group_set: dict[str, list[str]] = {}
    for test in tests:
        for name in extract_groups(test.doc):
            group_set.setdefault(name, []).append(test.name)
    return group_set


def select_groups(group_set: dict[str, list[str]], requested: Sequence[str]) -> GroupSelection:
    """Flatten the requested groups of *group_set* into one inventory.

    Unknown names are collected rather than raised so the caller can
    report them and carry on with the rest.

    Raises:
        NoValidGroupsError: If none of the requested names exist.
    """
    selection = GroupSelection()
    seen_names: set[str] = set()
    for name in requested:
        if name in seen_names:
            continue
        seen_names.add(name)
        if name in group_set:
            selection.matched.append(name)
        else:
            selection.unknown.append(name)

    if not selection.matched:
        raise NoValidGroupsError(selection.unknown)

    seen_tests: set[str] = set()
    for name in selection.matched:
        for test_id in group_set[name]:
            if test_id not in seen_tests:
                seen_tests.add(test_id)
                selection.tests.append(test_id)

    logger.debug(
        "Selected %d tests from groups %s (unknown: %s)",
        len(selection.tests),
        selection.matched,
        selection.unknown,
    )
    return selection
