"""Round-robin test sharding: inventories, partitioning and group files.

The split tasks live in ``testsplit.sharding.tasks``; they are not
re-exported here because they depend on ``testsplit.config``.
"""

from testsplit.sharding.annotations import (
    GroupSelection,
    build_group_set,
    extract_groups,
    select_groups,
)
from testsplit.sharding.errors import (
    GroupWriteError,
    InvalidConfigurationError,
    InventoryError,
    MissingDependencyError,
    NoValidGroupsError,
    SplitError,
)
from testsplit.sharding.inventory import (
    CaseInfo,
    PytestLoader,
    SuiteLoader,
    UnittestLoader,
    discover_test_files,
    get_loader,
    list_tests,
)
from testsplit.sharding.observer import LoggingObserver, SplitObserver
from testsplit.sharding.splitter import partition, split_into_shards
from testsplit.sharding.writer import group_path, write_group, write_groups

__all__ = [
    "CaseInfo",
    "GroupSelection",
    "GroupWriteError",
    "InvalidConfigurationError",
    "InventoryError",
    "LoggingObserver",
    "MissingDependencyError",
    "NoValidGroupsError",
    "PytestLoader",
    "SplitError",
    "SplitObserver",
    "SuiteLoader",
    "UnittestLoader",
    "build_group_set",
    "discover_test_files",
    "extract_groups",
    "get_loader",
    "group_path",
    "list_tests",
    "partition",
    "select_groups",
    "split_into_shards",
    "write_group",
    "write_groups",
]
