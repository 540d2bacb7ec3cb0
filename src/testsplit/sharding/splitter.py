"""Round-robin partitioning of an ordered inventory into groups."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from testsplit.sharding.errors import InvalidConfigurationError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

T = TypeVar("T")


def _check_group_count(group_count: int) -> None:
    if group_count < 1:
        msg = f"group count must be >= 1, got {group_count}"
        raise InvalidConfigurationError(msg)


def partition(items: Iterable[T], group_count: int) -> dict[int, list[T]]:
    """Assign items to groups ``1..group_count`` by round-robin.

    Item ``i`` (zero-based, in input order) goes to group
    ``(i % group_count) + 1``.  Group sizes differ by at most one and
    lower-numbered groups are never smaller.  Groups that receive no
    items are omitted, so an empty inventory yields ``{}``.

    Args:
        items: Ordered inventory (test ids or file paths).
        group_count: Number of groups to spread the items across.

    Returns:
        Mapping of 1-based group index to the items assigned to it,
        with keys in ascending order.

    Raises:
        InvalidConfigurationError: If group_count is less than 1.
    """
    _check_group_count(group_count)

    groups: dict[int, list[T]] = {}
    for i, item in enumerate(items):
        groups.setdefault((i % group_count) + 1, []).append(item)
    return groups


def split_into_shards(
    items: Sequence[T],
    shard_index: int,
    shard_count: int,
) -> list[T]:
    """Return the items a single zero-based shard receives.

    Uses the same round-robin rule as ``partition``: shard ``k`` here is
    group ``k + 1`` there.

    Raises:
        InvalidConfigurationError: If shard_count is less than 1.
        ValueError: If shard_index is outside ``[0, shard_count)``.
    """
    _check_group_count(shard_count)
    if shard_index < 0 or shard_index >= shard_count:
        msg = f"shard_index must be in [0, {shard_count}), got {shard_index}"
        raise ValueError(msg)
    return [item for i, item in enumerate(items) if i % shard_count == shard_index]
