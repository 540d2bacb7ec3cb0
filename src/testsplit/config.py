"""Configuration parsing from ``.testsplit.yml``.

Example file::

    split:
      num_groups: 4
      tests_from: tests
      groups_to: tests/_log/paracept_
      loader: unittest
      file_patterns: ["test_*.py", "*Test.py"]
      groups: [smoke, slow]

Values may reference environment variables as ``${VAR_NAME}``.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from testsplit.sharding.errors import InvalidConfigurationError
from testsplit.sharding.inventory import DEFAULT_FILE_PATTERNS, available_loaders

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".testsplit.yml"

DEFAULT_TESTS_FROM = "tests"
DEFAULT_GROUPS_TO = "tests/_log/paracept_"
DEFAULT_LOADER = "unittest"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item) if isinstance(item, str) else item for item in value
            ]
        else:
            result[key] = value
    return result


def _setting(
    section: dict[str, Any],
    key: str,
    env_var: str | None = None,
    default: Any = None,
) -> Any:
    """Return *key* from *section*; a missing or blank value falls back to env, then default."""
    value = section.get(key)
    if value is None and env_var is not None:
        value = os.environ.get(env_var)
    return default if value is None else value


def _as_int(key: str, value: Any) -> int:
    msg = f"{key} must be an integer (got: {value!r})"
    if isinstance(value, bool):
        raise InvalidConfigurationError(msg)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidConfigurationError(msg) from exc


def _as_str_tuple(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple)):
        return tuple(str(item) for item in value)
    return ()


@dataclass(frozen=True)
class SplitConfig:
    """Settings shared by every split task.

    Relative ``tests_from`` and ``groups_to`` values are resolved against
    ``project_root``.
    """

    num_groups: int
    """Number of groups to split into (must be >= 1)."""

    tests_from: str = DEFAULT_TESTS_FROM
    """Directory holding the tests."""

    groups_to: str = DEFAULT_GROUPS_TO
    """Prefix for group files; the 1-based group index is appended."""

    project_root: str = field(default_factory=os.getcwd)
    """Base directory for relative paths."""

    groups: tuple[str, ...] = ()
    """Annotation groups to select, in request order (named-group split only)."""

    loader: str = DEFAULT_LOADER
    """Name of the test loader used to enumerate test cases."""

    file_patterns: tuple[str, ...] = DEFAULT_FILE_PATTERNS
    """Filename globs used by the file split."""

    def __post_init__(self) -> None:
        # Keep request order but drop repeated group names.
        object.__setattr__(self, "groups", tuple(dict.fromkeys(self.groups)))
        object.__setattr__(self, "file_patterns", tuple(self.file_patterns))

    @property
    def root_path(self) -> Path:
        """``project_root`` as a ``Path``."""
        return Path(self.project_root)

    @property
    def tests_path(self) -> Path:
        """Absolute (or root-relative) directory the tests are loaded from."""
        return self.root_path / self.tests_from

    @property
    def groups_prefix(self) -> str:
        """Group file prefix resolved against the project root."""
        return str(self.root_path / self.groups_to)


def load_config(root: str | Path, **overrides: Any) -> SplitConfig:
    """Load ``.testsplit.yml`` from *root* and apply *overrides*.

    Precedence, highest first: keyword overrides (``None`` values are
    ignored), the ``split:`` section of the YAML file, ``TESTSPLIT_*``
    environment variables, built-in defaults.  A missing file is not an
    error.
    """
    root_path = Path(root).resolve()
    config_file = root_path / CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_file.is_file():
        parsed = yaml.safe_load(config_file.read_text(encoding="utf-8"))
        if isinstance(parsed, dict):
            raw = _resolve_dict(parsed)

    split_raw = raw.get("split", {})
    if not isinstance(split_raw, dict):
        split_raw = {}

    values: dict[str, Any] = {
        "num_groups": _as_int(
            "num_groups", _setting(split_raw, "num_groups", "TESTSPLIT_NUM_GROUPS", 0)
        ),
        "tests_from": str(_setting(split_raw, "tests_from", default=DEFAULT_TESTS_FROM)),
        "groups_to": str(
            _setting(split_raw, "groups_to", "TESTSPLIT_GROUPS_TO", DEFAULT_GROUPS_TO)
        ),
        "project_root": str(root_path),
        "groups": _as_str_tuple(split_raw.get("groups")),
        "loader": str(_setting(split_raw, "loader", "TESTSPLIT_LOADER", DEFAULT_LOADER)),
        "file_patterns": _as_str_tuple(
            _setting(split_raw, "file_patterns", default=DEFAULT_FILE_PATTERNS)
        ),
    }

    config = SplitConfig(**values)
    explicit = {key: value for key, value in overrides.items() if value is not None}
    if explicit:
        config = replace(config, **explicit)
    return config


def validate_config(config: SplitConfig, *, check_loader: bool = True) -> list[str]:
    """Validate the configuration and return a list of error messages.

    Pass ``check_loader=False`` when a loader instance is supplied directly
    and ``config.loader`` is not used.  Returns an empty list if the
    configuration is valid.
    """
    errors: list[str] = []

    if config.num_groups < 1:
        errors.append(f"num_groups must be a positive integer (got: {config.num_groups})")

    if not config.groups_to:
        errors.append("groups_to must not be empty")

    if check_loader and config.loader not in available_loaders():
        errors.append(
            f"loader must be one of {', '.join(available_loaders())} (got: {config.loader!r})"
        )

    if not config.file_patterns:
        errors.append("file_patterns must contain at least one pattern")

    return errors
