"""Tests for the testsplit CLI commands."""

from __future__ import annotations

import json
import textwrap
from typing import TYPE_CHECKING

import yaml
from click.testing import CliRunner

from testsplit.cli import cli

if TYPE_CHECKING:
    from pathlib import Path


def _make_files(root: Path, *names: str) -> None:
    for name in names:
        path = root / "tests" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("", encoding="utf-8")


def _make_annotated_suite(root: Path, module: str) -> None:
    """Write a unittest module with @group annotations.

    Each test passes its own *module* name because unittest discovery
    caches modules by name across directories.
    """
    tests_dir = root / "tests"
    tests_dir.mkdir(parents=True, exist_ok=True)
    (tests_dir / f"{module}.py").write_text(
        textwrap.dedent(
            '''
            import unittest

            class CheckoutTest(unittest.TestCase):
                def test_card(self):
                    """@group smoke
                    @group payments
                    """

                def test_invoice(self):
                    """@group payments"""

                def test_slow_report(self):
                    """@group slow"""
            '''
        ),
        encoding="utf-8",
    )


def _group_file(root: Path, index: int) -> Path:
    return root / "tests" / "_log" / f"paracept_{index}"


def test_version() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_help_lists_commands() -> None:
    result = CliRunner().invoke(cli, ["--help"])
    assert result.exit_code == 0
    for command in ("tests", "files", "groups", "list-groups", "config"):
        assert command in result.output


# ── files ─────────────────────────────────────────────────────────


class TestFilesCommand:
    def test_writes_group_files(self, tmp_path: Path) -> None:
        _make_files(tmp_path, "test_a.py", "test_b.py", "test_c.py")

        result = CliRunner().invoke(cli, ["--root", str(tmp_path), "files", "-n", "2"])

        assert result.exit_code == 0, result.output
        assert _group_file(tmp_path, 1).read_text(encoding="utf-8") == (
            "tests/test_a.py\ntests/test_c.py"
        )
        assert _group_file(tmp_path, 2).read_text(encoding="utf-8") == "tests/test_b.py"
        assert "Processing 3 files" in result.output

    def test_only_prints_one_group(self, tmp_path: Path) -> None:
        _make_files(tmp_path, "test_a.py", "test_b.py", "test_c.py")

        result = CliRunner().invoke(
            cli, ["--root", str(tmp_path), "files", "-n", "2", "--only", "2"]
        )

        assert result.exit_code == 0, result.output
        assert result.output == "tests/test_b.py\n"
        assert not _group_file(tmp_path, 1).exists()

    def test_only_out_of_range(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(
            cli, ["--root", str(tmp_path), "files", "-n", "2", "--only", "3"]
        )
        assert result.exit_code == 2
        assert "--only" in result.output

    def test_custom_pattern_and_prefix(self, tmp_path: Path) -> None:
        _make_files(tmp_path, "LoginCept.py", "test_skip.py")

        result = CliRunner().invoke(
            cli,
            [
                "--root",
                str(tmp_path),
                "files",
                "-n",
                "3",
                "--pattern",
                "*Cept.py",
                "--groups-to",
                "shards/part",
            ],
        )

        assert result.exit_code == 0, result.output
        assert (tmp_path / "shards" / "part1").read_text(encoding="utf-8") == "tests/LoginCept.py"
        assert not (tmp_path / "shards" / "part2").exists()

    def test_missing_group_count_aborts(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(cli, ["--root", str(tmp_path), "files"])
        assert result.exit_code == 1
        assert "num_groups must be a positive integer" in result.output

    def test_group_count_from_config_file(self, tmp_path: Path) -> None:
        _make_files(tmp_path, "test_a.py", "test_b.py")
        (tmp_path / ".testsplit.yml").write_text(
            yaml.dump({"split": {"num_groups": 2}}), encoding="utf-8"
        )

        result = CliRunner().invoke(cli, ["--root", str(tmp_path), "files"])

        assert result.exit_code == 0, result.output
        assert _group_file(tmp_path, 2).exists()

    def test_blank_group_count_in_config(self, tmp_path: Path) -> None:
        _make_files(tmp_path, "test_a.py", "test_b.py")
        (tmp_path / ".testsplit.yml").write_text("split:\n  num_groups:\n", encoding="utf-8")

        result = CliRunner().invoke(cli, ["--root", str(tmp_path), "files", "-n", "2"])

        assert result.exit_code == 0, result.output
        assert _group_file(tmp_path, 2).read_text(encoding="utf-8") == "tests/test_b.py"

    def test_non_integer_group_count_in_config(self, tmp_path: Path) -> None:
        (tmp_path / ".testsplit.yml").write_text(
            "split:\n  num_groups: four\n", encoding="utf-8"
        )

        result = CliRunner().invoke(cli, ["--root", str(tmp_path), "files"])

        assert result.exit_code == 1
        assert "num_groups must be an integer" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)


# ── tests ─────────────────────────────────────────────────────────


class TestTestsCommand:
    def test_splits_test_cases(self, tmp_path: Path) -> None:
        _make_annotated_suite(tmp_path, "test_cli_cases")

        result = CliRunner().invoke(cli, ["--root", str(tmp_path), "tests", "-n", "2"])

        assert result.exit_code == 0, result.output
        assert _group_file(tmp_path, 1).read_text(encoding="utf-8").split("\n") == [
            "test_cli_cases.CheckoutTest.test_card",
            "test_cli_cases.CheckoutTest.test_slow_report",
        ]
        assert "Processing 3 tests" in result.output

    def test_only(self, tmp_path: Path) -> None:
        _make_annotated_suite(tmp_path, "test_cli_only")

        result = CliRunner().invoke(
            cli, ["--root", str(tmp_path), "tests", "-n", "3", "--only", "2"]
        )

        assert result.exit_code == 0, result.output
        assert result.output == "test_cli_only.CheckoutTest.test_invoice\n"

    def test_pytest_loader_only_prints_identifiers(self, tmp_path: Path) -> None:
        tests_dir = tmp_path / "tests"
        tests_dir.mkdir()
        (tests_dir / "test_cli_pyonly.py").write_text(
            "def test_a():\n    pass\n\n\ndef test_b():\n    pass\n", encoding="utf-8"
        )

        result = CliRunner().invoke(
            cli,
            ["--root", str(tmp_path), "tests", "-n", "2", "--loader", "pytest", "--only", "1"],
        )

        assert result.exit_code == 0, result.output
        assert result.output == "tests/test_cli_pyonly.py::test_a\n"

    def test_packaged_suite(self, tmp_path: Path) -> None:
        tests_dir = tmp_path / "tests_cli_pkg"
        tests_dir.mkdir()
        (tests_dir / "__init__.py").write_text("", encoding="utf-8")
        (tests_dir / "fixtures.py").write_text("NAME = 'x'\n", encoding="utf-8")
        (tests_dir / "test_cli_rel.py").write_text(
            textwrap.dedent(
                """
                import unittest

                from .fixtures import NAME

                class RelTest(unittest.TestCase):
                    def test_name(self):
                        pass
                """
            ),
            encoding="utf-8",
        )

        result = CliRunner().invoke(
            cli,
            ["--root", str(tmp_path), "tests", "-n", "1", "--tests-from", "tests_cli_pkg"],
        )

        assert result.exit_code == 0, result.output
        assert _group_file(tmp_path, 1).read_text(encoding="utf-8") == (
            "tests_cli_pkg.test_cli_rel.RelTest.test_name"
        )

    def test_invalid_loader_choice(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(
            cli, ["--root", str(tmp_path), "tests", "-n", "2", "--loader", "nose"]
        )
        assert result.exit_code == 2

    def test_broken_suite_aborts(self, tmp_path: Path) -> None:
        (tmp_path / "tests").mkdir()
        (tmp_path / "tests" / "test_cli_broken.py").write_text(
            "import no_such_module_for_testsplit\n", encoding="utf-8"
        )

        result = CliRunner().invoke(cli, ["--root", str(tmp_path), "tests", "-n", "2"])

        assert result.exit_code == 1
        assert not _group_file(tmp_path, 1).exists()


# ── groups / list-groups ──────────────────────────────────────────


class TestGroupsCommand:
    def test_splits_selected_groups(self, tmp_path: Path) -> None:
        _make_annotated_suite(tmp_path, "test_cli_groups_ok")

        result = CliRunner().invoke(
            cli, ["--root", str(tmp_path), "groups", "payments", "slow", "-n", "2"]
        )

        assert result.exit_code == 0, result.output
        assert _group_file(tmp_path, 1).read_text(encoding="utf-8").split("\n") == [
            "test_cli_groups_ok.CheckoutTest.test_card",
            "test_cli_groups_ok.CheckoutTest.test_slow_report",
        ]
        assert _group_file(tmp_path, 2).read_text(encoding="utf-8") == (
            "test_cli_groups_ok.CheckoutTest.test_invoice"
        )
        assert "Processing 2 groups." in result.output

    def test_unknown_group_is_reported(self, tmp_path: Path) -> None:
        _make_annotated_suite(tmp_path, "test_cli_groups_unknown")

        result = CliRunner().invoke(
            cli, ["--root", str(tmp_path), "groups", "smoke", "bogus", "-n", "1"]
        )

        assert result.exit_code == 0, result.output
        assert "Unknown group: bogus" in result.output
        assert _group_file(tmp_path, 1).read_text(encoding="utf-8") == (
            "test_cli_groups_unknown.CheckoutTest.test_card"
        )

    def test_all_unknown_aborts_without_writing(self, tmp_path: Path) -> None:
        _make_annotated_suite(tmp_path, "test_cli_groups_none")

        result = CliRunner().invoke(cli, ["--root", str(tmp_path), "groups", "x", "y", "-n", "2"])

        assert result.exit_code == 1
        assert "No valid groups provided" in result.output
        assert not (tmp_path / "tests" / "_log").exists()

    def test_groups_from_config(self, tmp_path: Path) -> None:
        _make_annotated_suite(tmp_path, "test_cli_groups_cfg")
        (tmp_path / ".testsplit.yml").write_text(
            yaml.dump({"split": {"num_groups": 1, "groups": ["slow"]}}), encoding="utf-8"
        )

        result = CliRunner().invoke(cli, ["--root", str(tmp_path), "groups"])

        assert result.exit_code == 0, result.output
        assert _group_file(tmp_path, 1).read_text(encoding="utf-8") == (
            "test_cli_groups_cfg.CheckoutTest.test_slow_report"
        )

    def test_list_groups(self, tmp_path: Path) -> None:
        _make_annotated_suite(tmp_path, "test_cli_list")

        result = CliRunner().invoke(cli, ["--root", str(tmp_path), "list-groups"])

        assert result.exit_code == 0, result.output
        for name in ("smoke", "payments", "slow"):
            assert name in result.output

    def test_list_groups_empty_suite(self, tmp_path: Path) -> None:
        (tmp_path / "tests").mkdir()

        result = CliRunner().invoke(cli, ["--root", str(tmp_path), "list-groups"])

        assert result.exit_code == 0, result.output
        assert "No @group annotations found" in result.output


# ── config ────────────────────────────────────────────────────────


class TestConfigCommands:
    def test_show_json(self, tmp_path: Path) -> None:
        (tmp_path / ".testsplit.yml").write_text(
            yaml.dump({"split": {"num_groups": 3, "groups": ["smoke"]}}), encoding="utf-8"
        )

        result = CliRunner().invoke(
            cli, ["--root", str(tmp_path), "config", "show", "--json-output"]
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["num_groups"] == 3
        assert data["groups"] == ["smoke"]
        assert data["groups_to"] == "tests/_log/paracept_"

    def test_show_yaml(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(cli, ["--root", str(tmp_path), "config", "show"])
        assert result.exit_code == 0, result.output
        assert yaml.safe_load(result.output)["tests_from"] == "tests"

    def test_validate_ok(self, tmp_path: Path) -> None:
        (tmp_path / ".testsplit.yml").write_text(
            yaml.dump({"split": {"num_groups": 2}}), encoding="utf-8"
        )
        result = CliRunner().invoke(cli, ["--root", str(tmp_path), "config", "validate"])
        assert result.exit_code == 0, result.output
        assert "Configuration is valid!" in result.output

    def test_validate_reports_errors(self, tmp_path: Path) -> None:
        (tmp_path / ".testsplit.yml").write_text(
            yaml.dump({"split": {"num_groups": 0, "loader": "nose"}}), encoding="utf-8"
        )
        result = CliRunner().invoke(cli, ["--root", str(tmp_path), "config", "validate"])
        assert result.exit_code == 1
        assert "Found 2 configuration error(s)" in result.output
