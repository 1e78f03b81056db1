"""Tests for the host requirement checks."""
from __future__ import annotations

import os
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

# Add src to path
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from conftest import full_snapshot
from installer.requirements import (
    EnvironmentSnapshot,
    RequirementChecker,
    RequirementKind,
    parse_version,
    version_at_least,
    which,
)


def always_found(_executable: str) -> bool:
    return True


# ============================================================================
# Version comparison
# ============================================================================


class TestVersionComparison:
    """Versions compare numerically, component by component."""

    @pytest.mark.parametrize("version", ["3.10.0", "3.10.1", "3.11.0", "3.12.4", "4.0.0", "3.10"])
    def test_at_or_above_minimum(self, version):
        assert version_at_least(version, "3.10.0")

    @pytest.mark.parametrize("version", ["3.9.18", "3.2.0", "2.7.18", "3.1.0"])
    def test_below_minimum(self, version):
        assert not version_at_least(version, "3.10.0")

    def test_not_lexical(self):
        """'3.9' sorts after '3.10' as text but is older."""
        assert "3.9.0" > "3.10.0"
        assert not version_at_least("3.9.0", "3.10.0")

    def test_parse_ignores_suffixes(self):
        assert parse_version("3.13.0rc2") == (3, 13, 0)


# ============================================================================
# Checker
# ============================================================================


class TestRequirementChecker:
    """Checks run in order and accumulate failures."""

    def test_everything_satisfied(self, settings):
        checker = RequirementChecker(settings, snapshot=full_snapshot(), probe=always_found)

        report = checker.check()

        assert report.ok
        assert report.failures == []
        assert report.requirements[0].kind is RequirementKind.VERSION

    def test_old_interpreter_names_minimum(self, settings):
        checker = RequirementChecker(settings, snapshot=full_snapshot("3.9.18"), probe=always_found)

        report = checker.check()

        assert not report.ok
        assert [f.message for f in report.failures] == ["Python 3.10.0 or higher is required"]

    def test_missing_capability(self, settings):
        snapshot = full_snapshot()
        snapshot = EnvironmentSnapshot(
            python_version=snapshot.python_version,
            available_modules=snapshot.available_modules - {"PIL"},
        )
        checker = RequirementChecker(settings, snapshot=snapshot, probe=always_found)

        failures = checker.check().failures

        assert len(failures) == 1
        assert failures[0].kind is RequirementKind.EXTENSION
        assert failures[0].message.startswith("Extension required: PIL")

    def test_no_database_driver(self, settings):
        snapshot = EnvironmentSnapshot(
            python_version="3.12.0",
            available_modules=full_snapshot().available_modules - {"sqlite3", "pymysql", "psycopg2", "pymssql"},
        )
        checker = RequirementChecker(settings, snapshot=snapshot, probe=always_found)

        failures = checker.check().failures

        assert [f.kind for f in failures] == [RequirementKind.DRIVER]
        assert "sqlite, mysql, pgsql, sqlsrv" in failures[0].message

    def test_available_drivers_keep_allow_list_order(self):
        snapshot = EnvironmentSnapshot("3.12.0", frozenset({"psycopg2", "sqlite3"}))
        assert snapshot.available_drivers() == ["sqlite", "pgsql"]

    def test_missing_program(self, settings):
        checker = RequirementChecker(
            settings, snapshot=full_snapshot(), probe=lambda name: name != "git"
        )

        failures = checker.check().failures

        assert [f.message for f in failures] == ["Program not found in path: git"]

    def test_does_not_short_circuit(self, settings):
        snapshot = EnvironmentSnapshot("3.8.0", frozenset({"sqlite3"}))
        checker = RequirementChecker(settings, snapshot=snapshot, probe=lambda name: False)

        failures = checker.check().failures
        kinds = [f.kind for f in failures]

        assert kinds[0] is RequirementKind.VERSION
        assert RequirementKind.EXTENSION in kinds
        assert kinds.count(RequirementKind.EXECUTABLE) == 3
        # Ordering follows the check order
        assert kinds.index(RequirementKind.EXTENSION) < kinds.index(RequirementKind.EXECUTABLE)

    def test_missing_env_is_generated_but_still_fails(self, settings, app_root):
        (app_root / ".env").unlink()
        checker = RequirementChecker(settings, snapshot=full_snapshot(), probe=always_found)

        first = checker.check()

        assert (app_root / ".env").read_text() == (app_root / ".env.example").read_text()
        assert [f.message for f in first.failures] == [".env was missing, it has now been generated"]
        assert checker.check().ok

    def test_missing_env_and_example(self, settings, app_root):
        (app_root / ".env").unlink()
        (app_root / ".env.example").unlink()
        checker = RequirementChecker(settings, snapshot=full_snapshot(), probe=always_found)

        messages = [f.message for f in checker.check().failures]

        assert any(".env.example could not be found" in message for message in messages)
        assert ".env is not writeable" in messages

    def test_missing_directory_is_not_writeable(self, settings, app_root):
        (app_root / "storage" / "logs").rmdir()
        checker = RequirementChecker(settings, snapshot=full_snapshot(), probe=always_found)

        messages = [f.message for f in checker.check().failures]

        assert messages == ["storage/logs is not writeable"]

    @pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="root ignores permissions")
    def test_read_only_directory(self, settings, app_root):
        views = app_root / "storage" / "framework" / "views"
        views.chmod(0o500)
        try:
            checker = RequirementChecker(settings, snapshot=full_snapshot(), probe=always_found)
            messages = [f.message for f in checker.check().failures]
        finally:
            views.chmod(0o700)

        assert messages == ["storage/framework/views is not writeable"]


# ============================================================================
# Search-path probe
# ============================================================================


class TestWhich:
    """The probe shells out to which/where and reads the exit status."""

    @patch("installer.requirements.shutil.which", return_value="/usr/bin/which")
    @patch("installer.requirements.subprocess.run")
    def test_found(self, mock_run, _mock_which):
        mock_run.return_value = MagicMock(returncode=0)

        assert which("git") is True
        args = mock_run.call_args[0][0]
        assert args[-1] == "git"

    @patch("installer.requirements.shutil.which", return_value="/usr/bin/which")
    @patch("installer.requirements.subprocess.run")
    def test_not_found(self, mock_run, _mock_which):
        mock_run.return_value = MagicMock(returncode=1)

        assert which("ssh-keygen") is False

    @patch("installer.requirements.shutil.which", return_value=None)
    @patch("installer.requirements.subprocess.run")
    def test_probe_unavailable(self, mock_run, _mock_which):
        assert which("ssh") is False
        mock_run.assert_not_called()
