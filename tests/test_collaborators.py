"""Tests for the post-install steps."""
from __future__ import annotations

import base64
import subprocess
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from dotenv import dotenv_values

# Add src to path
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from core.config import Settings
from core.exceptions import CollaboratorFailure
from installer.collaborators import LocalCollaborators, generate_key


class TestGenerateSecret:
    """The key replaces the placeholder in the existing APP_KEY line."""

    def test_key_format(self):
        key = generate_key()

        assert key.startswith("base64:")
        assert len(base64.b64decode(key[len("base64:"):])) == 32
        assert generate_key() != key

    def test_writes_app_key(self, settings, app_root):
        LocalCollaborators(settings).generate_secret()

        key = dotenv_values(app_root / ".env")["APP_KEY"]
        assert key.startswith("base64:")
        assert key != "SomeRandomString"

    def test_missing_app_key_line(self, settings, app_root):
        (app_root / ".env").write_text("APP_URL=http://deploy.app\n")

        with pytest.raises(CollaboratorFailure, match="APP_KEY is not present"):
            LocalCollaborators(settings).generate_secret()

        assert (app_root / ".env").read_text() == "APP_URL=http://deploy.app\n"


class TestMigrate:
    """Migrations go through Alembic."""

    def test_refuses_production_without_force(self, settings):
        with pytest.raises(CollaboratorFailure, match="without force"):
            LocalCollaborators(settings).migrate(force=False)

    def test_missing_alembic_ini(self, settings):
        with pytest.raises(CollaboratorFailure, match="alembic.ini not found"):
            LocalCollaborators(settings).migrate(force=True)

    @patch("alembic.command.upgrade")
    def test_upgrades_to_head(self, mock_upgrade, settings, app_root):
        (app_root / "alembic.ini").write_text("[alembic]\nscript_location = migrations\n")

        LocalCollaborators(settings).migrate(force=True)

        config, revision = mock_upgrade.call_args[0]
        assert revision == "head"
        assert config.config_file_name == str(app_root / "alembic.ini")

    @patch("alembic.command.upgrade", side_effect=RuntimeError("no such table: users"))
    def test_failure_is_collaborator_failure(self, _mock_upgrade, settings, app_root):
        (app_root / "alembic.ini").write_text("[alembic]\nscript_location = migrations\n")

        with pytest.raises(CollaboratorFailure, match="no such table"):
            LocalCollaborators(settings).migrate(force=True)


class TestSeed:
    """Seeding runs the configured command from the application root."""

    def test_skipped_without_command(self, local_settings):
        runner = MagicMock()

        LocalCollaborators(local_settings, runner=runner).seed(force=False)

        runner.assert_not_called()

    def test_runs_command(self, app_root):
        settings = Settings(base_path=app_root, environment="local", seed_command="python -m app.seed --demo")
        runner = MagicMock(return_value=subprocess.CompletedProcess([], 0, "", ""))

        LocalCollaborators(settings, runner=runner).seed(force=True)

        args, kwargs = runner.call_args
        assert args[0] == ["python", "-m", "app.seed", "--demo"]
        assert kwargs["cwd"] == str(app_root)

    def test_non_zero_exit(self, app_root):
        settings = Settings(base_path=app_root, environment="local", seed_command="seed")
        runner = MagicMock(return_value=subprocess.CompletedProcess([], 2, "", "duplicate key\n"))

        with pytest.raises(CollaboratorFailure, match="duplicate key"):
            LocalCollaborators(settings, runner=runner).seed(force=True)


class TestCaches:
    """Cache clearing and compilation."""

    def test_clear_keeps_dotfiles(self, settings, app_root):
        views = app_root / "storage" / "framework" / "views"
        (views / "compiled.php").write_text("x")
        (views / ".gitignore").write_text("*\n")
        nested = app_root / "storage" / "framework" / "cache" / "data" / "ab"
        nested.mkdir(parents=True)
        (nested / "entry").write_text("cached")

        LocalCollaborators(settings).clear_caches()

        assert not (views / "compiled.php").exists()
        assert (views / ".gitignore").exists()
        assert not (nested / "entry").exists()
        assert nested.is_dir()

    def test_compile_sources(self, settings, app_root):
        source = app_root / "app"
        source.mkdir()
        (source / "module.py").write_text("VALUE = 1\n")

        LocalCollaborators(settings).compile_caches(force=True)

        assert list((source / "__pycache__").glob("module.*.pyc"))

    def test_compile_without_sources(self, settings):
        LocalCollaborators(settings).compile_caches(force=True)

    def test_compile_failure(self, settings, app_root):
        source = app_root / "app"
        source.mkdir()
        (source / "broken.py").write_text("def nope(:\n")

        with pytest.raises(CollaboratorFailure, match="could not compile"):
            LocalCollaborators(settings).compile_caches(force=True)
