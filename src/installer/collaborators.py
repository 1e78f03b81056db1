"""Downstream setup steps run once the configuration has been written.

The orchestrator only depends on the ``Collaborators`` protocol. Every step
either completes or raises CollaboratorFailure; nothing is rolled back.
"""
from __future__ import annotations

import base64
import compileall
import secrets
import shlex
import subprocess
from typing import Callable, Optional, Protocol, Tuple

from core.config import Settings, get_settings
from core.exceptions import CollaboratorFailure
from core.logging_config import get_logger
from installer.env_file import EnvFile

LOGGER = get_logger(__name__)

CACHE_DIRECTORIES: Tuple[str, ...] = (
    "storage/framework/cache",
    "storage/framework/views",
    "bootstrap/cache",
)


class Collaborators(Protocol):
    """Operations the installer triggers but does not implement itself."""

    def generate_secret(self) -> None: ...

    def migrate(self, force: bool) -> None: ...

    def seed(self, force: bool) -> None: ...

    def clear_caches(self) -> None: ...

    def compile_caches(self, force: bool) -> None: ...


def generate_key() -> str:
    """A fresh application key in ``base64:`` form."""
    return "base64:" + base64.b64encode(secrets.token_bytes(32)).decode("ascii")


class LocalCollaborators:
    """Runs the setup steps against the application on the local disk."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        self.settings = settings or get_settings()
        self.runner = runner

    def generate_secret(self) -> None:
        """Store a new key in the existing APP_KEY line."""
        path = self.settings.env_path
        env = EnvFile.load(path)
        if not env.set("APP_KEY", generate_key()):
            raise CollaboratorFailure("generate-secret", f"APP_KEY is not present in {path.name}")
        env.save(path)
        LOGGER.info("Application key written to %s", path)

    def migrate(self, force: bool) -> None:
        """Upgrade the schema to the latest Alembic revision."""
        self._guard_production("migrate", force)

        ini = self.settings.path(self.settings.alembic_ini)
        if not ini.exists():
            raise CollaboratorFailure("migrate", f"{ini} not found")

        from alembic import command
        from alembic.config import Config

        try:
            command.upgrade(Config(str(ini)), "head")
        except Exception as exc:
            LOGGER.error("Database migration failed: %s", exc)
            raise CollaboratorFailure("migrate", str(exc)) from exc
        LOGGER.info("Database migrations complete.")

    def seed(self, force: bool) -> None:
        """Run the configured seed command from the application root."""
        self._guard_production("seed", force)

        command = self.settings.seed_command
        if not command:
            LOGGER.info("No seed command configured, skipping seeding")
            return

        try:
            result = self.runner(
                shlex.split(command),
                cwd=str(self.settings.base_path),
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise CollaboratorFailure("seed", str(exc)) from exc

        if result.returncode != 0:
            detail = (result.stderr or result.stdout or "").strip()
            raise CollaboratorFailure("seed", detail or f"exit status {result.returncode}")

    def clear_caches(self) -> None:
        """Delete generated cache files, keeping dotfiles such as .gitignore."""
        removed = 0
        for relative in CACHE_DIRECTORIES:
            directory = self.settings.path(relative)
            if not directory.is_dir():
                continue
            for entry in sorted(directory.rglob("*")):
                if entry.is_file() and not entry.name.startswith("."):
                    try:
                        entry.unlink()
                    except OSError as exc:
                        raise CollaboratorFailure("clear-caches", str(exc)) from exc
                    removed += 1
        LOGGER.info("Cleared %d cached file(s)", removed)

    def compile_caches(self, force: bool) -> None:
        """Byte-compile the application sources."""
        source = self.settings.path(self.settings.source_directory)
        if not source.is_dir():
            LOGGER.warning("Source directory %s not found, nothing to compile", source)
            return

        if not compileall.compile_dir(str(source), force=force, quiet=1):
            raise CollaboratorFailure("compile-caches", f"could not compile {source}")
        LOGGER.info("Compiled %s", source)

    def _guard_production(self, step: str, force: bool) -> None:
        if not force and self.settings.environment.lower() == "production":
            raise CollaboratorFailure(step, "refusing to run in production without force")
