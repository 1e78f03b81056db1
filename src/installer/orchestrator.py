"""Top-level install sequence.

NotInstalled -> RequirementsOK -> CollectConfig -> WriteConfig ->
GenerateSecret -> RunMigrations (+ seed when local) -> ClearCaches ->
CompileCaches (unless local) -> Done
"""
from __future__ import annotations

import os
import time
from enum import Enum
from typing import Callable, Mapping, Optional

from dotenv import dotenv_values

from core.config import Settings, get_settings
from core.exceptions import AlreadyInstalledError, PreconditionFailure, RequirementsNotMetError
from core.logging_config import get_logger, log_step
from installer.collaborators import Collaborators, LocalCollaborators
from installer.collector import ConfigCollector, ConfigTree
from installer.env_file import ConfigWriter
from installer.output import Output
from installer.prompts import Prompter
from installer.requirements import RequirementChecker

LOGGER = get_logger(__name__)

DEFAULT_USERNAME = "admin@example.com"
DEFAULT_PASSWORD = "password"


class InstallStatus(str, Enum):
    INSTALLED = "installed"
    ALREADY_INSTALLED = "already_installed"
    HALTED = "halted"
    UPDATED = "updated"


class InstallOrchestrator:
    """Runs the installer from the re-install guard through to the summary."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        checker: Optional[RequirementChecker] = None,
        collector: Optional[ConfigCollector] = None,
        writer: Optional[ConfigWriter] = None,
        collaborators: Optional[Collaborators] = None,
        output: Optional[Output] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.output = output or Output()
        self.environ = os.environ if environ is None else environ
        self._checker = checker
        self._collector = collector
        self.writer = writer or ConfigWriter()
        self.collaborators = collaborators or LocalCollaborators(self.settings)

    @property
    def checker(self) -> RequirementChecker:
        if self._checker is None:
            self._checker = RequirementChecker(self.settings)
        return self._checker

    @property
    def collector(self) -> ConfigCollector:
        if self._collector is None:
            self._collector = ConfigCollector(Prompter(output=self.output), self.settings)
        return self._collector

    # -------------------------------------------------------------------------
    # Preconditions
    # -------------------------------------------------------------------------

    def installed_key(self) -> Optional[str]:
        """The APP_KEY in effect: process environment first, then the file."""
        key = self.environ.get("APP_KEY")
        if key is None and self.settings.env_path.exists():
            key = dotenv_values(self.settings.env_path).get("APP_KEY")
        return key

    def is_installed(self) -> bool:
        key = self.installed_key()
        return bool(key) and key != self.settings.placeholder_key

    def ensure_not_installed(self) -> None:
        if self.is_installed():
            raise AlreadyInstalledError(
                "You have already installed Deployer!",
                [f'If you were trying to update Deployer, please use "{self.settings.update_command}" instead.'],
            )

    def ensure_requirements(self) -> None:
        report = self.checker.check()
        if not report.ok:
            raise RequirementsNotMetError(
                "Deployer cannot be installed, as not all requirements are met. "
                "Please review the errors above before continuing.",
                [failure.message for failure in report.failures],
            )

    # -------------------------------------------------------------------------
    # Sequence
    # -------------------------------------------------------------------------

    def run(self) -> InstallStatus:
        """Run the full install; no configuration is written unless every precondition holds."""
        try:
            self.ensure_not_installed()
        except AlreadyInstalledError as exc:
            LOGGER.warning("Install skipped: application key already set")
            self.output.block([str(exc), ""] + exc.reasons, "warning")
            return InstallStatus.ALREADY_INSTALLED

        self._welcome()

        try:
            self.ensure_requirements()
        except RequirementsNotMetError as exc:
            for reason in exc.reasons:
                self.output.error(reason)
            self.output.line()
            self.output.block(str(exc))
            self.output.line()
            return InstallStatus.HALTED

        self.output.line("Please answer the following questions:")
        self.output.line()

        config = self.collector.collect()

        self._step("Writing configuration file", "write-config",
                   lambda: self.writer.write(config, self.settings.env_path))
        self._step("Generating application key", "generate-secret", self.collaborators.generate_secret)
        self._migrate(seed=self.settings.is_local())
        self._optimize()

        self._summary(config)
        return InstallStatus.INSTALLED

    def update(self) -> InstallStatus:
        """Bring an existing install up to date: migrations and caches, no prompts."""
        if not self.is_installed():
            raise PreconditionFailure(
                "Deployer is not installed yet.",
                ['Run "deployer-install install" first.'],
            )

        self._migrate(seed=False)
        self._optimize()

        self.output.line()
        self.output.comment("Deployer is up to date")
        self.output.line()
        return InstallStatus.UPDATED

    def _migrate(self, seed: bool) -> None:
        self._step("Running database migrations", "migrate", lambda: self.collaborators.migrate(force=True))
        if seed:
            self._step("Seeding database", "seed", lambda: self.collaborators.seed(force=True))

    def _optimize(self) -> None:
        self._step(None, "clear-caches", self.collaborators.clear_caches)
        if not self.settings.is_local():
            self._step(None, "compile-caches", lambda: self.collaborators.compile_caches(force=True))

    def _step(self, heading: Optional[str], name: str, action: Callable[[], object]) -> None:
        if heading:
            self.output.info(heading)
            self.output.line()

        start = time.perf_counter()
        try:
            action()
        except Exception:
            log_step(LOGGER, name, False, (time.perf_counter() - start) * 1000)
            raise
        log_step(LOGGER, name, True, (time.perf_counter() - start) * 1000)

    def _welcome(self) -> None:
        self.output.line()
        self.output.info("***********************")
        self.output.info("  Welcome to Deployer  ")
        self.output.info("***********************")
        self.output.line()

    def _summary(self, config: ConfigTree) -> None:
        self.output.line()
        self.output.comment("Success! Deployer is now installed")
        self.output.line()
        self.output.comment(
            f"Visit {config['app']['url']} and login with the following details to get started"
        )
        self.output.line()
        self.output.comment(f"   Username: {DEFAULT_USERNAME}")
        self.output.comment(f"   Password: {DEFAULT_PASSWORD}")
        self.output.line()
