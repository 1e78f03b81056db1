#!/usr/bin/env python3
"""Command Line Interface for the Deployer installer.

Usage:
    deployer-install install                 # Run the install wizard
    deployer-install install --base-path DIR # Install the application in DIR
    deployer-install update                  # Migrate and rebuild caches of an existing install
    deployer-install check                   # Only check the requirements
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from core.config import Settings, get_settings
from core.exceptions import InstallerError
from core.logging_config import get_logger, setup_logging
from installer.orchestrator import InstallOrchestrator, InstallStatus
from installer.output import Output
from installer.requirements import RequirementChecker

LOGGER = get_logger(__name__)

app = typer.Typer(help="Deployer installer")


def _settings(base_path: Optional[Path]) -> Settings:
    settings = get_settings()
    if base_path is not None:
        settings = settings.model_copy(update={"base_path": base_path.resolve()})
    return settings


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
) -> None:
    """Installs the application and configures the settings."""
    settings = get_settings()
    log_level = "DEBUG" if verbose else settings.log_level
    setup_logging(
        level=log_level,
        log_file=settings.log_file,
        json_format=settings.log_format == "json",
    )


@app.command("install")
def install(
    base_path: Optional[Path] = typer.Option(
        None, "--base-path", help="Root of the application to install"
    ),
) -> None:
    """Run the interactive install wizard."""
    settings = _settings(base_path)
    output = Output()
    LOGGER.debug("Installing into %s", settings.base_path)

    try:
        status = InstallOrchestrator(settings, output=output).run()
    except InstallerError as exc:
        LOGGER.error("Install failed: %s", exc)
        output.block(["Deployer could not be installed.", "", str(exc)])
        raise typer.Exit(1)

    if status is InstallStatus.HALTED:
        raise typer.Exit(1)


@app.command("update")
def update(
    base_path: Optional[Path] = typer.Option(
        None, "--base-path", help="Root of the installed application"
    ),
) -> None:
    """Run migrations and rebuild caches for an existing install."""
    settings = _settings(base_path)
    output = Output()
    LOGGER.debug("Updating %s", settings.base_path)

    try:
        InstallOrchestrator(settings, output=output).update()
    except InstallerError as exc:
        LOGGER.error("Update failed: %s", exc)
        reasons = getattr(exc, "reasons", [])
        output.block(["Deployer could not be updated.", "", str(exc)] + reasons)
        raise typer.Exit(1)


@app.command("check")
def check(
    base_path: Optional[Path] = typer.Option(
        None, "--base-path", help="Root of the application to check"
    ),
) -> None:
    """Check the host meets the requirements without changing anything else."""
    settings = _settings(base_path)
    report = RequirementChecker(settings).check()

    for requirement in report.requirements:
        if requirement.satisfied:
            typer.secho(f"✓ {requirement.kind.value}: {requirement.identifier}", fg="green")
        else:
            typer.secho(f"✗ {requirement.message}", fg="red")

    if not report.ok:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
