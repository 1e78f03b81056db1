"""Core module exports."""
from __future__ import annotations

from core.config import PLACEHOLDER_KEY, Settings, get_settings, reload_settings
from core.exceptions import (
    # Base
    InstallerError,
    # Preconditions
    PreconditionFailure,
    AlreadyInstalledError,
    RequirementsNotMetError,
    # Prompts
    ValidationFailure,
    # Database
    ConnectivityFailure,
    # Persistence
    PersistenceFailure,
    # Collaborators
    CollaboratorFailure,
)
from core.logging_config import (
    setup_logging,
    get_logger,
    log_step,
    JSONFormatter,
)

__all__ = [
    # Config
    "PLACEHOLDER_KEY",
    "Settings",
    "get_settings",
    "reload_settings",
    # Exceptions
    "InstallerError",
    "PreconditionFailure",
    "AlreadyInstalledError",
    "RequirementsNotMetError",
    "ValidationFailure",
    "ConnectivityFailure",
    "PersistenceFailure",
    "CollaboratorFailure",
    # Logging
    "setup_logging",
    "get_logger",
    "log_step",
    "JSONFormatter",
]
