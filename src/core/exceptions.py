"""Custom exceptions for the Deployer installer."""
from __future__ import annotations

from typing import Iterable, List


class InstallerError(Exception):
    """Base exception for all installer errors."""

    pass


# =============================================================================
# Precondition Errors
# =============================================================================


class PreconditionFailure(InstallerError):
    """Raised when the installer must halt before collecting configuration."""

    def __init__(self, message: str, reasons: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.reasons: List[str] = list(reasons)


class AlreadyInstalledError(PreconditionFailure):
    """Raised when a real application key is already configured."""

    pass


class RequirementsNotMetError(PreconditionFailure):
    """Raised when one or more host requirements are unmet."""

    pass


# =============================================================================
# Prompt Errors
# =============================================================================


class ValidationFailure(InstallerError):
    """Raised by a prompt validator; the prompt re-asks the same field."""

    pass


# =============================================================================
# Database Errors
# =============================================================================


class ConnectivityFailure(InstallerError):
    """Raised when the database cannot be reached with the supplied details."""

    pass


# =============================================================================
# Persistence Errors
# =============================================================================


class PersistenceFailure(InstallerError):
    """Raised when the configuration file cannot be read or written."""

    pass


# =============================================================================
# Collaborator Errors
# =============================================================================


class CollaboratorFailure(InstallerError):
    """Raised when a downstream step (migrate, seed, caches) fails."""

    def __init__(self, step: str, message: str) -> None:
        super().__init__(f"{step} failed: {message}")
        self.step = step


__all__ = [
    # Base
    "InstallerError",
    # Preconditions
    "PreconditionFailure",
    "AlreadyInstalledError",
    "RequirementsNotMetError",
    # Prompts
    "ValidationFailure",
    # Database
    "ConnectivityFailure",
    # Persistence
    "PersistenceFailure",
    # Collaborators
    "CollaboratorFailure",
]
