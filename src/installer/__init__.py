"""Install wizard for the Deployer application.

Gathers configuration through validated prompts, checks the host, rewrites
the application's ``.env`` and runs the post-install steps.
"""
from __future__ import annotations

from .collaborators import Collaborators, LocalCollaborators
from .collector import ConfigCollector, ConfigSection, ConfigTree
from .database import DatabaseVerifier
from .env_file import ConfigWriter, EnvFile, env_key
from .orchestrator import InstallOrchestrator, InstallStatus
from .prompts import Prompter, PromptSpec
from .requirements import (
    EnvironmentSnapshot,
    Requirement,
    RequirementChecker,
    RequirementKind,
    RequirementReport,
)

__all__ = [
    # Requirements
    "EnvironmentSnapshot",
    "Requirement",
    "RequirementChecker",
    "RequirementKind",
    "RequirementReport",
    # Prompts
    "Prompter",
    "PromptSpec",
    # Collection
    "ConfigCollector",
    "ConfigSection",
    "ConfigTree",
    "DatabaseVerifier",
    # Writing
    "ConfigWriter",
    "EnvFile",
    "env_key",
    # Orchestration
    "Collaborators",
    "LocalCollaborators",
    "InstallOrchestrator",
    "InstallStatus",
]
