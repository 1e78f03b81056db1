"""Host environment requirement checks.

Every check runs and records its outcome; nothing short-circuits, so the
operator sees the complete list of problems in one pass.
"""
from __future__ import annotations

import importlib.util
import os
import shutil
import subprocess
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from core.config import Settings, get_settings
from core.logging_config import get_logger

LOGGER = get_logger(__name__)


# Capability name -> importable module providing it
REQUIRED_CAPABILITIES: Tuple[Tuple[str, str], ...] = (
    ("database", "sqlalchemy"),
    ("tls", "ssl"),
    ("structured-data", "json"),
    ("multibyte-strings", "unicodedata"),
    ("http-client", "httpx"),
    ("cache-client", "pymemcache"),
    ("image-processing", "PIL"),
)

# Supported driver identifier -> DB-API module
DATABASE_DRIVERS: Tuple[Tuple[str, str], ...] = (
    ("sqlite", "sqlite3"),
    ("mysql", "pymysql"),
    ("pgsql", "psycopg2"),
    ("sqlsrv", "pymssql"),
)

REQUIRED_EXECUTABLES: Tuple[str, ...] = ("ssh", "ssh-keygen", "git")

WRITABLE_PATHS: Tuple[str, ...] = (
    ".env",
    "storage",
    "storage/logs",
    "storage/app",
    "storage/framework",
    "storage/framework/cache",
    "storage/framework/sessions",
    "storage/framework/views",
    "bootstrap/cache",
)


class RequirementKind(str, Enum):
    """What a requirement inspects."""

    VERSION = "version"
    EXTENSION = "extension"
    DRIVER = "driver"
    EXECUTABLE = "executable"
    WRITABLE_PATH = "writable-path"
    FILE_EXISTS = "file-exists"


@dataclass(frozen=True)
class Requirement:
    """A single pass/fail precondition over the host environment."""

    kind: RequirementKind
    identifier: str
    satisfied: bool
    message: str = ""


@dataclass
class RequirementReport:
    """Outcome of a full requirement check run."""

    requirements: List[Requirement] = field(default_factory=list)

    @property
    def failures(self) -> List[Requirement]:
        return [req for req in self.requirements if not req.satisfied]

    @property
    def ok(self) -> bool:
        return not self.failures

    def record(self, kind: RequirementKind, identifier: str, satisfied: bool, message: str = "") -> None:
        self.requirements.append(Requirement(kind, identifier, satisfied, message))


@dataclass(frozen=True)
class EnvironmentSnapshot:
    """
    Point-in-time view of the interpreter and its importable modules.

    Checks read from a snapshot instead of global interpreter state so that
    tests can describe any environment they need.
    """

    python_version: str
    available_modules: FrozenSet[str]

    @classmethod
    def capture(cls, modules: Optional[Iterable[str]] = None) -> "EnvironmentSnapshot":
        """Inspect the running interpreter for the given modules."""
        if modules is None:
            modules = [name for _, name in REQUIRED_CAPABILITIES + DATABASE_DRIVERS]
        available = frozenset(name for name in modules if _module_available(name))
        version = ".".join(str(part) for part in sys.version_info[:3])
        return cls(python_version=version, available_modules=available)

    def has_module(self, name: str) -> bool:
        return name in self.available_modules

    def available_drivers(self) -> List[str]:
        """Supported database drivers whose DB-API module is importable."""
        return [driver for driver, module in DATABASE_DRIVERS if self.has_module(module)]


def _module_available(name: str) -> bool:
    try:
        return importlib.util.find_spec(name) is not None
    except (ImportError, ValueError):
        return False


def parse_version(version: str) -> Tuple[int, ...]:
    """
    Parse a dotted version into a comparable integer tuple.

    Trailing non-numeric suffixes ("3.12.0rc1") are ignored per component.
    """
    parts: List[int] = []
    for chunk in version.strip().split("."):
        digits = ""
        for char in chunk:
            if not char.isdigit():
                break
            digits += char
        parts.append(int(digits) if digits else 0)
    return tuple(parts)


def version_at_least(version: str, minimum: str) -> bool:
    """Semantic comparison; missing components count as zero."""
    current, required = parse_version(version), parse_version(minimum)
    width = max(len(current), len(required))
    current += (0,) * (width - len(current))
    required += (0,) * (width - len(required))
    return current >= required


def which(executable: str) -> bool:
    """Resolve an executable through the platform's search-path probe."""
    probe = "where" if os.name == "nt" else "which"
    if shutil.which(probe) is None:
        LOGGER.warning("Search-path probe %r is unavailable", probe)
        return False
    result = subprocess.run(
        [probe, executable],
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        check=False,
    )
    return result.returncode == 0


class RequirementChecker:
    """Checks the host meets everything the application needs to run."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        snapshot: Optional[EnvironmentSnapshot] = None,
        probe: Callable[[str], bool] = which,
        capabilities: Sequence[Tuple[str, str]] = REQUIRED_CAPABILITIES,
        executables: Sequence[str] = REQUIRED_EXECUTABLES,
        writable_paths: Sequence[str] = WRITABLE_PATHS,
    ) -> None:
        self.settings = settings or get_settings()
        self.snapshot = snapshot or EnvironmentSnapshot.capture()
        self.probe = probe
        self.capabilities = tuple(capabilities)
        self.executables = tuple(executables)
        self.writable_paths = tuple(writable_paths)

    def check(self) -> RequirementReport:
        """Run every check in order and return the accumulated report."""
        report = RequirementReport()
        self._check_version(report)
        self._check_capabilities(report)
        self._check_drivers(report)
        self._check_executables(report)
        self._check_env_file(report)
        self._check_writable(report)

        if report.ok:
            LOGGER.info("All %d requirements satisfied", len(report.requirements))
        else:
            LOGGER.warning("%d unmet requirement(s)", len(report.failures))
        return report

    def _check_version(self, report: RequirementReport) -> None:
        minimum = self.settings.min_python_version
        ok = version_at_least(self.snapshot.python_version, minimum)
        report.record(
            RequirementKind.VERSION,
            self.snapshot.python_version,
            ok,
            "" if ok else f"Python {minimum} or higher is required",
        )

    def _check_capabilities(self, report: RequirementReport) -> None:
        for capability, module in self.capabilities:
            ok = self.snapshot.has_module(module)
            report.record(
                RequirementKind.EXTENSION,
                module,
                ok,
                "" if ok else f"Extension required: {module} ({capability})",
            )

    def _check_drivers(self, report: RequirementReport) -> None:
        drivers = self.snapshot.available_drivers()
        names = ", ".join(driver for driver, _ in DATABASE_DRIVERS)
        report.record(
            RequirementKind.DRIVER,
            ",".join(drivers),
            bool(drivers),
            "" if drivers else f"At least 1 database driver is required. Either {names}",
        )

    def _check_executables(self, report: RequirementReport) -> None:
        for executable in self.executables:
            ok = self.probe(executable)
            report.record(
                RequirementKind.EXECUTABLE,
                executable,
                ok,
                "" if ok else f"Program not found in path: {executable}",
            )

    def _check_env_file(self, report: RequirementReport) -> None:
        env_path = self.settings.env_path
        if env_path.exists():
            report.record(RequirementKind.FILE_EXISTS, str(env_path), True)
            return

        example = self.settings.env_example_path
        if not example.exists():
            report.record(
                RequirementKind.FILE_EXISTS,
                str(env_path),
                False,
                f"{env_path.name} is missing and {example.name} could not be found to generate it",
            )
            return

        # Generated now so a re-run can proceed, but this run still halts.
        shutil.copyfile(example, env_path)
        LOGGER.info("Copied %s to %s", example, env_path)
        report.record(
            RequirementKind.FILE_EXISTS,
            str(env_path),
            False,
            f"{env_path.name} was missing, it has now been generated",
        )

    def _check_writable(self, report: RequirementReport) -> None:
        for relative in self.writable_paths:
            path: Path = self.settings.path(relative)
            ok = path.exists() and os.access(path, os.W_OK)
            report.record(
                RequirementKind.WRITABLE_PATH,
                relative,
                ok,
                "" if ok else f"{relative} is not writeable",
            )
