"""In-place rewriting of the application's ``KEY=value`` configuration file.

The file is parsed into an ordered list of lines, each tagged with the key
it assigns (comments and blank lines carry no key). Values are replaced and
lines removed by key lookup, so keys the installer was not given, comments
and formatting are all left exactly as they were.

Reading values back is left to python-dotenv (``dotenv_values``), which
handles quoting, inline comments and ``export`` prefixes.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from core.exceptions import PersistenceFailure
from core.logging_config import get_logger

LOGGER = get_logger(__name__)

_ASSIGNMENT = re.compile(r"^\s*(?:export\s+)?([A-Za-z_][A-Za-z0-9_.]*)\s*=[ \t]*")

# Keys that make no sense for a file-based database
SQLITE_UNUSED_KEYS: Tuple[str, ...] = ("DB_HOST", "DB_NAME", "DB_DATABASE", "DB_USERNAME", "DB_PASSWORD")
# Keys only used by the SMTP transport
SMTP_ONLY_KEYS: Tuple[str, ...] = ("MAIL_HOST", "MAIL_PORT", "MAIL_USERNAME", "MAIL_PASSWORD")


def env_key(section: str, field: str) -> str:
    """``("db", "host")`` -> ``"DB_HOST"``."""
    return f"{section}_{field}".upper()


def _line_ending(raw: str) -> str:
    if raw.endswith("\r\n"):
        return "\r\n"
    if raw.endswith("\n"):
        return "\n"
    return ""


@dataclass
class EnvLine:
    """One physical line of the file and the key it assigns, if any."""

    raw: str
    key: Optional[str] = None
    # Everything before the value, e.g. "export APP_KEY="
    prefix: str = ""

    @classmethod
    def parse(cls, raw: str) -> "EnvLine":
        match = _ASSIGNMENT.match(raw)
        if not match:
            return cls(raw=raw)
        return cls(raw=raw, key=match.group(1), prefix=match.group(0))


class EnvFile:
    """Ordered, editable view of a ``KEY=value`` file."""

    def __init__(self, lines: Optional[List[EnvLine]] = None) -> None:
        self.lines: List[EnvLine] = lines or []

    @classmethod
    def parse(cls, content: str) -> "EnvFile":
        return cls([EnvLine.parse(raw) for raw in content.splitlines(keepends=True)])

    @classmethod
    def load(cls, path: Path) -> "EnvFile":
        try:
            content = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise PersistenceFailure(f"Could not read {path}: {exc}") from exc
        return cls.parse(content)

    def save(self, path: Path) -> None:
        try:
            Path(path).write_text(self.render(), encoding="utf-8")
        except OSError as exc:
            raise PersistenceFailure(f"Could not write {path}: {exc}") from exc

    def render(self) -> str:
        return "".join(line.raw for line in self.lines)

    def keys(self) -> List[str]:
        return [line.key for line in self.lines if line.key]

    def set(self, key: str, value: Any) -> bool:
        """
        Replace the first line assigning ``key``.

        Returns False, and changes nothing, when the key is not in the file.
        """
        for line in self.lines:
            if line.key == key:
                line.raw = f"{line.prefix}{value}{_line_ending(line.raw)}"
                return True
        return False

    def remove(self, key: str) -> int:
        """Delete every line assigning ``key``; returns how many were removed."""
        before = len(self.lines)
        self.lines = [line for line in self.lines if line.key != key]
        return before - len(self.lines)


class ConfigWriter:
    """Flushes a collected configuration tree into the template file."""

    def write(self, tree: Mapping[str, Mapping[str, Any]], path: Path) -> bool:
        """
        Rewrite ``path`` with the values in ``tree``.

        Only keys already present in the file are touched; unused database
        and mail keys are removed depending on the chosen drivers.

        Raises:
            PersistenceFailure: If the file cannot be read or written.
        """
        env = EnvFile.load(path)
        sections = self._sections(tree)

        replaced = 0
        for section, data in sections.items():
            for field, value in data.items():
                key = env_key(section, field)
                if env.set(key, value):
                    replaced += 1
                else:
                    LOGGER.debug("%s not present in %s, skipped", key, path)

        removed = 0
        if sections.get("db", {}).get("type") == "sqlite":
            removed += sum(env.remove(key) for key in SQLITE_UNUSED_KEYS)
        if "mail" in sections and sections["mail"].get("type") != "smtp":
            removed += sum(env.remove(key) for key in SMTP_ONLY_KEYS)

        env.save(path)
        LOGGER.info("Wrote %s: %d value(s) replaced, %d line(s) removed", path, replaced, removed)
        return True

    @staticmethod
    def _sections(tree: Mapping[str, Mapping[str, Any]]) -> Dict[str, Dict[str, Any]]:
        # The socket URL lives in its own SOCKET_ section on disk
        sections = {name: dict(data) for name, data in tree.items()}
        app = sections.get("app", {})
        if "socket" in app:
            sections.setdefault("socket", {})["url"] = app.pop("socket")
        return sections
