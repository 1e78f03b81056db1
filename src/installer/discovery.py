"""Timezone and locale discovery for the application prompts."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional
from zoneinfo import available_timezones

UTC = "UTC"

TIMEZONE_REGIONS: tuple[str, ...] = (
    UTC,
    "Africa",
    "America",
    "Antarctica",
    "Asia",
    "Atlantic",
    "Australia",
    "Europe",
    "Indian",
    "Pacific",
)


def timezone_locations(region: str, identifiers: Optional[Iterable[str]] = None) -> List[str]:
    """
    List the locations within a region, without the region prefix.

    "America/Argentina/Salta" is returned as "Argentina/Salta".
    """
    if identifiers is None:
        identifiers = available_timezones()
    prefix = f"{region}/"
    return sorted(name[len(prefix):] for name in identifiers if name.startswith(prefix))


def discover_locales(lang_path: Path) -> List[str]:
    """Locale identifiers, one per directory under the language resources."""
    if not lang_path.is_dir():
        return []
    return sorted(entry.name for entry in lang_path.iterdir() if entry.is_dir())
