"""Top-level package for the Deployer installer."""
from __future__ import annotations

__version__ = "1.0.0"

__all__ = [
    "cli",
    "core",
    "installer",
]
