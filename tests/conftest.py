"""Pytest configuration and fixtures."""
from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Iterable, List, Optional

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

# Keep the developer's own settings out of the tests
os.environ.pop("APP_KEY", None)
os.environ.pop("APP_ENV", None)

from core.config import Settings
from core.exceptions import CollaboratorFailure, ConnectivityFailure
from installer.output import Output
from installer.prompts import Prompter
from installer.requirements import DATABASE_DRIVERS, REQUIRED_CAPABILITIES, EnvironmentSnapshot


TEMPLATE = """\
# Application
APP_ENV=production
APP_KEY=SomeRandomString
APP_URL=http://localhost
APP_TIMEZONE=UTC
APP_LOCALE=en

SOCKET_URL=http://localhost

DB_TYPE=mysql
DB_HOST=localhost
DB_DATABASE=deployer
DB_NAME=deployer
DB_USERNAME=deployer
DB_PASSWORD=secret

CACHE_DRIVER=file

MAIL_TYPE=smtp
MAIL_HOST=localhost
MAIL_PORT=25
MAIL_USERNAME=null
MAIL_PASSWORD=null
MAIL_FROM_NAME=Deployer
MAIL_FROM_ADDRESS=deployer@deploy.app
"""

APP_DIRECTORIES = (
    "storage/logs",
    "storage/app",
    "storage/framework/cache",
    "storage/framework/sessions",
    "storage/framework/views",
    "bootstrap/cache",
    "resources/lang/en",
)


class ScriptedReader:
    """Stands in for the terminal: replays answers and records the questions."""

    def __init__(self, answers: Iterable[str]) -> None:
        self.answers: List[str] = list(answers)
        self.questions: List[str] = []
        self.hidden: List[bool] = []

    def __call__(self, question: str, hide_input: bool) -> str:
        self.questions.append(question)
        self.hidden.append(hide_input)
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {question!r}")
        return self.answers.pop(0)

    def asked(self, prefix: str) -> int:
        return sum(1 for question in self.questions if question.startswith(prefix))


class FakeVerifier:
    """Fails the first ``failures`` verifications, then succeeds."""

    def __init__(self, failures: int = 0, message: str = "Connection refused") -> None:
        self.failures = failures
        self.message = message
        self.calls: List[dict] = []

    def verify(self, details) -> None:
        self.calls.append(dict(details))
        if len(self.calls) <= self.failures:
            raise ConnectivityFailure(self.message)


class FakeCollaborators:
    """Records every downstream step instead of running it."""

    def __init__(self, fail_on: Optional[str] = None) -> None:
        self.calls: List[tuple] = []
        self.fail_on = fail_on

    def _record(self, *call) -> None:
        self.calls.append(call)
        if call[0] == self.fail_on:
            raise CollaboratorFailure(call[0], "simulated failure")

    def generate_secret(self) -> None:
        self._record("generate_secret")

    def migrate(self, force: bool) -> None:
        self._record("migrate", force)

    def seed(self, force: bool) -> None:
        self._record("seed", force)

    def clear_caches(self) -> None:
        self._record("clear_caches")

    def compile_caches(self, force: bool) -> None:
        self._record("compile_caches", force)


def full_snapshot(python_version: str = "3.12.1") -> EnvironmentSnapshot:
    """A snapshot in which every capability and driver is importable."""
    modules = {module for _, module in REQUIRED_CAPABILITIES + DATABASE_DRIVERS}
    return EnvironmentSnapshot(python_version=python_version, available_modules=frozenset(modules))


@pytest.fixture
def app_root(tmp_path) -> Path:
    """A minimal application tree with .env and .env.example in place."""
    for directory in APP_DIRECTORIES:
        (tmp_path / directory).mkdir(parents=True, exist_ok=True)
    (tmp_path / ".env.example").write_text(TEMPLATE, encoding="utf-8")
    (tmp_path / ".env").write_text(TEMPLATE, encoding="utf-8")
    return tmp_path


@pytest.fixture
def settings(app_root) -> Settings:
    return Settings(base_path=app_root, environment="production")


@pytest.fixture
def local_settings(app_root) -> Settings:
    return Settings(base_path=app_root, environment="local")


@pytest.fixture
def output() -> Output:
    return Output()


def make_prompter(answers: Iterable[str]) -> tuple[Prompter, ScriptedReader]:
    reader = ScriptedReader(answers)
    return Prompter(reader=reader, output=Output()), reader
