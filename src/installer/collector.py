"""Prompt groups that gather the database, application and mail settings."""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence

from core.config import Settings, get_settings
from core.exceptions import ConnectivityFailure
from core.logging_config import get_logger
from installer.database import SQLITE, DatabaseVerifier
from installer.discovery import TIMEZONE_REGIONS, UTC, discover_locales, timezone_locations
from installer.output import Output
from installer.prompts import Prompter
from installer.requirements import EnvironmentSnapshot
from installer.validators import validate_email, validate_integer, validate_url

LOGGER = get_logger(__name__)

ConfigSection = Dict[str, Any]
ConfigTree = Dict[str, ConfigSection]

SMTP = "smtp"
MAIL_TYPES = (SMTP, "sendmail", "mail")


class ConfigCollector:
    """Asks the operator for everything written to the configuration file."""

    def __init__(
        self,
        prompter: Prompter,
        settings: Optional[Settings] = None,
        verifier: Optional[DatabaseVerifier] = None,
        drivers: Optional[Sequence[str]] = None,
        output: Optional[Output] = None,
        timezones: Callable[[str], List[str]] = timezone_locations,
        locales: Optional[Callable[[], List[str]]] = None,
    ) -> None:
        self.prompter = prompter
        self.settings = settings or get_settings()
        self.verifier = verifier or DatabaseVerifier(self.settings)
        self.drivers = list(drivers) if drivers is not None else EnvironmentSnapshot.capture().available_drivers()
        self.output = output or prompter.output
        self.timezones = timezones
        self.locales = locales or (lambda: discover_locales(self.settings.path(self.settings.lang_directory)))

    def collect(self) -> ConfigTree:
        """Run the three prompt groups in order."""
        return {
            "db": self.database(),
            "app": self.application(),
            "mail": self.mail(),
        }

    def database(self) -> ConfigSection:
        """
        Prompt for database details until the connection can be verified.

        A failed verification restarts the whole group from the driver
        choice, not just the field that was probably wrong.
        """
        self.output.header("Database details")

        while True:
            database: ConfigSection = {}

            driver = self.prompter.choose("Type", self.drivers, 0)
            database["type"] = driver

            if driver != SQLITE:
                database["host"] = self.prompter.question("Host", default="localhost")
                database["name"] = self.prompter.question("Name", default="deployer")
                database["username"] = self.prompter.question("Username", default="deployer")
                database["password"] = self.prompter.secret("Password")

            try:
                self.verifier.verify(database)
            except ConnectivityFailure as exc:
                LOGGER.info("Database verification failed for %s driver", driver)
                self.output.block([
                    "Deployer could not connect to the database with the details provided. Please try again.",
                    "",
                    str(exc),
                ])
                continue

            return database

    def application(self) -> ConfigSection:
        """Prompt for URL, timezone, socket URL and locale."""
        self.output.header("Installation details")

        url = self.prompter.question(
            'Application URL ("http://deploy.app" for example)',
            validator=validate_url,
        )

        timezone = self._timezone()

        # Left blank, the socket URL falls back to the application URL
        socket = self.prompter.question("Socket URL", default=url, validator=validate_url)

        return {
            "url": url,
            "timezone": timezone,
            "socket": socket,
            "locale": self._locale(),
        }

    def _timezone(self) -> str:
        while True:
            region = self.prompter.choose("Timezone region", TIMEZONE_REGIONS, 0)
            if region == UTC:
                return region

            locations = self.timezones(region)
            if locations:
                return region + "/" + self.prompter.choose("Timezone location", locations, 0)

            # No tz database entries for this region; pick another one
            LOGGER.warning("No timezones found for region %s", region)
            self.output.error(f"No timezones are available for {region}, please choose another region.")

    def _locale(self) -> str:
        locales = self.locales()
        if len(locales) == 1:
            return locales[0]
        if not locales:
            LOGGER.warning("No locales found, using %s", self.settings.fallback_locale)
            return self.settings.fallback_locale

        fallback = self.settings.fallback_locale
        default_index = locales.index(fallback) if fallback in locales else 0
        return self.prompter.choose("Language", locales, default_index)

    def mail(self) -> ConfigSection:
        """Prompt for the mail transport and sender details."""
        self.output.header("Email details")

        email: ConfigSection = {}

        transport = self.prompter.choose("Type", MAIL_TYPES, 0)
        email["type"] = transport

        if transport == SMTP:
            email["host"] = self.prompter.question("Host", default="localhost")
            email["port"] = self.prompter.question("Port", default=25, validator=validate_integer)
            email["username"] = self.prompter.question("Username")
            email["password"] = self.prompter.secret("Password")

        email["from_name"] = self.prompter.question("From name", default=self.settings.default_from_name)
        email["from_address"] = self.prompter.question(
            "From address",
            default=self.settings.default_from_address,
            validator=validate_email,
        )

        return email
