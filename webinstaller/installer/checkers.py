from __future__ import annotations

import importlib.util
import logging
import os
import shutil
import smtplib
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from .settings import DatabaseSettings, MailingSettings

logger = logging.getLogger(__name__)

LEVEL_REQUIRED = "required"
LEVEL_RECOMMENDED = "recommended"

MIN_PYTHON = (3, 9)
DEFAULT_SENDMAIL_COMMAND = "/usr/sbin/sendmail"
GMAIL_HOST = "smtp.gmail.com"
GMAIL_PORT = 465


@dataclass(frozen=True)
class SettingItem:
    description: str
    level: str
    passed: bool

    @property
    def failed_requirement(self) -> bool:
        return self.level == LEVEL_REQUIRED and not self.passed

    @property
    def failed_recommendation(self) -> bool:
        return self.level == LEVEL_RECOMMENDED and not self.passed


@dataclass(frozen=True)
class SettingCategory:
    name: str
    items: List[SettingItem] = field(default_factory=list)


class RequirementChecker(Protocol):
    def get_setting_categories(self) -> List[SettingCategory]:
        ...

    def has_failed_recommendation(self) -> bool:
        ...

    def has_failed_requirement(self) -> bool:
        ...


class DatabaseChecker(Protocol):
    def connect_to_database(self) -> Optional[str]:
        """Return ``None`` when a connection could be made, else the reason."""
        ...


class MailingChecker(Protocol):
    def test_transport(self) -> Optional[str]:
        """Return ``None`` when the transport answered, else the reason."""
        ...


def _is_writable(path: Path) -> bool:
    # Not-yet-created paths count as writable when their closest existing parent is.
    candidate = path
    while not candidate.exists():
        if candidate.parent == candidate:
            return False
        candidate = candidate.parent
    return os.access(candidate, os.W_OK)


def _module_available(name: str) -> bool:
    return importlib.util.find_spec(name) is not None


class EnvironmentRequirementChecker:
    """Audits the Python runtime and the host before anything is configured."""

    def __init__(self, writable_paths: Sequence[Path]):
        self.writable_paths = [Path(p) for p in writable_paths]
        self._categories: Optional[List[SettingCategory]] = None

    def get_setting_categories(self) -> List[SettingCategory]:
        if self._categories is None:
            self._categories = [
                self._runtime_category(),
                self._drivers_category(),
                self._permissions_category(),
                self._mail_category(),
            ]
        return self._categories

    def has_failed_recommendation(self) -> bool:
        return any(
            item.failed_recommendation
            for category in self.get_setting_categories()
            for item in category.items
        )

    def has_failed_requirement(self) -> bool:
        return any(
            item.failed_requirement
            for category in self.get_setting_categories()
            for item in category.items
        )

    def _runtime_category(self) -> SettingCategory:
        version = ".".join(str(part) for part in MIN_PYTHON)
        return SettingCategory("Python runtime", [
            SettingItem(f"Python version is at least {version}", LEVEL_REQUIRED, sys.version_info[:2] >= MIN_PYTHON),
            SettingItem("The sqlite3 module is available", LEVEL_REQUIRED, _module_available("sqlite3")),
            SettingItem("The ssl module is available", LEVEL_RECOMMENDED, _module_available("ssl")),
        ])

    def _drivers_category(self) -> SettingCategory:
        return SettingCategory("Database drivers", [
            SettingItem("MySQL driver (PyMySQL) is installed", LEVEL_RECOMMENDED, _module_available("pymysql")),
            SettingItem("PostgreSQL driver (psycopg2) is installed", LEVEL_RECOMMENDED, _module_available("psycopg2")),
        ])

    def _permissions_category(self) -> SettingCategory:
        return SettingCategory("File permissions", [
            SettingItem(f"{path} is writable", LEVEL_REQUIRED, _is_writable(path))
            for path in self.writable_paths
        ])

    def _mail_category(self) -> SettingCategory:
        return SettingCategory("Mail", [
            SettingItem(
                "A sendmail compatible binary is available",
                LEVEL_RECOMMENDED,
                shutil.which("sendmail") is not None or os.path.exists(DEFAULT_SENDMAIL_COMMAND),
            ),
        ])


def _connect_args(backend: str, timeout: float) -> dict:
    if backend == "sqlite":
        return {"timeout": timeout}
    if backend in ("mysql", "postgresql"):
        return {"connect_timeout": int(timeout)}
    return {}


class SqlAlchemyDatabaseChecker:
    def __init__(self, settings: DatabaseSettings, timeout: float = 10):
        self.settings = settings
        self.timeout = timeout

    def connect_to_database(self) -> Optional[str]:
        try:
            url = self.settings.url()
            engine = create_engine(
                url,
                poolclass=NullPool,
                connect_args=_connect_args(url.get_backend_name(), self.timeout),
            )
        except (ValueError, ImportError, SQLAlchemyError) as exc:
            logger.warning("Database driver unavailable: %s", exc)
            return f"The database driver is not available: {exc}"

        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            reason = getattr(exc, "orig", None) or exc
            logger.info("Database connection to %s failed: %s", url.render_as_string(hide_password=True), reason)
            return f"Cannot connect to the database: {reason}"
        finally:
            engine.dispose()

        logger.info("Database connection to %s succeeded", url.render_as_string(hide_password=True))
        return None


class TransportMailingChecker:
    def __init__(self, settings: MailingSettings, timeout: float = 10):
        self.settings = settings
        self.timeout = timeout

    def test_transport(self) -> Optional[str]:
        transport = self.settings.transport
        if transport == "sendmail":
            return self._test_sendmail()
        if transport == "smtp":
            encryption = self.settings.get_option("encryption")
            default_port = {"ssl": 465, "tls": 587}.get(encryption, 25)
            return self._test_smtp(
                host=self.settings.get_option("host"),
                port=int(self.settings.get_option("port") or default_port),
                encryption=encryption,
                username=self.settings.get_option("username"),
                password=self.settings.get_option("password"),
            )
        if transport == "gmail":
            return self._test_smtp(
                host=GMAIL_HOST,
                port=GMAIL_PORT,
                encryption="ssl",
                username=self.settings.get_option("username"),
                password=self.settings.get_option("password"),
            )
        return f"Unknown mail transport '{transport}'."

    def _test_sendmail(self) -> Optional[str]:
        command = self.settings.get_option("command", DEFAULT_SENDMAIL_COMMAND)
        if shutil.which(command) is None:
            return f"No executable sendmail binary found at {command}."
        return None

    def _test_smtp(self, host: str, port: int, encryption: str, username: str, password: str) -> Optional[str]:
        client_class = smtplib.SMTP_SSL if encryption == "ssl" else smtplib.SMTP
        try:
            with client_class(host, port, timeout=self.timeout) as client:
                client.ehlo()
                if encryption == "tls":
                    client.starttls()
                    client.ehlo()
                if username:
                    client.login(username, password)
        except smtplib.SMTPAuthenticationError as exc:
            logger.info("Mail server %s:%s rejected credentials: %s", host, port, exc)
            return f"The mail server {host} rejected the credentials."
        except (smtplib.SMTPException, OSError) as exc:
            logger.info("Mail server %s:%s unreachable: %s", host, port, exc)
            return f"Cannot reach the mail server {host}:{port} ({exc})."

        logger.info("Mail transport %s:%s answered", host, port)
        return None
