from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine
from sqlalchemy.pool import NullPool

from webinstaller.logging_setup import build_formatter
from .checkers import SqlAlchemyDatabaseChecker
from .settings import DatabaseSettings
from .status import log_filename
from .writer import ParametersWriter

logger = logging.getLogger(__name__)

INSTALLED_MARKER = "installed"


class InstallError(Exception):
    pass


class InstallStep(Protocol):
    """A single step of the installation procedure."""

    step_id: str

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        ...


metadata = MetaData()

platform_options = Table(
    "platform_options",
    metadata,
    Column("name", String(128), primary_key=True),
    Column("value", Text, nullable=True),
)

platform_users = Table(
    "platform_users",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("username", String(50), nullable=False, unique=True),
    Column("email", String(255), nullable=False),
    Column("first_name", String(50), nullable=False),
    Column("last_name", String(50), nullable=False),
    Column("password_hash", String(255), nullable=False),
    Column("roles", String(255), nullable=False),
)


class LoadParametersStep:
    step_id = "load_parameters"

    def __init__(self, writer: ParametersWriter):
        self.writer = writer

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        state["parameters"] = self.writer.read_parameters()
        return state


class CheckDatabaseStep:
    step_id = "check_database"

    def __init__(self, timeout: float):
        self.timeout = timeout

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        settings = DatabaseSettings.from_dict(state["parameters"].get("database"))
        error = SqlAlchemyDatabaseChecker(settings, self.timeout).connect_to_database()
        if error:
            raise InstallError(error)
        return state


def _platform_option_rows(parameters: Dict[str, Any]) -> List[Dict[str, str]]:
    rows = [
        {"name": "install_language", "value": parameters.get("install_language") or ""},
        {"name": "country", "value": parameters.get("country") or ""},
    ]
    for name, value in sorted((parameters.get("platform") or {}).items()):
        rows.append({"name": f"platform_{name}", "value": value})

    mailing = parameters.get("mailing") or {}
    rows.append({"name": "mailer_transport", "value": mailing.get("transport") or ""})
    for name, value in sorted((mailing.get("transport_options") or {}).items()):
        rows.append({"name": f"mailer_{name}", "value": value})
    return rows


class BootstrapPlatformStep:
    """Creates the platform's bootstrap tables, options and first administrator."""

    step_id = "bootstrap_platform"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        parameters = state["parameters"]
        admin = parameters.get("first_admin") or {}
        engine = create_engine(DatabaseSettings.from_dict(parameters.get("database")).url(), poolclass=NullPool)
        try:
            metadata.create_all(engine)
            with engine.begin() as conn:
                conn.execute(platform_options.delete())
                conn.execute(platform_options.insert(), _platform_option_rows(parameters))
                conn.execute(platform_users.delete().where(platform_users.c.username == admin.get("username")))
                conn.execute(platform_users.insert().values(
                    username=admin.get("username"),
                    email=admin.get("email"),
                    first_name=admin.get("first_name"),
                    last_name=admin.get("last_name"),
                    password_hash=admin.get("password_hash"),
                    roles="ROLE_ADMIN",
                ))
        finally:
            engine.dispose()
        return state


class WriteInstalledMarkerStep:
    step_id = "write_installed_marker"

    def __init__(self, marker_path):
        self.marker_path = Path(marker_path)

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        self.marker_path.write_text(datetime.now(timezone.utc).isoformat() + "\n", encoding="utf-8")
        return state


def default_install_steps(parameters_path, timeout: float) -> List[InstallStep]:
    writer = ParametersWriter(parameters_path)
    return [
        LoadParametersStep(writer),
        CheckDatabaseStep(timeout),
        BootstrapPlatformStep(),
        WriteInstalledMarkerStep(Path(parameters_path).with_name(INSTALLED_MARKER)),
    ]


class Installer:
    """Runs the install steps in order, logging to ``install-<timestamp>.log``.

    ``install()`` never raises for a failing step: the failure is written to
    the run's log and reported through :meth:`has_succeeded`.
    """

    def __init__(self, log_dir, steps: Sequence[InstallStep], clock: Callable[[], float] = time.time):
        self.log_dir = Path(log_dir)
        self.steps = list(steps)
        self.clock = clock
        self._succeeded = False
        self._log_filename: Optional[str] = None

    def has_succeeded(self) -> bool:
        return self._succeeded

    def get_log_filename(self) -> Optional[str]:
        return self._log_filename

    def _allocate_log(self) -> Path:
        self.log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = int(self.clock())
        while (self.log_dir / log_filename(timestamp)).exists():
            timestamp += 1
        path = self.log_dir / log_filename(timestamp)
        path.touch()
        self._log_filename = path.name
        return path

    def _run_logger(self, path: Path):
        run_logger = logging.getLogger(f"{__name__}.run")
        run_logger.setLevel(logging.INFO)
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setFormatter(build_formatter())
        run_logger.addHandler(handler)
        return run_logger, handler

    def install(self) -> None:
        path = self._allocate_log()
        run_logger, handler = self._run_logger(path)
        state: Dict[str, Any] = {"log_path": str(path)}
        current = None
        self._succeeded = False
        try:
            run_logger.info("Installation started (%d steps)", len(self.steps))
            for step in self.steps:
                current = step.step_id
                run_logger.info("Running step %s", current)
                state = step.run(state)
                run_logger.info("Completed step %s", current)
        except Exception:
            run_logger.exception("Installation failed during %s", current)
        else:
            self._succeeded = True
            run_logger.info("Installation succeeded")
        finally:
            run_logger.removeHandler(handler)
            handler.close()

    def record_setup_failure(self, exc: BaseException) -> str:
        """Write a failure log for an I/O fault raised before ``install()``."""
        path = self._allocate_log()
        run_logger, handler = self._run_logger(path)
        self._succeeded = False
        try:
            run_logger.error(
                "Setup I/O fault: the configuration could not be written (%s). "
                "The installation procedure was not started.",
                exc,
            )
        finally:
            run_logger.removeHandler(handler)
            handler.close()
        return path.name
