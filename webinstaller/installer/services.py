from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Optional

from flask import Flask, current_app

from .checkers import (
    DatabaseChecker, EnvironmentRequirementChecker, MailingChecker,
    RequirementChecker, SqlAlchemyDatabaseChecker, TransportMailingChecker
)
from .install import Installer, default_install_steps
from .settings import DatabaseSettings, MailingSettings
from .status import InstallStatusReporter
from .writer import ParametersWriter

EXTENSION_KEY = "installer"


@dataclass
class WizardServices:
    """Collaborators the step controller reaches through narrow contracts."""

    requirement_checker: Callable[[], RequirementChecker]
    database_checker: Callable[[DatabaseSettings], DatabaseChecker]
    mailing_checker: Callable[[MailingSettings], MailingChecker]
    installer: Callable[[], Installer]
    writer: ParametersWriter
    status_reporter: InstallStatusReporter

    @classmethod
    def from_config(cls, config: Mapping) -> "WizardServices":
        log_dir = Path(config["INSTALLER_LOG_DIR"])
        parameters_path = Path(config["INSTALLER_PARAMETERS_PATH"])
        timeout = config.get("INSTALLER_CHECK_TIMEOUT", 10)

        return cls(
            requirement_checker=lambda: EnvironmentRequirementChecker([log_dir, parameters_path.parent]),
            database_checker=lambda settings: SqlAlchemyDatabaseChecker(settings, timeout),
            mailing_checker=lambda settings: TransportMailingChecker(settings, timeout),
            installer=lambda: Installer(log_dir, default_install_steps(parameters_path, timeout)),
            writer=ParametersWriter(parameters_path),
            status_reporter=InstallStatusReporter(log_dir),
        )


def init_app(app: Flask, services: Optional[WizardServices] = None) -> WizardServices:
    services = services or WizardServices.from_config(app.config)
    app.extensions[EXTENSION_KEY] = services
    return services


def get_services() -> WizardServices:
    return current_app.extensions[EXTENSION_KEY]
