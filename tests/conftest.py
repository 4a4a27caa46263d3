"""
Pytest configuration and fixtures for the web installer tests.

Checkers and the installer are replaced with recording fakes through
``WizardServices``; everything else (forms, store, routes) is the real code.
"""

import pytest

from helpers import FakeInstaller, FakeRequirementChecker, RecordingChecker
from webinstaller import create_app
from webinstaller.config import TestConfig
from webinstaller.extensions import db
from webinstaller.installer.services import WizardServices
from webinstaller.installer.status import InstallStatusReporter
from webinstaller.installer.store import SettingsStore
from webinstaller.installer.writer import ParametersWriter
from webinstaller.models import WizardSession


@pytest.fixture
def test_config(tmp_path):
    class Config(TestConfig):
        INSTALLER_LOG_DIR = str(tmp_path / "logs")
        INSTALLER_PARAMETERS_PATH = str(tmp_path / "config" / "parameters.json")

    return Config


@pytest.fixture
def events():
    return []


@pytest.fixture
def db_checker():
    return RecordingChecker()


@pytest.fixture
def mail_checker():
    return RecordingChecker()


@pytest.fixture
def fake_installer(events):
    return FakeInstaller(events)


@pytest.fixture
def services(test_config, db_checker, mail_checker, fake_installer):
    return WizardServices(
        requirement_checker=FakeRequirementChecker,
        database_checker=db_checker,
        mailing_checker=mail_checker,
        installer=lambda: fake_installer,
        writer=ParametersWriter(test_config.INSTALLER_PARAMETERS_PATH),
        status_reporter=InstallStatusReporter(test_config.INSTALLER_LOG_DIR),
    )


@pytest.fixture
def app(test_config, services):
    app = create_app(test_config, services=services)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store():
    """A store over a fresh, unsaved wizard session."""
    return SettingsStore(WizardSession())
