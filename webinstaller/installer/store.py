from typing import Any, Dict, Optional

from werkzeug.security import generate_password_hash

from webinstaller.models import WizardSession
from .settings import DatabaseSettings, FirstAdminSettings, MailingSettings, PlatformSettings


class SettingsStore:
    """Per-session holder of every domain's settings and error slots.

    The domain objects are deserialised once from the backing
    ``WizardSession`` row and written back by :meth:`flush`. The store does no
    validation of its own; each slot is read and replaced independently.
    """

    def __init__(self, ws: WizardSession):
        self.ws = ws

        self.install_language: str = ws.install_language or "en"
        self.country: Optional[str] = ws.country

        self.database_settings = DatabaseSettings.from_dict(ws.database_settings)
        self.database_global_error: Optional[str] = ws.database_global_error
        self.database_validation_errors: Dict[str, str] = dict(ws.database_validation_errors or {})

        self.platform_settings = PlatformSettings.from_dict(ws.platform_settings)
        self.platform_validation_errors: Dict[str, str] = dict(ws.platform_validation_errors or {})

        self.first_admin_settings = FirstAdminSettings.from_dict(ws.first_admin_settings)
        self.first_admin_validation_errors: Dict[str, str] = dict(ws.first_admin_validation_errors or {})

        self.mailing_settings = MailingSettings.from_dict(ws.mailing_settings)
        self.mailing_global_error: Optional[str] = ws.mailing_global_error
        self.mailing_validation_errors: Dict[str, str] = dict(ws.mailing_validation_errors or {})

    def set_database_validation_errors(self, errors: Dict[str, str]) -> None:
        self.database_validation_errors = dict(errors)

    def set_database_global_error(self, error: Optional[str]) -> None:
        self.database_global_error = error

    def set_platform_validation_errors(self, errors: Dict[str, str]) -> None:
        self.platform_validation_errors = dict(errors)

    def set_first_admin_validation_errors(self, errors: Dict[str, str]) -> None:
        self.first_admin_validation_errors = dict(errors)

    def set_mailing_validation_errors(self, errors: Dict[str, str]) -> None:
        self.mailing_validation_errors = dict(errors)

    def set_mailing_global_error(self, error: Optional[str]) -> None:
        self.mailing_global_error = error

    def reinitialize_mailing_settings(self) -> None:
        self.mailing_settings = MailingSettings()

    def flush(self) -> WizardSession:
        """Copy the current state onto the row (fresh JSON values each time)."""
        ws = self.ws
        ws.install_language = self.install_language
        ws.country = self.country
        ws.database_settings = self.database_settings.to_dict()
        ws.database_global_error = self.database_global_error
        ws.database_validation_errors = dict(self.database_validation_errors)
        ws.platform_settings = self.platform_settings.to_dict()
        ws.platform_validation_errors = dict(self.platform_validation_errors)
        ws.first_admin_settings = self.first_admin_settings.to_dict()
        ws.first_admin_validation_errors = dict(self.first_admin_validation_errors)
        ws.mailing_settings = self.mailing_settings.to_dict()
        ws.mailing_global_error = self.mailing_global_error
        ws.mailing_validation_errors = dict(self.mailing_validation_errors)
        return ws

    def to_parameters(self) -> Dict[str, Any]:
        """Snapshot handed to the configuration writer."""
        admin = self.first_admin_settings.to_dict()
        password = admin.pop("password", "")
        admin.pop("password_repeat", None)
        admin["password_hash"] = generate_password_hash(password) if password else ""

        return {
            "install_language": self.install_language,
            "country": self.country,
            "database": self.database_settings.to_dict(),
            "platform": self.platform_settings.to_dict(),
            "first_admin": admin,
            "mailing": self.mailing_settings.to_dict(),
        }
