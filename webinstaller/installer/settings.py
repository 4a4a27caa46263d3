from typing import Any, Dict, Mapping, Optional, Tuple, Type

from sqlalchemy.engine import URL
from werkzeug.datastructures import MultiDict
from wtforms import Form

from .forms import (
    TRANSPORT_FORMS, DatabaseForm, FirstAdminForm, PlatformForm, collect_errors
)

TRANSPORT_LABELS = ["SMTP", "Gmail", "Sendmail / Postfix"]
SENDMAIL_LABELS = {"sendmail / postfix", "postfix"}

DRIVER_DIALECTS = {
    "pdo_mysql": "mysql+pymysql",
    "pdo_pgsql": "postgresql+psycopg2",
    "pdo_sqlite": "sqlite",
}


def resolve_transport_id(label: str) -> str:
    """Map a transport label from the mailing form to its identifier.

    ``"Sendmail / Postfix"`` (and ``"Postfix"``) become ``sendmail``; every
    other label is simply lower-cased, so new transports need no mapping.
    """
    normalized = (label or "").strip().lower()
    if normalized in SENDMAIL_LABELS:
        return "sendmail"
    return normalized


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


class DomainSettings:
    """A named set of string fields validated by a WTForms rule set."""

    form_class: Type[Form]
    defaults: Dict[str, str] = {}

    def __init__(self, data: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, str] = dict(self.defaults)
        if data:
            self.bind_data(data)

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(self.defaults)

    def bind_data(self, field_map: Mapping[str, Any]) -> None:
        for name in self.field_names:
            if name in field_map:
                self._values[name] = _as_text(field_map[name])

    def validate(self) -> Dict[str, str]:
        form = self.form_class(formdata=MultiDict(self._values))
        form.validate()
        return collect_errors(form)

    def get(self, name: str) -> str:
        return self._values.get(name, "")

    def set(self, name: str, value: Any) -> None:
        if name not in self.defaults:
            raise KeyError(f"Unknown setting '{name}' for {type(self).__name__}")
        self._values[name] = _as_text(value)

    def __getitem__(self, name: str) -> str:
        return self._values[name]

    def to_dict(self) -> Dict[str, str]:
        return dict(self._values)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]):
        return cls(data or None)

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and self._values == other._values  # type: ignore[attr-defined]

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {sorted(self._values)}>"


class DatabaseSettings(DomainSettings):
    form_class = DatabaseForm
    defaults = {
        "driver": "pdo_mysql",
        "host": "localhost",
        "port": "",
        "name": "",
        "user": "",
        "password": "",
    }

    def url(self) -> URL:
        driver = self.get("driver")
        if driver not in DRIVER_DIALECTS:
            raise ValueError(f"Unsupported database driver: {driver}")
        if driver == "pdo_sqlite":
            return URL.create("sqlite", database=self.get("name"))

        port = self.get("port")
        return URL.create(
            DRIVER_DIALECTS[driver],
            username=self.get("user") or None,
            password=self.get("password") or None,
            host=self.get("host") or None,
            port=int(port) if port else None,
            database=self.get("name"),
        )


class PlatformSettings(DomainSettings):
    form_class = PlatformForm
    defaults = {
        "name": "",
        "support_email": "",
        "language": "",
        "organization": "",
        "organization_url": "",
    }

    @property
    def language(self) -> str:
        return self.get("language")

    @language.setter
    def language(self, value: str) -> None:
        self.set("language", value)


class FirstAdminSettings(DomainSettings):
    form_class = FirstAdminForm
    defaults = {
        "first_name": "",
        "last_name": "",
        "username": "",
        "password": "",
        "password_repeat": "",
        "email": "",
    }


class MailingSettings:
    """Selected mail transport plus the options of that transport only."""

    DEFAULT_TRANSPORT = "smtp"

    def __init__(self, transport: str = DEFAULT_TRANSPORT, transport_options: Optional[Mapping[str, Any]] = None):
        self.transport = transport
        self.transport_options: Dict[str, str] = {}
        if transport_options:
            self.set_transport_options(transport_options)

    def set_transport(self, transport: str) -> None:
        self.transport = transport

    def set_transport_options(self, options: Mapping[str, Any]) -> None:
        self.transport_options = {name: _as_text(value) for name, value in options.items()}

    def bind_data(self, field_map: Mapping[str, Any]) -> None:
        self.set_transport_options(field_map)

    def validate(self) -> Dict[str, str]:
        form_class = TRANSPORT_FORMS.get(self.transport)
        if form_class is None:
            return {"transport": f"Unknown mail transport '{self.transport}'."}
        form = form_class(formdata=MultiDict(self.transport_options))
        form.validate()
        return collect_errors(form)

    def get_option(self, name: str, default: str = "") -> str:
        return self.transport_options.get(name) or default

    def to_dict(self) -> Dict[str, Any]:
        return {"transport": self.transport, "transport_options": dict(self.transport_options)}

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "MailingSettings":
        data = data or {}
        return cls(
            transport=data.get("transport") or cls.DEFAULT_TRANSPORT,
            transport_options=data.get("transport_options") or {},
        )

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, MailingSettings)
            and self.transport == other.transport
            and self.transport_options == other.transport_options
        )

    def __repr__(self) -> str:
        return f"<MailingSettings transport={self.transport}>"
