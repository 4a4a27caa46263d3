import pytest

from webinstaller.installer.settings import (
    DatabaseSettings, FirstAdminSettings, MailingSettings, PlatformSettings, resolve_transport_id
)
from webinstaller.installer.translation import Translator


@pytest.mark.parametrize(
    "label, expected",
    [
        ("Sendmail / Postfix", "sendmail"),
        ("sendmail / postfix", "sendmail"),
        ("SMTP", "smtp"),
        ("Gmail", "gmail"),
        ("Anything Else", "anything else"),
    ],
)
def test_resolve_transport_id(label, expected):
    assert resolve_transport_id(label) == expected


def test_bind_data_ignores_unknown_and_keeps_missing_fields():
    settings = DatabaseSettings()
    settings.bind_data({"name": "platform", "user": "root", "unexpected": "x"})
    settings.bind_data({"password": "secret"})

    data = settings.to_dict()
    assert data["name"] == "platform"
    assert data["user"] == "root"
    assert data["password"] == "secret"
    assert data["host"] == "localhost"
    assert "unexpected" not in data


def test_validate_is_repeatable_without_mutation():
    settings = FirstAdminSettings()
    settings.bind_data({"username": "x!", "password": "abc", "password_repeat": "abd"})

    first = settings.validate()
    assert first == settings.validate()
    assert settings.validate() == first


def test_database_sqlite_needs_no_host_or_user():
    settings = DatabaseSettings({"driver": "pdo_sqlite", "host": "", "name": "/var/lib/platform.db"})

    assert settings.validate() == {}
    assert settings.url().get_backend_name() == "sqlite"


def test_database_rejects_unknown_driver_and_bad_port():
    settings = DatabaseSettings({"driver": "pdo_oracle", "name": "db", "user": "u", "port": "abc"})

    errors = settings.validate()

    assert set(errors) == {"driver", "port"}


def test_database_url_for_mysql():
    settings = DatabaseSettings({
        "driver": "pdo_mysql", "host": "db.local", "port": "3307",
        "name": "platform", "user": "root", "password": "p@ss",
    })

    url = settings.url()

    assert url.drivername == "mysql+pymysql"
    assert url.host == "db.local"
    assert url.port == 3307
    assert url.database == "platform"
    assert url.password == "p@ss"


def test_platform_settings_rules():
    settings = PlatformSettings({
        "name": "Campus",
        "support_email": "support@example.com",
        "language": "de",
        "organization_url": "not a url",
    })

    assert set(settings.validate()) == {"language", "organization_url"}

    settings.bind_data({"language": "fr", "organization_url": "https://example.com"})
    assert settings.validate() == {}
    assert settings.language == "fr"


def test_first_admin_passwords_must_match():
    settings = FirstAdminSettings({
        "first_name": "Ada",
        "last_name": "Lovelace",
        "username": "ada.l",
        "password": "long enough",
        "password_repeat": "long enougH",
        "email": "ada@example.com",
    })

    assert settings.validate() == {"password_repeat": "Passwords must match"}


def test_mailing_settings_validate_per_transport():
    assert set(MailingSettings("gmail").validate()) == {"username", "password"}
    assert MailingSettings("sendmail").validate() == {}
    assert MailingSettings("smtp", {"host": "mail.example.com", "encryption": "ssl"}).validate() == {}
    assert MailingSettings("smtp", {"host": "mail.example.com", "encryption": "starttls"}).validate().keys() == {
        "encryption"
    }


def test_mailing_settings_unknown_transport():
    errors = MailingSettings("pigeon").validate()

    assert list(errors) == ["transport"]


def test_mailing_settings_round_trip_through_dict():
    settings = MailingSettings("smtp", {"host": "mail.example.com", "port": 25})

    restored = MailingSettings.from_dict(settings.to_dict())

    assert restored == settings
    assert restored.transport_options["port"] == "25"
    assert MailingSettings.from_dict(None) == MailingSettings()


def test_translator_falls_back_to_english():
    translator = Translator("fr")
    assert translator("next") == "Suivant"

    translator.set_language("xx")
    assert translator.language == "en"
    assert translator("next") == "Next"
    assert translator("no_such_key") == "no_such_key"
