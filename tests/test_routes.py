import json
import os
from pathlib import Path

from webinstaller.extensions import db
from webinstaller.models import WizardSession

VALID_SQLITE = {"driver": "pdo_sqlite", "name": "/tmp/platform.db"}


def _location(resp):
    return resp.headers["Location"]


def test_language_page_and_submit(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert b"Welcome" in resp.data

    resp = client.post("/", data={"install_language": "fr", "country": "FR"})

    assert resp.status_code == 302
    assert _location(resp).endswith("/requirements")
    assert db.session.query(WizardSession).one().install_language == "fr"
    assert "Vérification" in client.get("/requirements").get_data(as_text=True)


def test_language_choice_stays_with_its_wizard_session(app, client):
    client.post("/", data={"install_language": "fr", "country": "FR"})

    other = app.test_client()
    other.get("/")
    page = other.get("/requirements").get_data(as_text=True)

    assert '<html lang="en">' in page
    assert "Requirements check" in page
    assert "Vérification" not in page
    assert "Vérification" in client.get("/requirements").get_data(as_text=True)


def test_language_is_read_from_the_stored_wizard_row(client):
    client.get("/")
    ws = db.session.query(WizardSession).one()
    ws.install_language = "fr"
    db.session.commit()

    page = client.get("/requirements").get_data(as_text=True)

    assert '<html lang="fr">' in page
    assert "Vérification" in page


def test_failed_page_keeps_language_after_session_is_discarded(client, fake_installer):
    client.post("/", data={"install_language": "fr", "country": "FR"})
    fake_installer.succeed = False

    resp = client.post("/install")
    page = client.get(_location(resp)).get_data(as_text=True)

    assert db.session.query(WizardSession).count() == 0
    assert "Aucun journal" in page
    with client.session_transaction() as sess:
        assert sess["install_language"] == "fr"


def test_requirements_page_always_offers_next(client):
    resp = client.get("/requirements")

    assert resp.status_code == 200
    assert b'href="/database"' in resp.data


def test_database_errors_redisplay_step(client, db_checker):
    resp = client.post("/database", data={"driver": "pdo_mysql", "host": "", "name": ""})

    assert _location(resp).endswith("/database")
    assert db_checker.calls == []
    page = client.get("/database").get_data(as_text=True)
    assert "This field is required." in page


def test_database_checker_failure_shows_banner(client, db_checker):
    db_checker.error = "Cannot connect to the database: timeout"

    resp = client.post("/database", data=VALID_SQLITE)

    assert _location(resp).endswith("/database")
    assert "Cannot connect to the database: timeout" in client.get("/database").get_data(as_text=True)

    db_checker.error = None
    resp = client.post("/database", data=VALID_SQLITE)
    assert _location(resp).endswith("/platform")
    assert "Cannot connect" not in client.get("/database").get_data(as_text=True)


def test_platform_language_defaults_to_install_language(client):
    client.post("/", data={"install_language": "fr", "country": "FR"})

    client.get("/platform")

    ws = db.session.query(WizardSession).one()
    assert ws.platform_settings["language"] == "fr"


def test_mailing_transport_switch_and_skip(client, mail_checker):
    resp = client.post("/mailing", data={"transport": "Gmail"})

    assert _location(resp).endswith("/mailing")
    assert mail_checker.calls == []
    ws = db.session.query(WizardSession).one()
    assert ws.mailing_settings == {"transport": "gmail", "transport_options": {}}

    resp = client.post("/mailing/skip")

    assert _location(resp).endswith("/install")
    db.session.expire_all()
    ws = db.session.query(WizardSession).one()
    assert ws.mailing_settings == {"transport": "smtp", "transport_options": {}}


def test_mailing_options_advance_to_install(client, mail_checker):
    resp = client.post("/mailing", data={"transport": "SMTP", "host": "mail.example.com"})

    assert _location(resp).endswith("/install")
    assert len(mail_checker.calls) == 1


def test_mailing_without_transport_is_bad_request(client):
    assert client.post("/mailing", data={"host": "mail.example.com"}).status_code == 400


def test_install_page_polls_the_status_endpoint(client):
    page = client.get("/install").get_data(as_text=True)

    assert 'data-status-url="/install/status"' in page
    assert "fetch(form.dataset.statusUrl)" in page
    assert "output.textContent = data.content" in page


def test_install_success_writes_parameters_and_clears_session(client, app, test_config, events):
    client.post("/", data={"install_language": "fr", "country": "FR"})
    assert db.session.query(WizardSession).count() == 1

    resp = client.post("/install")

    assert resp.status_code == 302
    assert _location(resp) == app.config["INSTALLER_SUCCESS_URL"]
    assert events == ["install"]
    parameters = json.loads(Path(test_config.INSTALLER_PARAMETERS_PATH).read_text())
    assert parameters["install_language"] == "fr"
    assert db.session.query(WizardSession).count() == 0
    with client.session_transaction() as sess:
        assert "wizard_session_id" not in sess


def test_install_failure_redirects_to_error_page(client, fake_installer):
    fake_installer.succeed = False

    resp = client.post("/install")

    assert _location(resp).endswith("/error/install-123.log")
    assert db.session.query(WizardSession).count() == 0


def test_error_page_shows_log_when_present(client, test_config):
    log_dir = Path(test_config.INSTALLER_LOG_DIR)
    log_dir.mkdir(parents=True)
    (log_dir / "install-5.log").write_text("Installation failed during bootstrap_platform")

    page = client.get("/error/install-5.log").get_data(as_text=True)
    assert "Installation failed during bootstrap_platform" in page

    resp = client.get("/error/install-6.log")
    assert resp.status_code == 200
    assert "No log is available" in resp.get_data(as_text=True)


def test_install_status_endpoint(client, test_config):
    resp = client.get("/install/status")
    assert resp.status_code == 404
    assert "error" in resp.get_json()

    log_dir = Path(test_config.INSTALLER_LOG_DIR)
    log_dir.mkdir(parents=True)
    for timestamp, mtime in (("100", 5), ("200", 9)):
        path = log_dir / f"install-{timestamp}.log"
        path.write_text(f"run {timestamp}")
        os.utime(path, (mtime, mtime))

    assert client.get("/install/status").get_json() == {"timestamp": "200", "content": "run 200"}
    assert client.get("/install/status/100").get_json() == {"timestamp": "100", "content": "run 100"}
    assert client.get("/install/status/999").status_code == 404

    (log_dir / "install-300.log").mkdir()
    assert client.get("/install/status/300").status_code == 500


def test_posts_require_csrf_token_when_enabled(client, app):
    app.config["WTF_CSRF_ENABLED"] = True

    assert client.post("/database", data=VALID_SQLITE).status_code == 400
