from pathlib import Path

from flask import Flask

from .config import Config
from .extensions import db, migrate
from .forms import CSRFOnlyForm
from .logging_setup import configure_logging

SQLITE_PREFIX = "sqlite:///"


def _ensure_sqlite_dir(uri: str) -> None:
    if uri.startswith(SQLITE_PREFIX) and ":memory:" not in uri:
        Path(uri[len(SQLITE_PREFIX):]).parent.mkdir(parents=True, exist_ok=True)


def create_app(config_class=Config, services=None):
    app = Flask(__name__)
    app.config.from_object(config_class)

    configure_logging(app)
    _ensure_sqlite_dir(app.config["SQLALCHEMY_DATABASE_URI"])

    db.init_app(app)
    migrate.init_app(app, db)

    from .installer import installer_bp
    from .installer.services import init_app as init_installer_services
    from .installer.wizard_service import current_translator

    init_installer_services(app, services)

    @app.context_processor
    def inject_globals():
        return {
            "csrf_form": CSRFOnlyForm(),
            "trans": current_translator(),
        }

    app.register_blueprint(installer_bp)

    with app.app_context():
        from . import models  # noqa: F401
        db.create_all()

    return app
