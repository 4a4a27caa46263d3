from datetime import datetime, timezone
from ..extensions import db

def _utcnow():
    return datetime.now(timezone.utc)


class WizardStatus:
    DRAFT = "draft"
    INSTALLING = "installing"

    ALL = [DRAFT, INSTALLING]

class WizardSession(db.Model):
    __tablename__ = "wizard_sessions"

    id = db.Column(db.Integer, primary_key=True)

    created_at = db.Column(db.DateTime, default=_utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    status = db.Column(db.String(32), default=WizardStatus.DRAFT, nullable=False)

    install_language = db.Column(db.String(8), default="en", nullable=False)
    country = db.Column(db.String(8), default="US", nullable=True)

    database_settings = db.Column(db.JSON, default=dict, nullable=False)
    database_global_error = db.Column(db.Text, nullable=True)
    database_validation_errors = db.Column(db.JSON, default=dict, nullable=False)

    platform_settings = db.Column(db.JSON, default=dict, nullable=False)
    platform_validation_errors = db.Column(db.JSON, default=dict, nullable=False)

    first_admin_settings = db.Column(db.JSON, default=dict, nullable=False)
    first_admin_validation_errors = db.Column(db.JSON, default=dict, nullable=False)

    mailing_settings = db.Column(db.JSON, default=dict, nullable=False)
    mailing_global_error = db.Column(db.Text, nullable=True)
    mailing_validation_errors = db.Column(db.JSON, default=dict, nullable=False)

    def __repr__(self) -> str:
        return f"<WizardSession {self.id} status={self.status}>"
