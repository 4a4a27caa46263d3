import logging
from typing import Optional

from flask import session

from webinstaller.extensions import db
from webinstaller.models import WizardSession, WizardStatus
from .store import SettingsStore
from .translation import DEFAULT_LANGUAGE, Translator

logger = logging.getLogger(__name__)

SESSION_KEY = "wizard_session_id"
# Survives ``discard`` so the failure page keeps the operator's language.
LANGUAGE_KEY = "install_language"


class WizardSessionService:
    """Binds the browser's Flask session to a ``WizardSession`` row."""

    def create(self) -> WizardSession:
        ws = WizardSession(
            status=WizardStatus.DRAFT,
            install_language=session.get(LANGUAGE_KEY, DEFAULT_LANGUAGE),
            country="US",
            database_settings={},
            database_validation_errors={},
            platform_settings={},
            platform_validation_errors={},
            first_admin_settings={},
            first_admin_validation_errors={},
            mailing_settings={},
            mailing_validation_errors={},
        )
        db.session.add(ws)
        db.session.commit()
        session[SESSION_KEY] = ws.id
        logger.info("Started wizard session %s", ws.id)
        return ws

    def get(self, session_id: Optional[int]) -> Optional[WizardSession]:
        if session_id is None:
            return None
        return db.session.get(WizardSession, session_id)

    def current(self) -> WizardSession:
        ws = self.get(session.get(SESSION_KEY))
        if ws is None:
            ws = self.create()
        return ws

    def current_language(self) -> str:
        """Install language of this browser's wizard, without creating one."""
        ws = self.get(session.get(SESSION_KEY))
        if ws is not None and ws.install_language:
            return ws.install_language
        return session.get(LANGUAGE_KEY, DEFAULT_LANGUAGE)

    def load_store(self) -> SettingsStore:
        return SettingsStore(self.current())

    def save(self, store: SettingsStore) -> WizardSession:
        ws = store.flush()
        db.session.commit()
        return ws

    def mark_installing(self, store: SettingsStore) -> None:
        """Persist the final state and release the connection before installing."""
        ws = store.flush()
        ws.status = WizardStatus.INSTALLING
        db.session.commit()
        db.session.close()

    def discard(self, session_id: Optional[int]) -> None:
        """Drop the wizard row and the browser session bound to it."""
        ws = self.get(session_id)
        language = ws.install_language if ws is not None else session.get(LANGUAGE_KEY)
        if ws is not None:
            db.session.delete(ws)
            db.session.commit()
            logger.info("Discarded wizard session %s", session_id)
        session.clear()
        if language:
            session[LANGUAGE_KEY] = language


def current_translator() -> Translator:
    """Translator for the language of the wizard behind the current request."""
    return Translator(WizardSessionService().current_language())
