from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from .services import WizardServices
from .settings import TRANSPORT_LABELS, resolve_transport_id
from .store import SettingsStore
from .translation import COUNTRIES, LANGUAGES

logger = logging.getLogger(__name__)

# Posted keys that belong to the form plumbing rather than to a transport.
NON_OPTION_FIELDS = ("transport", "csrf_token")


class Step(str, Enum):
    LANGUAGE = "language"
    REQUIREMENTS = "requirements"
    DATABASE = "database"
    PLATFORM = "platform"
    ADMIN = "admin"
    MAILING = "mailing"
    INSTALL = "install"
    DONE = "done"
    FAILED = "failed"


class Outcome(str, Enum):
    ADVANCE = "advance"
    RETRY = "retry"
    SKIP = "skip"
    SUCCESS = "success"
    FAILURE = "failure"


WIZARD_STEPS: List[Step] = [
    Step.LANGUAGE,
    Step.REQUIREMENTS,
    Step.DATABASE,
    Step.PLATFORM,
    Step.ADMIN,
    Step.MAILING,
    Step.INSTALL,
]

# RETRY is not listed: it always leads back to the submitted step.
TRANSITIONS: Dict[tuple, Step] = {
    (Step.LANGUAGE, Outcome.ADVANCE): Step.REQUIREMENTS,
    (Step.REQUIREMENTS, Outcome.ADVANCE): Step.DATABASE,
    (Step.DATABASE, Outcome.ADVANCE): Step.PLATFORM,
    (Step.PLATFORM, Outcome.ADVANCE): Step.ADMIN,
    (Step.ADMIN, Outcome.ADVANCE): Step.MAILING,
    (Step.MAILING, Outcome.ADVANCE): Step.INSTALL,
    (Step.MAILING, Outcome.SKIP): Step.INSTALL,
    (Step.INSTALL, Outcome.SUCCESS): Step.DONE,
    (Step.INSTALL, Outcome.FAILURE): Step.FAILED,
}


class InvalidTransition(Exception):
    pass


def next_step(step: Step, outcome: Outcome) -> Step:
    if outcome is Outcome.RETRY:
        return step
    try:
        return TRANSITIONS[(step, outcome)]
    except KeyError:
        raise InvalidTransition(f"No transition from {step.value} on {outcome.value}") from None


@dataclass(frozen=True)
class Transition:
    step: Step
    outcome: Outcome
    log_filename: Optional[str] = None

    @property
    def target(self) -> Step:
        return next_step(self.step, self.outcome)


class StepController:
    """Show and submit operations of every wizard step.

    Each operation receives the session's :class:`SettingsStore` explicitly;
    submit operations mutate it and return a :class:`Transition`. Saving the
    store and turning the transition into a response is left to the caller.
    """

    def __init__(self, services: WizardServices):
        self.services = services

    def _transition(self, step: Step, outcome: Outcome, log_filename: Optional[str] = None) -> Transition:
        transition = Transition(step, outcome, log_filename)
        logger.debug("Step %s -> %s (%s)", step.value, transition.target.value, outcome.value)
        return transition

    # language

    def show_language(self, store: SettingsStore) -> Dict[str, Any]:
        return {
            "languages": LANGUAGES,
            "countries": COUNTRIES,
            "install_language": store.install_language,
            "country": store.country,
        }

    def submit_language(self, store: SettingsStore, data: Mapping[str, Any]) -> Transition:
        language = data.get("install_language") or store.install_language
        store.install_language = language
        store.country = data.get("country") or store.country
        return self._transition(Step.LANGUAGE, Outcome.ADVANCE)

    # requirements

    def show_requirements(self) -> Dict[str, Any]:
        # Failed requirements are only reported; moving on stays the operator's call.
        checker = self.services.requirement_checker()
        return {
            "setting_categories": checker.get_setting_categories(),
            "has_failed_recommendation": checker.has_failed_recommendation(),
            "has_failed_requirement": checker.has_failed_requirement(),
            "next_step": next_step(Step.REQUIREMENTS, Outcome.ADVANCE),
        }

    # database

    def show_database(self, store: SettingsStore) -> Dict[str, Any]:
        return {
            "settings": store.database_settings,
            "global_error": store.database_global_error,
            "validation_errors": store.database_validation_errors,
        }

    def submit_database(self, store: SettingsStore, data: Mapping[str, Any]) -> Transition:
        settings = store.database_settings
        settings.bind_data(data)
        errors = settings.validate()
        store.set_database_validation_errors(errors)

        if errors:
            return self._transition(Step.DATABASE, Outcome.RETRY)

        status = self.services.database_checker(settings).connect_to_database()
        if status is not None:
            store.set_database_global_error(status)
            return self._transition(Step.DATABASE, Outcome.RETRY)

        store.set_database_global_error(None)
        return self._transition(Step.DATABASE, Outcome.ADVANCE)

    # platform

    def show_platform(self, store: SettingsStore) -> Dict[str, Any]:
        settings = store.platform_settings
        if not settings.language:
            settings.language = store.install_language
        return {
            "platform_settings": settings,
            "languages": LANGUAGES,
            "errors": store.platform_validation_errors,
        }

    def submit_platform(self, store: SettingsStore, data: Mapping[str, Any]) -> Transition:
        settings = store.platform_settings
        settings.bind_data(data)
        errors = settings.validate()
        store.set_platform_validation_errors(errors)

        if errors:
            return self._transition(Step.PLATFORM, Outcome.RETRY)
        return self._transition(Step.PLATFORM, Outcome.ADVANCE)

    # admin

    def show_admin(self, store: SettingsStore) -> Dict[str, Any]:
        return {
            "first_admin_settings": store.first_admin_settings,
            "errors": store.first_admin_validation_errors,
        }

    def submit_admin(self, store: SettingsStore, data: Mapping[str, Any]) -> Transition:
        settings = store.first_admin_settings
        settings.bind_data(data)
        errors = settings.validate()
        store.set_first_admin_validation_errors(errors)

        if errors:
            return self._transition(Step.ADMIN, Outcome.RETRY)
        return self._transition(Step.ADMIN, Outcome.ADVANCE)

    # mailing

    def show_mailing(self, store: SettingsStore) -> Dict[str, Any]:
        return {
            "mailing_settings": store.mailing_settings,
            "transports": TRANSPORT_LABELS,
            "transport_ids": {label: resolve_transport_id(label) for label in TRANSPORT_LABELS},
            "global_error": store.mailing_global_error,
            "validation_errors": store.mailing_validation_errors,
        }

    def submit_mailing(self, store: SettingsStore, data: Mapping[str, Any]) -> Transition:
        settings = store.mailing_settings
        transport_id = resolve_transport_id(data.get("transport", ""))

        if transport_id != settings.transport:
            # Switching transport only changes which options form is shown.
            settings.set_transport(transport_id)
            settings.set_transport_options({})
            store.set_mailing_global_error(None)
            store.set_mailing_validation_errors({})
            return self._transition(Step.MAILING, Outcome.RETRY)

        settings.set_transport_options(
            {name: value for name, value in data.items() if name not in NON_OPTION_FIELDS}
        )
        errors = settings.validate()
        store.set_mailing_validation_errors(errors)

        if errors:
            return self._transition(Step.MAILING, Outcome.RETRY)

        status = self.services.mailing_checker(settings).test_transport()
        if status is not None:
            store.set_mailing_global_error(status)
            return self._transition(Step.MAILING, Outcome.RETRY)

        store.set_mailing_global_error(None)
        return self._transition(Step.MAILING, Outcome.ADVANCE)

    def skip_mailing(self, store: SettingsStore) -> Transition:
        store.reinitialize_mailing_settings()
        store.set_mailing_global_error(None)
        store.set_mailing_validation_errors({})
        return self._transition(Step.MAILING, Outcome.SKIP)

    # install

    def show_install(self) -> Dict[str, Any]:
        return {}

    def submit_install(
        self,
        store: SettingsStore,
        release: Callable[[], None],
        invalidate: Callable[[], None],
    ) -> Transition:
        """Write the configuration, then run the installer.

        ``release`` closes whatever the caller holds open for this session and
        runs before the installer starts; ``invalidate`` runs afterwards on
        every path, so credentials never outlive the install attempt.
        """
        installer = self.services.installer()
        try:
            try:
                self.services.writer.write_parameters(store.to_parameters())
            except OSError as exc:
                logger.error("Cannot write installation parameters: %s", exc)
                log_name = installer.record_setup_failure(exc)
                return self._transition(Step.INSTALL, Outcome.FAILURE, log_name)

            release()
            logger.info("Starting installation")
            installer.install()
        finally:
            invalidate()

        if not installer.has_succeeded():
            logger.warning("Installation failed, see %s", installer.get_log_filename())
            return self._transition(Step.INSTALL, Outcome.FAILURE, installer.get_log_filename())

        logger.info("Installation succeeded")
        return self._transition(Step.INSTALL, Outcome.SUCCESS)

    # failed

    def show_failed(self, log_filename: str) -> Dict[str, Any]:
        return {
            "log": self.services.status_reporter.read_failed_log(log_filename),
            "log_filename": log_filename,
        }
