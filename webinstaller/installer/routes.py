import logging
from typing import Optional

from flask import abort, current_app, jsonify, redirect, render_template, request, session, url_for

from . import installer_bp
from .services import get_services
from .status import InstallLogNotFound, InstallLogUnreadable
from .steps import WIZARD_STEPS, Step, StepController, Transition
from .wizard_service import SESSION_KEY, WizardSessionService
from ..forms import CSRFOnlyForm

logger = logging.getLogger(__name__)

STEP_ENDPOINTS = {
    Step.LANGUAGE: "installer.language",
    Step.REQUIREMENTS: "installer.requirements",
    Step.DATABASE: "installer.database",
    Step.PLATFORM: "installer.platform",
    Step.ADMIN: "installer.admin",
    Step.MAILING: "installer.mailing",
    Step.INSTALL: "installer.install",
}


def _controller() -> StepController:
    return StepController(get_services())


def _posted_data() -> dict:
    form = CSRFOnlyForm()
    if not form.validate_on_submit():
        abort(400)
    data = request.form.to_dict()
    data.pop("csrf_token", None)
    return data


def step_url(step: Step, log_filename: Optional[str] = None) -> str:
    if step is Step.DONE:
        return current_app.config["INSTALLER_SUCCESS_URL"]
    if step is Step.FAILED:
        return url_for("installer.failed_install", log_filename=log_filename)
    return url_for(STEP_ENDPOINTS[step])


def _follow(transition: Transition):
    return redirect(step_url(transition.target, transition.log_filename))


def _render_step(template: str, step: Step, title_key: str, **variables):
    return render_template(
        f"installer/{template}",
        step_title=title_key,
        current_step=step,
        wizard_steps=WIZARD_STEPS,
        step_url=step_url,
        **variables,
    )


@installer_bp.get("/language")
@installer_bp.get("/")
def language():
    store = WizardSessionService().load_store()
    return _render_step("language.html", Step.LANGUAGE, "welcome", **_controller().show_language(store))


@installer_bp.post("/language")
@installer_bp.post("/")
def language_post():
    data = _posted_data()
    svc = WizardSessionService()
    store = svc.load_store()
    transition = _controller().submit_language(store, data)
    svc.save(store)
    return _follow(transition)


@installer_bp.get("/requirements")
def requirements():
    return _render_step("requirements.html", Step.REQUIREMENTS, "requirements_check", **_controller().show_requirements())


@installer_bp.get("/database")
def database():
    store = WizardSessionService().load_store()
    return _render_step("database.html", Step.DATABASE, "database_parameters", **_controller().show_database(store))


@installer_bp.post("/database")
def database_post():
    data = _posted_data()
    svc = WizardSessionService()
    store = svc.load_store()
    transition = _controller().submit_database(store, data)
    svc.save(store)
    return _follow(transition)


@installer_bp.get("/platform")
def platform():
    svc = WizardSessionService()
    store = svc.load_store()
    variables = _controller().show_platform(store)
    svc.save(store)
    return _render_step("platform.html", Step.PLATFORM, "platform_parameters", **variables)


@installer_bp.post("/platform")
def platform_post():
    data = _posted_data()
    svc = WizardSessionService()
    store = svc.load_store()
    transition = _controller().submit_platform(store, data)
    svc.save(store)
    return _follow(transition)


@installer_bp.get("/admin")
def admin():
    store = WizardSessionService().load_store()
    return _render_step("admin.html", Step.ADMIN, "admin_user", **_controller().show_admin(store))


@installer_bp.post("/admin")
def admin_post():
    data = _posted_data()
    svc = WizardSessionService()
    store = svc.load_store()
    transition = _controller().submit_admin(store, data)
    svc.save(store)
    return _follow(transition)


@installer_bp.get("/mailing")
def mailing():
    store = WizardSessionService().load_store()
    return _render_step("mailing.html", Step.MAILING, "mail_server", **_controller().show_mailing(store))


@installer_bp.post("/mailing")
def mailing_post():
    data = _posted_data()
    if not data.get("transport"):
        abort(400)
    svc = WizardSessionService()
    store = svc.load_store()
    transition = _controller().submit_mailing(store, data)
    svc.save(store)
    return _follow(transition)


@installer_bp.post("/mailing/skip")
def skip_mailing():
    _posted_data()
    svc = WizardSessionService()
    store = svc.load_store()
    transition = _controller().skip_mailing(store)
    svc.save(store)
    return _follow(transition)


@installer_bp.get("/install")
def install():
    return _render_step("install.html", Step.INSTALL, "installation", **_controller().show_install())


@installer_bp.post("/install")
def install_post():
    _posted_data()
    svc = WizardSessionService()
    store = svc.load_store()
    session_id = session.get(SESSION_KEY)
    logger.info("Install submitted for wizard session %s", session_id)

    transition = _controller().submit_install(
        store,
        release=lambda: svc.mark_installing(store),
        invalidate=lambda: svc.discard(session_id),
    )
    return _follow(transition)


@installer_bp.get("/install/status")
@installer_bp.get("/install/status/<timestamp>")
def install_status(timestamp=None):
    reporter = get_services().status_reporter
    try:
        status = reporter.get_status(timestamp)
    except InstallLogNotFound as e:
        return jsonify({"error": str(e)}), 404
    except InstallLogUnreadable as e:
        return jsonify({"error": str(e)}), 500

    return jsonify(status.to_dict())


@installer_bp.get("/error/<log_filename>")
def failed_install(log_filename: str):
    return _render_step("error.html", Step.FAILED, "failed_install", **_controller().show_failed(log_filename))
