from .wizard_session import WizardSession, WizardStatus  # noqa: F401
