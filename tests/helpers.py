"""Recording fakes for the collaborators reached through ``WizardServices``."""

from webinstaller.installer.checkers import LEVEL_RECOMMENDED, LEVEL_REQUIRED, SettingCategory, SettingItem


class RecordingChecker:
    """Stands in for both the database and the mailing checker factories."""

    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def __call__(self, settings):
        self.calls.append(settings)
        return self

    def connect_to_database(self):
        return self.error

    def test_transport(self):
        return self.error


class FakeRequirementChecker:
    def __init__(self, required_ok=True, recommended_ok=True):
        self.categories = [
            SettingCategory("Runtime", [
                SettingItem("Python version", LEVEL_REQUIRED, required_ok),
                SettingItem("Optional driver", LEVEL_RECOMMENDED, recommended_ok),
            ]),
        ]

    def get_setting_categories(self):
        return self.categories

    def has_failed_recommendation(self):
        return any(i.failed_recommendation for c in self.categories for i in c.items)

    def has_failed_requirement(self):
        return any(i.failed_requirement for c in self.categories for i in c.items)


class FakeInstaller:
    def __init__(self, events, succeed=True, log_filename="install-123.log"):
        self.events = events
        self.succeed = succeed
        self.log_filename = log_filename
        self.setup_failure = None

    def install(self):
        self.events.append("install")

    def has_succeeded(self):
        return self.succeed

    def get_log_filename(self):
        return self.log_filename

    def record_setup_failure(self, exc):
        self.setup_failure = exc
        self.events.append("setup_failure")
        return "install-999.log"
