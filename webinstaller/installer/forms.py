from wtforms import Form, StringField, PasswordField, IntegerField
from wtforms.validators import (
    AnyOf, DataRequired, EqualTo, Length, NumberRange, Optional, Regexp, URL, ValidationError
)

from .translation import LANGUAGES

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
USERNAME_PATTERN = r"^[A-Za-z0-9_.\-]+$"

DATABASE_DRIVERS = ["pdo_mysql", "pdo_pgsql", "pdo_sqlite"]
SMTP_ENCRYPTIONS = ["tls", "ssl"]
SMTP_AUTH_MODES = ["plain", "login", "cram-md5"]


class DatabaseForm(Form):
    driver = StringField("Driver", validators=[DataRequired(), AnyOf(DATABASE_DRIVERS)])
    host = StringField("Host", validators=[Length(max=255)])
    port = IntegerField("Port", validators=[Optional(), NumberRange(min=1, max=65535)])
    name = StringField("Database name", validators=[DataRequired(), Length(max=64)])
    user = StringField("User", validators=[Length(max=64)])
    password = PasswordField("Password", validators=[Optional()])

    def validate_host(self, field):
        if self.driver.data != "pdo_sqlite" and not (field.data or "").strip():
            raise ValidationError("This field is required.")

    def validate_user(self, field):
        if self.driver.data != "pdo_sqlite" and not (field.data or "").strip():
            raise ValidationError("This field is required.")


class PlatformForm(Form):
    name = StringField("Platform name", validators=[DataRequired(), Length(max=255)])
    support_email = StringField(
        "Support email",
        validators=[DataRequired(), Length(max=255), Regexp(EMAIL_PATTERN, message="Invalid email address.")]
    )
    language = StringField("Default language", validators=[Optional(), AnyOf(list(LANGUAGES))])
    organization = StringField("Organization", validators=[Optional(), Length(max=255)])
    organization_url = StringField("Organization URL", validators=[Optional(), URL(), Length(max=255)])


class FirstAdminForm(Form):
    first_name = StringField("First name", validators=[DataRequired(), Length(max=50)])
    last_name = StringField("Last name", validators=[DataRequired(), Length(max=50)])
    username = StringField(
        "Username",
        validators=[DataRequired(), Length(min=3, max=50), Regexp(USERNAME_PATTERN, message="Invalid username.")]
    )
    password = PasswordField("Password", validators=[DataRequired(), Length(min=8)])
    password_repeat = PasswordField(
        "Repeat password",
        validators=[DataRequired(), EqualTo("password", message="Passwords must match")]
    )
    email = StringField(
        "Email",
        validators=[DataRequired(), Length(max=255), Regexp(EMAIL_PATTERN, message="Invalid email address.")]
    )


class SmtpTransportForm(Form):
    host = StringField("Host", validators=[DataRequired(), Length(max=255)])
    port = IntegerField("Port", validators=[Optional(), NumberRange(min=1, max=65535)])
    username = StringField("Username", validators=[Optional(), Length(max=255)])
    password = PasswordField("Password", validators=[Optional()])
    encryption = StringField("Encryption", validators=[Optional(), AnyOf(SMTP_ENCRYPTIONS)])
    auth_mode = StringField("Authentication mode", validators=[Optional(), AnyOf(SMTP_AUTH_MODES)])


class GmailTransportForm(Form):
    username = StringField("Gmail account", validators=[DataRequired(), Length(max=255)])
    password = PasswordField("Password", validators=[DataRequired()])


class SendmailTransportForm(Form):
    command = StringField("Sendmail command", validators=[Optional(), Length(max=255)])


TRANSPORT_FORMS = {
    "smtp": SmtpTransportForm,
    "gmail": GmailTransportForm,
    "sendmail": SendmailTransportForm,
}


def collect_errors(form: Form) -> dict:
    """First message per failing field, in field declaration order."""
    return {field.name: field.errors[0] for field in form if field.errors}
