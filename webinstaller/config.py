import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "INSTALLER_STATE_DATABASE_URL",
        "sqlite:///" + str(BASE_DIR / "var" / "installer_state.db"),
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    INSTALLER_LOG_DIR = os.getenv("INSTALLER_LOG_DIR", str(BASE_DIR / "var" / "logs"))
    INSTALLER_PARAMETERS_PATH = os.getenv(
        "INSTALLER_PARAMETERS_PATH",
        str(BASE_DIR / "var" / "config" / "parameters.json"),
    )
    INSTALLER_SUCCESS_URL = os.getenv("INSTALLER_SUCCESS_URL", "/")
    INSTALLER_CHECK_TIMEOUT = int(os.getenv("INSTALLER_CHECK_TIMEOUT", "10"))
    INSTALLER_LOG_LEVEL = os.getenv("INSTALLER_LOG_LEVEL", "INFO")

class DevConfig(Config):
    DEBUG = True
    INSTALLER_LOG_LEVEL = "DEBUG"

class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    WTF_CSRF_ENABLED = False
    INSTALLER_CHECK_TIMEOUT = 1
