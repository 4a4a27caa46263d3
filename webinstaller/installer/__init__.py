from flask import Blueprint

installer_bp = Blueprint("installer", __name__)

from . import routes  # noqa: E402,F401
