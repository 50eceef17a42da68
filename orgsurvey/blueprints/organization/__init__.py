from flask import Blueprint

bp = Blueprint("organization", __name__)

from . import routes  # noqa: E402,F401
