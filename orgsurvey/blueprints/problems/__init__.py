from flask import Blueprint

bp = Blueprint("problems", __name__)

from . import routes  # noqa: E402,F401
