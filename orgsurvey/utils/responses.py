from flask import jsonify


class ApiError(Exception):
    """Raised from routes and turned into ``{"success": false, "error": ...}``."""

    def __init__(self, message, status=400, **payload):
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload


def success(status=200, **payload):
    body = {"success": True}
    body.update(payload)
    return jsonify(body), status


def failure(message, status=400, **payload):
    body = {"success": False, "error": message}
    body.update(payload)
    return jsonify(body), status
