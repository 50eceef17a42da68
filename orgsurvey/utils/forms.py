"""Feeding JSON request bodies through WTForms."""
import re

from flask import request
from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict

from .responses import ApiError

_CAMEL = re.compile(r'(?<!^)(?=[A-Z])')


def snake_case(name):
    return _CAMEL.sub('_', name).lower()


def json_formdata(payload):
    """camelCase JSON object -> MultiDict keyed by snake_case field names."""
    data = MultiDict()
    for key, value in (payload or {}).items():
        if value is None:
            continue
        name = snake_case(key)
        values = value if isinstance(value, (list, tuple)) else [value]
        for item in values:
            if isinstance(item, bool):
                # BooleanField は 'false' を偽として扱う
                item = 'true' if item else 'false'
            data.add(name, str(item))
    return data


def request_json():
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ApiError("リクエストボディが不正です", 400)
    return payload


class JsonForm(FlaskForm):
    class Meta:
        csrf = False

    @classmethod
    def from_json(cls, payload=None, **kwargs):
        if payload is None:
            payload = request_json()
        form = cls(formdata=json_formdata(payload), **kwargs)
        form.payload = payload
        return form

    def provided(self, key):
        """Whether the camelCase key was present in the request body."""
        return key in self.payload

    def first_error(self):
        for errors in self.errors.values():
            if errors:
                return errors[0] if isinstance(errors[0], str) else str(errors[0])
        return "入力内容が不正です"

    def validate_or_raise(self):
        if not self.validate():
            raise ApiError(self.first_error(), 400)
        return self
