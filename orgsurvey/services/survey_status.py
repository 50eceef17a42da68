"""Presentation status of survey periods and the running/display pre-flight checks."""
from collections import namedtuple
from datetime import date, datetime, time

SurveyStatus = namedtuple("SurveyStatus", ["status", "label", "color"])

SCHEDULED = SurveyStatus("scheduled", "予定", "text-blue-600")
ACTIVE = SurveyStatus("active", "実施中", "text-green-600")
ENDED = SurveyStatus("ended", "終了", "text-gray-600")

STATUS_ORDER = {"active": 0, "scheduled": 1, "ended": 2, "inactive": 3, "unknown": 4}

END_OF_DAY = time(23, 59, 59, 999000)


class ToggleConflict(Exception):
    """Raised before an update that would break the running/display limits."""

    def __init__(self, message, conflicts):
        super().__init__(message)
        self.message = message
        self.conflicts = list(conflicts)


def _to_datetime(value):
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None) if value.tzinfo else value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    try:
        parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed.replace(tzinfo=None) if parsed.tzinfo else parsed


def period_bounds(survey):
    """Return (start, end) datetimes with the end day inclusive, or None."""
    start = _to_datetime(getattr(survey, "start_date", None))
    end = _to_datetime(getattr(survey, "end_date", None))
    if start is None or end is None:
        return None
    return start, datetime.combine(end.date(), END_OF_DAY)


def _stored_status(survey):
    stored = getattr(survey, "status", None)
    if stored == "active":
        label, color = "実施中", "text-green-600"
    elif stored == "inactive":
        label, color = "終了", "text-gray-600"
    else:
        label, color = "不明", "text-gray-600"
    return SurveyStatus(stored or "unknown", label, color)


def derive_status(survey, now=None):
    now = now or datetime.now()
    bounds = period_bounds(survey)
    if bounds is None:
        return _stored_status(survey)
    start, end = bounds
    if now < start:
        return SCHEDULED
    if now <= end:
        return ACTIVE
    return ENDED


def is_controllable(survey, now=None):
    # 実施/停止ボタンは実施中のサーベイだけ
    return derive_status(survey, now).status == "active"


def _end_key(survey):
    return _to_datetime(getattr(survey, "end_date", None)) or datetime.min


def _start_key(survey):
    return _to_datetime(getattr(survey, "start_date", None)) or datetime.min


def select_current_survey(surveys, now=None):
    """Active survey if any, else the most recently ended one."""
    now = now or datetime.now()
    surveys = list(surveys)
    active = [s for s in surveys if derive_status(s, now).status == "active"]
    if active:
        return sorted(active, key=_start_key, reverse=True)[0]
    ended = [s for s in surveys if derive_status(s, now).status == "ended"]
    if ended:
        return sorted(ended, key=_end_key, reverse=True)[0]
    return None


def sort_for_display(surveys, now=None):
    now = now or datetime.now()
    by_start = sorted(surveys, key=_start_key, reverse=True)
    return sorted(by_start, key=lambda s: STATUS_ORDER.get(derive_status(s, now).status, 999))


def _same_type_others(survey, surveys, survey_type=None):
    survey_type = survey_type or survey.survey_type
    return [s for s in surveys if s.id != survey.id and s.survey_type == survey_type]


def check_running_toggle(survey, surveys, survey_type=None):
    conflicts = [s for s in _same_type_others(survey, surveys, survey_type) if s.running]
    if conflicts:
        names = "、".join(f"「{s.name}」" for s in conflicts)
        raise ToggleConflict(f"{names}が既に実施中です。同じ種類のサーベイは1つしか実施できません", conflicts)


def check_display_toggle(survey, surveys, limit=5, survey_type=None):
    displayed = [s for s in _same_type_others(survey, surveys, survey_type) if s.display]
    if len(displayed) >= limit:
        raise ToggleConflict(f"表示できるサーベイは種類ごとに{limit}件までです", displayed)


def check_flag_changes(survey, surveys, running=None, display=None, display_limit=5, survey_type=None):
    """Check the flags that end up switched on.

    A flag already on is re-checked only when the survey moves to another type.
    """
    type_changed = survey_type is not None and survey_type != survey.survey_type
    if running and (type_changed or not survey.running):
        check_running_toggle(survey, surveys, survey_type)
    if display and (type_changed or not survey.display):
        check_display_toggle(survey, surveys, display_limit, survey_type)
