from collections import namedtuple
from datetime import date, datetime, timedelta

import pytest

from orgsurvey.services.survey_status import (
    ToggleConflict,
    check_display_toggle,
    check_flag_changes,
    check_running_toggle,
    derive_status,
    is_controllable,
    select_current_survey,
    sort_for_display,
)

S = namedtuple('S', 'id name survey_type start_date end_date status running display')


def survey(id, start, end, survey_type='organizational', running=False, display=False, status='active', name=None):
    return S(id, name or f'サーベイ{id}', survey_type, start, end, status, running, display)


def test_end_day_is_inclusive_to_the_last_millisecond():
    s = survey(1, date(2024, 1, 1), date(2024, 1, 31))
    last_ms = datetime(2024, 1, 31, 23, 59, 59, 999000)
    assert derive_status(s, last_ms).status == 'active'
    assert derive_status(s, last_ms + timedelta(milliseconds=1)).status == 'ended'


def test_scheduled_before_start_and_active_at_start():
    s = survey(1, date(2024, 2, 1), date(2024, 2, 10))
    assert derive_status(s, datetime(2024, 1, 31, 23, 59)).label == '予定'
    assert derive_status(s, datetime(2024, 2, 1, 0, 0)).label == '実施中'


def test_unparseable_dates_fall_back_to_stored_status():
    assert derive_status(survey(1, 'not-a-date', None, status='active')).label == '実施中'
    assert derive_status(survey(2, None, None, status='inactive')).label == '終了'
    assert derive_status(survey(3, None, None, status='completed')).label == '不明'


def test_only_active_surveys_are_controllable():
    s = survey(1, date(2024, 1, 1), date(2024, 1, 31))
    assert is_controllable(s, datetime(2024, 1, 15))
    assert not is_controllable(s, datetime(2024, 2, 1))


def test_current_survey_prefers_active_then_latest_ended():
    now = datetime(2024, 6, 15)
    old = survey(1, date(2024, 1, 1), date(2024, 1, 31))
    newer = survey(2, date(2024, 3, 1), date(2024, 3, 31))
    active = survey(3, date(2024, 6, 1), date(2024, 6, 30))
    assert select_current_survey([old, newer, active], now).id == 3
    assert select_current_survey([old, newer], now).id == 2
    assert select_current_survey([], now) is None


def test_sort_for_display_groups_by_status():
    now = datetime(2024, 6, 15)
    ended = survey(1, date(2024, 1, 1), date(2024, 1, 31))
    scheduled = survey(2, date(2024, 9, 1), date(2024, 9, 30))
    active = survey(3, date(2024, 6, 1), date(2024, 6, 30))
    assert [s.id for s in sort_for_display([ended, scheduled, active], now)] == [3, 2, 1]


def test_running_conflict_names_the_other_survey():
    target = survey(1, date(2024, 1, 1), date(2024, 1, 31))
    other = survey(2, date(2024, 2, 1), date(2024, 2, 28), running=True, name='2月サーベイ')
    growth = survey(3, date(2024, 2, 1), date(2024, 2, 28), survey_type='growth', running=True)
    with pytest.raises(ToggleConflict) as exc:
        check_running_toggle(target, [target, other, growth])
    assert '「2月サーベイ」' in exc.value.message
    assert [s.id for s in exc.value.conflicts] == [2]


def test_running_toggle_ignores_other_types():
    target = survey(1, date(2024, 1, 1), date(2024, 1, 31))
    growth = survey(3, date(2024, 2, 1), date(2024, 2, 28), survey_type='growth', running=True)
    check_running_toggle(target, [target, growth])


def test_display_limit_per_type():
    target = survey(99, date(2024, 1, 1), date(2024, 1, 31))
    shown = [survey(i, date(2024, 1, 1), date(2024, 1, 31), display=True) for i in range(1, 6)]
    with pytest.raises(ToggleConflict):
        check_display_toggle(target, shown, limit=5)
    check_display_toggle(target, shown[:4], limit=5)


def test_flags_already_on_are_not_rechecked_unless_type_changes():
    target = survey(1, date(2024, 1, 1), date(2024, 1, 31), running=True)
    other = survey(2, date(2024, 1, 1), date(2024, 1, 31), running=True)
    check_flag_changes(target, [other], running=True)
    growth_other = survey(3, date(2024, 1, 1), date(2024, 1, 31), survey_type='growth', running=True)
    with pytest.raises(ToggleConflict):
        check_flag_changes(target, [growth_other], running=True, survey_type='growth')
