import math
import random

from orgsurvey.services.aggregation import (
    calculate_category_scores,
    category_averages,
    compute_overall_score,
    department_category_scores,
    historical_trend,
    manager_statistics,
    response_rate,
    round_half_up,
    survey_statistics,
)


def row(scores, **extra):
    out = {f'category{i}Score': s for i, s in enumerate(scores, start=1)}
    out.update(extra)
    return out


def test_overall_is_mean_of_category_means():
    rng = random.Random(7)
    for _ in range(50):
        rows = [row([rng.uniform(0, 100) for _ in range(8)]) for _ in range(rng.randint(1, 12))]
        means = [sum(r[f'category{i}Score'] for r in rows) / len(rows) for i in range(1, 9)]
        assert compute_overall_score(rows) == round_half_up(sum(means) / 8, 1)


def test_no_rows_gives_none_not_zero():
    assert compute_overall_score([]) is None
    assert category_averages([]) is None
    assert compute_overall_score([row([None] * 8)]) is None


def test_missing_categories_count_as_zero_in_an_included_row():
    rows = [row([80, None, float('nan'), 80, 80, 80, 80, 80]), row([80] * 8)]
    averages = category_averages(rows)
    assert averages[0] == 80
    assert averages[1] == 40
    assert averages[2] == 40
    assert compute_overall_score(rows) == 70.0


def test_round_half_up():
    assert round_half_up(2.25, 1) == 2.3
    assert round_half_up(0.125, 2) == 0.13
    assert round_half_up(None) is None


def test_department_scores_only_numeric_codes_from_three():
    departments = [
        {'id': 1, 'name': '本社', 'code': '1'},
        {'id': 2, 'name': '経営企画', 'code': '2'},
        {'id': 3, 'name': '営業部', 'code': '10'},
        {'id': 4, 'name': '開発部', 'code': '3'},
        {'id': 5, 'name': 'その他', 'code': 'X'},
    ]
    rows = [row([60] * 8, userId=u) for u in (101, 102, 103, 104, 105)]
    employee_departments = {101: 1, 102: 2, 103: 3, 104: 4, 105: 5}
    out = department_category_scores(rows, employee_departments, departments, code_min=3)
    assert [d['departmentName'] for d in out] == ['開発部', '営業部']
    assert out[0]['category1Avg'] == 60.0
    assert out[0]['totalAvg'] == 60.0
    assert out[0]['participantCount'] == 1


def test_response_rate_counts_only_complete_respondents():
    statuses = [{'responseRate': 100}, {'responseRate': 99.99}, {'responseRate': 0}]
    assert response_rate(statuses) == 33.3
    assert response_rate([]) == 0.0


def test_historical_trend_labels_and_order():
    rows = [
        row([0] * 8, surveyId=2, startDate='2024-06-01', totalScore=70),
        row([0] * 8, surveyId=1, startDate='2024-01-05', totalScore=50),
        row([0] * 8, surveyId=1, startDate='2024-01-05', totalScore=61),
    ]
    trend = historical_trend(rows)
    assert [p['label'] for p in trend] == ['2024年1月', '2024年6月']
    assert trend[0]['value'] == 55.5


def test_calculate_category_scores_sums_per_category():
    items = [
        {'questionId': 1, 'categoryId': 1, 'score': 40},
        {'qid': 2, 'cid': 1, 's': 20},
        {'questionId': 3, 'categoryId': 7, 'score': 16},
        {'questionId': 4, 'categoryId': 9, 'score': 100},
    ]
    out = calculate_category_scores(items)
    assert out['category1_score'] == 60
    assert out['category7_score'] == 16
    assert out['category2_score'] == 0
    assert out['total_score'] == 9.5


def test_manager_statistics_filters_by_job_code():
    rows = [
        {'userId': 1, 'totalScore': 80, 'category1Score': 80, 'category7Score': 80},
        {'userId': 2, 'totalScore': 40, 'category1Score': 40, 'category7Score': 40},
    ]
    stats = manager_statistics(rows, {1: '2', 2: '9'}, ['1', '2', '3'])
    assert stats['count'] == 1
    assert stats['averageTotal'] == 80
    assert survey_statistics(rows)['averageTotal'] == 60
    assert math.isclose(survey_statistics([])['averageTotal'], 0.0)
