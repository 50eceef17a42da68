import io

from werkzeug.datastructures import FileStorage

from orgsurvey.extensions import db
from orgsurvey.models import Problem, User
from orgsurvey.services.importer import (
    export_problems_csv,
    import_employees,
    import_problems,
    read_csv_rows,
)


def test_employee_import_creates_and_updates(make_department, make_job, make_user):
    dept = make_department('営業部', '3')
    make_job('課長', '2')
    existing = make_user(email='taro@orgsurvey.co.jp', name='旧姓 太郎')
    rows = [
        {'email': 'taro@orgsurvey.co.jp', 'name': '山田 太郎', 'departmentName': '営業部'},
        {'email': 'hanako@orgsurvey.co.jp', 'name': '佐藤 花子', 'departmentId': str(dept.id), 'jobName': '課長'},
    ]
    report = import_employees(rows, 'default-pass-1')
    assert (report.created, report.updated, report.errors) == (1, 1, [])
    assert db.session.get(User, existing.id).name == '山田 太郎'
    hanako = User.query.filter_by(email='hanako@orgsurvey.co.jp').one()
    assert hanako.role == 'none'
    assert hanako.job.name == '課長'
    assert hanako.check_password('default-pass-1')


def test_employee_import_reports_first_five_errors(app):
    rows = [{'email': f'e{i}@orgsurvey.co.jp', 'name': ''} for i in range(8)]
    rows.append({'email': 'ok@orgsurvey.co.jp', 'name': '正常'})
    report = import_employees(rows, 'default-pass-1')
    assert report.created == 1
    messages = report.messages()
    assert len(messages) == 6
    assert messages[0] == '行 1: メールアドレスと氏名は必須です'
    assert messages[-1] == '他に3件のエラーがあります'
    summary = report.to_dict('従業員')
    assert summary['message'] == '1件の従業員を登録、0件を更新しました (8件のエラー)'


def test_employee_import_unknown_department_fails_row_only(app):
    report = import_employees([
        {'email': 'a@orgsurvey.co.jp', 'name': 'A', 'departmentName': '存在しない部'},
        {'email': 'b@orgsurvey.co.jp', 'name': 'B'},
    ], 'default-pass-1')
    assert report.created == 1
    assert report.errors == ['行 1: 部署「存在しない部」が見つかりません']
    assert User.query.filter_by(email='a@orgsurvey.co.jp').first() is None


def _csv(text):
    return FileStorage(stream=io.BytesIO(text.encode('utf-8-sig')), filename='problems.csv')


def test_problem_csv_import_matches_by_text(make_problem):
    make_problem('上司の指示を優先する', order=1)
    body = (
        '順序,問題文,カテゴリ,回答1スコア,回答2スコア,回答3スコア,回答4スコア,回答5スコア,回答6スコア\n'
        '1, 上司の指示を優先する ,変化意識,10,8,6,4,2,0\n'
        ',新しい設問,成果視点,5,4,3,2,1,0\n'
        '3,カテゴリ不正,なし,1,1,1,1,1,1\n'
    )
    report = import_problems(read_csv_rows(_csv(body)))
    assert (report.created, report.updated) == (1, 1)
    assert report.errors == ['行 4: カテゴリ「なし」は無効です']
    updated = Problem.query.filter_by(question_text='上司の指示を優先する').one()
    assert updated.category_id == 2
    assert updated.answer_scores == [10, 8, 6, 4, 2, 0]
    created = Problem.query.filter_by(question_text='新しい設問').one()
    assert created.display_order == 2


def test_problem_csv_export_header(make_problem):
    make_problem('設問A', order=1)
    text = export_problems_csv().decode('utf-8-sig')
    header, first = text.splitlines()[:2]
    assert header.startswith('順序,問題文,カテゴリ,')
    assert first.startswith('1,設問A,自己評価意識,100.0')


def test_import_by_id_uses_current_api(app, make_user):
    import warnings
    from sqlalchemy.exc import LegacyAPIWarning

    existing = make_user(email='hanako@orgsurvey.co.jp')
    with warnings.catch_warnings():
        warnings.simplefilter('error', LegacyAPIWarning)
        report = import_employees([{'id': str(existing.id), 'email': 'hanako@orgsurvey.co.jp', 'name': '花子'}], 'changeme-1234')
    assert report.errors == []
    assert db.session.get(User, existing.id).name == '花子'
