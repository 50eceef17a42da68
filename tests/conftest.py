import os
import sys
from datetime import date

import pytest
from flask import g

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from orgsurvey import create_app
from orgsurvey.extensions import db
from orgsurvey.models import Department, Job, Problem, Survey, User

PASSWORD = 'password123'


@pytest.fixture
def app(tmp_path):
    app = create_app('config.TestConfig')
    app.config['LOCAL_STORAGE_DIR'] = str(tmp_path / 'storage')
    ctx = app.app_context()
    ctx.push()

    # テスト中は app context を共有するので、ログインユーザーはリクエストごとに読み直す
    @app.before_request
    def _reset_login_user():
        g.pop('_login_user', None)

    db.create_all()
    yield app
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = {'n': 0}

    def make(role='employee', email=None, name=None, department=None, job=None, password=PASSWORD):
        counter['n'] += 1
        user = User(
            email=email or f'user{counter["n"]}@orgsurvey.co.jp',
            name=name or f'社員{counter["n"]}',
            role=role,
            department_id=department.id if department else None,
            job_id=job.id if job else None,
        )
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user
    return make


@pytest.fixture
def make_survey(app):
    def make(name='組織サーベイ', survey_type='organizational', start=date(2024, 1, 1), end=date(2024, 1, 31),
             running=False, display=False, status='active'):
        survey = Survey(name=name, survey_type=survey_type, start_date=start, end_date=end,
                        running=running, display=display, status=status)
        db.session.add(survey)
        db.session.commit()
        return survey
    return make


@pytest.fixture
def make_department(app):
    def make(name, code, parent=None):
        dept = Department(name=name, code=code, parent_id=parent.id if parent else None)
        db.session.add(dept)
        db.session.commit()
        return dept
    return make


@pytest.fixture
def make_job(app):
    def make(name, code=None):
        job = Job(name=name, code=code)
        db.session.add(job)
        db.session.commit()
        return job
    return make


@pytest.fixture
def make_problem(app):
    def make(text, category='自己評価意識', category_id=1, scores=(100, 80, 60, 40, 20, 0), order=None,
             question_type='single_choice'):
        p = Problem(question_text=text, category=category, category_id=category_id,
                    question_type=question_type, display_order=order)
        p.answer_scores = list(scores)
        db.session.add(p)
        db.session.commit()
        return p
    return make


def _login(client, user, password=PASSWORD):
    resp = client.post('/api/auth/login', json={'email': user.email, 'password': password})
    assert resp.status_code == 200, resp.get_json()
    return client


@pytest.fixture
def login_as(app):
    def login(user, password=PASSWORD):
        return _login(app.test_client(), user, password)
    return login


@pytest.fixture
def admin(make_user):
    return make_user(role='admin', email='admin@orgsurvey.co.jp', name='管理者')


@pytest.fixture
def admin_client(app, admin):
    return _login(app.test_client(), admin)
