from orgsurvey.extensions import db
from orgsurvey.models import Department, User


def test_non_admin_cannot_create_department(login_as, make_user):
    c = login_as(make_user())
    resp = c.post('/api/departments', json={'name': '営業部'})
    assert resp.status_code == 403
    assert resp.get_json() == {'success': False, 'error': '管理者権限が必要です'}


def test_department_crud_and_delete_guards(admin_client, make_user):
    resp = admin_client.post('/api/departments', json={'name': '本社', 'code': '1'})
    assert resp.status_code == 201
    parent_id = resp.get_json()['department']['id']
    child = admin_client.post('/api/departments', json={'name': '営業部', 'code': '3', 'parentId': parent_id}).get_json()
    assert child['department']['parentName'] == '本社'

    resp = admin_client.put(f'/api/departments/{parent_id}',
                            json={'name': '本社', 'code': '1', 'parentId': child['department']['id']})
    assert resp.status_code == 400

    resp = admin_client.delete(f'/api/departments/{parent_id}')
    assert resp.status_code == 400
    assert '子部門' in resp.get_json()['error']

    make_user(department=db.session.get(Department, child['department']['id']))
    resp = admin_client.delete(f"/api/departments/{child['department']['id']}")
    assert resp.status_code == 400
    assert '従業員' in resp.get_json()['error']


def test_department_name_required(admin_client):
    resp = admin_client.post('/api/departments', json={'code': '3'})
    assert resp.status_code == 400
    assert resp.get_json()['error'] == '部門名は必須です'


def test_employee_create_update_and_password(admin_client, make_job, login_as, app):
    job = make_job('課長', '2')
    resp = admin_client.post('/api/employees', json={
        'email': 'new@orgsurvey.co.jp', 'name': '新人', 'jobId': job.id, 'dateOfBirth': '1990-04-01',
    })
    assert resp.status_code == 201
    emp = resp.get_json()['employee']
    assert emp['jobName'] == '課長'
    assert emp['dateOfBirth'] == '1990-04-01'

    dup = admin_client.post('/api/employees', json={'email': 'new@orgsurvey.co.jp', 'name': '重複'})
    assert dup.status_code == 409

    resp = admin_client.put(f"/api/employees/{emp['id']}", json={'email': 'new@orgsurvey.co.jp', 'name': '改名'})
    assert resp.get_json()['employee']['name'] == '改名'
    assert resp.get_json()['employee']['jobName'] == '課長'

    resp = admin_client.post(f"/api/employees/{emp['id']}/password", json={'password': 'brandnew123'})
    assert resp.status_code == 200
    login_as(db.session.get(User, emp['id']), password='brandnew123')


def test_employee_list_for_non_admin_is_self_only(login_as, make_user):
    me = make_user()
    make_user()
    data = login_as(me).get('/api/employees').get_json()
    assert [e['id'] for e in data['employees']] == [me.id]


def test_employee_import_route(admin_client):
    resp = admin_client.post('/api/employees/import', json={'employees': [
        {'email': 'a@orgsurvey.co.jp', 'name': 'A'},
        {'email': '', 'name': 'B'},
    ]})
    body = resp.get_json()
    assert resp.status_code == 200
    assert body['created'] == 1
    assert body['errors'] == ['行 2: メールアドレスと氏名は必須です']


def test_employee_export(admin_client):
    resp = admin_client.get('/api/employees/export')
    assert resp.status_code == 200
    assert resp.mimetype == 'text/csv'
    assert 'admin@orgsurvey.co.jp' in resp.data.decode('utf-8-sig')


def test_department_rename_keeps_parent_and_code(admin_client, make_department):
    root = make_department('本社', '1')
    child = make_department('営業部', '3', parent=root)
    child.description = '法人営業'
    db.session.commit()

    resp = admin_client.put(f'/api/departments/{child.id}', json={'name': '営業本部'})
    assert resp.status_code == 200
    body = resp.get_json()['department']
    assert body['parentId'] == root.id
    assert body['code'] == '3'
    assert body['description'] == '法人営業'


def test_department_explicit_null_parent_detaches(admin_client, make_department):
    root = make_department('本社', '1')
    child = make_department('営業部', '3', parent=root)
    resp = admin_client.put(f'/api/departments/{child.id}', json={'name': '営業部', 'parentId': None})
    assert resp.get_json()['department']['parentId'] is None


def test_job_rename_keeps_code(admin_client, make_job):
    job = make_job('部長', code='2')
    resp = admin_client.put(f'/api/jobs/{job.id}', json={'name': '本部長'})
    assert resp.get_json()['job']['code'] == '2'


def test_employee_delete_removes_answers(admin_client, make_user, make_survey):
    from orgsurvey.models import (GrowthSurveyQuestion, GrowthSurveyResponse, Notification,
                                  OrganizationalSurveyResult, OrganizationalSurveySummary)

    survey = make_survey()
    growth = make_survey(survey_type='growth')
    keep = make_user()
    leaver = make_user()
    q = GrowthSurveyQuestion(question_text='q', category='ルール', answers=[{'text': 'はい', 'score': 5}])
    db.session.add(q)
    db.session.flush()
    for u in (keep, leaver):
        db.session.add(OrganizationalSurveyResult(survey_id=survey.id, user_id=u.id, response=[]))
        db.session.add(OrganizationalSurveySummary(survey_id=survey.id, user_id=u.id, category1_score=50, total_score=6.25))
        db.session.add(GrowthSurveyResponse(survey_id=growth.id, user_id=u.id, question_id=q.id, answer='0'))
        db.session.add(Notification(user_id=u.id, survey_id=survey.id, title='t', message='m'))
    db.session.commit()
    leaver_id = leaver.id

    assert admin_client.delete(f'/api/employees/{leaver_id}').status_code == 200
    for model in (OrganizationalSurveyResult, OrganizationalSurveySummary, GrowthSurveyResponse, Notification):
        assert model.query.filter_by(user_id=leaver_id).count() == 0
        assert model.query.filter_by(user_id=keep.id).count() == 1

    stats = admin_client.get(f'/api/organizational-survey-summary/statistics?surveyId={survey.id}').get_json()
    assert stats['overall']['count'] == 1
