from orgsurvey.extensions import db
from orgsurvey.jobs import notify
from orgsurvey.models import Notification
from orgsurvey.services.notifications import default_message, prune_notifications


def test_default_message_mentions_period(make_survey):
    survey = make_survey(name='1月サーベイ')
    msg = default_message(survey)
    assert '「1月サーベイ」' in msg
    assert '1月1日 ～ 1月31日' in msg


def test_send_skips_admins(admin_client, admin, make_user, make_survey):
    survey = make_survey()
    employee = make_user()
    resp = admin_client.post('/api/notifications/send', json={'surveyId': survey.id, 'userIds': [admin.id, employee.id]})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['sentCount'] == 1
    assert body['notifications'][0]['userId'] == employee.id
    assert Notification.query.filter_by(user_id=admin.id).count() == 0


def test_send_only_admins_is_rejected(admin_client, admin, make_survey):
    survey = make_survey()
    resp = admin_client.post('/api/notifications/send', json={'surveyId': survey.id, 'userIds': [admin.id]})
    assert resp.status_code == 400


def test_send_requires_user_ids(admin_client, make_survey):
    survey = make_survey()
    resp = admin_client.post('/api/notifications/send', json={'surveyId': survey.id, 'userIds': []})
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'surveyIdとuserIdsは必須です'


def test_mail_delivery_marks_notification(app, admin_client, make_user, make_survey, monkeypatch):
    sent = []

    def fake_send(to_email, subject, html, text=None):
        sent.append((to_email, subject, html, text))
        return 202, 'abc'
    monkeypatch.setattr(notify, 'send_mail', fake_send)
    app.config['SENDGRID_API_KEY'] = 'SG.test'

    survey = make_survey()
    employee = make_user(email='member@orgsurvey.co.jp')
    admin_client.post('/api/notifications/send', json={'surveyId': survey.id, 'userIds': [employee.id],
                                                      'message': '回答してください'})
    assert sent[0][0] == 'member@orgsurvey.co.jp'
    assert app.config['APP_BASE_URL'] in sent[0][2]
    n = Notification.query.one()
    assert n.mailed_at is not None
    assert n.provider_message_id == 'abc'
    assert n.message == '回答してください'


def test_mail_skipped_without_api_key(admin_client, make_user, make_survey, monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError('should not send')
    monkeypatch.setattr(notify, 'send_mail', fail)
    survey = make_survey()
    employee = make_user()
    admin_client.post('/api/notifications/send', json={'surveyId': survey.id, 'userIds': [employee.id]})
    assert Notification.query.one().mailed_at is None


def test_prune_keeps_newest(make_user, make_survey):
    user = make_user()
    survey = make_survey()
    for i in range(5):
        db.session.add(Notification(user_id=user.id, survey_id=survey.id, title='t', message=str(i)))
        db.session.flush()
    assert prune_notifications(user.id, 3) == 2
    db.session.commit()
    assert sorted(n.message for n in Notification.query.all()) == ['2', '3', '4']


def test_read_and_read_all(login_as, make_user, make_survey):
    user = make_user()
    other = make_user()
    survey = make_survey()
    for owner in (user, user, other):
        db.session.add(Notification(user_id=owner.id, survey_id=survey.id, title='t', message='m'))
    db.session.commit()
    client = login_as(user)

    listing = client.get('/api/notifications').get_json()
    assert listing['unreadCount'] == 2
    first = listing['notifications'][0]['id']
    read = client.post(f'/api/notifications/{first}/read').get_json()['notification']
    assert read['isRead'] is True
    assert read['readAt'] is not None

    foreign = Notification.query.filter_by(user_id=other.id).one()
    assert client.post(f'/api/notifications/{foreign.id}/read').status_code == 404

    assert client.post('/api/notifications/read-all').get_json()['updated'] == 1
    assert client.get('/api/notifications').get_json()['unreadCount'] == 0
    assert Notification.query.filter_by(user_id=other.id, is_read=False).count() == 1
