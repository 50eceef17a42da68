import warnings

from sqlalchemy.exc import LegacyAPIWarning

from orgsurvey.models import LoginLog


def test_login_success_is_logged(client, make_user):
    user = make_user(email='taro@orgsurvey.co.jp')
    resp = client.post('/api/auth/login', json={'email': 'Taro@orgsurvey.co.jp', 'password': 'password123'})
    assert resp.status_code == 200
    assert resp.get_json()['user']['id'] == user.id
    log = LoginLog.query.one()
    assert log.login_status == 'success'
    assert log.user_id == user.id

    me = client.get('/api/auth/me').get_json()
    assert me['success'] and me['user']['email'] == 'taro@orgsurvey.co.jp'


def test_failed_logins_are_logged_with_reason(client, make_user):
    make_user(email='taro@orgsurvey.co.jp')
    resp = client.post('/api/auth/login', json={'email': 'taro@orgsurvey.co.jp', 'password': 'wrong-pass'})
    assert resp.status_code == 401
    assert resp.get_json() == {'success': False, 'error': 'メールアドレスまたはパスワードが正しくありません'}
    client.post('/api/auth/login', json={'email': 'nobody@orgsurvey.co.jp', 'password': 'whatever1'})
    logs = LoginLog.query.order_by(LoginLog.id).all()
    assert [l.login_status for l in logs] == ['failure', 'failure']
    assert logs[0].failure_reason == 'パスワード不一致'
    assert logs[1].user_id is None


def test_role_none_cannot_log_in(client, make_user):
    make_user(role='none', email='guest@orgsurvey.co.jp')
    resp = client.post('/api/auth/login', json={'email': 'guest@orgsurvey.co.jp', 'password': 'password123'})
    assert resp.status_code == 403


def test_missing_fields_return_400(client):
    resp = client.post('/api/auth/login', json={'email': ''})
    assert resp.status_code == 400
    assert resp.get_json()['success'] is False


def test_anonymous_gets_json_401(client):
    resp = client.get('/api/auth/me')
    assert resp.status_code == 401
    assert resp.get_json()['success'] is False


def test_change_password(login_as, make_user):
    user = make_user()
    c = login_as(user)
    resp = c.post('/api/auth/change-password', json={'currentPassword': 'bad', 'newPassword': 'newpassword1'})
    assert resp.status_code == 400
    resp = c.post('/api/auth/change-password', json={'currentPassword': 'password123', 'newPassword': 'newpassword1'})
    assert resp.status_code == 200
    c.post('/api/auth/logout')
    login_as(user, password='newpassword1')


def test_session_user_reload_uses_current_api(admin_client):
    with warnings.catch_warnings():
        warnings.simplefilter('error', LegacyAPIWarning)
        assert admin_client.get('/api/auth/me').status_code == 200
