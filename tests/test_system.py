import io
from datetime import datetime

from orgsurvey.blueprints.system import routes as system_routes
from orgsurvey.extensions import db
from orgsurvey.models import Department, LoginLog


def test_status(admin_client):
    body = admin_client.get('/api/system/status').get_json()
    assert body['status'] == 'healthy'
    assert body['database']['backend'] == 'sqlite'
    assert body['database']['counts']['users'] == 1
    assert body['timestamp'].endswith('+00:00')


def test_status_is_admin_only(login_as, make_user):
    assert login_as(make_user()).get('/api/system/status').status_code == 403


def test_backup_and_restore_sqlite(app, admin_client, make_department, tmp_path):
    make_department('営業部', '3')
    resp = admin_client.post('/api/system/backup')
    assert resp.status_code == 200
    assert resp.mimetype == 'application/sql'
    assert 'attachment; filename=backup_' in resp.headers['Content-Disposition']
    dump = resp.data
    assert b'CREATE TABLE' in dump
    assert list((tmp_path / 'storage' / 'backups').iterdir())

    make_department('開発部', '4')
    assert Department.query.count() == 2

    data = {'file': (io.BytesIO(dump), 'backup.sql')}
    resp = admin_client.post('/api/system/restore', data=data, content_type='multipart/form-data')
    assert resp.status_code == 200
    assert [d.name for d in Department.query.all()] == ['営業部']


def test_restore_rejects_other_extensions(admin_client):
    data = {'file': (io.BytesIO(b'select 1;'), 'backup.txt')}
    resp = admin_client.post('/api/system/restore', data=data, content_type='multipart/form-data')
    assert resp.status_code == 400


def test_restart_requires_command(admin_client):
    assert admin_client.post('/api/system/restart').status_code == 400


def test_restart_enqueues_command(app, admin_client, monkeypatch):
    calls = []
    monkeypatch.setattr(system_routes, 'run_restart', lambda command: calls.append(command))
    app.config['RESTART_COMMAND'] = 'pm2 restart orgsurvey'
    resp = admin_client.post('/api/system/restart')
    assert resp.status_code == 200
    assert calls == ['pm2 restart orgsurvey']


def _log(email, when):
    db.session.add(LoginLog(email=email, login_status='success', created_at=when))


def test_login_logs_filter_and_delete(admin_client):
    LoginLog.query.delete()
    _log('old@orgsurvey.co.jp', datetime(2024, 1, 10, 9, 0))
    _log('mid@orgsurvey.co.jp', datetime(2024, 2, 15, 23, 59))
    _log('new@orgsurvey.co.jp', datetime(2024, 3, 20, 8, 0))
    db.session.commit()

    logs = admin_client.get('/api/users/login-logs?startDate=2024-02-01&endDate=2024-02-15').get_json()['logs']
    assert [l['email'] for l in logs] == ['mid@orgsurvey.co.jp']

    resp = admin_client.delete('/api/users/login-logs?endDate=2024-02-28')
    assert resp.get_json()['deleted'] == 2
    assert [l.email for l in LoginLog.query.all()] == ['new@orgsurvey.co.jp']


def test_login_logs_reject_bad_dates(admin_client):
    assert admin_client.get('/api/users/login-logs?startDate=2024/02/01').status_code == 400
    assert admin_client.get('/api/users/login-logs?startDate=2024-03-01&endDate=2024-02-01').status_code == 400
