"""Database backup/restore and runtime status for the system management screen."""
import os
import platform
import subprocess
import sys
import time
from datetime import datetime, timezone

from flask import current_app
from sqlalchemy import text
from sqlalchemy.engine import make_url

from ..extensions import db
from ..models import Department, Job, LoginLog, Survey, User

STARTED_AT = time.time()


class SystemOperationError(RuntimeError):
    pass


def _database_url():
    return make_url(current_app.config['SQLALCHEMY_DATABASE_URI'])


def _is_postgres(url):
    return url.get_backend_name() in ('postgresql', 'postgres')


def _pg_args(url):
    args = ['-h', url.host or 'localhost', '-p', str(url.port or 5432), '-d', url.database or '']
    if url.username:
        args += ['-U', url.username]
    return args


def _pg_env(url):
    env = dict(os.environ)
    if url.password:
        env['PGPASSWORD'] = url.password
    sslmode = url.query.get('sslmode') if url.query else None
    if sslmode:
        env['PGSSLMODE'] = sslmode
    return env


def _run(args, env, input_bytes=None):
    timeout = current_app.config.get('BACKUP_TIMEOUT_SEC', 300)
    try:
        proc = subprocess.run(args, input=input_bytes, env=env, capture_output=True, timeout=timeout)
    except FileNotFoundError:
        raise SystemOperationError(f"{args[0]}コマンドが見つかりません。PostgreSQLクライアントツールがインストールされていることを確認してください。")
    except subprocess.TimeoutExpired:
        raise SystemOperationError(f"{args[0]}がタイムアウトしました")
    if proc.returncode != 0:
        stderr = proc.stderr.decode('utf-8', errors='replace')[:500]
        raise SystemOperationError(f"{args[0]}が失敗しました (exit {proc.returncode}): {stderr}")
    return proc.stdout


def _driver_connection(raw):
    return getattr(raw, 'driver_connection', None) or raw.connection


def backup_database() -> bytes:
    url = _database_url()
    if _is_postgres(url):
        args = [current_app.config.get('PG_DUMP_BIN', 'pg_dump')] + _pg_args(url) + [
            '--no-owner', '--no-privileges', '--clean', '--if-exists', '-Fp',
        ]
        return _run(args, _pg_env(url))
    if url.get_backend_name() == 'sqlite':
        raw = db.engine.raw_connection()
        try:
            lines = list(_driver_connection(raw).iterdump())
        finally:
            raw.close()
        return ("\n".join(lines) + "\n").encode('utf-8')
    raise SystemOperationError(f"{url.get_backend_name()}のバックアップには対応していません")


def restore_database(sql: bytes):
    if not sql or not sql.strip():
        raise SystemOperationError("リストアするSQLが空です")
    url = _database_url()
    db.session.remove()
    if _is_postgres(url):
        args = [current_app.config.get('PSQL_BIN', 'psql')] + _pg_args(url) + ['-v', 'ON_ERROR_STOP=1', '-q']
        _run(args, _pg_env(url), input_bytes=sql)
        return
    if url.get_backend_name() == 'sqlite':
        raw = db.engine.raw_connection()
        try:
            conn = _driver_connection(raw)
            names = [r[0] for r in conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'")]
            for name in names:
                conn.execute(f'DROP TABLE IF EXISTS "{name}"')
            conn.executescript(sql.decode('utf-8'))
            conn.commit()
        finally:
            raw.close()
        return
    raise SystemOperationError(f"{url.get_backend_name()}のリストアには対応していません")


def backup_filename(now=None):
    now = now or datetime.now()
    return f"backup_{now.strftime('%Y%m%d_%H%M%S')}.sql"


def system_status():
    database = {'backend': _database_url().get_backend_name(), 'connected': False}
    try:
        db.session.execute(text('SELECT 1'))
        database['connected'] = True
        database['counts'] = {
            'users': User.query.count(),
            'departments': Department.query.count(),
            'jobs': Job.query.count(),
            'surveys': Survey.query.count(),
            'loginLogs': LoginLog.query.count(),
        }
    except Exception as e:
        current_app.logger.exception('Database status check failed')
        db.session.rollback()
        database['error'] = str(e)

    try:
        load = list(os.getloadavg())
    except (AttributeError, OSError):
        load = None

    return {
        'status': 'healthy' if database['connected'] else 'degraded',
        'database': database,
        'uptimeSec': int(time.time() - STARTED_AT),
        'pid': os.getpid(),
        'python': sys.version.split()[0],
        'platform': platform.platform(),
        'loadAverage': load,
        'timestamp': datetime.now(timezone.utc).isoformat(),
    }
