from datetime import datetime, time

from flask import current_app, request, Response
from flask_login import current_user
from . import bp
from ...extensions import db, rq
from ...jobs.system import run_restart
from ...models.login_log import LoginLog
from ...services.storage import save_bytes
from ...services.system_ops import (
    SystemOperationError,
    backup_database,
    backup_filename,
    restore_database,
    system_status,
)
from ...utils.decorators import admin_required
from ...utils.responses import ApiError, success


@bp.route("/system/status", methods=["GET"])
@admin_required
def status():
    return success(**system_status())


@bp.route("/system/backup", methods=["POST"])
@admin_required
def backup():
    try:
        dump = backup_database()
    except SystemOperationError as e:
        current_app.logger.error('Backup failed: %s', e)
        raise ApiError(str(e), 500)
    filename = backup_filename()
    try:
        location = save_bytes(dump, f"backups/{filename}")
        current_app.logger.info('Backup %s archived to %s (%d bytes)', filename, location, len(dump))
    except OSError:
        current_app.logger.exception('Archiving backup %s failed', filename)
    return Response(
        dump,
        mimetype="application/sql",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@bp.route("/system/restore", methods=["POST"])
@admin_required
def restore():
    f = request.files.get("file")
    if f is None or not f.filename:
        raise ApiError("ファイルが選択されていません", 400)
    if not f.filename.lower().endswith(".sql"):
        raise ApiError("SQLファイル(.sql)のみアップロードできます", 400)
    sql = f.read()
    admin_id = current_user.id
    try:
        restore_database(sql)
    except SystemOperationError as e:
        current_app.logger.error('Restore failed: %s', e)
        raise ApiError(str(e), 500)
    current_app.logger.warning('Database restored from %s by user %s', f.filename, admin_id)
    return success(message="データベースを復元しました")


@bp.route("/system/restart", methods=["POST"])
@admin_required
def restart():
    command = current_app.config.get("RESTART_COMMAND")
    if not command:
        raise ApiError("再起動コマンドが設定されていません", 400)
    rq.enqueue(run_restart, command)
    return success(message="再起動を開始しました")


# ---- login logs -----------------------------------------------------------

def _parse_day(value, label):
    if not value:
        return None
    try:
        return datetime.strptime(value[:10], "%Y-%m-%d").date()
    except ValueError:
        raise ApiError(f"{label}の形式が不正です (YYYY-MM-DD)", 400)


def _login_log_query():
    start = _parse_day(request.args.get("startDate"), "startDate")
    end = _parse_day(request.args.get("endDate"), "endDate")
    if start and end and end < start:
        raise ApiError("終了日は開始日以降である必要があります", 400)
    q = LoginLog.query
    if start:
        q = q.filter(LoginLog.created_at >= datetime.combine(start, time.min))
    if end:
        q = q.filter(LoginLog.created_at <= datetime.combine(end, time.max))
    return q


@bp.route("/users/login-logs", methods=["GET"])
@admin_required
def login_logs_index():
    limit = min(max(request.args.get("limit", 1000, type=int), 1), 5000)
    rows = _login_log_query().order_by(LoginLog.created_at.desc(), LoginLog.id.desc()).limit(limit).all()
    return success(logs=[r.to_dict() for r in rows])


@bp.route("/users/login-logs", methods=["DELETE"])
@admin_required
def login_logs_delete():
    count = _login_log_query().delete(synchronize_session=False)
    db.session.commit()
    current_app.logger.info('Deleted %d login logs', count)
    return success(deleted=count, message=f"{count}件のログイン履歴を削除しました")
