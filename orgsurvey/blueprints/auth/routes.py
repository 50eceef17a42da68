from flask import current_app, request
from flask_login import login_user, logout_user, login_required, current_user
from . import bp
from ...extensions import db
from .forms import LoginForm, ChangePasswordForm
from ...models.login_log import LoginLog
from ...models.user import User
from ...utils.responses import ApiError, success


def _record_login(email, user=None, reason=None):
    log = LoginLog(
        user_id=user.id if user else None,
        email=email,
        login_status="failure" if reason else "success",
        failure_reason=reason,
        ip_address=request.headers.get("X-Forwarded-For", request.remote_addr or "")[:64],
        user_agent=(request.user_agent.string or "")[:512],
    )
    db.session.add(log)
    db.session.commit()


@bp.route("/login", methods=["POST"])
def login():
    form = LoginForm.from_json()
    email = (form.email.data or "").strip().lower()
    if not form.validate():
        if email:
            _record_login(email, reason="入力エラー")
        raise ApiError(form.first_error(), 400)

    user = User.query.filter_by(email=email).first()
    if user is None:
        _record_login(email, reason="ユーザーが存在しません")
        raise ApiError("メールアドレスまたはパスワードが正しくありません", 401)
    if not user.check_password(form.password.data):
        _record_login(email, user, reason="パスワード不一致")
        raise ApiError("メールアドレスまたはパスワードが正しくありません", 401)
    if user.role == "none":
        # 権限なしユーザーはログイン不可
        _record_login(email, user, reason="ログイン権限がありません")
        raise ApiError("このアカウントではログインできません", 403)

    login_user(user)
    _record_login(email, user)
    current_app.logger.info('User %s logged in', user.id)
    return success(user=user.to_dict())


@bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return success()


@bp.route("/me", methods=["GET"])
@login_required
def me():
    return success(user=current_user.to_dict())


@bp.route("/change-password", methods=["POST"])
@login_required
def change_password():
    form = ChangePasswordForm.from_json().validate_or_raise()
    if not current_user.check_password(form.current_password.data):
        raise ApiError("現在のパスワードが正しくありません", 400)
    current_user.set_password(form.new_password.data)
    db.session.commit()
    return success(message="パスワードを変更しました")
