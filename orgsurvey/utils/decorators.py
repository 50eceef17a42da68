from functools import wraps
from flask import abort
from flask_login import current_user


def role_required(*roles):
    """401 for anonymous requests, 403 when the user's role is not in ``roles``."""
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            if not current_user.is_authenticated:
                abort(401, description="ログインが必要です")
            if getattr(current_user, "role", None) not in roles:
                abort(403, description="管理者権限が必要です" if roles == ("admin",) else "権限がありません")
            return view(*args, **kwargs)
        return wrapped
    return decorator


admin_required = role_required("admin")
