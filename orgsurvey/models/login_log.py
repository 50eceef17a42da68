from ..extensions import db
from .base import iso


class LoginLog(db.Model):
    __tablename__ = "login_logs"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, index=True)  # 存在しないメールでの失敗は None
    email = db.Column(db.String(255), nullable=False)
    login_status = db.Column(db.String(20), nullable=False)  # success/failure
    failure_reason = db.Column(db.String(255))
    ip_address = db.Column(db.String(64))
    user_agent = db.Column(db.String(512))
    created_at = db.Column(db.DateTime, server_default=db.func.now(), nullable=False, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "email": self.email,
            "loginStatus": self.login_status,
            "failureReason": self.failure_reason,
            "ipAddress": self.ip_address,
            "userAgent": self.user_agent,
            "createdAt": iso(self.created_at),
        }
