from ..extensions import db
from .base import iso


class Notification(db.Model):
    __tablename__ = "notifications"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    survey_id = db.Column(db.Integer, db.ForeignKey("surveys.id"), index=True)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    is_read = db.Column(db.Boolean, nullable=False, default=False)
    created_by = db.Column(db.Integer)  # users.id（送信した管理者）
    created_at = db.Column(db.DateTime, server_default=db.func.now(), nullable=False)
    read_at = db.Column(db.DateTime)
    mailed_at = db.Column(db.DateTime)
    provider_message_id = db.Column(db.String(255))

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "surveyId": self.survey_id,
            "title": self.title,
            "message": self.message,
            "isRead": bool(self.is_read),
            "createdAt": iso(self.created_at),
            "readAt": iso(self.read_at),
            "createdBy": self.created_by,
        }
