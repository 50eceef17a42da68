"""In-app notifications for survey reminders; mail delivery runs as an RQ job."""
from flask import current_app

from ..extensions import db, rq
from ..jobs.notify import mail_notification
from ..models.notification import Notification
from ..models.user import User

NOTIFICATION_TITLE = "ソシキサーベイの回答をお願いします"


class NotificationError(ValueError):
    pass


def format_month_day(value):
    if value is None:
        return ""
    return f"{value.month}月{value.day}日"


def default_message(survey):
    return (
        f"ソシキサーベイ「{survey.name}」への回答をお願いいたします。\n\n"
        f"サーベイ期間: {format_month_day(survey.start_date)} ～ {format_month_day(survey.end_date)}\n\n"
    )


def prune_notifications(user_id, keep):
    stale = (
        Notification.query.filter_by(user_id=user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset(keep)
        .all()
    )
    for n in stale:
        db.session.delete(n)
    return len(stale)


def send_survey_notifications(survey, user_ids, message=None, sender_id=None):
    if not user_ids or not isinstance(user_ids, (list, tuple)):
        raise NotificationError("surveyIdとuserIdsは必須です")
    if not all(isinstance(uid, int) and not isinstance(uid, bool) for uid in user_ids):
        raise NotificationError("userIdsは数値の配列である必要があります")

    users = User.query.filter(User.id.in_(user_ids), User.role != "admin").order_by(User.id).all()
    if not users:
        raise NotificationError("通知を送信できる従業員が見つかりません（管理者は対象外です）")

    body = message or default_message(survey)
    created = []
    for user in users:
        n = Notification(user_id=user.id, survey_id=survey.id, title=NOTIFICATION_TITLE,
                         message=body, created_by=sender_id)
        db.session.add(n)
        created.append((n, user))
    db.session.flush()

    keep = current_app.config.get("NOTIFICATION_KEEP_PER_USER", 50)
    for user in users:
        prune_notifications(user.id, keep)
    db.session.commit()

    for n, _ in created:
        rq.enqueue(mail_notification, n.id)

    current_app.logger.info('Sent %d survey notifications for survey %s', len(created), survey.id)
    return [
        {
            "id": n.id,
            "userId": user.id,
            "userName": user.name,
            "userEmail": user.email,
            "message": body,
            "sentAt": n.created_at.isoformat() if n.created_at else None,
        }
        for n, user in created
    ]
