from html import escape

from flask import current_app

from ..extensions import db
from ..models.base import utcnow
from ..models.notification import Notification
from ..models.user import User
from ..services.mail import send_mail


def _html_body(message, link):
    html = "<br>".join(escape(line) for line in message.splitlines())
    if link:
        html += f'<br><a href="{escape(link)}">{escape(link)}</a>'
    return html


def mail_notification(notification_id: int):
    """Mail a stored notification to its recipient. Delivery failures are logged, not retried."""
    n = db.session.get(Notification, notification_id)
    if n is None:
        return None
    user = db.session.get(User, n.user_id)
    if user is None or not current_app.config.get('SENDGRID_API_KEY'):
        current_app.logger.info('Mail delivery skipped for notification %s', notification_id)
        return n.id
    link = current_app.config.get('APP_BASE_URL')
    text = n.message + (f"\n{link}" if link else "")
    try:
        _, message_id = send_mail(user.email, n.title, _html_body(n.message, link), text)
    except Exception:
        current_app.logger.exception('Mail delivery failed for notification %s', notification_id)
        return n.id
    n.mailed_at = utcnow()
    n.provider_message_id = message_id
    db.session.commit()
    return n.id
