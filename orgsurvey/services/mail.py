from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail
from flask import current_app


class MailDeliveryError(RuntimeError):
    pass


def send_mail(to_email, subject, html, text=None):
    """Send one message through SendGrid; returns (status_code, message id)."""
    message = Mail(
        from_email=(current_app.config['MAIL_FROM'], current_app.config['MAIL_FROM_NAME']),
        to_emails=to_email,
        subject=subject,
        html_content=html,
        plain_text_content=text,
    )
    resp = SendGridAPIClient(api_key=current_app.config['SENDGRID_API_KEY']).send(message)
    if resp.status_code >= 300:
        raise MailDeliveryError(f"SendGrid returned {resp.status_code}")
    headers = getattr(resp, 'headers', None) or {}
    return resp.status_code, headers.get('X-Message-Id')
