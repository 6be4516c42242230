# supportdesk/services/email_service.py
from flask import current_app, render_template
from flask_mail import Message
from jinja2 import TemplateNotFound
from ..extensions import mail
import logging

log = logging.getLogger(__name__)

def send_email(*, to, subject, template, reply_to=None, **ctx) -> bool:
    """Render ``email/<template>.txt`` (+ ``.html`` if present) and send it.

    Never raises: failures are logged and reported as False.
    """
    try:
        if not to:
            log.warning("send_email: missing recipient")
            return False
        recipients = [to] if isinstance(to, str) else list(to)
        body = render_template(f"email/{template}.txt", **ctx)

        if "mail" not in current_app.extensions:  # mail not configured
            log.info("[email stub] would send to %s | %s\n%s", recipients, subject, body)
            return False

        sender_addr = current_app.config.get("MAIL_DEFAULT_SENDER") or current_app.config.get("MAIL_USERNAME")
        if not sender_addr:
            log.error("send_email: no sender configured")
            return False
        sender_name = current_app.config.get("MAIL_DEFAULT_SENDER_NAME", "Support Team")

        msg = Message(subject=subject, recipients=recipients, sender=(sender_name, sender_addr), reply_to=reply_to)
        msg.body = body
        try:
            msg.html = render_template(f"email/{template}.html", **ctx)
        except TemplateNotFound:
            pass

        if current_app.config.get("MAIL_SUPPRESS_SEND"):
            log.info("[MAIL_SUPPRESS_SEND=1] would send: %s | %s", recipients, subject)
            return True

        mail.send(msg)
        log.info("Email sent to %s | subject=%s", recipients, subject)
        return True
    except Exception as e:
        log.exception("send_email failed: %s", e)
        return False
