# supportdesk/services/support_notifications.py
"""Support e-mails and their fire-and-forget dispatch.

Notification helpers take plain values rather than ORM rows so they can
run on a background thread after the request's session has closed.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional
from urllib.parse import urlencode

from flask import current_app

from ..models.support import STATUS_LABELS
from .email_service import send_email

log = logging.getLogger(__name__)


def dispatch(fn, *args, **kwargs) -> None:
    """Run ``fn`` after the response path; errors are logged, never raised."""
    app = current_app._get_current_object()

    def _run():
        with app.app_context():
            try:
                fn(*args, **kwargs)
            except Exception:
                log.exception("Notification %s failed", getattr(fn, "__name__", fn))

    if app.config.get("NOTIFY_ASYNC", True):
        threading.Thread(target=_run, daemon=True).start()
    else:
        _run()


def portal_url(token: str) -> str:
    base = current_app.config.get("PORTAL_BASE_URL", "http://localhost:5000/support")
    return f"{base}?{urlencode({'token': token})}"


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, status)


# ---- to the support team ----

def notify_new_request(client_name: str, request_type: str, description: str, image_count: int = 0) -> bool:
    to = current_app.config.get("NOTIFICATION_EMAIL")
    if not to:
        log.info("NOTIFICATION_EMAIL not configured")
        return False
    return send_email(
        to=to,
        subject=f"New Support Request from {client_name}",
        template="new_request_admin",
        client_name=client_name,
        request_type=request_type,
        description=description,
        image_count=image_count,
    )


def notify_client_reply(client_name: str, request_type: str, status: str, content: str,
                        client_email: Optional[str] = None) -> bool:
    to = current_app.config.get("NOTIFICATION_EMAIL")
    if not to:
        log.info("NOTIFICATION_EMAIL not configured")
        return False
    return send_email(
        to=to,
        subject=f"Client Reply: {request_type} - {client_name}",
        template="client_reply_admin",
        reply_to=client_email,
        client_name=client_name,
        request_type=request_type,
        status=status,
        status_label=status_label(status),
        content=content,
    )


# ---- to the client ----

def notify_client_note(client_email: str, client_name: str, request_type: str, note: str, token: str) -> bool:
    if not client_email:
        log.info("No client email provided, skipping notification")
        return False
    return send_email(
        to=client_email,
        subject=f"Update on Your Support Request - {request_type}",
        template="client_note",
        client_name=client_name,
        request_type=request_type,
        note=note,
        portal_url=portal_url(token),
    )


def notify_status_change(client_email: str, client_name: str, request_type: str,
                         old_status: str, new_status: str, token: str) -> bool:
    if not client_email:
        log.info("No client email provided, skipping notification")
        return False
    return send_email(
        to=client_email,
        subject=f"Your Support Request Status Changed to {status_label(new_status)}",
        template="status_changed",
        client_name=client_name,
        request_type=request_type,
        old_status=status_label(old_status),
        new_status=status_label(new_status),
        portal_url=portal_url(token),
    )
