# supportdesk/services/ticket_service.py
"""Support request workflows: submission, admin updates, client replies."""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from ..errors import Forbidden, InternalError, NotFound, ValidationError
from ..extensions import db
from ..models.support import (
    REQUEST_TYPES,
    SENDER_ADMIN,
    SENDER_CLIENT,
    STATUS_IN_PROGRESS,
    STATUS_NEW,
    STATUSES,
    Message,
    RequestImage,
    SupportRequest,
)
from ..models.token import ClientToken
from .auth_service import ClientInfo
from .storage_service import MAX_FILES, StorageError, get_store, validate_image
from .support_notifications import (
    dispatch,
    notify_client_note,
    notify_client_reply,
    notify_new_request,
    notify_status_change,
)

log = logging.getLogger(__name__)


def _get_request(request_id) -> SupportRequest:
    # ids arrive as path ints or JSON/form values; bools and floats are not ids
    if isinstance(request_id, bool) or not isinstance(request_id, (int, str)):
        raise NotFound("Request not found")
    try:
        req = db.session.get(SupportRequest, int(request_id))
    except (TypeError, ValueError):
        req = None
    if req is None:
        raise NotFound("Request not found")
    return req


def commit_or_raise(action: str):
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        log.exception("%s failed: %s", action, e)
        raise InternalError() from e


# ---------------------------
# Admin: status + note update
# ---------------------------

def update_ticket(request_id, new_status: Optional[str] = None, note_content: Optional[str] = None) -> SupportRequest:
    """Apply an admin status change and/or note to a request.

    A note overwrites ``internal_notes`` and is appended to the thread as an
    admin message. Adding a note to a ``new`` request moves it to
    ``in_progress`` unless the caller explicitly picked another status.
    At most one client e-mail is sent: the note e-mail when a note was
    added, otherwise the status e-mail when the status changed.
    """
    new_status = str(new_status).strip() if new_status is not None else ""
    new_status = new_status or None
    if new_status is not None and new_status not in STATUSES:
        raise ValidationError(f"Invalid status: {new_status}")

    req = _get_request(request_id)
    client = ClientToken.query.filter_by(client_id=req.client_id).first()

    previous_status = req.status
    status_changed = new_status is not None and new_status != previous_status
    effective_status = new_status if status_changed else previous_status

    note = str(note_content).strip() if note_content is not None else ""
    notes_updated = bool(note)

    if notes_updated:
        req.internal_notes = note
        # auto-transition looks at the stored status, not the caller's value
        if previous_status == STATUS_NEW and not status_changed:
            effective_status = STATUS_IN_PROGRESS
            status_changed = True
        db.session.add(Message(request_id=req.id, content=note, sender_type=SENDER_ADMIN))

    if status_changed:
        req.status = effective_status
    req.touch()
    commit_or_raise(f"update_ticket({req.id})")

    log.info(
        "Request %s updated: status %s -> %s, note=%s",
        req.id, previous_status, effective_status, notes_updated,
    )

    if client is not None and client.client_email:
        if notes_updated:
            dispatch(notify_client_note, client.client_email, client.client_name,
                     req.request_type, note, client.token)
        elif status_changed:
            dispatch(notify_status_change, client.client_email, client.client_name,
                     req.request_type, previous_status, effective_status, client.token)

    return req


# ---------------------------
# Client: submission
# ---------------------------

def submit_request(client: ClientInfo, request_type: Optional[str], description: Optional[str],
                   files: Iterable = ()) -> tuple[SupportRequest, list[dict]]:
    """Create a request and store its attachments.

    Returns the request and a list of ``{"filename", "error"}`` for files
    that failed; those never block the ticket or the other files.
    """
    request_type = (request_type or "").strip()
    description = (description or "").strip()
    if not request_type or not description:
        raise ValidationError("Request type and description are required")
    if request_type not in REQUEST_TYPES:
        raise ValidationError(f"Unknown request type: {request_type}")

    files = [f for f in (files or []) if f and getattr(f, "filename", None)]
    if len(files) > MAX_FILES:
        raise ValidationError(f"Maximum {MAX_FILES} files allowed per request")

    req = SupportRequest(
        client_id=client.client_id,
        request_type=request_type,
        description=description,
        status=STATUS_NEW,
    )
    db.session.add(req)
    commit_or_raise("submit_request")

    upload_errors = []
    stored = 0
    if files:
        store = get_store()
        for f in files:
            data = f.read()
            error = validate_image(data, f.filename, f.mimetype)
            if error:
                upload_errors.append({"filename": f.filename, "error": error})
                continue
            try:
                result = store.save(data, f.filename, f.mimetype, req.id)
            except StorageError as e:
                upload_errors.append({"filename": f.filename, "error": str(e)})
                continue
            db.session.add(RequestImage(
                request_id=req.id,
                image_url=result.url,
                filename=result.filename,
                size=result.size,
            ))
            stored += 1
        commit_or_raise(f"submit_request images ({req.id})")

    log.info("Request %s created for %s (%d image(s), %d upload error(s))",
             req.id, client.client_id, stored, len(upload_errors))

    dispatch(notify_new_request, client.client_name, request_type, description, stored)
    return req, upload_errors


# ---------------------------
# Client: thread reply
# ---------------------------

def add_client_reply(client: ClientInfo, request_id, content: Optional[str]) -> Message:
    content = (content or "").strip()
    if not request_id or not content:
        raise ValidationError("Token, request ID, and content are required")

    req = _get_request(request_id)
    if req.client_id != client.client_id:
        raise Forbidden("Unauthorized")

    msg = Message(request_id=req.id, content=content, sender_type=SENDER_CLIENT)
    db.session.add(msg)
    req.touch()
    commit_or_raise(f"add_client_reply({req.id})")

    token = ClientToken.query.filter_by(client_id=client.client_id).first()
    dispatch(notify_client_reply, client.client_name, req.request_type, req.status, content,
             token.client_email if token else None)
    return msg


# ---------------------------
# Listings
# ---------------------------

def list_client_requests(client_id: str) -> list[SupportRequest]:
    return (SupportRequest.query
            .filter_by(client_id=client_id)
            .order_by(SupportRequest.created_at.desc(), SupportRequest.id.desc())
            .all())


def list_admin_requests(client_id=None, request_type=None, status=None) -> list[SupportRequest]:
    qry = SupportRequest.query
    if client_id:
        qry = qry.filter(SupportRequest.client_id == client_id)
    if request_type:
        qry = qry.filter(SupportRequest.request_type == request_type)
    if status:
        qry = qry.filter(SupportRequest.status == status)
    return qry.order_by(SupportRequest.created_at.desc(), SupportRequest.id.desc()).all()


def status_counts() -> dict:
    rows = (db.session.query(SupportRequest.status, func.count(SupportRequest.id))
            .group_by(SupportRequest.status)
            .all())
    by_status = dict(rows)
    return {
        STATUS_NEW: by_status.get(STATUS_NEW, 0),
        STATUS_IN_PROGRESS: by_status.get(STATUS_IN_PROGRESS, 0),
    }


def get_request_thread(request_id, client_id: Optional[str] = None) -> list[Message]:
    """Messages of a request in creation order; ``client_id`` enforces ownership."""
    req = _get_request(request_id)
    if client_id is not None and req.client_id != client_id:
        raise Forbidden("Unauthorized")
    return list(req.messages)
