# supportdesk/services/token_service.py
from __future__ import annotations

import logging
import re
from typing import Optional

from sqlalchemy import func

from ..errors import NotFound, ValidationError
from ..extensions import db
from ..models.support import SupportRequest
from ..models.token import ClientToken
from .auth_service import generate_token
from .ticket_service import commit_or_raise

log = logging.getLogger(__name__)

CLIENT_ID_RE = re.compile(r"^[a-z0-9_-]+$")


def request_count(client_id: str) -> int:
    return SupportRequest.query.filter_by(client_id=client_id).count()


def list_tokens() -> list[tuple[ClientToken, int]]:
    """All tokens, newest first, paired with their request counts."""
    counts = dict(
        db.session.query(SupportRequest.client_id, func.count(SupportRequest.id))
        .group_by(SupportRequest.client_id)
        .all()
    )
    tokens = ClientToken.query.order_by(ClientToken.created_at.desc(), ClientToken.id.desc()).all()
    return [(t, counts.get(t.client_id, 0)) for t in tokens]


def list_clients() -> list[dict]:
    rows = ClientToken.query.with_entities(ClientToken.client_id, ClientToken.client_name).all()
    return [{"clientId": cid, "clientName": name} for cid, name in rows]


def _get_token(token: Optional[str]) -> ClientToken:
    if not token:
        raise ValidationError("Token is required")
    row = ClientToken.query.filter_by(token=token).first()
    if row is None:
        raise NotFound("Token not found")
    return row


def create_token(client_id: Optional[str], client_name: Optional[str],
                 client_email: Optional[str] = None) -> ClientToken:
    client_id = (client_id or "").strip()
    client_name = (client_name or "").strip()
    if not client_id or not client_name:
        raise ValidationError("Client ID and name are required")
    if not CLIENT_ID_RE.match(client_id):
        raise ValidationError("Client ID must be lowercase alphanumeric (with optional underscores/hyphens)")
    if ClientToken.query.filter_by(client_id=client_id).first():
        raise ValidationError("A token for this client ID already exists")

    row = ClientToken(
        token=generate_token(client_id),
        client_id=client_id,
        client_name=client_name,
        client_email=(client_email or "").strip() or None,
    )
    db.session.add(row)
    commit_or_raise(f"create_token({client_id})")
    log.info("Created token for client %s", client_id)
    return row


def update_token(token: Optional[str], client_name: Optional[str] = None,
                 client_email: Optional[str] = None) -> ClientToken:
    """Change display name and/or e-mail; the client id never changes."""
    row = _get_token(token)
    if client_name is not None:
        client_name = client_name.strip()
        if not client_name:
            raise ValidationError("Client name cannot be empty")
        row.client_name = client_name
    if client_email is not None:
        row.client_email = client_email.strip() or None
    commit_or_raise(f"update_token({row.client_id})")
    return row


def delete_token(token: Optional[str]) -> None:
    row = _get_token(token)
    count = request_count(row.client_id)
    if count > 0:
        raise ValidationError(
            f"Cannot delete: {count} support request(s) are associated with this client"
        )
    client_id = row.client_id
    db.session.delete(row)
    commit_or_raise(f"delete_token({client_id})")
    log.info("Deleted token for client %s", client_id)
