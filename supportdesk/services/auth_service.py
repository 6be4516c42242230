# supportdesk/services/auth_service.py
from __future__ import annotations

import hmac
import logging
import secrets
from typing import NamedTuple, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..models.token import ClientToken

log = logging.getLogger(__name__)


class ClientInfo(NamedTuple):
    client_id: str
    client_name: str


def validate_token(token: Optional[str]) -> Optional[ClientInfo]:
    """Resolve a bearer token to its client, or None.

    Tokens are long-lived capabilities: no expiry, exact string match.
    """
    if not token:
        return None
    try:
        row = ClientToken.query.filter_by(token=token).first()
    except SQLAlchemyError as e:
        log.error("validate_token lookup failed: %s", e)
        return None
    if row is None:
        return None
    return ClientInfo(client_id=row.client_id, client_name=row.client_name)


def validate_admin_password(password: Optional[str]) -> bool:
    expected = current_app.config.get("ADMIN_PASSWORD")
    if not expected:
        log.warning("ADMIN_PASSWORD not configured")
        return False
    if not password:
        return False
    return hmac.compare_digest(str(password).encode(), str(expected).encode())


def generate_token(client_id: str) -> str:
    return f"{client_id}_{secrets.token_hex(8)}"
