# supportdesk/security.py
from functools import wraps

from flask import g, request

from .errors import Unauthorized
from .services.auth_service import validate_admin_password, validate_token


def request_payload() -> dict:
    if request.is_json:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}
    return request.form


def request_token():
    """Client token from the Authorization header, the body, or the query string."""
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip()
    return request_payload().get("token") or request.args.get("token")


def request_admin_password():
    return (
        request.headers.get("X-Admin-Password")
        or request_payload().get("adminPassword")
        or request.args.get("adminPassword")
    )


def client_required(view):
    """Resolve the caller's token into ``g.client`` or fail with 401."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        token = request_token()
        if not token:
            raise Unauthorized("Token is required")
        info = validate_token(token)
        if info is None:
            raise Unauthorized("Invalid token")
        g.client = info
        return view(*args, **kwargs)
    return wrapped


def admin_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not validate_admin_password(request_admin_password()):
            raise Unauthorized("Invalid admin password")
        return view(*args, **kwargs)
    return wrapped
