"""
Shared fixtures: an app on in-memory SQLite, seeded client tokens, and a
recorder standing in for the notification e-mail sender.
"""
import io

import pytest

from supportdesk import create_app
from supportdesk.config import Config
from supportdesk.extensions import db
from supportdesk.models import ClientToken, SupportRequest


ADMIN_PASSWORD = "admin-secret"


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    ADMIN_PASSWORD = ADMIN_PASSWORD
    NOTIFICATION_EMAIL = "support-team@example.com"
    PORTAL_BASE_URL = "https://portal.example.com/support"
    NOTIFY_ASYNC = False
    MAIL_SERVER = None
    SUPABASE_URL = None
    SUPABASE_KEY = None
    SUPABASE_BUCKET = None
    LOG_DIR = ""
    LOG_JSON = False
    SENTRY_DSN = ""


@pytest.fixture
def app(tmp_path):
    config = type("Cfg", (TestingConfig,), {"UPLOAD_FOLDER": str(tmp_path / "uploads")})
    app = create_app(config)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def acme(app):
    """Client with an e-mail on file."""
    row = ClientToken(token="acme_x7y8z9a1b2c3d4", client_id="acme",
                      client_name="Acme Corporation", client_email="ops@acme.example")
    db.session.add(row)
    db.session.commit()
    return row


@pytest.fixture
def techstart(app):
    """Client without an e-mail: never notified."""
    row = ClientToken(token="techstart_m3n4o5p6q7r8", client_id="techstart",
                      client_name="TechStart Inc")
    db.session.add(row)
    db.session.commit()
    return row


@pytest.fixture
def sent(monkeypatch):
    """Every e-mail the notification layer tries to send, as kwargs dicts."""
    outbox = []

    def fake_send_email(**kwargs):
        outbox.append(kwargs)
        return True

    monkeypatch.setattr("supportdesk.services.support_notifications.send_email", fake_send_email)
    return outbox


@pytest.fixture
def make_request(app):
    def _make(client_id="acme", status="new", request_type="Technical Issue",
              description="Login page returns 500", internal_notes=None):
        req = SupportRequest(client_id=client_id, status=status, request_type=request_type,
                             description=description, internal_notes=internal_notes)
        db.session.add(req)
        db.session.commit()
        return req
    return _make


def png_bytes(size: int) -> bytes:
    header = b"\x89PNG\r\n\x1a\n"
    return header + b"\0" * (size - len(header))


@pytest.fixture
def png():
    def _png(size=1024, name="screenshot.png", mimetype="image/png"):
        return (io.BytesIO(png_bytes(size)), name, mimetype)
    return _png
