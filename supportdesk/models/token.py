# supportdesk/models/token.py
from datetime import datetime
from ..extensions import db


class ClientToken(db.Model):
    __tablename__ = "client_token"

    id = db.Column(db.Integer, primary_key=True)
    token = db.Column(db.String(128), unique=True, nullable=False, index=True)

    # stable slug, never reused; requests reference it by value
    client_id = db.Column(db.String(64), unique=True, nullable=False, index=True)
    client_name = db.Column(db.String(120), nullable=False)
    client_email = db.Column(db.String(255))  # optional, enables notifications

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    def to_dict(self, request_count: int | None = None) -> dict:
        data = {
            "id": self.id,
            "token": self.token,
            "clientId": self.client_id,
            "clientName": self.client_name,
            "clientEmail": self.client_email,
            "createdAt": _iso(self.created_at),
        }
        if request_count is not None:
            data["requestCount"] = request_count
        return data


def _iso(dt):
    return dt.isoformat() + "Z" if dt else None
