# supportdesk/models/support.py
from datetime import datetime
from ..extensions import db
from .token import _iso

STATUS_NEW = "new"
STATUS_IN_PROGRESS = "in_progress"
STATUS_RESOLVED = "resolved"
STATUS_CLOSED = "closed"
STATUSES = (STATUS_NEW, STATUS_IN_PROGRESS, STATUS_RESOLVED, STATUS_CLOSED)

STATUS_LABELS = {
    STATUS_NEW: "New",
    STATUS_IN_PROGRESS: "In Progress",
    STATUS_RESOLVED: "Resolved",
    STATUS_CLOSED: "Closed",
}

REQUEST_TYPES = (
    "Technical Issue",
    "Feature Request",
    "Billing Question",
    "General Inquiry",
    "Other",
)

SENDER_ADMIN = "admin"
SENDER_CLIENT = "client"


class SupportRequest(db.Model):
    __tablename__ = "support_request"

    id = db.Column(db.Integer, primary_key=True)
    # matches ClientToken.client_id by value (no FK: tokens are looked up separately)
    client_id = db.Column(db.String(64), nullable=False, index=True)

    request_type = db.Column(db.String(64), nullable=False, index=True)
    description = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=STATUS_NEW, index=True)  # new|in_progress|resolved|closed

    # legacy "latest note" snapshot; the thread lives in Message
    internal_notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    messages = db.relationship(
        "Message",
        backref="request",
        order_by="[Message.created_at, Message.id]",
        lazy="select",
    )
    images = db.relationship(
        "RequestImage",
        backref="request",
        order_by="RequestImage.id",
        lazy="select",
    )

    def touch(self):
        self.updated_at = datetime.utcnow()

    def to_dict(self, include_notes: bool = True, include_thread: bool = True) -> dict:
        data = {
            "id": self.id,
            "clientId": self.client_id,
            "requestType": self.request_type,
            "description": self.description,
            "status": self.status,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
        if include_notes:
            data["internalNotes"] = self.internal_notes
        if include_thread:
            data["messages"] = [m.to_dict() for m in self.messages]
            data["images"] = [i.to_dict() for i in self.images]
        return data


class Message(db.Model):
    __tablename__ = "support_message"

    id = db.Column(db.Integer, primary_key=True)
    request_id = db.Column(db.Integer, db.ForeignKey("support_request.id"), nullable=False, index=True)
    content = db.Column(db.Text, nullable=False)
    sender_type = db.Column(db.String(10), nullable=False)  # 'admin' | 'client'
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "requestId": self.request_id,
            "content": self.content,
            "senderType": self.sender_type,
            "createdAt": _iso(self.created_at),
        }


class RequestImage(db.Model):
    __tablename__ = "request_image"

    id = db.Column(db.Integer, primary_key=True)
    request_id = db.Column(db.Integer, db.ForeignKey("support_request.id"), nullable=False, index=True)
    image_url = db.Column(db.String(1024), nullable=False)
    filename = db.Column(db.String(255), nullable=False)
    size = db.Column(db.Integer, nullable=False)
    uploaded_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "requestId": self.request_id,
            "imageUrl": self.image_url,
            "filename": self.filename,
            "size": self.size,
            "uploadedAt": _iso(self.uploaded_at),
        }
