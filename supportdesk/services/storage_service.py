# supportdesk/services/storage_service.py
from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import NamedTuple, Optional

from flask import current_app
from werkzeug.utils import secure_filename

log = logging.getLogger(__name__)

MAX_FILES = 5
MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB

ALLOWED_MIME_TYPES = {
    "image/png",
    "image/jpeg",
    "image/jpg",
    "image/gif",
    "image/webp",
}

# MZ (Windows PE), ELF, Mach-O (fat + 32/64-bit, both byte orders)
EXECUTABLE_HEADERS = (
    b"MZ",
    b"\x7fELF",
    b"\xca\xfe\xba\xbe",
    b"\xfe\xed\xfa\xce",
    b"\xfe\xed\xfa\xcf",
    b"\xce\xfa\xed\xfe",
    b"\xcf\xfa\xed\xfe",
)


class StorageError(Exception):
    pass


class StoredFile(NamedTuple):
    url: str
    filename: str
    size: int


def validate_image(data: bytes, filename: str, mimetype: Optional[str]) -> Optional[str]:
    """Return an error message for an unacceptable upload, else None."""
    if mimetype not in ALLOWED_MIME_TYPES:
        return f"File type not allowed: {mimetype}. Allowed types: PNG, JPEG, GIF, WebP"
    if not data:
        return "File is empty"
    if len(data) > MAX_FILE_SIZE:
        return f"File too large: {len(data) / 1024 / 1024:.2f}MB. Maximum size: 5MB"
    if data[:4].startswith(EXECUTABLE_HEADERS):
        return "File appears to be an executable and is not allowed"
    return None


def sanitize_filename(filename: str) -> str:
    safe = secure_filename(filename or "")[:100]
    return safe or "upload"


_stamp_lock = threading.Lock()
_last_stamp = 0


def _next_stamp() -> int:
    """Epoch milliseconds, strictly increasing within the process."""
    global _last_stamp
    with _stamp_lock:
        _last_stamp = max(int(time.time() * 1000), _last_stamp + 1)
        return _last_stamp


def object_key(request_id, filename: str, stamp: Optional[int] = None) -> str:
    """``{request_id}/{epoch_ms}_{sanitized}``"""
    if stamp is None:
        stamp = _next_stamp()
    return f"{request_id}/{stamp}_{sanitize_filename(filename)}"


class LocalStorage:
    """Writes under UPLOAD_FOLDER; files are served back from ``url_prefix``."""

    def __init__(self, base: Path, url_prefix: str = "/uploads"):
        self.base = Path(base)
        self.url_prefix = url_prefix.rstrip("/")

    def save(self, data: bytes, filename: str, mimetype: str, request_id) -> StoredFile:
        key = object_key(request_id, filename)
        try:
            (self.base / str(request_id)).mkdir(parents=True, exist_ok=True)
            # exclusive create; a key taken by another process gets a new stamp
            while True:
                try:
                    with open(self.base / key, "xb") as fh:
                        fh.write(data)
                    break
                except FileExistsError:
                    key = object_key(request_id, filename)
        except OSError as e:
            log.error("Local upload failed for %s: %s", key, e)
            raise StorageError("Failed to upload file to storage") from e
        return StoredFile(url=f"{self.url_prefix}/{key}", filename=filename, size=len(data))


class SupabaseStorage:
    def __init__(self, url: str, key: str, bucket: str):
        from supabase import create_client

        self.bucket = bucket
        self.client = create_client(url, key)

    def save(self, data: bytes, filename: str, mimetype: str, request_id) -> StoredFile:
        key = object_key(request_id, filename)
        try:
            bucket = self.client.storage.from_(self.bucket)
            bucket.upload(path=key, file=data, file_options={"content-type": mimetype})
            url = bucket.get_public_url(key)
        except Exception as e:
            log.error("Supabase upload failed for %s: %s", key, e)
            raise StorageError("Failed to upload file to storage") from e
        log.info("File uploaded to Supabase: %s", key)
        return StoredFile(url=url, filename=filename, size=len(data))


def build_store(app):
    """Pick the attachment backend once, from configuration."""
    url = app.config.get("SUPABASE_URL")
    key = app.config.get("SUPABASE_KEY")
    bucket = app.config.get("SUPABASE_BUCKET")
    if url and key and bucket:
        app.logger.info("Attachment storage: Supabase bucket %s", bucket)
        return SupabaseStorage(url, key, bucket)

    base = app.config.get("UPLOAD_FOLDER")
    base = (Path(base) if base else Path(app.instance_path) / "uploads").resolve()
    base.mkdir(parents=True, exist_ok=True)
    app.logger.info("Attachment storage not configured, using local folder %s", base)
    return LocalStorage(base)


def get_store():
    return current_app.extensions["attachment_store"]
