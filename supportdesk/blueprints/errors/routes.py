from flask import current_app, jsonify, request
from werkzeug.exceptions import HTTPException
from ...errors import SupportError, ValidationError
from ...extensions import db
from . import errors_bp

# Domain errors -> {"error": "..."} with their status code
@errors_bp.app_errorhandler(SupportError)
def err_support(e: SupportError):
    if e.status_code >= 500:
        try:
            db.session.rollback()
        except Exception:
            pass
    return jsonify(e.to_dict()), e.status_code

# 404 – unknown route
@errors_bp.app_errorhandler(404)
def err_404(e):
    return jsonify({"error": "Not found", "path": request.path}), 404

# 413 – Payload Too Large (useful for uploads)
@errors_bp.app_errorhandler(413)
def err_413(e):
    # a ticket submission over the body cap is a plain validation failure
    if request.endpoint == "api.submit":
        err = ValidationError("Upload too large")
        return jsonify(err.to_dict()), err.status_code
    return jsonify({"error": "Upload too large"}), 413

# Fallback for uncaught HTTPException
@errors_bp.app_errorhandler(HTTPException)
def err_http(e: HTTPException):
    return jsonify({"error": e.description or e.name}), e.code

# Last-resort: any other Exception
@errors_bp.app_errorhandler(Exception)
def err_unexpected(e):
    try:
        db.session.rollback()
    except Exception:
        pass
    current_app.logger.exception("Unhandled error on %s %s", request.method, request.path)
    # generic 500, traceback stays in the log
    return jsonify({"error": "Internal server error"}), 500
