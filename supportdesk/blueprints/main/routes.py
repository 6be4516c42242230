import json
from datetime import datetime
from flask import abort, current_app, jsonify, request, send_from_directory
from ...extensions import db
from ...services.storage_service import LocalStorage, get_store
from . import main_bp


# ---- Tiny JSON health route (DB ping + version) ----
@main_bp.route("/status")
def status():
    ok_db = True
    try:
        db.session.execute(db.text("SELECT 1"))
    except Exception as e:
        current_app.logger.error(f"DB health failed: {e}")
        ok_db = False

    store = get_store()
    payload = {
        "service": "supportdesk",
        "version": current_app.config.get("APP_VERSION"),
        "time_utc": datetime.utcnow().isoformat() + "Z",
        "checks": {
            "database": "ok" if ok_db else "fail",
            "storage": "local" if isinstance(store, LocalStorage) else "supabase",
            "mail": "configured" if "mail" in current_app.extensions else "disabled",
        },
    }
    code = 200 if ok_db else 503

    # ?pretty=1 -> pretty JSON
    if request.args.get("pretty"):
        return current_app.response_class(
            json.dumps(payload, indent=2) + "\n",
            mimetype="application/json"
        ), code
    return jsonify(payload), code


# Attachments written by the local storage fallback
@main_bp.route("/uploads/<path:key>")
def uploads(key):
    store = get_store()
    if not isinstance(store, LocalStorage):
        abort(404)
    return send_from_directory(store.base, key)
