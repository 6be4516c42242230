from flask import g, jsonify, request
from ...security import client_required, request_payload
from ...services.ticket_service import submit_request
from . import api_bp


@api_bp.route("/submit", methods=["POST"])
@client_required
def submit():
    data = request_payload()
    files = request.files.getlist("files")
    req, upload_errors = submit_request(
        g.client,
        data.get("requestType"),
        data.get("description"),
        files,
    )
    payload = {"success": True, "request": req.to_dict(include_notes=False)}
    if upload_errors:
        payload["uploadErrors"] = upload_errors
    return jsonify(payload), 201
