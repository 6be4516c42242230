from flask import jsonify, request
from ...errors import Unauthorized
from ...security import admin_required, request_admin_password, request_payload, request_token
from ...services.auth_service import validate_admin_password, validate_token
from ...services.ticket_service import (
    get_request_thread,
    list_admin_requests,
    list_client_requests,
    status_counts,
    update_ticket,
)
from ...services.token_service import list_clients
from . import api_bp


@api_bp.route("/requests", methods=["GET"])
def requests_list():
    admin_password = request.args.get("adminPassword") or request.headers.get("X-Admin-Password")
    if admin_password:
        if not validate_admin_password(admin_password):
            raise Unauthorized("Invalid admin password")
        reqs = list_admin_requests(
            client_id=(request.args.get("clientId") or "").strip() or None,
            request_type=(request.args.get("requestType") or "").strip() or None,
            status=(request.args.get("status") or "").strip() or None,
        )
        return jsonify({
            "requests": [r.to_dict() for r in reqs],
            "clients": list_clients(),
            "counts": status_counts(),
        })

    token = request_token()
    if token:
        client = validate_token(token)
        if client is None:
            raise Unauthorized("Invalid token")
        reqs = list_client_requests(client.client_id)
        return jsonify({
            "requests": [r.to_dict(include_notes=False) for r in reqs],
            "clientName": client.client_name,
        })

    raise Unauthorized("Authentication required")


@api_bp.route("/requests/<int:request_id>", methods=["PATCH"])
@admin_required
def requests_update(request_id):
    data = request_payload()
    req = update_ticket(request_id, data.get("status"), data.get("internalNotes"))
    return jsonify({"success": True, "request": req.to_dict()})


@api_bp.route("/requests/<int:request_id>/messages", methods=["GET"])
def requests_thread(request_id):
    # admin sees any thread; a client only its own
    admin_password = request_admin_password()
    if admin_password:
        if not validate_admin_password(admin_password):
            raise Unauthorized("Invalid admin password")
        messages = get_request_thread(request_id)
    else:
        client = validate_token(request_token())
        if client is None:
            raise Unauthorized("Authentication required")
        messages = get_request_thread(request_id, client_id=client.client_id)
    return jsonify({"messages": [m.to_dict() for m in messages]})
