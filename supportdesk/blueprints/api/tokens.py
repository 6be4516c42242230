from flask import jsonify, request
from ...security import admin_required, request_payload
from ...services.token_service import create_token, delete_token, list_tokens, update_token
from . import api_bp


@api_bp.route("/tokens", methods=["GET"])
@admin_required
def tokens_list():
    return jsonify({"tokens": [t.to_dict(request_count=n) for t, n in list_tokens()]})


@api_bp.route("/tokens", methods=["POST"])
@admin_required
def tokens_create():
    data = request_payload()
    row = create_token(data.get("clientId"), data.get("clientName"), data.get("clientEmail"))
    return jsonify({"success": True, "token": row.to_dict()}), 201


@api_bp.route("/tokens", methods=["PATCH"])
@admin_required
def tokens_update():
    data = request_payload()
    row = update_token(
        data.get("token") or request.args.get("token"),
        client_name=data.get("clientName"),
        client_email=data.get("clientEmail"),
    )
    return jsonify({"success": True, "token": row.to_dict()})


@api_bp.route("/tokens", methods=["DELETE"])
@admin_required
def tokens_delete():
    delete_token(request.args.get("token") or request_payload().get("token"))
    return jsonify({"success": True})
