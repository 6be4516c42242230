from flask import jsonify
from ...errors import Unauthorized, ValidationError
from ...security import request_payload, request_token
from ...services.auth_service import validate_token
from ...services.ticket_service import add_client_reply
from . import api_bp


@api_bp.route("/messages", methods=["POST"])
def messages_create():
    data = request_payload()
    token = request_token()
    request_id = data.get("requestId")
    content = str(data.get("content") or "").strip()
    # missing fields are a 400 even before the token is checked
    if not token or not request_id or not content:
        raise ValidationError("Token, request ID, and content are required")

    client = validate_token(token)
    if client is None:
        raise Unauthorized("Invalid token")

    msg = add_client_reply(client, request_id, content)
    return jsonify({"success": True, "message": msg.to_dict()}), 201
