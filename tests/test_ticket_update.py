import pytest

from supportdesk.errors import InternalError, NotFound, ValidationError
from supportdesk.extensions import db
from supportdesk.models import Message, SupportRequest
from supportdesk.services import ticket_service
from supportdesk.services.ticket_service import update_ticket

from conftest import ADMIN_PASSWORD


def _admin_messages(req_id):
    return Message.query.filter_by(request_id=req_id, sender_type="admin").all()


# =============================================================================
# STATE CHANGES
# =============================================================================

def test_note_on_new_request_moves_it_to_in_progress(acme, make_request, sent):
    req = make_request(status="new")

    updated = update_ticket(req.id, note_content="x")

    assert updated.status == "in_progress"
    assert updated.internal_notes == "x"
    messages = _admin_messages(req.id)
    assert [m.content for m in messages] == ["x"]


def test_note_on_in_progress_request_keeps_status(acme, make_request, sent):
    req = make_request(status="in_progress")

    updated = update_ticket(req.id, note_content="y")

    assert updated.status == "in_progress"
    assert updated.internal_notes == "y"


def test_note_is_trimmed_and_blank_note_is_ignored(acme, make_request, sent):
    req = make_request(status="new", internal_notes="keep me")

    updated = update_ticket(req.id, note_content="   ")

    assert updated.status == "new"
    assert updated.internal_notes == "keep me"
    assert _admin_messages(req.id) == []
    assert sent == []

    updated = update_ticket(req.id, note_content="  padded  ")
    assert updated.internal_notes == "padded"


def test_note_overwrites_legacy_field_and_appends_to_thread(acme, make_request, sent):
    req = make_request(status="in_progress")

    update_ticket(req.id, note_content="first")
    update_ticket(req.id, note_content="second")

    assert db.session.get(SupportRequest, req.id).internal_notes == "second"
    assert [m.content for m in _admin_messages(req.id)] == ["first", "second"]


def test_explicit_status_wins_over_auto_transition(acme, make_request, sent):
    req = make_request(status="new")

    updated = update_ticket(req.id, new_status="resolved", note_content="fixed")

    assert updated.status == "resolved"


def test_explicit_new_does_not_suppress_auto_transition(acme, make_request, sent):
    req = make_request(status="new")

    updated = update_ticket(req.id, new_status="new", note_content="looking into it")

    assert updated.status == "in_progress"


def test_admin_may_move_status_backwards(acme, make_request, sent):
    req = make_request(status="closed")

    updated = update_ticket(req.id, new_status="new")

    assert updated.status == "new"


def test_update_refreshes_updated_at_even_without_changes(acme, make_request, sent):
    req = make_request(status="resolved")
    before = req.updated_at

    updated = update_ticket(req.id)

    assert updated.status == "resolved"
    assert updated.updated_at >= before
    assert sent == []


def test_unknown_request_is_not_found(app):
    with pytest.raises(NotFound):
        update_ticket(9999, new_status="closed")


def test_unknown_status_is_rejected(acme, make_request):
    req = make_request()
    with pytest.raises(ValidationError):
        update_ticket(req.id, new_status="archived")


def test_storage_failure_becomes_internal_error(acme, make_request, monkeypatch, sent):
    req = make_request()

    def boom():
        from sqlalchemy.exc import OperationalError
        raise OperationalError("UPDATE support_request", {}, Exception("disk full"))

    monkeypatch.setattr(db.session, "commit", boom)
    with pytest.raises(InternalError):
        update_ticket(req.id, new_status="closed")
    assert sent == []


# =============================================================================
# NOTIFICATIONS
# =============================================================================

def test_status_only_change_sends_status_email(acme, make_request, sent):
    req = make_request(status="resolved")

    update_ticket(req.id, new_status="closed")

    assert len(sent) == 1
    email = sent[0]
    assert email["template"] == "status_changed"
    assert email["to"] == "ops@acme.example"
    assert email["old_status"] == "Resolved"
    assert email["new_status"] == "Closed"
    assert email["portal_url"] == "https://portal.example.com/support?token=acme_x7y8z9a1b2c3d4"


def test_status_and_note_send_only_the_note_email(acme, make_request, sent):
    req = make_request(status="in_progress")

    update_ticket(req.id, new_status="resolved", note_content="Deployed the fix.")

    assert len(sent) == 1
    assert sent[0]["template"] == "client_note"
    assert sent[0]["note"] == "Deployed the fix."
    assert sent[0]["portal_url"].endswith("?token=acme_x7y8z9a1b2c3d4")


def test_auto_transition_sends_only_the_note_email(acme, make_request, sent):
    req = make_request(status="new")

    update_ticket(req.id, note_content="On it")

    assert [e["template"] for e in sent] == ["client_note"]


def test_same_status_sends_nothing(acme, make_request, sent):
    req = make_request(status="in_progress")

    update_ticket(req.id, new_status="in_progress")

    assert sent == []


def test_client_without_email_is_never_notified(techstart, make_request, sent):
    req = make_request(client_id="techstart", status="new")

    updated = update_ticket(req.id, new_status="resolved", note_content="done")

    assert updated.status == "resolved"
    assert sent == []


def test_request_without_token_still_updates(make_request, sent):
    req = make_request(client_id="ghost", status="new")

    updated = update_ticket(req.id, note_content="orphaned")

    assert updated.status == "in_progress"
    assert sent == []


def test_failing_notification_does_not_fail_update(acme, make_request, monkeypatch):
    def broken(**kwargs):
        raise RuntimeError("smtp down")

    monkeypatch.setattr("supportdesk.services.support_notifications.send_email", broken)
    req = make_request(status="new")

    updated = update_ticket(req.id, note_content="still saved")

    assert updated.status == "in_progress"
    assert db.session.get(SupportRequest, req.id).internal_notes == "still saved"


def test_note_is_persisted_before_dispatch(acme, make_request, monkeypatch):
    seen = {}

    def spy(fn, *args, **kwargs):
        stored = db.session.get(SupportRequest, req.id)
        seen["notes"] = stored.internal_notes
        seen["messages"] = len(_admin_messages(req.id))

    monkeypatch.setattr(ticket_service, "dispatch", spy)
    req = make_request(status="new")

    update_ticket(req.id, note_content="persist first")

    assert seen == {"notes": "persist first", "messages": 1}


# =============================================================================
# HTTP
# =============================================================================

def test_patch_endpoint_runs_workflow(client, acme, make_request, sent):
    req = make_request(status="new")

    resp = client.patch(f"/api/support/requests/{req.id}",
                        json={"adminPassword": ADMIN_PASSWORD, "internalNotes": "Checking logs"})

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["request"]["status"] == "in_progress"
    assert body["request"]["internalNotes"] == "Checking logs"
    assert body["request"]["messages"][0]["senderType"] == "admin"


def test_patch_endpoint_rejects_bad_password(client, make_request):
    req = make_request()

    resp = client.patch(f"/api/support/requests/{req.id}",
                        json={"adminPassword": "nope", "status": "closed"})

    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Invalid admin password"}
    assert db.session.get(SupportRequest, req.id).status == "new"


def test_patch_endpoint_missing_request(client):
    resp = client.patch("/api/support/requests/424242",
                        json={"adminPassword": ADMIN_PASSWORD, "status": "closed"})

    assert resp.status_code == 404
    assert resp.get_json()["error"] == "Request not found"
