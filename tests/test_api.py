from uuid import UUID

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, select

from conftest import add_member
from rfp_portal.core.database import get_session
from rfp_portal.core.security import create_access_token
from rfp_portal.main import app
from rfp_portal.models import Invitation, NotificationType
from rfp_portal.services.email_services import email_service
from rfp_portal.services.redis_service import redis_service


@pytest.fixture
def revoked(monkeypatch):
    tokens = set()
    monkeypatch.setattr(redis_service, "is_blacklisted", lambda token: token in tokens)
    return tokens


@pytest.fixture
def outbox(monkeypatch):
    sent = []
    monkeypatch.setattr(
        email_service, "_send_email",
        lambda to_email, subject, html_content: sent.append((to_email, subject, html_content))
    )
    return sent


@pytest.fixture
def client(engine, revoked, outbox):
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


def auth(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_missing_and_revoked_credentials(client, bob, revoked):
    response = client.get("/api/notifications")
    assert response.status_code == 401
    assert response.json()["code"] == "authentication_required"

    headers = auth(bob)
    revoked.add(headers["Authorization"].split()[1])
    assert client.get("/api/notifications", headers=headers).status_code == 401

    garbage = client.get("/api/notifications", headers={"Authorization": "Bearer nope"})
    assert garbage.status_code == 401


def test_anonymous_document_listing_and_download(client, rfp, documents):
    response = client.get(f"/api/documents/rfps/{rfp.id}")
    assert response.status_code == 200
    assert {d["reason"] for d in response.json()} == {"authentication_required"}
    assert not any(d["granted"] for d in response.json())

    download = client.get(f"/api/documents/{documents['public'].id}/download")
    assert download.status_code == 401
    assert download.json()["code"] == "authentication_required"


def test_download_denied_then_granted_after_signing(client, rfp, documents, carol):
    url = f"/api/documents/{documents['nda'].id}/download"
    denied = client.get(url, headers=auth(carol))
    assert denied.status_code == 403
    assert denied.json()["code"] == "nda_required"

    signed = client.post(
        f"/api/ndas/rfps/{rfp.id}/sign", json={"full_name": "Carol Consultant"}, headers=auth(carol)
    )
    assert signed.status_code == 200
    assert signed.json()["status"] == "signed"

    granted = client.get(url, headers=auth(carol))
    assert granted.status_code == 200
    assert "token=" in granted.json()["url"]


def test_blank_signature_name_is_unprocessable(client, rfp, carol):
    response = client.post(f"/api/ndas/rfps/{rfp.id}/sign", json={"full_name": " "}, headers=auth(carol))
    assert response.status_code == 422


def test_invitation_flow(client, session, company, alice, bob, carol, outbox):
    created = client.post(
        f"/api/invitations/company/{company.id}",
        json={"email": bob.email, "role": "member", "message": "Join us"},
        headers=auth(alice),
    )
    assert created.status_code == 201
    invitation = created.json()
    assert invitation["status"] == "pending"
    assert [to for to, _, _ in outbox] == [bob.email]
    assert "Join us" in outbox[0][2]

    mine = client.get("/api/invitations/me", headers=auth(bob)).json()
    assert [i["id"] for i in mine] == [invitation["id"]]

    # The token only travels by email.
    token = session.exec(select(Invitation.token).where(Invitation.id == UUID(invitation["id"]))).one()

    wrong = client.post("/api/invitations/accept", json={"token": token}, headers=auth(carol))
    assert wrong.status_code == 403
    assert wrong.json()["code"] == "email_mismatch"

    accepted = client.post("/api/invitations/accept", json={"token": token}, headers=auth(bob))
    assert accepted.status_code == 200
    assert accepted.json()["already_accepted"] is False

    again = client.post("/api/invitations/accept", json={"token": token}, headers=auth(bob))
    assert again.json()["already_accepted"] is True

    members = client.get(f"/api/companies/{company.id}/members", headers=auth(bob)).json()
    assert {m["email"] for m in members} == {alice.email, bob.email}


def test_join_request_double_decision(client, company, alice, bob):
    created = client.post("/api/join-requests", json={"company_id": str(company.id)}, headers=auth(bob))
    assert created.status_code == 201
    request_id = created.json()["id"]

    approve = client.post(f"/api/join-requests/{request_id}/approve", json={}, headers=auth(alice))
    assert approve.status_code == 200
    assert approve.json()["status"] == "approved"

    reject = client.post(f"/api/join-requests/{request_id}/reject", json={}, headers=auth(alice))
    assert reject.status_code == 409
    assert reject.json()["code"] == "already_resolved"


def test_member_cannot_see_join_requests(client, session, company, bob):
    add_member(session, company, bob)
    response = client.get(f"/api/join-requests/company/{company.id}", headers=auth(bob))
    assert response.status_code == 403
    assert response.json()["code"] == "permission_denied"


def test_countersign_flow_and_notifications(client, rfp, carol, reviewer):
    nda = client.post(f"/api/ndas/rfps/{rfp.id}/sign", json={"full_name": "Carol"}, headers=auth(carol)).json()

    queue = client.get("/api/ndas/review", headers=auth(reviewer)).json()
    assert [item["id"] for item in queue["items"]] == [nda["id"]]

    missing_reason = client.post(
        f"/api/ndas/{nda['id']}/countersign", json={"decision": "reject"}, headers=auth(reviewer)
    )
    assert missing_reason.status_code == 422
    assert missing_reason.json()["code"] == "invalid_request"

    rejected = client.post(
        f"/api/ndas/{nda['id']}/countersign",
        json={"decision": "reject", "reason": "Wrong entity name"},
        headers=auth(reviewer),
    )
    assert rejected.status_code == 200
    assert rejected.json()["status"] == "rejected"

    late = client.post(
        f"/api/ndas/{nda['id']}/countersign", json={"decision": "approve"}, headers=auth(reviewer)
    )
    assert late.status_code == 409
    assert late.json()["code"] == "invalid_state"

    notifications = client.get("/api/notifications?unread_only=true", headers=auth(carol)).json()
    assert [n["event_type"] for n in notifications] == [NotificationType.NDA_REJECTED.value]

    marked = client.post(
        "/api/notifications/read", json={"notification_ids": [notifications[0]["id"]]}, headers=auth(carol)
    )
    assert marked.json() == {"updated": 1}
    assert client.get("/api/notifications?unread_only=true", headers=auth(carol)).json() == []


def test_bidders_cannot_review(client, carol):
    response = client.get("/api/ndas/review", headers=auth(carol))
    assert response.status_code == 403


def test_company_search_and_creation(client, company, carol):
    found = client.get("/api/companies/search", params={"q": "acme"}, headers=auth(carol)).json()
    assert [c["name"] for c in found] == ["Acme Corp"]

    created = client.post("/api/companies", json={"name": "Carol Consulting"}, headers=auth(carol))
    assert created.status_code == 201

    second = client.post("/api/companies", json={"name": "Another"}, headers=auth(carol))
    assert second.status_code == 409

    mine = client.get("/api/companies/me", headers=auth(carol)).json()
    assert mine["company_name"] == "Carol Consulting"
    assert mine["role"] == "admin"
