from datetime import timedelta

import pytest

from conftest import add_member, make_user
from rfp_portal.core.errors import (
    AlreadyResolved, Conflict, EmailMismatch, Expired, InvalidRequest, NotFound, PermissionDenied
)
from rfp_portal.models import (
    CompanyRole, Invitation, InvitationStatus, JoinRequestStatus, Membership, NotificationType
)
from rfp_portal.services import company_service, invitation_service, join_request_service
from rfp_portal.services.invitation_service import SUPERSEDED_BY_INVITATION


@pytest.fixture
def invitation(session, company, alice, now, notifier):
    return invitation_service.issue_invitation(
        session, alice, company.id, "Bob@Acme.com ", now=now, notifier=notifier
    )


def test_issue_normalizes_email_and_sets_deadline(invitation, now):
    assert invitation.email == "bob@acme.com"
    assert invitation.status == InvitationStatus.PENDING
    assert invitation.expires_at == now + timedelta(days=7)
    assert len(invitation.token) >= 32


def test_issue_notifies_registered_invitee(session, company, alice, bob, now, notifier):
    invitation = invitation_service.issue_invitation(
        session, alice, company.id, bob.email, now=now, notifier=notifier
    )
    assert notifier.events == [(
        NotificationType.INVITATION_ISSUED, bob.id, invitation.id,
        {"company_id": str(company.id), "role": "member"},
    )]


def test_only_admins_issue(session, company, bob, now):
    add_member(session, company, bob)
    with pytest.raises(PermissionDenied):
        invitation_service.issue_invitation(session, bob, company.id, "x@acme.com", now=now)


def test_pending_role_cannot_be_granted(session, company, alice, now):
    with pytest.raises(InvalidRequest):
        invitation_service.issue_invitation(
            session, alice, company.id, "x@acme.com", role=CompanyRole.PENDING, now=now
        )


def test_duplicate_pending_invitation_conflicts(session, company, alice, invitation, now):
    with pytest.raises(Conflict):
        invitation_service.issue_invitation(session, alice, company.id, "bob@acme.com", now=now)


def test_reissue_after_expiry(session, company, alice, invitation, now):
    later = now + timedelta(days=8)
    fresh = invitation_service.issue_invitation(session, alice, company.id, "bob@acme.com", now=later)

    session.refresh(invitation)
    assert invitation.status == InvitationStatus.EXPIRED
    assert fresh.status == InvitationStatus.PENDING


def test_inviting_existing_member_conflicts(session, company, alice, bob, now):
    add_member(session, company, bob)
    with pytest.raises(Conflict):
        invitation_service.issue_invitation(session, alice, company.id, bob.email, now=now)


def test_redeem_creates_membership(session, company, bob, invitation, now):
    result = invitation_service.redeem_invitation(session, invitation.token, bob, now=now + timedelta(hours=1))

    assert result.company_id == company.id
    assert result.company_name == "Acme Corp"
    assert result.role == CompanyRole.MEMBER
    assert result.already_accepted is False
    membership = session.get(Membership, bob.id)
    assert membership.company_id == company.id
    assert membership.role == CompanyRole.MEMBER
    session.refresh(invitation)
    assert invitation.status == InvitationStatus.ACCEPTED
    assert invitation.accepted_by == bob.id


def test_redeem_twice_is_idempotent(session, bob, invitation, now):
    first = invitation_service.redeem_invitation(session, invitation.token, bob, now=now)
    second = invitation_service.redeem_invitation(session, invitation.token, bob, now=now + timedelta(minutes=5))

    assert second.already_accepted is True
    assert second.accepted_at == first.accepted_at
    assert second.invitation_id == first.invitation_id


def test_redeem_by_wrong_identity(session, carol, invitation, now):
    with pytest.raises(EmailMismatch):
        invitation_service.redeem_invitation(session, invitation.token, carol, now=now)
    session.refresh(invitation)
    assert invitation.status == InvitationStatus.PENDING


def test_email_check_precedes_status(session, bob, carol, invitation, now):
    invitation_service.redeem_invitation(session, invitation.token, bob, now=now)
    with pytest.raises(EmailMismatch):
        invitation_service.redeem_invitation(session, invitation.token, carol, now=now)


def test_unknown_token(session, bob, now):
    with pytest.raises(NotFound):
        invitation_service.redeem_invitation(session, "no-such-token", bob, now=now)


def test_redeem_after_deadline_marks_expired(session, bob, invitation, now):
    with pytest.raises(Expired):
        invitation_service.redeem_invitation(session, invitation.token, bob, now=invitation.expires_at)

    session.refresh(invitation)
    assert invitation.status == InvitationStatus.EXPIRED
    assert session.get(Membership, bob.id) is None

    with pytest.raises(Expired):
        invitation_service.redeem_invitation(session, invitation.token, bob, now=now)


def test_declined_invitation_cannot_be_redeemed(session, bob, invitation, now):
    invitation_service.decline_invitation(session, invitation.token, bob, now=now)
    with pytest.raises(NotFound):
        invitation_service.redeem_invitation(session, invitation.token, bob, now=now)


def test_active_member_elsewhere_cannot_redeem(session, other_company, bob, invitation, now):
    add_member(session, other_company, bob)
    with pytest.raises(Conflict):
        invitation_service.redeem_invitation(session, invitation.token, bob, now=now)
    session.refresh(invitation)
    assert invitation.status == InvitationStatus.PENDING


def test_invitation_supersedes_pending_join_requests(session, company, other_company, alice, now, notifier):
    dave = make_user(session, "dave@acme.com")
    elsewhere = join_request_service.request_to_join(session, dave, other_company.id, now=now, notifier=notifier)

    invitation = invitation_service.issue_invitation(
        session, alice, company.id, dave.email, role=CompanyRole.ADMIN, now=now, notifier=notifier
    )
    invitation_service.redeem_invitation(session, invitation.token, dave, now=now)

    session.refresh(elsewhere)
    assert elsewhere.status == JoinRequestStatus.REJECTED
    assert elsewhere.response_message == SUPERSEDED_BY_INVITATION
    membership = session.get(Membership, dave.id)
    assert membership.company_id == company.id
    assert membership.role == CompanyRole.ADMIN


def test_invitation_approves_pending_request_to_same_company(session, company, alice, now):
    dave = make_user(session, "dave@acme.com")
    request = join_request_service.request_to_join(session, dave, company.id, now=now)
    invitation = invitation_service.issue_invitation(session, alice, company.id, dave.email, now=now)

    invitation_service.redeem_invitation(session, invitation.token, dave, now=now)

    session.refresh(request)
    assert request.status == JoinRequestStatus.APPROVED
    assert session.get(Membership, dave.id).role == CompanyRole.MEMBER


def test_redeeming_never_downgrades_an_admin(session, company, alice, bob, invitation, now):
    add_member(session, company, bob, CompanyRole.ADMIN)
    company_service.leave_company(session, alice)

    invitation_service.redeem_invitation(session, invitation.token, bob, now=now)

    assert session.get(Membership, bob.id).role == CompanyRole.ADMIN
    assert company_service.admin_ids(session, company.id) == [bob.id]


def test_cancel_invitation(session, alice, bob, invitation, now):
    cancelled = invitation_service.cancel_invitation(session, alice, invitation.id, now=now)
    assert cancelled.status == InvitationStatus.REJECTED

    with pytest.raises(AlreadyResolved):
        invitation_service.cancel_invitation(session, alice, invitation.id, now=now)


def test_listing_expires_stale_invitations(session, company, alice, bob, invitation, now):
    assert [i.id for i in invitation_service.list_invitations_for(session, bob, now=now)] == [invitation.id]

    later = now + timedelta(days=30)
    assert invitation_service.list_invitations_for(session, bob, now=later) == []

    listed = invitation_service.list_company_invitations(session, alice, company.id, now=later)
    assert [i.status for i in listed] == [InvitationStatus.EXPIRED]


def test_expiry_marking_is_idempotent(session, invitation, now):
    later = now + timedelta(days=30)
    assert invitation_service.expire_stale_invitations(session, later) == 1
    assert invitation_service.expire_stale_invitations(session, later) == 0
    session.commit()
    assert session.get(Invitation, invitation.id).status == InvitationStatus.EXPIRED
