"""
Invitation manager.

An invitation binds an email to a company and a role through a single-use
token. Status moves `pending -> accepted | expired | rejected` and never
back. Expiry is observed lazily, whenever an invitation is redeemed or
listed; marking a row expired is an idempotent compare-and-set, so any
number of concurrent readers may do it.
"""
import logging
import secrets
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from sqlmodel import Session, select

from ..core.config import get_settings
from ..core.errors import (
    AlreadyResolved, Conflict, EmailMismatch, Expired, InvalidRequest, NotFound
)
from ..core.permission import Permission, require_company_permission
from ..models.base import utcnow
from ..models.company import Company, Membership
from ..models.invitations import Invitation
from ..models.join_requests import JoinRequest
from ..models.types import (
    CompanyRole, InvitationStatus, JoinRequestStatus, NotificationType
)
from ..models.users import User
from ..schemas.invitations import RedemptionResult
from .company_service import get_company_or_404
from .notification_service import NotificationEmitter, emit_safely, notification_service
from .transitions import compare_and_set, status_transition

logger = logging.getLogger(__name__)
settings = get_settings()

SUPERSEDED_BY_INVITATION = "Superseded by an accepted company invitation"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def expire_stale_invitations(db: Session, now: datetime, *conditions) -> int:
    """Mark pending invitations past their deadline as expired. Does not commit."""
    stale = db.exec(
        select(Invitation.id).where(
            Invitation.status == InvitationStatus.PENDING,
            Invitation.expires_at <= now,
            *conditions
        )
    ).all()
    expired = 0
    for invitation_id in stale:
        # A concurrent reader may have expired it already; that is fine.
        if status_transition(
            db, Invitation, invitation_id, InvitationStatus.PENDING,
            status=InvitationStatus.EXPIRED, updated_at=now
        ):
            expired += 1
    return expired


def issue_invitation(
    db: Session,
    company_admin: User,
    company_id: UUID,
    email: str,
    role: CompanyRole = CompanyRole.MEMBER,
    now: Optional[datetime] = None,
    notifier: NotificationEmitter = None,
) -> Invitation:
    """
    Invite `email` to join `company_id` with `role`.

    Raises:
        PermissionDenied: the caller is not an admin of that company.
        InvalidRequest: `role` is `pending` or the email is malformed.
        Conflict: the email already belongs to a member of the company, or a
            live pending invitation for it exists.
    """
    now = now or utcnow()
    notifier = notifier or notification_service

    get_company_or_404(db, company_id)
    require_company_permission(db, company_admin, company_id, Permission.INVITE_MEMBERS)

    if role == CompanyRole.PENDING:
        raise InvalidRequest("Invitations can only grant the admin or member role")
    email = normalize_email(email)
    if "@" not in email:
        raise InvalidRequest("A valid email address is required")

    existing_member = db.exec(
        select(Membership).join(User, Membership.user_id == User.id).where(
            User.email == email,
            Membership.company_id == company_id,
            Membership.role.in_([CompanyRole.ADMIN, CompanyRole.MEMBER])
        )
    ).first()
    if existing_member:
        raise Conflict("User is already a member of this company")

    expire_stale_invitations(
        db, now,
        Invitation.company_id == company_id,
        Invitation.email == email
    )
    existing_invitation = db.exec(
        select(Invitation).where(
            Invitation.company_id == company_id,
            Invitation.email == email,
            Invitation.status == InvitationStatus.PENDING
        )
    ).first()
    if existing_invitation:
        db.commit()
        raise Conflict("An invitation is already pending for this email")

    invitation = Invitation(
        company_id=company_id,
        email=email,
        role=role,
        token=secrets.token_urlsafe(32),
        inviter_id=company_admin.id,
        expires_at=now + timedelta(days=settings.INVITATION_EXPIRE_DAYS),
        created_at=now,
    )
    db.add(invitation)
    db.commit()
    db.refresh(invitation)
    logger.info(f"Invitation {invitation.id} issued for company {company_id} by {company_admin.id}")

    invitee = db.exec(select(User).where(User.email == email)).first()
    if invitee:
        emit_safely(
            notifier, NotificationType.INVITATION_ISSUED, [invitee.id], invitation.id,
            {"company_id": str(company_id), "role": role.value},
        )
    return invitation


def _result(db: Session, invitation: Invitation, already_accepted: bool) -> RedemptionResult:
    company = db.get(Company, invitation.company_id)
    return RedemptionResult(
        invitation_id=invitation.id,
        company_id=invitation.company_id,
        company_name=company.name if company else "",
        role=invitation.role,
        accepted_at=invitation.accepted_at,
        already_accepted=already_accepted,
    )


def _close_open_join_requests(db: Session, principal: User, company_id: UUID, now: datetime) -> None:
    """
    An accepted invitation takes precedence over the principal's own pending
    join requests: a request to the same company is approved, any other one
    is rejected as superseded.
    """
    open_requests = db.exec(
        select(JoinRequest).where(
            JoinRequest.user_id == principal.id,
            JoinRequest.status == JoinRequestStatus.PENDING
        )
    ).all()
    for request in open_requests:
        target = (
            JoinRequestStatus.APPROVED if request.company_id == company_id
            else JoinRequestStatus.REJECTED
        )
        status_transition(
            db, JoinRequest, request.id, JoinRequestStatus.PENDING,
            status=target,
            response_message=SUPERSEDED_BY_INVITATION,
            updated_at=now,
        )


def redeem_invitation(
    db: Session,
    token: str,
    principal: User,
    now: Optional[datetime] = None,
) -> RedemptionResult:
    """
    Accept the invitation carrying `token` on behalf of `principal`.

    Redeeming an invitation this principal already accepted returns the same
    result again, so duplicate submissions are harmless.

    Raises:
        NotFound: no invitation carries the token, or it was rejected.
        EmailMismatch: the invitation was addressed to another email.
        Expired: the deadline has passed (the row is marked expired).
        Conflict: the principal is an active member of another company.
        AlreadyResolved: a concurrent request resolved it differently.
    """
    now = now or utcnow()

    invitation = db.exec(select(Invitation).where(Invitation.token == token)).first()
    if not invitation:
        raise NotFound("Invalid invitation token")

    if normalize_email(principal.email) != normalize_email(invitation.email):
        logger.warning(f"Invitation {invitation.id} redeemed by wrong identity {principal.id}")
        raise EmailMismatch("This invitation was sent to a different email address")

    if invitation.status == InvitationStatus.ACCEPTED:
        return _result(db, invitation, already_accepted=True)
    if invitation.status == InvitationStatus.EXPIRED:
        raise Expired("This invitation has expired")
    if invitation.status == InvitationStatus.REJECTED:
        raise NotFound("Invalid invitation token")

    if invitation.is_past_deadline(now):
        status_transition(
            db, Invitation, invitation.id, InvitationStatus.PENDING,
            status=InvitationStatus.EXPIRED, updated_at=now
        )
        db.commit()
        raise Expired("This invitation has expired")

    membership = db.get(Membership, principal.id)
    if membership and membership.is_active and membership.company_id != invitation.company_id:
        raise Conflict("You already belong to another company. Leave it before accepting.")

    try:
        won = status_transition(
            db, Invitation, invitation.id, InvitationStatus.PENDING,
            status=InvitationStatus.ACCEPTED,
            accepted_by=principal.id,
            accepted_at=now,
            updated_at=now,
        )
        if not won:
            db.rollback()
            db.refresh(invitation)
            if (
                invitation.status == InvitationStatus.ACCEPTED
                and invitation.accepted_by == principal.id
            ):
                return _result(db, invitation, already_accepted=True)
            raise AlreadyResolved(f"This invitation has already been {invitation.status.value}")

        if membership is None:
            db.add(Membership(
                user_id=principal.id,
                company_id=invitation.company_id,
                role=invitation.role,
                joined_at=now,
            ))
        else:
            # Overwrites a pending join-request membership, or updates the
            # role of an existing member of the same company. An admin is
            # never downgraded, so a company always keeps its admins.
            role = invitation.role
            if membership.company_id == invitation.company_id and membership.role == CompanyRole.ADMIN:
                role = CompanyRole.ADMIN
            compare_and_set(
                db, Membership,
                Membership.user_id == principal.id,
                company_id=invitation.company_id,
                role=role,
                joined_at=now,
            )
        _close_open_join_requests(db, principal, invitation.company_id, now)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(invitation)
    logger.info(f"Invitation {invitation.id} accepted by {principal.id}")
    return _result(db, invitation, already_accepted=False)


def decline_invitation(db: Session, token: str, principal: User, now: Optional[datetime] = None) -> Invitation:
    now = now or utcnow()
    invitation = db.exec(select(Invitation).where(Invitation.token == token)).first()
    if not invitation:
        raise NotFound("Invalid invitation token")
    if normalize_email(principal.email) != normalize_email(invitation.email):
        raise EmailMismatch("This invitation was sent to a different email address")

    if not status_transition(
        db, Invitation, invitation.id, InvitationStatus.PENDING,
        status=InvitationStatus.REJECTED, updated_at=now
    ):
        db.rollback()
        raise AlreadyResolved(f"This invitation has already been {invitation.status.value}")
    db.commit()
    db.refresh(invitation)
    logger.info(f"Invitation {invitation.id} declined by {principal.id}")
    return invitation


def cancel_invitation(db: Session, company_admin: User, invitation_id: UUID, now: Optional[datetime] = None) -> Invitation:
    now = now or utcnow()
    invitation = db.get(Invitation, invitation_id)
    if not invitation:
        raise NotFound("Invitation not found")
    require_company_permission(db, company_admin, invitation.company_id, Permission.INVITE_MEMBERS)

    if not status_transition(
        db, Invitation, invitation.id, InvitationStatus.PENDING,
        status=InvitationStatus.REJECTED, updated_at=now
    ):
        db.rollback()
        raise AlreadyResolved(f"This invitation has already been {invitation.status.value}")
    db.commit()
    db.refresh(invitation)
    logger.info(f"Invitation {invitation.id} cancelled by {company_admin.id}")
    return invitation


def list_company_invitations(
    db: Session,
    company_admin: User,
    company_id: UUID,
    status: Optional[InvitationStatus] = None,
    now: Optional[datetime] = None,
) -> List[Invitation]:
    now = now or utcnow()
    get_company_or_404(db, company_id)
    require_company_permission(db, company_admin, company_id, Permission.INVITE_MEMBERS)

    expire_stale_invitations(db, now, Invitation.company_id == company_id)
    db.commit()

    query = select(Invitation).where(Invitation.company_id == company_id)
    if status:
        query = query.where(Invitation.status == status)
    return list(db.exec(query.order_by(Invitation.created_at.desc())).all())


def list_invitations_for(db: Session, principal: User, now: Optional[datetime] = None) -> List[Invitation]:
    """Pending invitations addressed to the principal's email."""
    now = now or utcnow()
    email = normalize_email(principal.email)

    expire_stale_invitations(db, now, Invitation.email == email)
    db.commit()

    return list(db.exec(
        select(Invitation).where(
            Invitation.email == email,
            Invitation.status == InvitationStatus.PENDING
        ).order_by(Invitation.created_at.desc())
    ).all())
