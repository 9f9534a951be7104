"""
Join requests: a bidder asks to join a company, a company admin decides.

The request and a `pending` membership are created together; the pending
membership makes the request visible on the roster without granting any
access. Approve and reject are compare-and-set on `status = pending`, so of
two concurrent decisions exactly one wins and the other gets
AlreadyResolved.
"""
import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..core.errors import AlreadyResolved, Conflict, NotFound
from ..core.permission import Permission, require_company_permission
from ..models.base import utcnow
from ..models.company import Membership
from ..models.join_requests import JoinRequest
from ..models.types import CompanyRole, JoinRequestStatus, NotificationType
from ..models.users import User
from .company_service import admin_ids, get_company_or_404
from .notification_service import NotificationEmitter, emit_safely, notification_service
from .transitions import compare_and_set, status_transition

logger = logging.getLogger(__name__)


def request_to_join(
    db: Session,
    principal: User,
    company_id: UUID,
    message: Optional[str] = None,
    now: Optional[datetime] = None,
    notifier: NotificationEmitter = None,
) -> JoinRequest:
    """
    Raises:
        NotFound: unknown company.
        Conflict: a pending request to this company already exists, or the
            principal already has a membership (active or pending).
    """
    now = now or utcnow()
    notifier = notifier or notification_service
    company = get_company_or_404(db, company_id)

    duplicate = db.exec(
        select(JoinRequest).where(
            JoinRequest.company_id == company_id,
            JoinRequest.user_id == principal.id,
            JoinRequest.status == JoinRequestStatus.PENDING
        )
    ).first()
    if duplicate:
        raise Conflict("You already have a pending request to join this company")

    if db.get(Membership, principal.id):
        raise Conflict("You already belong to a company. Please leave your current company first.")

    request = JoinRequest(
        company_id=company_id,
        user_id=principal.id,
        message=message,
        created_at=now,
    )
    db.add(request)
    db.add(Membership(
        user_id=principal.id,
        company_id=company_id,
        role=CompanyRole.PENDING,
        joined_at=now,
    ))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("You already belong to a company. Please leave your current company first.")

    db.refresh(request)
    logger.info(f"Join request {request.id} from {principal.id} to company {company_id}")

    emit_safely(
        notifier, NotificationType.JOIN_REQUEST_RECEIVED, admin_ids(db, company_id), request.id,
        {"company_id": str(company_id), "company_name": company.name, "user_id": str(principal.id)},
    )
    return request


def _load_for_decision(db: Session, company_admin: User, request_id: UUID) -> JoinRequest:
    request = db.get(JoinRequest, request_id)
    if not request:
        raise NotFound("Request not found")
    require_company_permission(db, company_admin, request.company_id, Permission.RESOLVE_JOIN_REQUESTS)
    if request.status != JoinRequestStatus.PENDING:
        raise AlreadyResolved(f"This request has already been {request.status.value}")
    return request


def approve_join_request(
    db: Session,
    company_admin: User,
    request_id: UUID,
    response_message: Optional[str] = None,
    now: Optional[datetime] = None,
    notifier: NotificationEmitter = None,
) -> JoinRequest:
    now = now or utcnow()
    notifier = notifier or notification_service
    request = _load_for_decision(db, company_admin, request_id)

    try:
        if not status_transition(
            db, JoinRequest, request.id, JoinRequestStatus.PENDING,
            status=JoinRequestStatus.APPROVED,
            response_message=response_message,
            resolved_by=company_admin.id,
            updated_at=now,
        ):
            raise AlreadyResolved("This request has already been resolved")

        promoted = compare_and_set(
            db, Membership,
            Membership.user_id == request.user_id,
            Membership.company_id == request.company_id,
            Membership.role == CompanyRole.PENDING,
            role=CompanyRole.MEMBER,
            joined_at=now,
        )
        if not promoted:
            raise Conflict("The requester's pending membership no longer exists")
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(request)
    logger.info(f"Join request {request.id} approved by {company_admin.id}")
    emit_safely(
        notifier, NotificationType.JOIN_REQUEST_APPROVED, [request.user_id], request.id,
        {"company_id": str(request.company_id)},
    )
    return request


def reject_join_request(
    db: Session,
    company_admin: User,
    request_id: UUID,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
    notifier: NotificationEmitter = None,
) -> JoinRequest:
    now = now or utcnow()
    notifier = notifier or notification_service
    request = _load_for_decision(db, company_admin, request_id)

    try:
        if not status_transition(
            db, JoinRequest, request.id, JoinRequestStatus.PENDING,
            status=JoinRequestStatus.REJECTED,
            response_message=reason,
            resolved_by=company_admin.id,
            updated_at=now,
        ):
            raise AlreadyResolved("This request has already been resolved")

        db.exec(
            delete(Membership)
            .where(
                Membership.user_id == request.user_id,
                Membership.company_id == request.company_id,
                Membership.role == CompanyRole.PENDING
            )
            .execution_options(synchronize_session="fetch")
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(request)
    logger.info(f"Join request {request.id} rejected by {company_admin.id}")
    emit_safely(
        notifier, NotificationType.JOIN_REQUEST_REJECTED, [request.user_id], request.id,
        {"company_id": str(request.company_id), "reason": reason},
    )
    return request


def list_join_requests(
    db: Session,
    company_admin: User,
    company_id: UUID,
    status: Optional[JoinRequestStatus] = JoinRequestStatus.PENDING,
) -> List[JoinRequest]:
    get_company_or_404(db, company_id)
    require_company_permission(db, company_admin, company_id, Permission.RESOLVE_JOIN_REQUESTS)

    query = select(JoinRequest).where(JoinRequest.company_id == company_id)
    if status:
        query = query.where(JoinRequest.status == status)
    return list(db.exec(query.order_by(JoinRequest.created_at)).all())
