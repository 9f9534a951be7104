"""
RFP registrations: a company declares interest in an RFP and a platform
admin approves it. An approved registration is what opens documents marked
`requires_approval` to the company's active members.
"""
import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..core.errors import AlreadyResolved, NotFound, PermissionDenied
from ..core.permission import (
    Permission, PlatformPermission, ROLE_PERMISSIONS, require_platform_permission
)
from ..models.base import utcnow
from ..models.rfp import RFP, RFPRegistration
from ..models.types import NotificationType, RegistrationStatus
from ..models.users import User
from ..schemas.documents import RegistrationRead
from .company_service import active_member_ids, get_active_membership
from .notification_service import NotificationEmitter, emit_safely, notification_service
from .transitions import status_transition

logger = logging.getLogger(__name__)


def _read(registration: RFPRegistration, is_duplicate: bool) -> RegistrationRead:
    return RegistrationRead(
        id=registration.id,
        rfp_id=registration.rfp_id,
        company_id=registration.company_id,
        user_id=registration.user_id,
        notes=registration.notes,
        status=registration.status,
        created_at=registration.created_at,
        is_duplicate=is_duplicate,
    )


def _existing(db: Session, rfp_id: UUID, company_id: UUID) -> Optional[RFPRegistration]:
    return db.exec(
        select(RFPRegistration).where(
            RFPRegistration.rfp_id == rfp_id,
            RFPRegistration.company_id == company_id
        )
    ).first()


def register_interest(
    db: Session,
    principal: User,
    rfp_id: UUID,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> RegistrationRead:
    """
    Register the principal's company for an RFP. Registering twice returns
    the existing registration flagged as a duplicate.
    """
    now = now or utcnow()
    if not db.get(RFP, rfp_id):
        raise NotFound("RFP not found")

    membership = get_active_membership(db, principal.id)
    if not membership or not ROLE_PERMISSIONS[membership.role] & Permission.REGISTER_INTEREST:
        raise PermissionDenied("You must be an active member of a company to register interest")

    existing = _existing(db, rfp_id, membership.company_id)
    if existing:
        return _read(existing, is_duplicate=True)

    registration = RFPRegistration(
        rfp_id=rfp_id,
        company_id=membership.company_id,
        user_id=principal.id,
        notes=notes,
        created_at=now,
    )
    db.add(registration)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = _existing(db, rfp_id, membership.company_id)
        if existing is None:
            raise
        return _read(existing, is_duplicate=True)

    db.refresh(registration)
    logger.info(f"Company {membership.company_id} registered for RFP {rfp_id} by {principal.id}")
    return _read(registration, is_duplicate=False)


def _resolve(
    db: Session,
    admin: User,
    registration_id: UUID,
    target: RegistrationStatus,
    notes: Optional[str],
    now: Optional[datetime],
    notifier: Optional[NotificationEmitter],
) -> RFPRegistration:
    now = now or utcnow()
    notifier = notifier or notification_service
    require_platform_permission(admin, PlatformPermission.REVIEW_REGISTRATIONS)

    registration = db.get(RFPRegistration, registration_id)
    if not registration:
        raise NotFound("Registration not found")

    values = dict(status=target, resolved_by=admin.id, resolved_at=now, updated_at=now)
    if notes is not None:
        values["notes"] = notes

    if not status_transition(db, RFPRegistration, registration.id, RegistrationStatus.PENDING, **values):
        db.rollback()
        db.refresh(registration)
        logger.warning(f"Registration {registration.id} already {registration.status.value}")
        raise AlreadyResolved(f"This registration has already been {registration.status.value}")
    db.commit()
    db.refresh(registration)
    logger.info(f"Registration {registration.id} {target.value} by {admin.id}")

    event = (
        NotificationType.REGISTRATION_APPROVED if target == RegistrationStatus.APPROVED
        else NotificationType.REGISTRATION_REJECTED
    )
    emit_safely(
        notifier, event, active_member_ids(db, registration.company_id), registration.id,
        {"rfp_id": str(registration.rfp_id), "company_id": str(registration.company_id), "notes": notes},
    )
    return registration


def approve_registration(
    db: Session,
    admin: User,
    registration_id: UUID,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
    notifier: NotificationEmitter = None,
) -> RFPRegistration:
    return _resolve(db, admin, registration_id, RegistrationStatus.APPROVED, notes, now, notifier)


def reject_registration(
    db: Session,
    admin: User,
    registration_id: UUID,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
    notifier: NotificationEmitter = None,
) -> RFPRegistration:
    return _resolve(db, admin, registration_id, RegistrationStatus.REJECTED, notes, now, notifier)


def list_registrations(
    db: Session,
    admin: User,
    status: Optional[RegistrationStatus] = RegistrationStatus.PENDING,
    rfp_id: Optional[UUID] = None,
) -> List[RFPRegistration]:
    require_platform_permission(admin, PlatformPermission.REVIEW_REGISTRATIONS)
    query = select(RFPRegistration)
    if status:
        query = query.where(RFPRegistration.status == status)
    if rfp_id:
        query = query.where(RFPRegistration.rfp_id == rfp_id)
    return list(db.exec(query.order_by(RFPRegistration.created_at)).all())
