"""
NDA ledger.

Records are keyed by (rfp, user) for individual signatures and by
(rfp, company) for company signatures; re-signing updates the existing row.
An individual re-signature keeps the record's status; a company one reopens
review.
A countersigner moves a `signed` record to `approved` or `rejected`.

Access consequences live in the entitlement resolver, not here: an
individual record grants access as soon as it is `signed`, while a company
record only reaches its members once `approved`.
"""
import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..core.errors import InvalidRequest, InvalidState, NotFound
from ..core.permission import (
    Permission, PlatformPermission, require_company_permission, require_platform_permission
)
from ..models.base import utcnow
from ..models.company import Membership
from ..models.nda import NDARecord, NDAAuditEntry
from ..models.rfp import RFP
from ..models.types import (
    NDAAuditAction, NDADecision, NDAScope, NDAStatus, NotificationType
)
from ..models.users import User
from ..schemas.nda import NDASignature, NDAStatusResponse, NDARead
from .company_service import active_member_ids, get_company_or_404
from .notification_service import NotificationEmitter, emit_safely, notification_service
from .transitions import status_transition

logger = logging.getLogger(__name__)


def _get_rfp_or_404(db: Session, rfp_id: UUID) -> RFP:
    rfp = db.get(RFP, rfp_id)
    if not rfp:
        raise NotFound("RFP not found")
    return rfp


def _audit(db: Session, nda_id: UUID, action: NDAAuditAction, actor: User, now: datetime, **details):
    db.add(NDAAuditEntry(
        nda_id=nda_id,
        action=action,
        created_by=actor.id,
        details={k: v for k, v in details.items() if v is not None},
        created_at=now,
    ))


def _apply_signature(record: NDARecord, signer: User, signature: NDASignature, now: datetime, reopen_review: bool):
    record.signed_by = signer.id
    record.full_name = signature.full_name
    record.title = signature.title
    record.signature_data = dict(signature.signature_data or {})
    record.signed_at = now
    record.updated_at = now
    if not reopen_review:
        return
    record.status = NDAStatus.SIGNED
    record.countersigned_at = None
    record.countersigned_by = None
    record.countersigner_name = None
    record.countersigner_title = None
    record.rejection_by = None
    record.rejection_reason = None
    record.rejected_at = None


def _upsert_signature(db: Session, scope_filter, new_record, signer: User, signature: NDASignature, now: datetime,
                      reopen_review: bool) -> NDARecord:
    """
    Sign or re-sign the record matching `scope_filter`. A concurrent first
    signature trips the unique constraint; the loser re-reads and updates.

    With `reopen_review` the record goes back to `signed` and any earlier
    countersignature or rejection is cleared. Without it a re-signature only
    refreshes the signature fields and a decided record keeps its status.
    """
    for attempt in range(2):
        record = db.exec(select(NDARecord).where(*scope_filter)).first()
        if record is None:
            record = new_record()
            db.add(record)
        _apply_signature(record, signer, signature, now, reopen_review)
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            if attempt:
                raise
            continue
        _audit(db, record.id, NDAAuditAction.SIGNED, signer, now,
               full_name=signature.full_name, title=signature.title, scope=record.scope.value)
        db.commit()
        db.refresh(record)
        return record


def sign_individual(
    db: Session,
    principal: User,
    rfp_id: UUID,
    signature: NDASignature,
    now: Optional[datetime] = None,
) -> NDARecord:
    now = now or utcnow()
    _get_rfp_or_404(db, rfp_id)

    record = _upsert_signature(
        db,
        (NDARecord.rfp_id == rfp_id, NDARecord.user_id == principal.id),
        lambda: NDARecord(
            rfp_id=rfp_id, scope=NDAScope.INDIVIDUAL, user_id=principal.id,
            signed_by=principal.id, created_at=now,
        ),
        principal, signature, now, reopen_review=False,
    )
    logger.info(f"Individual NDA {record.id} signed by {principal.id} for RFP {rfp_id}")
    return record


def sign_company(
    db: Session,
    company_admin: User,
    company_id: UUID,
    rfp_id: UUID,
    signature: NDASignature,
    now: Optional[datetime] = None,
) -> NDARecord:
    """
    Sign on behalf of a company. The record grants nothing to the members
    until an RFP administrator approves it.
    """
    now = now or utcnow()
    get_company_or_404(db, company_id)
    _get_rfp_or_404(db, rfp_id)
    require_company_permission(db, company_admin, company_id, Permission.SIGN_COMPANY_NDA)

    record = _upsert_signature(
        db,
        (NDARecord.rfp_id == rfp_id, NDARecord.company_id == company_id),
        lambda: NDARecord(
            rfp_id=rfp_id, scope=NDAScope.COMPANY, company_id=company_id,
            signed_by=company_admin.id, created_at=now,
        ),
        company_admin, signature, now, reopen_review=True,
    )
    logger.info(f"Company NDA {record.id} signed by {company_admin.id} for company {company_id}")
    return record


def countersign(
    db: Session,
    reviewer: User,
    nda_id: UUID,
    decision: NDADecision,
    reason: Optional[str] = None,
    countersigner_name: Optional[str] = None,
    countersigner_title: Optional[str] = None,
    now: Optional[datetime] = None,
    notifier: NotificationEmitter = None,
) -> NDARecord:
    """
    Approve or reject a signed NDA.

    Raises:
        PermissionDenied: the reviewer is not a platform admin or client reviewer.
        NotFound: unknown record.
        InvalidRequest: rejecting without a reason.
        InvalidState: the record is not currently `signed`.
    """
    now = now or utcnow()
    notifier = notifier or notification_service
    require_platform_permission(reviewer, PlatformPermission.REVIEW_NDAS)

    record = db.get(NDARecord, nda_id)
    if not record:
        raise NotFound("NDA not found")
    if decision == NDADecision.REJECT and not (reason and reason.strip()):
        raise InvalidRequest("A rejection reason is required")
    if record.status != NDAStatus.SIGNED:
        raise InvalidState(f"NDA is {record.status.value}, not awaiting countersignature")

    if decision == NDADecision.APPROVE:
        values = dict(
            status=NDAStatus.APPROVED,
            countersigned_at=now,
            countersigned_by=reviewer.id,
            countersigner_name=countersigner_name or reviewer.full_name,
            countersigner_title=countersigner_title,
            updated_at=now,
        )
        action = NDAAuditAction.COUNTERSIGNED
    else:
        values = dict(
            status=NDAStatus.REJECTED,
            rejection_by=reviewer.id,
            rejection_reason=reason.strip(),
            rejected_at=now,
            updated_at=now,
        )
        action = NDAAuditAction.REJECTED

    try:
        if not status_transition(db, NDARecord, record.id, NDAStatus.SIGNED, **values):
            raise InvalidState("NDA is no longer awaiting countersignature")
        _audit(db, record.id, action, reviewer, now,
               reason=values.get("rejection_reason"),
               countersigner_name=values.get("countersigner_name"),
               countersigner_title=values.get("countersigner_title"))
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(record)
    logger.info(f"NDA {record.id} {record.status.value} by {reviewer.id}")
    _notify_decision(db, record, notifier)
    return record


def _notify_decision(db: Session, record: NDARecord, notifier: NotificationEmitter):
    payload = {"rfp_id": str(record.rfp_id), "nda_id": str(record.id), "scope": record.scope.value}
    if record.status == NDAStatus.REJECTED:
        payload["reason"] = record.rejection_reason
        recipient = record.user_id if record.scope == NDAScope.INDIVIDUAL else record.signed_by
        emit_safely(notifier, NotificationType.NDA_REJECTED, [recipient], record.rfp_id, payload)
    elif record.scope == NDAScope.INDIVIDUAL:
        emit_safely(notifier, NotificationType.NDA_APPROVED, [record.user_id], record.rfp_id, payload)
    else:
        payload["company_id"] = str(record.company_id)
        emit_safely(
            notifier, NotificationType.COMPANY_NDA_APPROVED,
            active_member_ids(db, record.company_id), record.rfp_id, payload,
        )


def get_nda_status(db: Session, principal: User, rfp_id: UUID) -> NDAStatusResponse:
    """The principal's own record and their current company's record for an RFP."""
    individual = db.exec(
        select(NDARecord).where(
            NDARecord.rfp_id == rfp_id,
            NDARecord.user_id == principal.id
        )
    ).first()

    company = None
    membership = db.get(Membership, principal.id)
    if membership and membership.is_active:
        company = db.exec(
            select(NDARecord).where(
                NDARecord.rfp_id == rfp_id,
                NDARecord.company_id == membership.company_id
            )
        ).first()

    return NDAStatusResponse(
        rfp_id=rfp_id,
        individual=NDARead.model_validate(individual) if individual else None,
        company=NDARead.model_validate(company) if company else None,
    )


def list_ndas(
    db: Session,
    reviewer: User,
    status: Optional[NDAStatus] = NDAStatus.SIGNED,
    rfp_id: Optional[UUID] = None,
) -> List[NDARecord]:
    """Review queue for countersigners, oldest signature first."""
    require_platform_permission(reviewer, PlatformPermission.REVIEW_NDAS)
    query = select(NDARecord)
    if status:
        query = query.where(NDARecord.status == status)
    if rfp_id:
        query = query.where(NDARecord.rfp_id == rfp_id)
    return list(db.exec(query.order_by(NDARecord.signed_at)).all())


def get_audit_trail(db: Session, reviewer: User, nda_id: UUID) -> List[NDAAuditEntry]:
    require_platform_permission(reviewer, PlatformPermission.REVIEW_NDAS)
    if not db.get(NDARecord, nda_id):
        raise NotFound("NDA not found")
    return list(db.exec(
        select(NDAAuditEntry)
        .where(NDAAuditEntry.nda_id == nda_id)
        .order_by(NDAAuditEntry.created_at)
    ).all())
