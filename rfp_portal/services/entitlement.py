"""
Document entitlement resolver.

Decides, for one principal and one document, whether the document may be
downloaded. The two gates are independent and both must pass:

- `requires_approval`: the principal is an active member of a company whose
  registration for the document's RFP is approved.
- `requires_nda`: the principal signed an individual NDA for the RFP (signed
  is enough, countersigning is an audit step), or their current company holds
  an approved company NDA for it.

Company coverage is evaluated at read time from the live membership, so
joining or leaving a company takes effect on the next check. Nothing here
writes.
"""
import logging
from typing import Dict, List, Optional
from uuid import UUID

from sqlmodel import Session, select

from ..core.config import get_settings
from ..core.errors import AccessDenied, AuthenticationRequired, NotFound
from ..models.company import Membership
from ..models.nda import NDARecord
from ..models.rfp import Document, RFP, RFPRegistration
from ..models.types import DenialReason, NDAStatus, RegistrationStatus
from ..models.users import User
from ..schemas.documents import DocumentAccess, DownloadLink
from .storage_service import create_signed_download_url

logger = logging.getLogger(__name__)
settings = get_settings()

INDIVIDUAL_NDA_GRANTING = (NDAStatus.SIGNED, NDAStatus.APPROVED)

_UNSET = object()


class AccessDecision:
    __slots__ = ("granted", "reason")

    def __init__(self, granted: bool, reason: Optional[DenialReason] = None):
        self.granted = granted
        self.reason = reason

    @classmethod
    def grant(cls) -> "AccessDecision":
        return cls(True)

    @classmethod
    def deny(cls, reason: DenialReason) -> "AccessDecision":
        return cls(False, reason)

    def __bool__(self):
        return self.granted

    def __eq__(self, other):
        if not isinstance(other, AccessDecision):
            return NotImplemented
        return (self.granted, self.reason) == (other.granted, other.reason)

    def __repr__(self):
        if self.granted:
            return "AccessDecision(granted)"
        return f"AccessDecision(denied: {self.reason.value})"


class EntitlementResolver:
    """Per-request resolver; lookups are memoised per RFP."""

    def __init__(self, db: Session, principal: Optional[User]):
        self.db = db
        self.principal = principal
        self._membership = _UNSET
        self._registration_approved: Dict[UUID, bool] = {}
        self._individual_nda: Dict[UUID, bool] = {}
        self._company_nda: Dict[UUID, bool] = {}

    @property
    def membership(self) -> Optional[Membership]:
        if self._membership is _UNSET:
            membership = self.db.get(Membership, self.principal.id)
            self._membership = membership if membership and membership.is_active else None
        return self._membership

    def has_approved_registration(self, rfp_id: UUID) -> bool:
        if rfp_id not in self._registration_approved:
            membership = self.membership
            self._registration_approved[rfp_id] = membership is not None and self.db.exec(
                select(RFPRegistration.id).where(
                    RFPRegistration.rfp_id == rfp_id,
                    RFPRegistration.company_id == membership.company_id,
                    RFPRegistration.status == RegistrationStatus.APPROVED
                )
            ).first() is not None
        return self._registration_approved[rfp_id]

    def has_individual_nda(self, rfp_id: UUID) -> bool:
        if rfp_id not in self._individual_nda:
            self._individual_nda[rfp_id] = self.db.exec(
                select(NDARecord.id).where(
                    NDARecord.rfp_id == rfp_id,
                    NDARecord.user_id == self.principal.id,
                    NDARecord.status.in_(INDIVIDUAL_NDA_GRANTING)
                )
            ).first() is not None
        return self._individual_nda[rfp_id]

    def has_company_nda(self, rfp_id: UUID) -> bool:
        if rfp_id not in self._company_nda:
            membership = self.membership
            self._company_nda[rfp_id] = membership is not None and self.db.exec(
                select(NDARecord.id).where(
                    NDARecord.rfp_id == rfp_id,
                    NDARecord.company_id == membership.company_id,
                    NDARecord.status == NDAStatus.APPROVED
                )
            ).first() is not None
        return self._company_nda[rfp_id]

    def check(self, document: Document) -> AccessDecision:
        if self.principal is None:
            return AccessDecision.deny(DenialReason.AUTHENTICATION_REQUIRED)
        if not document.is_protected:
            return AccessDecision.grant()

        if document.requires_approval and not self.has_approved_registration(document.rfp_id):
            return AccessDecision.deny(DenialReason.APPROVAL_REQUIRED)

        if document.requires_nda and not (
            self.has_individual_nda(document.rfp_id) or self.has_company_nda(document.rfp_id)
        ):
            return AccessDecision.deny(DenialReason.NDA_REQUIRED)

        return AccessDecision.grant()


def can_access(db: Session, principal: Optional[User], document: Document) -> AccessDecision:
    return EntitlementResolver(db, principal).check(document)


def list_documents(db: Session, principal: Optional[User], rfp_id: UUID) -> List[DocumentAccess]:
    if not db.get(RFP, rfp_id):
        raise NotFound("RFP not found")

    resolver = EntitlementResolver(db, principal)
    documents = db.exec(
        select(Document).where(Document.rfp_id == rfp_id).order_by(Document.title)
    ).all()

    result = []
    for document in documents:
        decision = resolver.check(document)
        result.append(DocumentAccess(
            id=document.id,
            rfp_id=document.rfp_id,
            title=document.title,
            requires_nda=document.requires_nda,
            requires_approval=document.requires_approval,
            granted=decision.granted,
            reason=decision.reason,
        ))
    return result


def download_document(db: Session, principal: Optional[User], document_id: UUID) -> DownloadLink:
    """
    Raises:
        NotFound: unknown document.
        AuthenticationRequired: anonymous caller.
        AccessDenied: a gate failed; `code` carries the denial reason.
    """
    document = db.get(Document, document_id)
    if not document:
        raise NotFound("Document not found")

    decision = can_access(db, principal, document)
    if not decision.granted:
        if decision.reason == DenialReason.AUTHENTICATION_REQUIRED:
            raise AuthenticationRequired("Sign in to download this document")
        logger.warning(f"Download of {document.id} denied to {principal.id}: {decision.reason.value}")
        raise AccessDenied(decision.reason.value)

    logger.info(f"Download link for {document.id} issued to {principal.id}")
    return DownloadLink(
        document_id=document.id,
        url=create_signed_download_url(document),
        expires_in=settings.DOWNLOAD_URL_EXPIRE_SECONDS,
    )
