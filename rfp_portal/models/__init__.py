from .base import TimestampModel, utcnow
from .types import (
    PlatformRole, CompanyRole, VerificationStatus, InvitationStatus,
    JoinRequestStatus, RegistrationStatus, NDAScope, NDAStatus, NDADecision,
    NDAAuditAction, NotificationType, DenialReason
)
from .users import User
from .company import Company, Membership
from .invitations import Invitation
from .join_requests import JoinRequest
from .rfp import RFP, Document, RFPRegistration
from .nda import NDARecord, NDAAuditEntry
from .notifications import Notification

__all__ = [
    "TimestampModel",
    "utcnow",
    "PlatformRole",
    "CompanyRole",
    "VerificationStatus",
    "InvitationStatus",
    "JoinRequestStatus",
    "RegistrationStatus",
    "NDAScope",
    "NDAStatus",
    "NDADecision",
    "NDAAuditAction",
    "NotificationType",
    "DenialReason",
    "User",
    "Company",
    "Membership",
    "Invitation",
    "JoinRequest",
    "RFP",
    "Document",
    "RFPRegistration",
    "NDARecord",
    "NDAAuditEntry",
    "Notification",
]
