from enum import Enum


class PlatformRole(str, Enum):
    ADMIN = "admin"
    CLIENT_REVIEWER = "client_reviewer"
    BIDDER = "bidder"


class CompanyRole(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"
    PENDING = "pending"


class VerificationStatus(str, Enum):
    UNVERIFIED = "unverified"
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"
    REJECTED = "rejected"


class JoinRequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RegistrationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class NDAScope(str, Enum):
    INDIVIDUAL = "individual"
    COMPANY = "company"


class NDAStatus(str, Enum):
    SIGNED = "signed"
    APPROVED = "approved"
    REJECTED = "rejected"


class NDADecision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class NDAAuditAction(str, Enum):
    SIGNED = "signed"
    COUNTERSIGNED = "countersigned"
    REJECTED = "rejected"


class NotificationType(str, Enum):
    INVITATION_ISSUED = "invitation_issued"
    JOIN_REQUEST_RECEIVED = "join_request_received"
    JOIN_REQUEST_APPROVED = "join_request_approved"
    JOIN_REQUEST_REJECTED = "join_request_rejected"
    NDA_APPROVED = "nda_approved"
    NDA_REJECTED = "nda_rejected"
    COMPANY_NDA_APPROVED = "company_nda_approved"
    REGISTRATION_APPROVED = "registration_approved"
    REGISTRATION_REJECTED = "registration_rejected"


class DenialReason(str, Enum):
    AUTHENTICATION_REQUIRED = "authentication_required"
    APPROVAL_REQUIRED = "approval_required"
    NDA_REQUIRED = "nda_required"
