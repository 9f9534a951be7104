from .company import (
    CompanyCreate, CompanyRead, CompanySummary, CompanySuggestion,
    MemberInfo, MembershipRead, VerificationReview
)
from .invitations import InvitationCreate, InvitationResponse, InvitationAccept, RedemptionResult
from .join_requests import JoinRequestCreate, JoinRequestDecision, JoinRequestRead
from .nda import (
    NDASignature, CompanyNDASign, CountersignRequest, NDARead,
    NDAStatusResponse, NDAAuditRead, NDAReviewList
)
from .documents import (
    DocumentAccess, DownloadLink, RegistrationCreate, RegistrationDecision,
    RegistrationRead, NotificationRead, MarkRead
)

__all__ = [
    "CompanyCreate", "CompanyRead", "CompanySummary", "CompanySuggestion",
    "MemberInfo", "MembershipRead", "VerificationReview",
    "InvitationCreate", "InvitationResponse", "InvitationAccept", "RedemptionResult",
    "JoinRequestCreate", "JoinRequestDecision", "JoinRequestRead",
    "NDASignature", "CompanyNDASign", "CountersignRequest", "NDARead",
    "NDAStatusResponse", "NDAAuditRead", "NDAReviewList",
    "DocumentAccess", "DownloadLink", "RegistrationCreate", "RegistrationDecision",
    "RegistrationRead", "NotificationRead", "MarkRead",
]
