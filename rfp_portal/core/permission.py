from enum import Flag, auto
from typing import Optional
from uuid import UUID
from sqlmodel import Session, select

from .errors import PermissionDenied
from ..models.company import Membership
from ..models.types import CompanyRole, PlatformRole
from ..models.users import User


class Permission(Flag):
    NONE = 0
    VIEW_MEMBERS = auto()
    INVITE_MEMBERS = auto()
    REMOVE_MEMBERS = auto()
    RESOLVE_JOIN_REQUESTS = auto()
    SIGN_COMPANY_NDA = auto()
    EDIT_COMPANY = auto()
    REGISTER_INTEREST = auto()


ROLE_PERMISSIONS = {

    CompanyRole.ADMIN: (
        Permission.VIEW_MEMBERS |
        Permission.INVITE_MEMBERS |
        Permission.REMOVE_MEMBERS |
        Permission.RESOLVE_JOIN_REQUESTS |
        Permission.SIGN_COMPANY_NDA |
        Permission.EDIT_COMPANY |
        Permission.REGISTER_INTEREST
    ),
    CompanyRole.MEMBER: (
        Permission.VIEW_MEMBERS |
        Permission.REGISTER_INTEREST
    ),
    CompanyRole.PENDING: Permission.NONE,
}


class PlatformPermission(Flag):
    NONE = 0
    REVIEW_NDAS = auto()
    REVIEW_REGISTRATIONS = auto()
    REVIEW_COMPANIES = auto()
    MANAGE_ANY_COMPANY = auto()


PLATFORM_ROLE_PERMISSIONS = {
    PlatformRole.ADMIN: (
        PlatformPermission.REVIEW_NDAS |
        PlatformPermission.REVIEW_REGISTRATIONS |
        PlatformPermission.REVIEW_COMPANIES |
        PlatformPermission.MANAGE_ANY_COMPANY
    ),
    PlatformRole.CLIENT_REVIEWER: PlatformPermission.REVIEW_NDAS,
    PlatformRole.BIDDER: PlatformPermission.NONE,
}


def get_company_membership(session: Session, user_id: UUID, company_id: UUID) -> Optional[Membership]:
    return session.exec(
        select(Membership).where(
            Membership.user_id == user_id,
            Membership.company_id == company_id
        )
    ).first()


def has_platform_permission(principal: User, permission: PlatformPermission) -> bool:
    return bool(PLATFORM_ROLE_PERMISSIONS[principal.platform_role] & permission)


def require_company_permission(
    session: Session,
    principal: User,
    company_id: UUID,
    permission: Permission,
    allow_platform: PlatformPermission = PlatformPermission.NONE
) -> Optional[Membership]:
    """
    Raise PermissionDenied unless the principal's company role grants
    `permission` in `company_id`, or their platform role grants
    `allow_platform`.

    Returns the principal's membership in that company, if any.
    """
    membership = get_company_membership(session, principal.id, company_id)
    if membership and ROLE_PERMISSIONS[membership.role] & permission:
        return membership
    if allow_platform and has_platform_permission(principal, allow_platform):
        return membership
    raise PermissionDenied("Insufficient permissions for this company")


def require_platform_permission(principal: User, permission: PlatformPermission):
    if not has_platform_permission(principal, permission):
        raise PermissionDenied("Insufficient platform permissions")
