"""
Company directory: companies, their roster and verification.

Every function takes the acting principal explicitly; nothing reads ambient
session state.
"""
import logging
from difflib import SequenceMatcher
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..core.config import get_settings
from ..core.errors import Conflict, NotFound, AlreadyResolved
from ..core.permission import (
    Permission, PlatformPermission, require_company_permission,
    require_platform_permission
)
from ..models.base import utcnow
from ..models.company import Company, Membership
from ..models.join_requests import JoinRequest
from ..models.types import CompanyRole, JoinRequestStatus, VerificationStatus
from ..models.users import User
from ..schemas.company import CompanyCreate, CompanySummary, CompanySuggestion, MemberInfo
from .transitions import compare_and_set

logger = logging.getLogger(__name__)
settings = get_settings()

ACTIVE_ROLES = (CompanyRole.ADMIN, CompanyRole.MEMBER)


def get_membership(db: Session, user_id: UUID) -> Optional[Membership]:
    return db.get(Membership, user_id)


def get_active_membership(db: Session, user_id: UUID) -> Optional[Membership]:
    membership = db.get(Membership, user_id)
    if membership and membership.is_active:
        return membership
    return None


def get_company_or_404(db: Session, company_id: UUID) -> Company:
    company = db.get(Company, company_id)
    if not company:
        raise NotFound("Company not found")
    return company


def active_member_ids(db: Session, company_id: UUID) -> List[UUID]:
    return list(db.exec(
        select(Membership.user_id).where(
            Membership.company_id == company_id,
            Membership.role.in_(ACTIVE_ROLES)
        )
    ).all())


def admin_ids(db: Session, company_id: UUID) -> List[UUID]:
    return list(db.exec(
        select(Membership.user_id).where(
            Membership.company_id == company_id,
            Membership.role == CompanyRole.ADMIN
        )
    ).all())


def create_company(db: Session, founder: User, attrs: CompanyCreate) -> Company:
    """
    Create a company with `founder` as its first admin.

    Raises:
        Conflict: the founder already has a membership (active or pending);
            they must leave or be removed first.
    """
    if get_membership(db, founder.id):
        raise Conflict("You already belong to a company. Leave it before creating a new one.")

    company = Company(
        name=attrs.name.strip(),
        industry=attrs.industry,
        website=attrs.website,
        description=attrs.description,
        email_domain=founder.email_domain or None,
        created_by=founder.id,
    )
    db.add(company)
    db.flush()
    db.add(Membership(user_id=founder.id, company_id=company.id, role=CompanyRole.ADMIN))

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"Concurrent membership insert for founder {founder.id}")
        raise Conflict("You already belong to a company. Leave it before creating a new one.")

    db.refresh(company)
    logger.info(f"Company {company.id} created by {founder.id}")
    return company


def list_members(db: Session, principal: User, company_id: UUID) -> List[MemberInfo]:
    get_company_or_404(db, company_id)
    require_company_permission(
        db, principal, company_id, Permission.VIEW_MEMBERS,
        allow_platform=PlatformPermission.MANAGE_ANY_COMPANY
    )

    rows = db.exec(
        select(Membership, User)
        .join(User, Membership.user_id == User.id)
        .where(Membership.company_id == company_id)
        .order_by(Membership.joined_at)
    ).all()

    return [
        MemberInfo(
            user_id=user.id,
            email=user.email,
            full_name=user.full_name,
            role=membership.role,
            joined_at=membership.joined_at,
        )
        for membership, user in rows
    ]


def _member_counts(db: Session, company_ids: List[UUID]) -> dict:
    if not company_ids:
        return {}
    rows = db.exec(
        select(Membership.company_id, func.count(Membership.user_id))
        .where(
            Membership.company_id.in_(company_ids),
            Membership.role.in_(ACTIVE_ROLES)
        )
        .group_by(Membership.company_id)
    ).all()
    return {company_id: count for company_id, count in rows}


def _summaries(db: Session, companies: List[Company]) -> List[CompanySummary]:
    counts = _member_counts(db, [c.id for c in companies])
    return [
        CompanySummary(
            id=c.id,
            name=c.name,
            industry=c.industry,
            website=c.website,
            email_domain=c.email_domain,
            verification_status=c.verification_status,
            member_count=counts.get(c.id, 0),
        )
        for c in companies
    ]


def _similarity(a: str, b: Optional[str]) -> float:
    if not b:
        return 0.0
    return SequenceMatcher(None, a.lower(), b.lower()).ratio()


def search_companies(db: Session, term: str, limit: int = 10) -> List[CompanySummary]:
    """
    Case-insensitive match over name, industry and email domain.

    Name prefix matches rank first, then name substring matches, then the
    rest; ties are broken by similarity to the search term, then by name.
    """
    term = (term or "").strip()
    if not term:
        return []

    pattern = f"%{term}%"
    candidates = db.exec(
        select(Company).where(
            or_(
                Company.name.ilike(pattern),
                Company.industry.ilike(pattern),
                Company.email_domain.ilike(pattern),
            )
        )
    ).all()

    lowered = term.lower()

    def rank(company: Company):
        name = company.name.lower()
        if name.startswith(lowered):
            tier = 1
        elif lowered in name:
            tier = 2
        else:
            tier = 3
        return (tier, -_similarity(term, company.name), name)

    ranked = sorted(candidates, key=rank)[:limit]
    return _summaries(db, ranked)


def domain_stem(email: str) -> Optional[str]:
    """`jane@mail.acme-corp.co.uk` -> `acme-corp`; None for free-mail providers."""
    if "@" not in email:
        return None
    domain = email.rsplit("@", 1)[1].strip().lower()
    if not domain or domain in settings.FREE_MAIL_DOMAINS:
        return None
    labels = [label for label in domain.split(".") if label]
    if len(labels) < 2:
        return labels[0] if labels else None
    # Skip second-level public suffixes like co.uk / com.au.
    if len(labels) >= 3 and len(labels[-2]) <= 3 and len(labels[-1]) == 2:
        return labels[-3]
    return labels[-2]


def suggest_companies(db: Session, email: str, limit: int = 3, threshold: float = 0.6) -> List[CompanySuggestion]:
    """
    Rank companies whose name or domain resembles the principal's email
    domain. This is a convenience for the join flow, not an access rule.
    """
    stem = domain_stem(email)
    if not stem:
        return []
    domain = email.rsplit("@", 1)[1].lower()

    scored = []
    for company in db.exec(select(Company)).all():
        if company.email_domain and company.email_domain.lower() == domain:
            score, reason = 2.0, f"Matches your email domain ({domain})"
        else:
            name_key = "".join(ch for ch in company.name.lower() if ch.isalnum())
            stem_key = "".join(ch for ch in stem if ch.isalnum())
            score = max(
                _similarity(stem_key, name_key),
                _similarity(stem, (company.email_domain or "").split(".")[0]),
                1.0 if stem_key and stem_key in name_key else 0.0,
            )
            reason = f"Name resembles your email domain ({domain})"
        if score >= threshold:
            scored.append((score, company, reason))

    scored.sort(key=lambda item: (-item[0], item[1].name.lower()))
    top = scored[:limit]
    summaries = _summaries(db, [company for _, company, _ in top])
    return [
        CompanySuggestion(**summary.model_dump(), suggested_reason=reason)
        for summary, (_, _, reason) in zip(summaries, top)
    ]


def _is_last_admin(db: Session, membership: Membership) -> bool:
    return membership.role == CompanyRole.ADMIN and len(admin_ids(db, membership.company_id)) <= 1


def _withdraw_join_request(db: Session, membership: Membership, resolved_by: UUID, reason: str) -> None:
    """
    A `pending` membership stands for an open join request. Deleting the
    membership rejects that request in the same transaction so it can be
    asked again.
    """
    if membership.role != CompanyRole.PENDING:
        return
    withdrawn = compare_and_set(
        db, JoinRequest,
        JoinRequest.user_id == membership.user_id,
        JoinRequest.company_id == membership.company_id,
        JoinRequest.status == JoinRequestStatus.PENDING,
        status=JoinRequestStatus.REJECTED,
        response_message=reason,
        resolved_by=resolved_by,
        updated_at=utcnow(),
    )
    if withdrawn:
        logger.info(f"Join request of {membership.user_id} to company {membership.company_id} closed: {reason}")


def leave_company(db: Session, principal: User) -> UUID:
    membership = get_membership(db, principal.id)
    if not membership:
        raise NotFound("You are not currently associated with any company")
    if _is_last_admin(db, membership):
        raise Conflict("You are the last administrator of this company. Transfer admin rights first.")

    company_id = membership.company_id
    _withdraw_join_request(db, membership, principal.id, "Withdrawn by the requester")
    db.delete(membership)
    db.commit()
    logger.info(f"User {principal.id} left company {company_id}")
    return company_id


def remove_member(db: Session, actor: User, company_id: UUID, user_id: UUID) -> None:
    """
    Remove a member. Access inherited through the company's NDAs ends with
    the membership; nothing else needs revoking.
    """
    get_company_or_404(db, company_id)
    require_company_permission(
        db, actor, company_id, Permission.REMOVE_MEMBERS,
        allow_platform=PlatformPermission.MANAGE_ANY_COMPANY
    )
    if user_id == actor.id:
        raise Conflict("Cannot remove yourself from the company; leave it instead")

    membership = get_membership(db, user_id)
    if not membership or membership.company_id != company_id:
        raise NotFound("Member not found in company")
    if _is_last_admin(db, membership):
        raise Conflict("Cannot remove the last admin of the company")

    _withdraw_join_request(db, membership, actor.id, "Removed from the company roster")
    db.delete(membership)
    db.commit()
    logger.info(f"User {user_id} removed from company {company_id} by {actor.id}")


def request_verification(db: Session, company_admin: User, company_id: UUID) -> Company:
    company = get_company_or_404(db, company_id)
    require_company_permission(db, company_admin, company_id, Permission.EDIT_COMPANY)

    moved = compare_and_set(
        db, Company,
        Company.id == company_id,
        Company.verification_status.in_([VerificationStatus.UNVERIFIED, VerificationStatus.REJECTED]),
        verification_status=VerificationStatus.PENDING,
        updated_at=utcnow(),
    )
    if not moved:
        db.rollback()
        raise Conflict(f"Company verification is already {company.verification_status.value}")
    db.commit()
    db.refresh(company)
    return company


def review_verification(db: Session, reviewer: User, company_id: UUID, approve: bool) -> Company:
    require_platform_permission(reviewer, PlatformPermission.REVIEW_COMPANIES)
    company = get_company_or_404(db, company_id)

    target = VerificationStatus.VERIFIED if approve else VerificationStatus.REJECTED
    moved = compare_and_set(
        db, Company,
        Company.id == company_id,
        Company.verification_status == VerificationStatus.PENDING,
        verification_status=target,
        updated_at=utcnow(),
    )
    if not moved:
        db.rollback()
        raise AlreadyResolved("Company verification is not awaiting review")
    db.commit()
    db.refresh(company)
    logger.info(f"Company {company_id} verification -> {target.value} by {reviewer.id}")
    return company

