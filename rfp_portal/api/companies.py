"""
Company Directory API

Endpoints
- `POST /companies` create a company; the caller becomes its first admin
- `GET /companies/search?q=` case-insensitive search over name, industry, domain
- `GET /companies/suggestions` companies resembling the caller's email domain
- `GET /companies/me` the caller's current membership
- `POST /companies/me/leave` leave the current company
- `GET /companies/{company_id}/members` roster, members only
- `DELETE /companies/{company_id}/members/{user_id}` remove a member, admins only
- `POST /companies/{company_id}/verification` request verification, admins only
- `PUT /companies/{company_id}/verification` approve or reject, platform admins only
"""
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session
from uuid import UUID
from typing import List, Optional

from ..core.database import get_session
from ..core.security import get_current_principal
from ..models.users import User
from ..schemas.company import (
    CompanyCreate, CompanyRead, CompanySummary, CompanySuggestion,
    MemberInfo, MembershipRead, VerificationReview
)
from ..services import company_service


router = APIRouter()


@router.post("", response_model=CompanyRead, status_code=201)
async def create_company(
    company_data: CompanyCreate,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return company_service.create_company(session, current_user, company_data)


@router.get("/search", response_model=List[CompanySummary])
async def search_companies(
    q: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1, le=50),
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return company_service.search_companies(session, q, limit)


@router.get("/suggestions", response_model=List[CompanySuggestion])
async def suggest_companies(
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return company_service.suggest_companies(session, current_user.email)


@router.get("/me", response_model=Optional[MembershipRead])
async def get_my_membership(
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    """The caller's membership, pending or active, or null."""
    membership = company_service.get_membership(session, current_user.id)
    if not membership:
        return None
    return MembershipRead(
        company_id=membership.company_id,
        company_name=membership.company.name,
        role=membership.role,
        joined_at=membership.joined_at,
    )


@router.post("/me/leave")
async def leave_company(
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    company_id = company_service.leave_company(session, current_user)
    return {"message": "You have left the company", "company_id": str(company_id)}


@router.get("/{company_id}/members", response_model=List[MemberInfo])
async def list_members(
    company_id: UUID,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return company_service.list_members(session, current_user, company_id)


@router.delete("/{company_id}/members/{user_id}")
async def remove_member(
    company_id: UUID,
    user_id: UUID,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    company_service.remove_member(session, current_user, company_id, user_id)
    return {"message": "Member removed successfully"}


@router.post("/{company_id}/verification", response_model=CompanyRead)
async def request_verification(
    company_id: UUID,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return company_service.request_verification(session, current_user, company_id)


@router.put("/{company_id}/verification", response_model=CompanyRead)
async def review_verification(
    company_id: UUID,
    review: VerificationReview,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return company_service.review_verification(session, current_user, company_id, review.approve)


@router.get("/{company_id}", response_model=CompanyRead)
async def get_company(
    company_id: UUID,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return company_service.get_company_or_404(session, company_id)
