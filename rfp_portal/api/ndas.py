"""
NDA API

Endpoints
- `POST /ndas/rfps/{rfp_id}/sign` sign (or re-sign) an individual NDA
- `POST /ndas/rfps/{rfp_id}/sign-company` sign on behalf of a company, company admins only
- `GET /ndas/rfps/{rfp_id}/status` the caller's individual and company NDA for an RFP
- `GET /ndas/review` countersignature queue, platform admins and client reviewers
- `POST /ndas/{nda_id}/countersign` approve or reject a signed NDA
- `GET /ndas/{nda_id}/audit` audit trail of a record
"""
from fastapi import APIRouter, Depends
from sqlmodel import Session
from uuid import UUID
from typing import List, Optional

from ..core.database import get_session
from ..core.security import get_current_principal
from ..models.types import NDAStatus
from ..models.users import User
from ..schemas.nda import (
    CompanyNDASign, CountersignRequest, NDAAuditRead, NDARead,
    NDAReviewList, NDASignature, NDAStatusResponse
)
from ..services import nda_service


router = APIRouter()


@router.post("/rfps/{rfp_id}/sign", response_model=NDARead)
async def sign_nda(
    rfp_id: UUID,
    signature: NDASignature,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return nda_service.sign_individual(session, current_user, rfp_id, signature)


@router.post("/rfps/{rfp_id}/sign-company", response_model=NDARead)
async def sign_company_nda(
    rfp_id: UUID,
    signature: CompanyNDASign,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return nda_service.sign_company(session, current_user, signature.company_id, rfp_id, signature)


@router.get("/rfps/{rfp_id}/status", response_model=NDAStatusResponse)
async def get_nda_status(
    rfp_id: UUID,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return nda_service.get_nda_status(session, current_user, rfp_id)


@router.get("/review", response_model=NDAReviewList)
async def list_ndas_for_review(
    status: Optional[NDAStatus] = NDAStatus.SIGNED,
    rfp_id: Optional[UUID] = None,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    records = nda_service.list_ndas(session, current_user, status, rfp_id)
    return NDAReviewList(items=[NDARead.model_validate(r) for r in records])


@router.post("/{nda_id}/countersign", response_model=NDARead)
async def countersign_nda(
    nda_id: UUID,
    request: CountersignRequest,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return nda_service.countersign(
        session, current_user, nda_id, request.decision,
        reason=request.reason,
        countersigner_name=request.countersigner_name,
        countersigner_title=request.countersigner_title,
    )


@router.get("/{nda_id}/audit", response_model=List[NDAAuditRead])
async def get_audit_trail(
    nda_id: UUID,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return nda_service.get_audit_trail(session, current_user, nda_id)
