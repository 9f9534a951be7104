from fastapi import APIRouter, Depends
from sqlmodel import Session
from uuid import UUID
from typing import List, Optional

from ..core.database import get_session
from ..core.security import get_optional_principal
from ..models.users import User
from ..schemas.documents import DocumentAccess, DownloadLink
from ..services import entitlement


router = APIRouter()


@router.get("/rfps/{rfp_id}", response_model=List[DocumentAccess])
async def list_documents(
    rfp_id: UUID,
    current_user: Optional[User] = Depends(get_optional_principal),
    session: Session = Depends(get_session)
):
    """Every document of the RFP with the caller's access decision; anonymous callers see all denied."""
    return entitlement.list_documents(session, current_user, rfp_id)


@router.get("/{document_id}/download", response_model=DownloadLink)
async def download_document(
    document_id: UUID,
    current_user: Optional[User] = Depends(get_optional_principal),
    session: Session = Depends(get_session)
):
    return entitlement.download_document(session, current_user, document_id)
