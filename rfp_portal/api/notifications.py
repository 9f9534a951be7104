from fastapi import APIRouter, Depends
from sqlmodel import Session
from typing import List

from ..core.database import get_session
from ..core.security import get_current_principal
from ..models.users import User
from ..schemas.documents import MarkRead, NotificationRead
from ..services import notification_service


router = APIRouter()


@router.get("", response_model=List[NotificationRead])
async def list_notifications(
    unread_only: bool = False,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    return notification_service.list_notifications(session, current_user, unread_only)


@router.post("/read")
async def mark_read(
    data: MarkRead,
    current_user: User = Depends(get_current_principal),
    session: Session = Depends(get_session)
):
    updated = notification_service.mark_notifications_read(session, current_user, data.notification_ids)
    return {"updated": updated}
