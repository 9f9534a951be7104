"""
Notification sink for workflow events.

Services emit after their transaction commits, through `emit_safely`, so a
broken sink can never undo or fail a state transition.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Protocol
from uuid import UUID

from sqlalchemy import update
from sqlmodel import Session, select

from ..core.database import engine
from ..models.notifications import Notification
from ..models.types import NotificationType
from ..models.users import User

logger = logging.getLogger(__name__)


NOTIFICATION_TITLES = {
    NotificationType.INVITATION_ISSUED: "Company Invitation",
    NotificationType.JOIN_REQUEST_RECEIVED: "Join Request",
    NotificationType.JOIN_REQUEST_APPROVED: "Join Request Approved",
    NotificationType.JOIN_REQUEST_REJECTED: "Join Request Rejected",
    NotificationType.NDA_APPROVED: "NDA Approved",
    NotificationType.NDA_REJECTED: "NDA Rejected",
    NotificationType.COMPANY_NDA_APPROVED: "Company NDA Approved",
    NotificationType.REGISTRATION_APPROVED: "Company Registration Approved",
    NotificationType.REGISTRATION_REJECTED: "Company Registration Rejected",
}


class NotificationEmitter(Protocol):
    def emit(
        self,
        event_type: NotificationType,
        user_id: UUID,
        reference_id: Optional[UUID],
        payload: Dict[str, Any],
    ) -> None:
        ...


class DatabaseNotificationEmitter:
    """Stores each event as a `Notification` row, in its own session."""

    def __init__(self, bind=None):
        self.bind = bind if bind is not None else engine

    def emit(self, event_type, user_id, reference_id, payload):
        with Session(self.bind) as session:
            session.add(Notification(
                user_id=user_id,
                event_type=event_type,
                reference_id=reference_id,
                title=NOTIFICATION_TITLES.get(event_type, event_type.value),
                payload=payload or {},
            ))
            session.commit()


def emit_safely(
    notifier: NotificationEmitter,
    event_type: NotificationType,
    user_ids: Iterable[UUID],
    reference_id: Optional[UUID],
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    for user_id in user_ids:
        try:
            notifier.emit(event_type, user_id, reference_id, payload or {})
        except Exception:
            logger.exception(f"Failed to emit {event_type.value} for user {user_id}")


def list_notifications(db: Session, principal: User, unread_only: bool = False) -> List[Notification]:
    query = select(Notification).where(Notification.user_id == principal.id)
    if unread_only:
        query = query.where(Notification.is_read == False)  # noqa: E712
    return list(db.exec(query.order_by(Notification.created_at.desc())).all())


def mark_notifications_read(db: Session, principal: User, notification_ids: List[UUID]) -> int:
    """Mark the principal's own notifications read; returns how many changed."""
    if not notification_ids:
        return 0
    result = db.exec(
        update(Notification)
        .where(
            Notification.id.in_(notification_ids),
            Notification.user_id == principal.id,
            Notification.is_read == False  # noqa: E712
        )
        .values(is_read=True)
    )
    db.commit()
    return result.rowcount


notification_service = DatabaseNotificationEmitter()
