"""
Notification sink: targeted and role-broadcast messages
"""
import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from lms import database
from lms.exceptions import Forbidden, NotFound
from lms.models import Notification, User

logger = logging.getLogger(__name__)


class NotificationService:
    """Creates, lists and acknowledges notifications"""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory

    def create(
        self,
        db: Session,
        title: str,
        message: Optional[str] = None,
        type: Optional[str] = None,
        to_user_id: Optional[UUID] = None,
        to_role: Optional[str] = None,
        created_by: Optional[UUID] = None
    ) -> Notification:
        """Stage a notification on the session; the caller commits"""
        notification = Notification(
            title=title,
            message=message,
            type=type,
            to_user_id=to_user_id,
            to_role=to_role,
            created_by=created_by
        )
        db.add(notification)
        return notification

    def notify_user(self, user_id: UUID, title: str, message: str, type: str = "result") -> None:
        """
        Deliver a message to one user in its own session

        Runs after the triggering request has committed. Failures are logged
        and never propagate to the caller.
        """
        session_factory = self._session_factory or database.SessionLocal
        db = session_factory()
        try:
            self.create(db, title=title, message=message, type=type, to_user_id=user_id)
            db.commit()
            logger.info(f"Notification '{title}' sent to user {user_id}")
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to notify user {user_id}: {str(e)}", exc_info=True)
        finally:
            db.close()

    def list_for_user(
        self,
        db: Session,
        user: User,
        offset: int,
        limit: int
    ) -> Tuple[int, List[Notification]]:
        """Notifications addressed to the user directly or to the user's role"""
        query = db.query(Notification).filter(
            or_(Notification.to_user_id == user.id, Notification.to_role == user.role)
        )
        total = query.count()
        items = (
            query.order_by(Notification.created_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return total, items

    def mark_read(self, db: Session, notification_id: UUID, user: User) -> Notification:
        notification = db.get(Notification, notification_id)
        if notification is None:
            raise NotFound("Notification not found")

        if notification.to_user_id is not None and notification.to_user_id != user.id:
            raise Forbidden("Forbidden")
        if notification.to_role is not None and notification.to_role != user.role:
            raise Forbidden("Forbidden")

        notification.is_read = True
        db.commit()
        db.refresh(notification)
        return notification


# Global instance
notification_service = NotificationService()
