import logging
from sqlalchemy.orm import Session
import models

logger = logging.getLogger(__name__)

def notify(db: Session, user_id: int, title: str, message: str,
           type: models.NotificationType = models.NotificationType.SYSTEM, link: str | None = None) -> models.Notification:
    """Queue a notification row for a user; it is committed with the caller's transaction."""
    notification = models.Notification(user_id=user_id, title=title, message=message, type=type, link=link)
    db.add(notification)
    logger.debug("Queued %s notification for user %s", type.value, user_id)
    return notification
