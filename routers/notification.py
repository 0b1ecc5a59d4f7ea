from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.orm import Session
from database import get_db
import models, schemas, oauth2

router = APIRouter(prefix= '/notifications', tags=['Notifications'])

NOTIFICATION_PAGE = 50

@router.get("", response_model= schemas.Envelope[schemas.NotificationList])
def get_notifications(db: Session = Depends(get_db), current_user: models.User = Depends(oauth2.require_role())):
    query = db.query(models.Notification).filter(models.Notification.user_id == current_user.user_id)
    notifications = query.order_by(models.Notification.created_at.desc(), models.Notification.notification_id.desc()).limit(NOTIFICATION_PAGE).all()
    unread = query.filter(models.Notification.is_read == False).count()
    return {"data": {"notifications": notifications, "unread_count": unread}}

@router.patch("", response_model= schemas.Envelope[schemas.Message])
def mark_read(body: schemas.NotificationUpdate, db: Session = Depends(get_db), current_user: models.User = Depends(oauth2.require_role())):
    query = db.query(models.Notification).filter(models.Notification.user_id == current_user.user_id)
    if body.action == 'read-all':
        query.filter(models.Notification.is_read == False).update({models.Notification.is_read: True})
        db.commit()
        return {"data": {"message": "All notifications marked as read"}}
    if not body.notification_id:
        raise HTTPException(status_code=400, detail="notificationId required")
    query.filter(models.Notification.notification_id == body.notification_id).update({models.Notification.is_read: True})
    db.commit()
    return {"data": {"message": "Notification marked as read"}}
