from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from database import get_db
import models, schemas, oauth2, lifecycle

router = APIRouter(prefix= '/video', tags=['Video'])

@router.get("", response_model= schemas.Envelope[schemas.VideoJoin])
def join_video(appointment_id: int = Query(..., alias="appointmentId"), db: Session = Depends(get_db),
               current_user: models.User = Depends(oauth2.require_role(models.UserRole.DOCTOR, models.UserRole.PATIENT))):
    return {"data": lifecycle.join_video(db, current_user, appointment_id)}
