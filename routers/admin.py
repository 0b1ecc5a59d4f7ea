import logging
from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy.orm import Session, joinedload
from database import get_db
import models, schemas, utils, oauth2
from models import ApprovalStatus, NotificationType
from notifier import notify
from typing import Optional

logger = logging.getLogger(__name__)

router = APIRouter(prefix= '/admin', tags=['Admin'])

admin_only = oauth2.require_role(models.UserRole.ADMIN)

REVIEW_OUTCOME = {"approve": ApprovalStatus.APPROVED, "reject": ApprovalStatus.REJECTED}

@router.get("/doctors", response_model= schemas.Envelope[schemas.AdminDoctorList])
def get_doctors(status: schemas.ApprovalFilter = Query(schemas.ApprovalFilter.PENDING), page: utils.Page = Depends(),
                db: Session = Depends(get_db), admin: models.User = Depends(admin_only)):
    query = db.query(models.Doctor)
    if status != schemas.ApprovalFilter.ALL:
        query = query.filter(models.Doctor.is_approved == ApprovalStatus(status.value))
    total = query.count()
    doctors = page.apply(query.options(joinedload(models.Doctor.user)).order_by(models.Doctor.created_at.desc(), models.Doctor.doctor_id.desc())).all()
    return {"data": {"doctors": doctors, "pagination": page.meta(total)}}

@router.patch("/doctors", response_model= schemas.Envelope[schemas.AdminDoctorResult])
def review_doctor(body: schemas.DoctorReview, db: Session = Depends(get_db), admin: models.User = Depends(admin_only)):
    doctor = db.get(models.Doctor, body.doctor_id)
    if not doctor:
        raise HTTPException(status_code=404, detail="Doctor not found")
    doctor.is_approved = REVIEW_OUTCOME[body.action]
    if doctor.is_approved == ApprovalStatus.APPROVED:
        notify(db, doctor.user_id, "Registration Approved", "Your doctor profile is now visible to patients.",
               NotificationType.APPROVAL, "/doctor/profile")
    else:
        notify(db, doctor.user_id, "Registration Rejected", "Your doctor registration was not approved.",
               NotificationType.APPROVAL)
    db.commit()
    db.refresh(doctor)
    logger.info("Admin %s set doctor %s to %s", admin.user_id, doctor.doctor_id, doctor.is_approved.value)
    return {"data": {"doctor": doctor, "message": f"Doctor {doctor.is_approved.value.lower()} successfully"}}

@router.get("/users", response_model= schemas.Envelope[schemas.UserList])
def get_users(role: Optional[models.UserRole] = Query(None), db: Session = Depends(get_db), admin: models.User = Depends(admin_only)):
    query = db.query(models.User)
    if role:
        query = query.filter(models.User.role == role)
    users = query.order_by(models.User.created_at.desc(), models.User.user_id.desc()).all()
    return {"data": {"users": users}}

@router.patch("/users", response_model= schemas.Envelope[schemas.Message])
def suspend_user(body: schemas.UserSuspension, db: Session = Depends(get_db), admin: models.User = Depends(admin_only)):
    if body.user_id == admin.user_id:
        raise HTTPException(status_code=400, detail="Cannot suspend yourself")
    user = db.get(models.User, body.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    user.is_suspended = body.action == 'suspend'
    db.commit()
    logger.info("Admin %s %sed user %s", admin.user_id, body.action, user.user_id)
    return {"data": {"message": f"User {body.action}ed successfully"}}
