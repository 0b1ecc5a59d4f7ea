from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy.orm import Session, joinedload, selectinload
from database import get_db
import models, schemas, utils, oauth2, lifecycle
from typing import Optional, Union

router = APIRouter(prefix= '/doctor', tags=['Doctor'])
public_router = APIRouter(prefix= '/doctors', tags=['Doctors'])


@router.get("/me", response_model= schemas.Envelope[schemas.DoctorOwnerOutput])
def get_profile(doctor: models.Doctor = Depends(oauth2.get_doctor)):
    return {"data": doctor}

@router.patch("/me", response_model= schemas.Envelope[schemas.DoctorOwnerOutput])
def update_profile(update: schemas.UpdateDoctor, db: Session = Depends(get_db), doctor: models.Doctor = Depends(oauth2.get_doctor)):
    if update.update_type == 'fee':
        doctor.consultation_fee = update.consultation_fee
    elif update.update_type == 'availability':
        doctor.availability = [models.Availability(**slot.model_dump()) for slot in update.availability]
    else:
        for field, value in update.model_dump(include={"specialization", "qualifications", "experience", "bio"}, exclude_none=True).items():
            setattr(doctor, field, value)
    db.commit()
    db.refresh(doctor)
    return {"data": doctor}

@router.get("/appointments", response_model= schemas.Envelope[schemas.AppointmentList])
def get_my_appointments(status: Optional[models.AppointmentStatus] = Query(None), page: utils.Page = Depends(),
                        db: Session = Depends(get_db), doctor: models.Doctor = Depends(oauth2.get_doctor)):
    query = db.query(models.Appointment).filter(models.Appointment.doctor_id == doctor.doctor_id)
    if status:
        query = query.filter(models.Appointment.status == status)
    total = query.count()
    appointments = page.apply(query.options(joinedload(models.Appointment.patient).joinedload(models.Patient.user))
                              .order_by(models.Appointment.scheduled_date.desc(), models.Appointment.appointment_id.desc())).all()
    return {"data": {"appointments": appointments, "pagination": page.meta(total)}}

@router.patch("/appointments", response_model= schemas.Envelope[Union[schemas.AppointmentActionResult, schemas.VideoActionResult]])
def update_appointment(body: schemas.DoctorAppointmentAction, db: Session = Depends(get_db), doctor: models.Doctor = Depends(oauth2.get_doctor)):
    if body.action == "complete":
        appointment = lifecycle.complete_appointment(db, doctor, body.appointment_id)
        return {"data": {"appointment": appointment, "message": "Appointment completed"}}
    if body.action == "start-video":
        session = lifecycle.start_video(db, doctor, body.appointment_id)
        return {"data": {"video_session": session, "room_id": session.room_id}}
    session = lifecycle.end_video(db, doctor, body.appointment_id)
    return {"data": {"video_session": session, "message": "Video session ended"}}


@public_router.get("", response_model= schemas.Envelope[schemas.DoctorList])
def get_doctors(specialization: Optional[str] = Query(None), min_rating: Optional[float] = Query(None, alias="minRating"),
                q: Optional[str] = Query(None), sort: schemas.DoctorSort = Query(schemas.DoctorSort.rating),
                page: utils.Page = Depends(), db: Session = Depends(get_db)):
    query = db.query(models.Doctor).join(models.User, models.User.user_id == models.Doctor.user_id).filter(models.Doctor.is_approved == models.ApprovalStatus.APPROVED)
    if specialization:
        query = query.filter(models.Doctor.specialization.ilike(f"%{specialization}%"))
    if min_rating is not None:
        query = query.filter(models.Doctor.rating_average >= min_rating)
    if q:
        query = query.filter(models.User.name.ilike(f"%{q}%"))

    if sort == schemas.DoctorSort.fee_low:
        order = models.Doctor.consultation_fee.asc()
    elif sort == schemas.DoctorSort.fee_high:
        order = models.Doctor.consultation_fee.desc()
    elif sort == schemas.DoctorSort.experience:
        order = models.Doctor.experience.desc()
    else:
        order = models.Doctor.rating_average.desc()

    total = query.count()
    doctors = page.apply(query.options(selectinload(models.Doctor.availability)).order_by(order, models.Doctor.doctor_id)).all()
    return {"data": {"doctors": doctors, "pagination": page.meta(total)}}

@public_router.get("/{id}", response_model= schemas.Envelope[schemas.DoctorOutput])
def get_doctor(id: int, db: Session = Depends(get_db)):
    doctor = db.query(models.Doctor).filter(models.Doctor.doctor_id == id).filter(models.Doctor.is_approved == models.ApprovalStatus.APPROVED).one_or_none()
    if not doctor:
        raise HTTPException(status_code=404, detail="Doctor not found")
    return {"data": doctor}
