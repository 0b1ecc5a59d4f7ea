from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy.orm import Session, joinedload
from database import get_db
import models, schemas, utils, oauth2, lifecycle
from typing import Optional

router = APIRouter(prefix= "/appointments", tags=['Appointments'])

@router.post("", status_code=201, response_model= schemas.Envelope[schemas.AppointmentOutput])
def post_appointment(booking: schemas.AppointmentInput, db: Session = Depends(get_db), patient: models.Patient = Depends(oauth2.get_patient)):
    return {"data": lifecycle.create_appointment(db, patient, booking)}

@router.get("", response_model= schemas.Envelope[schemas.AppointmentList])
def get_appointments(status: Optional[models.AppointmentStatus] = Query(None), page: utils.Page = Depends(),
                     db: Session = Depends(get_db), current_user: models.User = Depends(oauth2.require_role())):
    query = db.query(models.Appointment)
    if current_user.role == models.UserRole.PATIENT:
        patient = db.query(models.Patient).filter(models.Patient.user_id == current_user.user_id).first()
        if not patient:
            raise HTTPException(status_code=404, detail="Patient not found")
        query = query.filter(models.Appointment.patient_id == patient.patient_id)
    elif current_user.role == models.UserRole.DOCTOR:
        doctor = db.query(models.Doctor).filter(models.Doctor.user_id == current_user.user_id).first()
        if not doctor:
            raise HTTPException(status_code=404, detail="Doctor not found")
        query = query.filter(models.Appointment.doctor_id == doctor.doctor_id)
    if status:
        query = query.filter(models.Appointment.status == status)

    total = query.count()
    appointments = page.apply(query.options(
        joinedload(models.Appointment.doctor).joinedload(models.Doctor.user),
        joinedload(models.Appointment.patient).joinedload(models.Patient.user),
    ).order_by(models.Appointment.scheduled_date.desc(), models.Appointment.appointment_id.desc())).all()
    return {"data": {"appointments": appointments, "pagination": page.meta(total)}}

@router.patch("", response_model= schemas.Envelope[schemas.AppointmentActionResult])
def cancel_appointment(body: schemas.AppointmentAction, db: Session = Depends(get_db), patient: models.Patient = Depends(oauth2.get_patient)):
    appointment = lifecycle.cancel_appointment(db, patient, body.appointment_id)
    return {"data": {"appointment": appointment, "message": "Appointment cancelled"}}
