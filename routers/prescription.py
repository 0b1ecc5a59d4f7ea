import logging
from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy.orm import Session, selectinload
from database import get_db
import models, schemas, oauth2
from models import AppointmentStatus, NotificationType
from notifier import notify
from typing import Optional

logger = logging.getLogger(__name__)

router = APIRouter(prefix= '/patient/prescriptions', tags=['Prescriptions'])

@router.post("", status_code=201, response_model= schemas.Envelope[schemas.PrescriptionOutput])
def create_prescription(body: schemas.PrescriptionInput, db: Session = Depends(get_db), doctor: models.Doctor = Depends(oauth2.get_doctor)):
    appointment = db.query(models.Appointment).filter(
        models.Appointment.appointment_id == body.appointment_id,
        models.Appointment.doctor_id == doctor.doctor_id,
        models.Appointment.status.in_((AppointmentStatus.CONFIRMED, AppointmentStatus.COMPLETED)),
    ).first()
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found or unauthorized")

    prescription = models.Prescription(
        appointment_id=appointment.appointment_id,
        doctor_id=doctor.doctor_id,
        patient_id=appointment.patient_id,
        diagnosis=body.diagnosis,
        instructions=body.instructions,
        follow_up_date=body.follow_up_date,
        medications=[models.Medication(**item.model_dump()) for item in body.medications],
    )
    db.add(prescription)
    notify(db, appointment.patient.user_id, "New Prescription", "Your doctor has issued a new prescription.",
           NotificationType.PRESCRIPTION, "/patient/prescriptions")
    db.commit()
    db.refresh(prescription)
    logger.info("Prescription %s issued for appointment %s", prescription.prescription_id, appointment.appointment_id)
    return {"data": prescription}

@router.get("", response_model= schemas.Envelope[schemas.PrescriptionList])
def get_prescriptions(appointment_id: Optional[int] = Query(None, alias="appointmentId"), db: Session = Depends(get_db),
                      current_user: models.User = Depends(oauth2.require_role())):
    query = db.query(models.Prescription)
    if current_user.role == models.UserRole.PATIENT:
        patient = db.query(models.Patient).filter(models.Patient.user_id == current_user.user_id).first()
        if not patient:
            raise HTTPException(status_code=404, detail="Patient not found")
        query = query.filter(models.Prescription.patient_id == patient.patient_id)
    elif current_user.role == models.UserRole.DOCTOR:
        doctor = db.query(models.Doctor).filter(models.Doctor.user_id == current_user.user_id).first()
        if not doctor:
            raise HTTPException(status_code=404, detail="Doctor not found")
        query = query.filter(models.Prescription.doctor_id == doctor.doctor_id)
    if appointment_id:
        query = query.filter(models.Prescription.appointment_id == appointment_id)
    prescriptions = query.options(selectinload(models.Prescription.medications)).order_by(models.Prescription.created_at.desc(), models.Prescription.prescription_id.desc()).all()
    return {"data": {"prescriptions": prescriptions}}
