from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session
from database import get_db
import models, schemas, oauth2

router = APIRouter(prefix= '/patient/records', tags=['Medical records'])

participant = oauth2.require_role(models.UserRole.PATIENT, models.UserRole.DOCTOR)

@router.post("", status_code=201, response_model= schemas.Envelope[schemas.MedicalRecordOutput])
def upload_record(body: schemas.MedicalRecordInput, db: Session = Depends(get_db), current_user: models.User = Depends(participant)):
    if current_user.role == models.UserRole.PATIENT:
        patient = db.query(models.Patient).filter(models.Patient.user_id == current_user.user_id).first()
        if not patient:
            raise HTTPException(status_code=404, detail="Patient not found")
        patient_id = patient.patient_id
    else:
        # a doctor may only attach records to one of their own appointments
        if not body.appointment_id:
            raise HTTPException(status_code=400, detail="Doctor must provide appointmentId")
        doctor = db.query(models.Doctor).filter(models.Doctor.user_id == current_user.user_id).first()
        if not doctor:
            raise HTTPException(status_code=404, detail="Doctor not found")
        appointment = db.query(models.Appointment).filter(
            models.Appointment.appointment_id == body.appointment_id,
            models.Appointment.doctor_id == doctor.doctor_id,
        ).first()
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found or unauthorized")
        patient_id = appointment.patient_id

    record = models.MedicalRecord(
        patient_id=patient_id,
        appointment_id=body.appointment_id,
        uploaded_by=current_user.user_id,
        title=body.title,
        description=body.description,
        file_url=str(body.file_url),
        file_type=body.file_type,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return {"data": record}

@router.get("", response_model= schemas.Envelope[schemas.MedicalRecordList])
def get_records(db: Session = Depends(get_db), current_user: models.User = Depends(participant)):
    if current_user.role == models.UserRole.PATIENT:
        patient = db.query(models.Patient).filter(models.Patient.user_id == current_user.user_id).first()
        if not patient:
            raise HTTPException(status_code=404, detail="Patient not found")
        query = db.query(models.MedicalRecord).filter(models.MedicalRecord.patient_id == patient.patient_id)
    else:
        doctor = db.query(models.Doctor).filter(models.Doctor.user_id == current_user.user_id).first()
        if not doctor:
            raise HTTPException(status_code=404, detail="Doctor not found")
        my_patients = select(models.Appointment.patient_id).where(models.Appointment.doctor_id == doctor.doctor_id)
        query = db.query(models.MedicalRecord).filter(models.MedicalRecord.patient_id.in_(my_patients))
    records = query.order_by(models.MedicalRecord.created_at.desc(), models.MedicalRecord.record_id.desc()).all()
    return {"data": {"records": records}}
