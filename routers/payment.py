import hmac
import logging
from fastapi import APIRouter, HTTPException, Depends, Header
from sqlalchemy.orm import Session, joinedload
from typing import Optional
from config import settings
from database import get_db
import models, schemas, oauth2, lifecycle

logger = logging.getLogger(__name__)

router = APIRouter(prefix= "/payments", tags=['Payments'])

def verify_webhook_secret(x_webhook_secret: Optional[str] = Header(None)):
    """Confirmation comes from the payment provider, not a signed-in user; guarded by a shared secret when one is configured."""
    if not settings.payment_webhook_secret:
        return
    if not x_webhook_secret or not hmac.compare_digest(x_webhook_secret, settings.payment_webhook_secret):
        logger.warning("Rejected payment callback with a bad webhook secret")
        raise HTTPException(status_code=401, detail="Invalid webhook secret")

@router.post("", response_model= schemas.Envelope[schemas.PaymentResult])
def initiate_payment(body: schemas.PaymentInput, db: Session = Depends(get_db), patient: models.Patient = Depends(oauth2.get_patient)):
    payment = lifecycle.initiate_payment(db, patient, body.appointment_id)
    return {"data": {"payment": payment, "message": "Payment initiated"}}

@router.patch("", response_model= schemas.Envelope[schemas.PaymentResult], dependencies=[Depends(verify_webhook_secret)])
def confirm_payment(body: schemas.PaymentConfirm, db: Session = Depends(get_db)):
    payment = lifecycle.confirm_payment(db, body.transaction_id, body.status)
    return {"data": {"payment": payment}}

@router.get("", response_model= schemas.Envelope[schemas.PaymentList])
def get_payments(db: Session = Depends(get_db), current_user: models.User = Depends(oauth2.require_role())):
    query = db.query(models.Payment)
    if current_user.role == models.UserRole.PATIENT:
        patient = db.query(models.Patient).filter(models.Patient.user_id == current_user.user_id).first()
        if not patient:
            raise HTTPException(status_code=404, detail="Patient not found")
        query = query.filter(models.Payment.patient_id == patient.patient_id)
    elif current_user.role == models.UserRole.DOCTOR:
        doctor = db.query(models.Doctor).filter(models.Doctor.user_id == current_user.user_id).first()
        if not doctor:
            raise HTTPException(status_code=404, detail="Doctor not found")
        query = query.filter(models.Payment.doctor_id == doctor.doctor_id)
    payments = query.options(joinedload(models.Payment.appointment)).order_by(models.Payment.created_at.desc(), models.Payment.payment_id.desc()).all()
    return {"data": {"payments": payments}}
