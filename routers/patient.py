from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from database import get_db
import models, schemas, oauth2

router = APIRouter(prefix= '/patient', tags=['Patient'])

@router.get("/me", response_model= schemas.Envelope[schemas.PatientOwnerOutput])
def get_profile(patient: models.Patient = Depends(oauth2.get_patient)):
    return {"data": patient}

@router.patch("/me", response_model= schemas.Envelope[schemas.PatientOwnerOutput])
def update_profile(update: schemas.UpdatePatient, db: Session = Depends(get_db), patient: models.Patient = Depends(oauth2.get_patient)):
    changes = update.model_dump(exclude_unset=True)
    if "allergies" in changes and changes["allergies"] is None:
        changes["allergies"] = []
    for field, value in changes.items():
        setattr(patient, field, value)
    db.commit()
    db.refresh(patient)
    return {"data": patient}
