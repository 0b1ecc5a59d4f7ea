import logging
from fastapi import APIRouter, Depends, HTTPException, Body
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import ValidationError
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import schemas, models, utils, oauth2
from database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix= "/auth", tags=['Auth'])

@router.post("/register", status_code=201, response_model= schemas.Envelope[schemas.UserOutput])
def register(body: dict = Body(...), db : Session = Depends(get_db)):
    is_doctor = body.get("role") == models.UserRole.DOCTOR.value
    try:
        data = schemas.DoctorRegister.model_validate(body) if is_doctor else schemas.Register.model_validate(body)
    except ValidationError as e:
        raise RequestValidationError(e.errors())

    if db.query(models.User).filter(models.User.email == data.email).first():
        raise HTTPException(status_code=409, detail="Email already registered")

    new = models.User(name=data.name, email=data.email, password=utils.hash(data.password),
                      role=models.UserRole.DOCTOR if is_doctor else models.UserRole.PATIENT)
    db.add(new)
    try:
        db.flush()
        if is_doctor:
            db.add(models.Doctor(user_id=new.user_id, specialization=data.specialization,
                                 qualifications=data.qualifications, experience=data.experience,
                                 consultation_fee=data.consultation_fee, license_number=data.license_number,
                                 bio=data.bio or ""))
        else:
            db.add(models.Patient(user_id=new.user_id))
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Email already registered")
    db.refresh(new)
    logger.info("Registered %s account %s", new.role.value, new.user_id)
    return {"data": new}

@router.post("/login", response_model= schemas.Token)
def user_login(credentials: OAuth2PasswordRequestForm = Depends(), db : Session = Depends(get_db)):
    user = db.query(models.User).filter(models.User.email == credentials.username.strip().lower()).first()
    if not user or not utils.verify(credentials.password, user.password):
        raise HTTPException(status_code=401, detail="Incorrect username or password")
    if user.is_suspended:
        raise HTTPException(status_code=403, detail="Your account has been suspended")
    access_token = oauth2.create_access_token(user)
    return {"access_token": access_token, "token_type": "bearer"}
