from datetime import datetime, timezone, timedelta
from jose import jwt, JWTError
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from pydantic import ValidationError
from sqlalchemy.orm import Session
from database import get_db
from config import settings
import schemas, models

oauth2_scheme = OAuth2PasswordBearer(tokenUrl='/auth/login')

def create_access_token(user: models.User) -> str:
    expires = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    claims = {"sub": str(user.user_id), "role": user.role.value, "exp": expires}
    return jwt.encode(claims, key= settings.secret_key, algorithm= settings.algorithm)

def decode_access_token(token: str) -> schemas.TokenData:
    """Raises JWTError or ValidationError for anything that is not a token we issued."""
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    return schemas.TokenData(id=payload.get("sub"), role=payload.get("role"))

def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> models.User:
    unauthorized = HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                                 detail="Unauthorized", headers={"WWW-Authenticate": "Bearer"})
    try:
        claims = decode_access_token(token)
    except (JWTError, ValidationError):
        raise unauthorized
    user = db.get(models.User, claims.id)
    if not user:
        raise unauthorized
    return user

def require_role(*roles: models.UserRole):
    """Dependency factory: the caller must be signed in, not suspended and, when roles are given, hold one of them."""
    def dependency(current_user: models.User = Depends(get_current_user)) -> models.User:
        if current_user.is_suspended:
            raise HTTPException(status_code=403, detail="Account suspended")
        if roles and current_user.role not in roles:
            raise HTTPException(status_code=403, detail="Forbidden")
        return current_user
    return dependency

def get_patient(db: Session = Depends(get_db), current_user: models.User = Depends(require_role(models.UserRole.PATIENT))) -> models.Patient:
    patient = db.query(models.Patient).filter(models.Patient.user_id == current_user.user_id).first()
    if not patient:
        raise HTTPException(status_code=404, detail="Patient profile not found")
    return patient

def get_doctor(db: Session = Depends(get_db), current_user: models.User = Depends(require_role(models.UserRole.DOCTOR))) -> models.Doctor:
    doctor = db.query(models.Doctor).filter(models.Doctor.user_id == current_user.user_id).first()
    if not doctor:
        raise HTTPException(status_code=404, detail="Doctor profile not found")
    return doctor
