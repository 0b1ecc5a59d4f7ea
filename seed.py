# Seeds a development database with one account per role.
# Run: python seed.py   (uses DATABASE_URL from .env)
import logging
from database import SessionLocal, engine, Base
import models, utils

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("seed")

DEFAULT_PASSWORD = "password123"

ACCOUNTS = [
    {"name": "Site Admin", "email": "admin@telecare.io", "role": models.UserRole.ADMIN},
    {"name": "Dr. Amina Haddad", "email": "amina.haddad@telecare.io", "role": models.UserRole.DOCTOR,
     "doctor": {"specialization": "General Practice", "qualifications": ["MBBS", "MRCGP"], "experience": 9,
                "consultation_fee": 150, "license_number": "GP-20931", "bio": "Family medicine and preventive care."}},
    {"name": "Omar Khalil", "email": "omar.khalil@telecare.io", "role": models.UserRole.PATIENT},
]

WEEKDAYS = [models.Weekday.MON, models.Weekday.TUE, models.Weekday.WED, models.Weekday.THU, models.Weekday.FRI]


def seed(db):
    for account in ACCOUNTS:
        if db.query(models.User).filter(models.User.email == account["email"]).first():
            logger.info("Skipping %s, already present", account["email"])
            continue
        user = models.User(name=account["name"], email=account["email"], password=utils.hash(DEFAULT_PASSWORD), role=account["role"])
        db.add(user)
        db.flush()
        if account["role"] == models.UserRole.DOCTOR:
            doctor = models.Doctor(user_id=user.user_id, is_approved=models.ApprovalStatus.APPROVED, **account["doctor"])
            doctor.availability = [models.Availability(day=day, start_time="09:00", end_time="17:00") for day in WEEKDAYS]
            db.add(doctor)
        elif account["role"] == models.UserRole.PATIENT:
            db.add(models.Patient(user_id=user.user_id))
        logger.info("Created %s %s", account["role"].value, account["email"])
    db.commit()


if __name__ == "__main__":
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed(db)
    finally:
        db.close()
