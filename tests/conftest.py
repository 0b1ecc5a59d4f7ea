import uuid
from datetime import date
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from database import Base, get_db
from main import app
import models, oauth2, utils

PASSWORD = "secret123"


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()

@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)

@pytest.fixture
def db(session_factory):
    """Session used by the test itself; call db.expire_all() after HTTP calls to see their writes."""
    session = session_factory()
    yield session
    session.close()

@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db, role, name="Test User", email=None, suspended=False):
    user = models.User(name=name, email=email or f"user-{uuid.uuid4().hex[:10]}@telecare.io",
                       password=utils.hash(PASSWORD), role=role, is_suspended=suspended)
    db.add(user)
    db.flush()
    return user

def make_doctor(db, name="Dr. Lina Saad", fee=150, approved=True, specialization="Cardiology", experience=10):
    user = make_user(db, models.UserRole.DOCTOR, name=name)
    doctor = models.Doctor(user_id=user.user_id, specialization=specialization, qualifications=["MD"],
                           experience=experience, consultation_fee=fee, license_number="LIC-001",
                           is_approved=models.ApprovalStatus.APPROVED if approved else models.ApprovalStatus.PENDING)
    db.add(doctor)
    db.commit()
    return doctor

def make_patient(db, name="Sami Nasser"):
    user = make_user(db, models.UserRole.PATIENT, name=name)
    patient = models.Patient(user_id=user.user_id)
    db.add(patient)
    db.commit()
    return patient

def make_appointment(db, doctor, patient, status=models.AppointmentStatus.PENDING, start="10:00", end="10:30",
                     day=date(2025, 6, 1)):
    appointment = models.Appointment(doctor_id=doctor.doctor_id, patient_id=patient.patient_id, scheduled_date=day,
                                     slot_start=start, slot_end=end, status=status,
                                     consultation_fee=doctor.consultation_fee)
    db.add(appointment)
    db.commit()
    return appointment

def auth_headers(user):
    token = oauth2.create_access_token(user)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def doctor(db):
    return make_doctor(db)

@pytest.fixture
def patient(db):
    return make_patient(db)

@pytest.fixture
def other_patient(db):
    return make_patient(db, name="Rana Aziz")

@pytest.fixture
def admin(db):
    user = make_user(db, models.UserRole.ADMIN, name="Admin")
    db.commit()
    return user

@pytest.fixture
def doctor_headers(doctor):
    return auth_headers(doctor.user)

@pytest.fixture
def patient_headers(patient):
    return auth_headers(patient.user)

@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)
