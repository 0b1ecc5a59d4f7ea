import enum
from database import Base
from sqlalchemy import Column, Integer, String, ForeignKey, Date, DateTime, Enum, Boolean, Float, Text, JSON, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    DOCTOR = "DOCTOR"
    PATIENT = "PATIENT"

class ApprovalStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

class AppointmentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

# statuses that hold a doctor's slot
ACTIVE_APPOINTMENT_STATUSES = (AppointmentStatus.PENDING, AppointmentStatus.PAID, AppointmentStatus.CONFIRMED)

class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"

class VideoSessionStatus(str, enum.Enum):
    WAITING = "WAITING"
    ACTIVE = "ACTIVE"
    ENDED = "ENDED"

class NotificationType(str, enum.Enum):
    APPOINTMENT = "APPOINTMENT"
    PAYMENT = "PAYMENT"
    APPROVAL = "APPROVAL"
    VIDEO = "VIDEO"
    PRESCRIPTION = "PRESCRIPTION"
    REVIEW = "REVIEW"
    SYSTEM = "SYSTEM"

class Weekday(str, enum.Enum):
    MON = "MON"
    TUE = "TUE"
    WED = "WED"
    THU = "THU"
    FRI = "FRI"
    SAT = "SAT"
    SUN = "SUN"


class User(Base):
    __tablename__ = 'users'
    user_id = Column(Integer, primary_key= True)
    name = Column(String, nullable= False)
    email = Column(String, nullable= False, unique= True, index= True)
    password = Column(String, nullable=True)
    image = Column(String, nullable=False, default="")
    role = Column(Enum(UserRole, name="user_role"), nullable=False, default=UserRole.PATIENT)
    is_suspended = Column(Boolean, nullable=False, default=False)
    provider = Column(String, nullable=False, default="credentials")
    created_at = Column(DateTime(timezone = True), server_default= func.now())
    updated_at = Column(DateTime(timezone = True), server_default= func.now(), onupdate= func.now())

class Doctor(Base):
    __tablename__ = 'doctors'
    doctor_id = Column(Integer, primary_key= True)
    user_id = Column(Integer, ForeignKey('users.user_id', ondelete='CASCADE'), unique=True, nullable=False)
    specialization = Column(String, nullable= False)
    qualifications = Column(JSON, nullable=False, default=list)
    experience = Column(Integer, nullable=False)
    bio = Column(Text, nullable=False, default="")
    consultation_fee = Column(Float, nullable=False)
    license_number = Column(String, nullable=False)
    is_approved = Column(Enum(ApprovalStatus, name="approval_status"), nullable=False, default=ApprovalStatus.PENDING, index=True)
    rating_average = Column(Float, nullable=False, default=0)
    rating_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone = True), server_default= func.now())

    user = relationship("User")
    availability = relationship("Availability", cascade="all, delete-orphan", order_by="Availability.availability_id")

    @property
    def name(self):
        return self.user.name if self.user else None

    @property
    def rating(self):
        return {"average": self.rating_average, "count": self.rating_count}

class Availability(Base):
    __tablename__ = 'doctor_availability'
    availability_id = Column(Integer, primary_key= True)
    doctor_id = Column(Integer, ForeignKey('doctors.doctor_id', ondelete= 'CASCADE'), nullable=False)
    day = Column(Enum(Weekday, name="weekday"), nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

class Patient(Base):
    __tablename__ = 'patients'
    patient_id = Column(Integer, primary_key= True)
    user_id = Column(Integer, ForeignKey('users.user_id', ondelete='CASCADE'), unique=True, nullable=False)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(Enum('Male', 'Female', 'Other', name = "patient_gender", create_constraint = True), nullable=True)
    blood_group = Column(Enum('A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-', name = "blood_group", create_constraint = True), nullable=True)
    allergies = Column(JSON, nullable=False, default=list)
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)
    emergency_contact = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone = True), server_default= func.now())

    user = relationship("User")

    @property
    def name(self):
        return self.user.name if self.user else None


class Appointment(Base):
    __tablename__ = "appointments"
    appointment_id = Column(Integer, primary_key= True)
    doctor_id = Column(Integer, ForeignKey('doctors.doctor_id', ondelete= 'CASCADE'), nullable=False)
    patient_id = Column(Integer, ForeignKey('patients.patient_id', ondelete= 'CASCADE'), nullable=False)
    scheduled_date = Column(Date, nullable=False)
    slot_start = Column(String(5), nullable=False)
    slot_end = Column(String(5), nullable=False)
    status = Column(Enum(AppointmentStatus, name="appointment_status"), nullable=False, default=AppointmentStatus.PENDING)
    reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    consultation_fee = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone = True), server_default= func.now())
    updated_at = Column(DateTime(timezone = True), server_default= func.now(), onupdate= func.now())

    doctor = relationship("Doctor")
    patient = relationship("Patient")

    __table_args__ = (
        Index("ix_appointments_doctor_date", "doctor_id", "scheduled_date"),
        Index("ix_appointments_patient_date", "patient_id", "scheduled_date"),
        Index(
            "uq_appointments_active_slot", "doctor_id", "scheduled_date", "slot_start",
            unique=True,
            sqlite_where=text("status IN ('PENDING', 'PAID', 'CONFIRMED')"),
            postgresql_where=text("status IN ('PENDING', 'PAID', 'CONFIRMED')"),
        ),
    )

    @property
    def time_slot(self):
        return {"start": self.slot_start, "end": self.slot_end}

class Payment(Base):
    __tablename__ = "payments"
    payment_id = Column(Integer, primary_key= True)
    appointment_id = Column(Integer, ForeignKey('appointments.appointment_id', ondelete= 'CASCADE'), unique=True, nullable=False)
    patient_id = Column(Integer, ForeignKey('patients.patient_id', ondelete= 'CASCADE'), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey('doctors.doctor_id', ondelete= 'CASCADE'), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    currency = Column(String, nullable=False, default="usd")
    status = Column(Enum(PaymentStatus, name="payment_status"), nullable=False, default=PaymentStatus.PENDING)
    transaction_id = Column(String, unique=True, nullable=True)
    payment_method = Column(String, nullable=True)
    paid_at = Column(DateTime(timezone = True), nullable=True)
    created_at = Column(DateTime(timezone = True), server_default= func.now())

    appointment = relationship("Appointment")

class VideoSession(Base):
    __tablename__ = "video_sessions"
    session_id = Column(Integer, primary_key= True)
    appointment_id = Column(Integer, ForeignKey('appointments.appointment_id', ondelete= 'CASCADE'), unique=True, nullable=False)
    room_id = Column(String, unique=True, nullable=False)
    status = Column(Enum(VideoSessionStatus, name="video_session_status"), nullable=False, default=VideoSessionStatus.WAITING)
    started_at = Column(DateTime(timezone = True), nullable=True)
    ended_at = Column(DateTime(timezone = True), nullable=True)
    duration = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone = True), server_default= func.now())

class Review(Base):
    __tablename__ = "reviews"
    review_id = Column(Integer, primary_key= True)
    appointment_id = Column(Integer, ForeignKey('appointments.appointment_id', ondelete= 'CASCADE'), unique=True, nullable=False)
    doctor_id = Column(Integer, ForeignKey('doctors.doctor_id', ondelete= 'CASCADE'), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey('patients.patient_id', ondelete= 'CASCADE'), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone = True), server_default= func.now())

    patient = relationship("Patient")

class Prescription(Base):
    __tablename__ = "prescriptions"
    prescription_id = Column(Integer, primary_key= True)
    appointment_id = Column(Integer, ForeignKey('appointments.appointment_id', ondelete= 'CASCADE'), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey('doctors.doctor_id', ondelete= 'CASCADE'), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey('patients.patient_id', ondelete= 'CASCADE'), nullable=False, index=True)
    diagnosis = Column(Text, nullable=False)
    instructions = Column(Text, nullable=True)
    follow_up_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone = True), server_default= func.now())

    medications = relationship("Medication", cascade="all, delete-orphan", order_by="Medication.medication_id")

class Medication(Base):
    __tablename__ = "prescription_medications"
    medication_id = Column(Integer, primary_key= True)
    prescription_id = Column(Integer, ForeignKey('prescriptions.prescription_id', ondelete= 'CASCADE'), nullable=False)
    name = Column(String, nullable=False)
    dosage = Column(String, nullable=False)
    frequency = Column(String, nullable=False)
    duration = Column(String, nullable=False)
    notes = Column(String, nullable=True)

class MedicalRecord(Base):
    __tablename__ = "medical_records"
    record_id = Column(Integer, primary_key= True)
    patient_id = Column(Integer, ForeignKey('patients.patient_id', ondelete= 'CASCADE'), nullable=False, index=True)
    appointment_id = Column(Integer, ForeignKey('appointments.appointment_id', ondelete= 'SET NULL'), nullable=True)
    uploaded_by = Column(Integer, ForeignKey('users.user_id', ondelete= 'CASCADE'), nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    file_url = Column(String, nullable=False)
    file_type = Column(String, nullable=False)
    created_at = Column(DateTime(timezone = True), server_default= func.now())

class Notification(Base):
    __tablename__ = "notifications"
    notification_id = Column(Integer, primary_key= True)
    user_id = Column(Integer, ForeignKey('users.user_id', ondelete= 'CASCADE'), nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(String, nullable=False)
    type = Column(Enum(NotificationType, name="notification_type"), nullable=False, default=NotificationType.SYSTEM)
    is_read = Column(Boolean, nullable=False, default=False)
    link = Column(String, nullable=True)
    created_at = Column(DateTime(timezone = True), server_default= func.now())
