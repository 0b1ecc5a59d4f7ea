from enum import Enum
from pydantic import BaseModel, ConfigDict, EmailStr, Field, HttpUrl, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Generic, List, Optional, Literal, TypeVar
from datetime import date, datetime
from models import (UserRole, ApprovalStatus, AppointmentStatus, PaymentStatus,
                    VideoSessionStatus, NotificationType, Weekday)

T = TypeVar("T")

HHMM = r"^([01]\d|2[0-3]):[0-5]\d$"
Gender = Literal['Male', 'Female', 'Other']
BloodGroup = Literal['A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-']


class Schema(BaseModel):
    """Base for every request/response body: camelCase on the wire, ORM rows on the way out."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

class Envelope(Schema, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    error: Optional[str] = None

class Pagination(Schema):
    page: int
    limit: int
    total: int
    pages: int

class Message(Schema):
    message: str


# Auth

class Register(Schema):
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6)
    role: Literal['PATIENT', 'DOCTOR'] = 'PATIENT'

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.strip().lower()

class DoctorRegister(Register):
    role: Literal['DOCTOR']
    specialization: str = Field(min_length=2)
    qualifications: List[str] = Field(min_length=1)
    experience: int = Field(ge=0)
    consultation_fee: float = Field(ge=0)
    license_number: str = Field(min_length=3)
    bio: Optional[str] = None

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

class TokenData(BaseModel):
    id: int
    role: str

class UserOutput(Schema):
    user_id: int
    name: str
    email: str
    image: str
    role: UserRole
    is_suspended: bool
    created_at: Optional[datetime] = None

class UserBrief(Schema):
    user_id: int
    name: str
    email: str
    image: str


# Doctor

class AvailabilitySlot(Schema):
    day: Weekday
    start_time: str = Field(pattern=HHMM)
    end_time: str = Field(pattern=HHMM)
    is_active: bool = True

class Rating(Schema):
    average: float
    count: int

class DoctorOutput(Schema):
    doctor_id: int
    name: Optional[str] = None
    specialization: str
    qualifications: List[str]
    experience: int
    bio: str
    consultation_fee: float
    rating: Rating
    availability: List[AvailabilitySlot] = []

class DoctorOwnerOutput(DoctorOutput):
    user: UserBrief
    license_number: str
    is_approved: ApprovalStatus
    created_at: Optional[datetime] = None

class DoctorList(Schema):
    doctors: List[DoctorOutput]
    pagination: Pagination

class AdminDoctorList(Schema):
    doctors: List[DoctorOwnerOutput]
    pagination: Pagination

class UpdateDoctor(Schema):
    update_type: Literal['profile', 'fee', 'availability'] = 'profile'
    specialization: Optional[str] = Field(None, min_length=2)
    qualifications: Optional[List[str]] = None
    experience: Optional[int] = Field(None, ge=0)
    bio: Optional[str] = None
    consultation_fee: Optional[float] = Field(None, ge=0)
    availability: Optional[List[AvailabilitySlot]] = None

    @model_validator(mode="after")
    def check_update_type(self):
        if self.update_type == 'fee' and self.consultation_fee is None:
            raise ValueError("consultationFee is required")
        if self.update_type == 'availability' and self.availability is None:
            raise ValueError("availability is required")
        return self


# Patient

class EmergencyContact(Schema):
    name: str
    phone: str
    relation: str

class UpdatePatient(Schema):
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    blood_group: Optional[BloodGroup] = None
    allergies: Optional[List[str]] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[EmergencyContact] = None

class PatientOutput(Schema):
    patient_id: int
    name: Optional[str] = None

class PatientOwnerOutput(PatientOutput):
    user: UserBrief
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    blood_group: Optional[str] = None
    allergies: List[str] = []
    phone: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[EmergencyContact] = None


# Appointments

class TimeSlot(Schema):
    start: str = Field(pattern=HHMM)
    end: str = Field(pattern=HHMM)

    @model_validator(mode="after")
    def check_order(self):
        if self.end <= self.start:
            raise ValueError("timeSlot end must be after start")
        return self

class AppointmentInput(Schema):
    doctor_id: int
    scheduled_date: date
    time_slot: TimeSlot
    reason: Optional[str] = None

class AppointmentAction(Schema):
    appointment_id: int

class DoctorAppointmentAction(Schema):
    appointment_id: int
    action: Literal["complete", "start-video", "end-video"]

class AppointmentOutput(Schema):
    appointment_id: int
    doctor_id: int
    patient_id: int
    scheduled_date: date
    time_slot: TimeSlot
    status: AppointmentStatus
    reason: Optional[str] = None
    notes: Optional[str] = None
    consultation_fee: float
    created_at: Optional[datetime] = None

class AppointmentDetail(AppointmentOutput):
    doctor: Optional[DoctorOutput] = None
    patient: Optional[PatientOutput] = None

class AppointmentList(Schema):
    appointments: List[AppointmentDetail]
    pagination: Pagination


# Payments

class PaymentInput(Schema):
    appointment_id: int

class PaymentConfirm(Schema):
    transaction_id: str = Field(min_length=1)
    status: str

class PaymentOutput(Schema):
    payment_id: int
    appointment_id: int
    patient_id: int
    doctor_id: int
    amount: float
    currency: str
    status: PaymentStatus
    transaction_id: Optional[str] = None
    payment_method: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

class PaymentDetail(PaymentOutput):
    appointment: Optional[AppointmentOutput] = None

class PaymentResult(Schema):
    payment: PaymentOutput
    message: Optional[str] = None

class PaymentList(Schema):
    payments: List[PaymentDetail]


# Video

class VideoSessionOutput(Schema):
    session_id: int
    appointment_id: int
    room_id: str
    status: VideoSessionStatus
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    duration: Optional[int] = None

class VideoActionResult(Schema):
    video_session: VideoSessionOutput
    room_id: Optional[str] = None
    message: Optional[str] = None

class AppointmentActionResult(Schema):
    appointment: AppointmentOutput
    message: str

class VideoJoin(Schema):
    room_id: str
    status: VideoSessionStatus
    appointment_id: int
    role: UserRole


# Reviews

class ReviewInput(Schema):
    appointment_id: int
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=500)

class ReviewOutput(Schema):
    review_id: int
    appointment_id: int
    doctor_id: int
    patient_id: int
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None

class ReviewDetail(ReviewOutput):
    patient: Optional[PatientOutput] = None

class ReviewList(Schema):
    reviews: List[ReviewDetail]
    pagination: Pagination


# Prescriptions

class MedicationItem(Schema):
    name: str = Field(min_length=1)
    dosage: str = Field(min_length=1)
    frequency: str = Field(min_length=1)
    duration: str = Field(min_length=1)
    notes: Optional[str] = None

class PrescriptionInput(Schema):
    appointment_id: int
    diagnosis: str = Field(min_length=1)
    medications: List[MedicationItem] = Field(min_length=1)
    instructions: Optional[str] = None
    follow_up_date: Optional[date] = None

class PrescriptionOutput(Schema):
    prescription_id: int
    appointment_id: int
    doctor_id: int
    patient_id: int
    diagnosis: str
    medications: List[MedicationItem]
    instructions: Optional[str] = None
    follow_up_date: Optional[date] = None
    created_at: Optional[datetime] = None

class PrescriptionList(Schema):
    prescriptions: List[PrescriptionOutput]


# Medical records

class MedicalRecordInput(Schema):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    file_url: HttpUrl
    file_type: str = Field(min_length=1)
    appointment_id: Optional[int] = None

class MedicalRecordOutput(Schema):
    record_id: int
    patient_id: int
    appointment_id: Optional[int] = None
    uploaded_by: int
    title: str
    description: Optional[str] = None
    file_url: str
    file_type: str
    created_at: Optional[datetime] = None

class MedicalRecordList(Schema):
    records: List[MedicalRecordOutput]


# Notifications

class NotificationOutput(Schema):
    notification_id: int
    title: str
    message: str
    type: NotificationType
    is_read: bool
    link: Optional[str] = None
    created_at: Optional[datetime] = None

class NotificationList(Schema):
    notifications: List[NotificationOutput]
    unread_count: int

class NotificationUpdate(Schema):
    notification_id: Optional[int] = None
    action: Optional[Literal['read-all']] = None


# Admin

class DoctorReview(Schema):
    doctor_id: int
    action: Literal['approve', 'reject']

class AdminDoctorResult(Schema):
    doctor: DoctorOwnerOutput
    message: str

class UserSuspension(Schema):
    user_id: int
    action: Literal['suspend', 'unsuspend']

class UserList(Schema):
    users: List[UserOutput]

class ApprovalFilter(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    ALL = "ALL"

class DoctorSort(str, Enum):
    rating = "rating"
    fee_low = "fee-low"
    fee_high = "fee-high"
    experience = "experience"
