"""Appointment lifecycle.

Every state change here is a single ``UPDATE ... WHERE`` whose filter carries
the precondition, so a request that loses a race simply matches no row and is
reported as not found. Allowed moves::

    PENDING --payment confirmed--> CONFIRMED --doctor completes--> COMPLETED
    PENDING / PAID --patient cancels--> CANCELLED

COMPLETED and CANCELLED are terminal.
"""
import logging
from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import models, schemas, utils
from models import AppointmentStatus, PaymentStatus, VideoSessionStatus, NotificationType
from notifier import notify

logger = logging.getLogger(__name__)

CANCELLABLE = (AppointmentStatus.PENDING, AppointmentStatus.PAID)
JOINABLE = (VideoSessionStatus.WAITING, VideoSessionStatus.ACTIVE)


def create_appointment(db: Session, patient: models.Patient, booking: schemas.AppointmentInput) -> models.Appointment:
    doctor = db.query(models.Doctor).filter(models.Doctor.doctor_id == booking.doctor_id).filter(models.Doctor.is_approved == models.ApprovalStatus.APPROVED).first()
    if not doctor:
        raise HTTPException(status_code=404, detail="Doctor not found or not approved")

    taken = db.query(models.Appointment).filter(
        models.Appointment.doctor_id == doctor.doctor_id,
        models.Appointment.scheduled_date == booking.scheduled_date,
        models.Appointment.slot_start == booking.time_slot.start,
        models.Appointment.status.in_(models.ACTIVE_APPOINTMENT_STATUSES),
    ).first()
    if taken:
        logger.warning("Slot %s %s for doctor %s already held by appointment %s",
                       booking.scheduled_date, booking.time_slot.start, doctor.doctor_id, taken.appointment_id)
        raise HTTPException(status_code=409, detail="This time slot is already booked")

    appointment = models.Appointment(
        doctor_id=doctor.doctor_id,
        patient_id=patient.patient_id,
        scheduled_date=booking.scheduled_date,
        slot_start=booking.time_slot.start,
        slot_end=booking.time_slot.end,
        reason=booking.reason,
        consultation_fee=doctor.consultation_fee,
        status=AppointmentStatus.PENDING,
    )
    db.add(appointment)
    notify(db, doctor.user_id, "New Appointment Request",
           f"A patient has booked an appointment for {booking.scheduled_date.isoformat()}",
           NotificationType.APPOINTMENT, "/doctor/appointments")
    try:
        db.commit()
    except IntegrityError:
        # a concurrent booking got the slot between the check and the insert
        db.rollback()
        raise HTTPException(status_code=409, detail="This time slot is already booked")
    db.refresh(appointment)
    logger.info("Appointment %s booked with doctor %s by patient %s", appointment.appointment_id, doctor.doctor_id, patient.patient_id)
    return appointment


def initiate_payment(db: Session, patient: models.Patient, appointment_id: int) -> models.Payment:
    appointment = db.query(models.Appointment).filter(
        models.Appointment.appointment_id == appointment_id,
        models.Appointment.patient_id == patient.patient_id,
        models.Appointment.status == AppointmentStatus.PENDING,
    ).first()
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found or not in pending state")

    payment = db.query(models.Payment).filter(models.Payment.appointment_id == appointment.appointment_id).first()
    if payment and payment.status == PaymentStatus.SUCCESS:
        raise HTTPException(status_code=409, detail="Payment already completed")

    if payment:
        # one payment row per appointment: a retry reuses it with a fresh reference
        payment.status = PaymentStatus.PENDING
        payment.amount = appointment.consultation_fee
        payment.transaction_id = utils.generate_transaction_id()
        payment.paid_at = None
    else:
        payment = models.Payment(
            appointment_id=appointment.appointment_id,
            patient_id=patient.patient_id,
            doctor_id=appointment.doctor_id,
            amount=appointment.consultation_fee,
            currency="usd",
            status=PaymentStatus.PENDING,
            transaction_id=utils.generate_transaction_id(),
            payment_method="card",
        )
        db.add(payment)
    db.commit()
    db.refresh(payment)
    logger.info("Payment %s initiated for appointment %s (%s)", payment.payment_id, appointment_id, payment.transaction_id)
    return payment


def confirm_payment(db: Session, transaction_id: str, outcome: str) -> models.Payment:
    payment = db.query(models.Payment).filter(models.Payment.transaction_id == transaction_id).first()
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")

    succeeded = outcome == PaymentStatus.SUCCESS.value
    changes = {models.Payment.status: PaymentStatus.SUCCESS, models.Payment.paid_at: utils.utcnow()} if succeeded \
        else {models.Payment.status: PaymentStatus.FAILED}
    updated = db.query(models.Payment).filter(
        models.Payment.payment_id == payment.payment_id,
        models.Payment.status == PaymentStatus.PENDING,
    ).update(changes)
    if not updated:
        raise HTTPException(status_code=409, detail="Payment already processed")

    if succeeded:
        confirmed = db.query(models.Appointment).filter(
            models.Appointment.appointment_id == payment.appointment_id,
            models.Appointment.status.in_(CANCELLABLE),
        ).update({models.Appointment.status: AppointmentStatus.CONFIRMED})
        if confirmed:
            appointment = db.get(models.Appointment, payment.appointment_id)
            notify(db, appointment.doctor.user_id, "Appointment Confirmed",
                   "Payment received. Appointment is now confirmed.", NotificationType.PAYMENT)
            notify(db, appointment.patient.user_id, "Payment Successful",
                   "Your appointment has been confirmed.", NotificationType.PAYMENT)
            logger.info("Payment %s succeeded, appointment %s confirmed", transaction_id, payment.appointment_id)
        else:
            logger.warning("Payment %s succeeded but appointment %s is no longer awaiting payment",
                           transaction_id, payment.appointment_id)
    else:
        logger.info("Payment %s failed (outcome %r)", transaction_id, outcome)

    db.commit()
    db.refresh(payment)
    return payment


def cancel_appointment(db: Session, patient: models.Patient, appointment_id: int) -> models.Appointment:
    updated = db.query(models.Appointment).filter(
        models.Appointment.appointment_id == appointment_id,
        models.Appointment.patient_id == patient.patient_id,
        models.Appointment.status.in_(CANCELLABLE),
    ).update({models.Appointment.status: AppointmentStatus.CANCELLED})
    if not updated:
        raise HTTPException(status_code=404, detail="Appointment not found or cannot be cancelled")
    db.commit()
    logger.info("Appointment %s cancelled by patient %s", appointment_id, patient.patient_id)
    return db.get(models.Appointment, appointment_id)


def complete_appointment(db: Session, doctor: models.Doctor, appointment_id: int) -> models.Appointment:
    updated = db.query(models.Appointment).filter(
        models.Appointment.appointment_id == appointment_id,
        models.Appointment.doctor_id == doctor.doctor_id,
        models.Appointment.status == AppointmentStatus.CONFIRMED,
    ).update({models.Appointment.status: AppointmentStatus.COMPLETED})
    if not updated:
        raise HTTPException(status_code=404, detail="Appointment not found or not confirmed")

    session = db.query(models.VideoSession).filter(
        models.VideoSession.appointment_id == appointment_id,
        models.VideoSession.status == VideoSessionStatus.ACTIVE,
    ).first()
    if session:
        _close_session(session)

    appointment = db.get(models.Appointment, appointment_id)
    notify(db, appointment.patient.user_id, "Appointment Completed",
           "Your consultation has been marked as completed.", NotificationType.APPOINTMENT,
           f"/patient/appointments/{appointment_id}")
    db.commit()
    logger.info("Appointment %s completed by doctor %s", appointment_id, doctor.doctor_id)
    return appointment


def _doctor_appointment(db: Session, doctor: models.Doctor, appointment_id: int) -> models.Appointment:
    appointment = db.query(models.Appointment).filter(
        models.Appointment.appointment_id == appointment_id,
        models.Appointment.doctor_id == doctor.doctor_id,
    ).first()
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found or unauthorized")
    return appointment


def _close_session(session: models.VideoSession):
    session.status = VideoSessionStatus.ENDED
    session.ended_at = utils.utcnow()
    if session.started_at:
        session.duration = utils.seconds_between(session.started_at, session.ended_at)


def _video_session(db: Session, appointment_id: int):
    return db.query(models.VideoSession).filter(models.VideoSession.appointment_id == appointment_id).first()


def start_video(db: Session, doctor: models.Doctor, appointment_id: int) -> models.VideoSession:
    appointment = _doctor_appointment(db, doctor, appointment_id)
    if appointment.status != AppointmentStatus.CONFIRMED:
        raise HTTPException(status_code=409, detail="Appointment must be confirmed")

    session = _video_session(db, appointment_id)
    if not session:
        session = models.VideoSession(appointment_id=appointment_id, room_id=utils.generate_room_id())
        db.add(session)
    session.status = VideoSessionStatus.ACTIVE
    session.started_at = utils.utcnow()
    session.ended_at = None
    session.duration = None
    notify(db, appointment.patient.user_id, "Consultation Started",
           "Your doctor has started the video consultation.", NotificationType.VIDEO,
           f"/consultation?appointmentId={appointment_id}")
    try:
        db.commit()
    except IntegrityError:
        # another start request created the session first
        db.rollback()
        raise HTTPException(status_code=409, detail="Video session is already being started")
    db.refresh(session)
    logger.info("Video session %s started for appointment %s", session.room_id, appointment_id)
    return session


def end_video(db: Session, doctor: models.Doctor, appointment_id: int) -> models.VideoSession:
    _doctor_appointment(db, doctor, appointment_id)
    session = db.query(models.VideoSession).filter(
        models.VideoSession.appointment_id == appointment_id,
        models.VideoSession.status == VideoSessionStatus.ACTIVE,
    ).first()
    if not session:
        raise HTTPException(status_code=409, detail="No active video session")
    _close_session(session)
    db.commit()
    db.refresh(session)
    logger.info("Video session %s ended after %ss", session.room_id, session.duration)
    return session


def join_video(db: Session, user: models.User, appointment_id: int) -> dict:
    appointment = db.get(models.Appointment, appointment_id)
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found")
    if appointment.status != AppointmentStatus.CONFIRMED:
        raise HTTPException(status_code=409, detail="Appointment must be confirmed to join video")

    if user.role == models.UserRole.DOCTOR:
        authorized = appointment.doctor.user_id == user.user_id
    else:
        authorized = appointment.patient.user_id == user.user_id
    if not authorized:
        raise HTTPException(status_code=403, detail="You are not part of this appointment")

    session = db.query(models.VideoSession).filter(
        models.VideoSession.appointment_id == appointment_id,
        models.VideoSession.status.in_(JOINABLE),
    ).first()
    if not session:
        raise HTTPException(status_code=409, detail="No active video session. Doctor must start the session first.")
    return {
        "room_id": session.room_id,
        "status": session.status,
        "appointment_id": appointment_id,
        "role": user.role,
    }


def submit_review(db: Session, patient: models.Patient, review: schemas.ReviewInput) -> models.Review:
    appointment = db.query(models.Appointment).filter(
        models.Appointment.appointment_id == review.appointment_id,
        models.Appointment.patient_id == patient.patient_id,
        models.Appointment.status == AppointmentStatus.COMPLETED,
    ).first()
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found or not completed")

    existing = db.query(models.Review).filter(models.Review.appointment_id == appointment.appointment_id).first()
    if existing:
        raise HTTPException(status_code=409, detail="Review already submitted for this appointment")

    new = models.Review(
        appointment_id=appointment.appointment_id,
        doctor_id=appointment.doctor_id,
        patient_id=patient.patient_id,
        rating=review.rating,
        comment=review.comment,
    )
    db.add(new)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Review already submitted for this appointment")
    recompute_rating(db, appointment.doctor_id)
    notify(db, appointment.doctor.user_id, "New Review",
           f"A patient rated your consultation {review.rating}/5.", NotificationType.REVIEW)
    db.commit()
    db.refresh(new)
    logger.info("Review %s submitted for appointment %s", new.review_id, appointment.appointment_id)
    return new


def recompute_rating(db: Session, doctor_id: int) -> models.Doctor:
    """Average over every review the doctor has, not an incremental update."""
    average, count = db.query(func.avg(models.Review.rating), func.count(models.Review.review_id)).filter(models.Review.doctor_id == doctor_id).one()
    doctor = db.get(models.Doctor, doctor_id)
    doctor.rating_average = utils.round_rating(float(average)) if count else 0
    doctor.rating_count = count
    return doctor
