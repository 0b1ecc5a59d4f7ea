import pytest
import models
from config import settings
from models import AppointmentStatus
from tests.conftest import make_appointment, make_patient, make_user, auth_headers

SLOT = {"start": "10:00", "end": "10:30"}


def book(client, headers, doctor, day="2025-06-01", slot=SLOT):
    return client.post("/appointments", headers=headers,
                       json={"doctorId": doctor.doctor_id, "scheduledDate": day, "timeSlot": slot, "reason": "checkup"})


def test_booking_to_review_flow(client, db, doctor, patient_headers, doctor_headers):
    res = book(client, patient_headers, doctor)
    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True
    appointment = body["data"]
    assert appointment["status"] == "PENDING"
    assert appointment["consultationFee"] == 150
    assert appointment["timeSlot"] == SLOT
    appointment_id = appointment["appointmentId"]

    res = client.post("/payments", headers=patient_headers, json={"appointmentId": appointment_id})
    assert res.status_code == 200
    payment = res.json()["data"]["payment"]
    assert payment["status"] == "PENDING"
    assert payment["amount"] == 150

    res = client.patch("/payments", json={"transactionId": payment["transactionId"], "status": "SUCCESS"})
    assert res.status_code == 200
    assert res.json()["data"]["payment"]["status"] == "SUCCESS"

    res = client.patch("/doctor/appointments", headers=doctor_headers,
                       json={"appointmentId": appointment_id, "action": "complete"})
    assert res.status_code == 200
    assert res.json()["data"]["appointment"]["status"] == "COMPLETED"

    res = client.post("/appointments/reviews", headers=patient_headers,
                      json={"appointmentId": appointment_id, "rating": 5, "comment": "Very thorough"})
    assert res.status_code == 201
    assert res.json()["data"]["rating"] == 5

    res = client.get(f"/doctors/{doctor.doctor_id}")
    assert res.json()["data"]["rating"] == {"average": 5.0, "count": 1}

    res = client.get("/appointments/reviews", params={"doctorId": doctor.doctor_id})
    reviews = res.json()["data"]
    assert reviews["pagination"]["total"] == 1
    assert reviews["reviews"][0]["comment"] == "Very thorough"


def test_second_patient_cannot_take_confirmed_slot(client, db, doctor, patient):
    make_appointment(db, doctor, patient, status=AppointmentStatus.CONFIRMED)
    rival = make_patient(db, name="Rival")

    res = book(client, auth_headers(rival.user), doctor)

    assert res.status_code == 409
    assert res.json() == {"success": False, "data": None, "error": "This time slot is already booked"}


def test_cancel_completed_appointment_rejected(client, db, doctor, patient, patient_headers):
    appointment = make_appointment(db, doctor, patient, status=AppointmentStatus.COMPLETED)

    res = client.patch("/appointments", headers=patient_headers, json={"appointmentId": appointment.appointment_id})

    assert res.status_code == 404
    assert res.json()["success"] is False


def test_cancel_pending_appointment(client, db, doctor, patient, patient_headers):
    appointment = make_appointment(db, doctor, patient)

    res = client.patch("/appointments", headers=patient_headers, json={"appointmentId": appointment.appointment_id})

    assert res.status_code == 200
    assert res.json()["data"]["message"] == "Appointment cancelled"
    db.expire_all()
    assert db.get(models.Appointment, appointment.appointment_id).status == AppointmentStatus.CANCELLED


def test_second_payment_rejected_after_success(client, db, doctor, patient, patient_headers):
    appointment = make_appointment(db, doctor, patient)
    txn = client.post("/payments", headers=patient_headers,
                      json={"appointmentId": appointment.appointment_id}).json()["data"]["payment"]["transactionId"]
    # the appointment is CONFIRMED now, so a new initiation no longer matches
    client.patch("/payments", json={"transactionId": txn, "status": "SUCCESS"})
    res = client.post("/payments", headers=patient_headers, json={"appointmentId": appointment.appointment_id})
    assert res.status_code == 404

    res = client.patch("/payments", json={"transactionId": txn, "status": "SUCCESS"})
    assert res.status_code == 409


def test_confirm_unknown_transaction(client):
    res = client.patch("/payments", json={"transactionId": "txn_nope", "status": "SUCCESS"})
    assert res.status_code == 404
    assert res.json()["error"] == "Payment not found"


def test_payment_callback_secret(client, db, doctor, patient, patient_headers, monkeypatch):
    monkeypatch.setattr(settings, "payment_webhook_secret", "s3cret")
    appointment = make_appointment(db, doctor, patient)
    txn = client.post("/payments", headers=patient_headers,
                      json={"appointmentId": appointment.appointment_id}).json()["data"]["payment"]["transactionId"]

    res = client.patch("/payments", json={"transactionId": txn, "status": "SUCCESS"})
    assert res.status_code == 401

    res = client.patch("/payments", headers={"X-Webhook-Secret": "s3cret"}, json={"transactionId": txn, "status": "SUCCESS"})
    assert res.status_code == 200


def test_validation_error_uses_envelope(client, doctor, patient_headers):
    res = book(client, patient_headers, doctor, slot={"start": "9:00", "end": "09:30"})
    assert res.status_code == 400
    body = res.json()
    assert body["success"] is False
    assert isinstance(body["error"], str) and body["error"]


def test_slot_end_must_follow_start(client, doctor, patient_headers):
    res = book(client, patient_headers, doctor, slot={"start": "11:00", "end": "10:30"})
    assert res.status_code == 400
    assert res.json()["error"] == "timeSlot end must be after start"


@pytest.mark.parametrize("slot", [{"start": "25:00", "end": "26:00"}, {"start": "10:60", "end": "11:00"},
                                  {"start": "23:30", "end": "99:99"}])
def test_slot_must_be_a_clock_time(client, doctor, patient_headers, slot):
    res = book(client, patient_headers, doctor, slot=slot)
    assert res.status_code == 400


def test_action_results_keep_every_field(client, db, doctor, patient, doctor_headers):
    appointment = make_appointment(db, doctor, patient, status=AppointmentStatus.CONFIRMED)

    res = client.patch("/doctor/appointments", headers=doctor_headers,
                       json={"appointmentId": appointment.appointment_id, "action": "complete"})

    body = res.json()
    assert body["error"] is None
    completed = body["data"]["appointment"]
    assert completed["reason"] is None
    assert completed["notes"] is None
    assert set(completed) == set(client.get("/doctor/appointments", headers=doctor_headers)
                                 .json()["data"]["appointments"][0]) - {"doctor", "patient"}


def test_review_rating_out_of_range(client, db, doctor, patient, patient_headers):
    appointment = make_appointment(db, doctor, patient, status=AppointmentStatus.COMPLETED)
    res = client.post("/appointments/reviews", headers=patient_headers,
                      json={"appointmentId": appointment.appointment_id, "rating": 6})
    assert res.status_code == 400


def test_requires_authentication(client):
    res = client.get("/appointments")
    assert res.status_code == 401
    assert res.json()["success"] is False


def test_wrong_role_forbidden(client, doctor, doctor_headers):
    res = book(client, doctor_headers, doctor)
    assert res.status_code == 403
    assert res.json()["error"] == "Forbidden"


def test_suspended_account_forbidden(client, db):
    user = make_user(db, models.UserRole.PATIENT, suspended=True)
    db.add(models.Patient(user_id=user.user_id))
    db.commit()

    res = client.get("/appointments", headers=auth_headers(user))

    assert res.status_code == 403
    assert res.json()["error"] == "Account suspended"


def test_list_appointments_scoped_and_paginated(client, db, doctor, patient, other_patient, patient_headers, doctor_headers):
    for hour in range(9, 13):
        make_appointment(db, doctor, patient, start=f"{hour:02d}:00", end=f"{hour:02d}:30")
    make_appointment(db, doctor, other_patient, start="14:00", end="14:30", status=AppointmentStatus.CANCELLED)

    res = client.get("/appointments", headers=patient_headers, params={"limit": 3})
    data = res.json()["data"]
    assert data["pagination"] == {"page": 1, "limit": 3, "total": 4, "pages": 2}
    assert len(data["appointments"]) == 3
    assert data["appointments"][0]["doctor"]["name"] == "Dr. Lina Saad"

    res = client.get("/appointments", headers=doctor_headers, params={"status": "CANCELLED"})
    data = res.json()["data"]
    assert data["pagination"]["total"] == 1
    assert data["appointments"][0]["patient"]["name"] == "Rana Aziz"

    res = client.get("/doctor/appointments", headers=doctor_headers, params={"limit": 500})
    assert res.json()["data"]["pagination"]["limit"] == 50
    assert res.json()["data"]["pagination"]["total"] == 5


def test_video_start_join_end(client, db, doctor, patient, patient_headers, doctor_headers):
    appointment = make_appointment(db, doctor, patient, status=AppointmentStatus.CONFIRMED)
    params = {"appointmentId": appointment.appointment_id}

    res = client.get("/video", headers=patient_headers, params=params)
    assert res.status_code == 409

    res = client.patch("/doctor/appointments", headers=doctor_headers,
                       json={"appointmentId": appointment.appointment_id, "action": "start-video"})
    assert res.status_code == 200
    room_id = res.json()["data"]["roomId"]
    assert res.json()["data"]["videoSession"]["status"] == "ACTIVE"

    res = client.get("/video", headers=patient_headers, params=params)
    assert res.json()["data"] == {"roomId": room_id, "status": "ACTIVE",
                                  "appointmentId": appointment.appointment_id, "role": "PATIENT"}

    res = client.patch("/doctor/appointments", headers=doctor_headers,
                       json={"appointmentId": appointment.appointment_id, "action": "end-video"})
    assert res.json()["data"]["videoSession"]["status"] == "ENDED"
    assert res.json()["data"]["message"] == "Video session ended"


def test_doctor_action_must_be_known(client, db, doctor, patient, doctor_headers):
    appointment = make_appointment(db, doctor, patient, status=AppointmentStatus.CONFIRMED)
    res = client.patch("/doctor/appointments", headers=doctor_headers,
                       json={"appointmentId": appointment.appointment_id, "action": "reschedule"})
    assert res.status_code == 400
