from datetime import timedelta

from bookly.domain.bookings.repository import BookingRepository
from bookly.models import Booking, Notification, Service
from bookly.shared.time_utils import utc_now


def booking_payload(service, scheduled_date, scheduled_time="10:00", **overrides):
    payload = {
        "serviceId": service.id,
        "providerId": service.provider_id,
        "scheduledDate": scheduled_date.isoformat(),
        "scheduledTime": scheduled_time,
    }
    payload.update(overrides)
    return payload


# ============================================================================
# CREATE
# ============================================================================


def test_create_booking(client, headers, customer, provider, service, future_date, sent_emails, db_session):
    response = client.post(
        "/api/bookings",
        json=booking_payload(service, future_date, "9:30", notes="Please bring <b>eco</b> products"),
        headers=headers(customer),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["timestamp"]

    data = body["data"]
    assert data["status"] == "pending"
    assert data["bookingCode"].startswith("BK-")
    assert data["startTime"] == "09:30"
    assert data["endTime"] == "10:30"
    assert data["pricing"]["totalAmount"] == 100.0
    assert data["pricing"]["cancellationFee"] == 0.0
    assert data["customer"]["email"] == customer.email
    assert data["provider"]["email"] == provider.email
    assert data["notes"] == "Please bring eco products"
    assert data["timeline"][0]["status"] == "pending"
    assert data["timeline"][0]["updatedBy"] == customer.id

    assert sorted(e["template"] for e in sent_emails) == ["booking-confirmation", "booking-request"]
    notification = db_session.query(Notification).filter_by(recipient_id=provider.id).one()
    assert notification.type == "booking-request"


def test_create_booking_for_inactive_service_is_not_found(client, headers, customer, make_service, provider, future_date):
    inactive = make_service(provider, is_active=False)

    response = client.post("/api/bookings", json=booking_payload(inactive, future_date), headers=headers(customer))

    assert response.status_code == 404
    assert response.json()["success"] is False


def test_create_booking_for_unapproved_service_is_not_found(client, headers, customer, make_service, provider, future_date):
    pending_review = make_service(provider, is_approved=False)

    response = client.post("/api/bookings", json=booking_payload(pending_review, future_date), headers=headers(customer))

    assert response.status_code == 404


def test_create_booking_provider_mismatch(client, headers, customer, make_user, service, future_date):
    other_provider = make_user("provider")

    response = client.post(
        "/api/bookings",
        json=booking_payload(service, future_date, providerId=other_provider.id),
        headers=headers(customer),
    )

    assert response.status_code == 400


def test_cannot_book_own_service(client, headers, customer, make_service, future_date):
    own_service = make_service(customer)

    response = client.post("/api/bookings", json=booking_payload(own_service, future_date), headers=headers(customer))

    assert response.status_code == 400
    assert "own service" in response.json()["message"]


def test_create_booking_in_the_past(client, headers, customer, service):
    yesterday = (utc_now() - timedelta(days=1)).date()

    response = client.post("/api/bookings", json=booking_payload(service, yesterday), headers=headers(customer))

    assert response.status_code == 400


def test_create_booking_rejects_bad_time_format(client, headers, customer, service, future_date):
    response = client.post(
        "/api/bookings", json=booking_payload(service, future_date, "25:00"), headers=headers(customer)
    )

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "scheduledTime"


def test_create_booking_that_would_run_past_midnight(client, headers, customer, service, future_date):
    response = client.post(
        "/api/bookings", json=booking_payload(service, future_date, "23:30"), headers=headers(customer)
    )

    assert response.status_code == 400


def test_create_booking_requires_authentication(client, service, future_date):
    response = client.post("/api/bookings", json=booking_payload(service, future_date))

    assert response.status_code == 401
    assert response.json()["success"] is False


def test_providers_cannot_create_customer_bookings(client, headers, make_user, service, future_date):
    other_provider = make_user("provider")

    response = client.post("/api/bookings", json=booking_payload(service, future_date), headers=headers(other_provider))

    assert response.status_code == 403


def test_double_booking_same_slot_conflicts(client, headers, customer, make_user, service, future_date):
    first = client.post("/api/bookings", json=booking_payload(service, future_date), headers=headers(customer))
    assert first.status_code == 201

    second_customer = make_user("user")
    second = client.post(
        "/api/bookings", json=booking_payload(service, future_date), headers=headers(second_customer)
    )

    assert second.status_code == 409


def test_overlapping_booking_conflicts(client, headers, customer, make_user, service, future_date):
    client.post("/api/bookings", json=booking_payload(service, future_date, "10:00"), headers=headers(customer))

    response = client.post(
        "/api/bookings", json=booking_payload(service, future_date, "10:30"), headers=headers(make_user("user"))
    )

    assert response.status_code == 409


def test_adjacent_booking_is_allowed(client, headers, customer, make_user, service, future_date):
    client.post("/api/bookings", json=booking_payload(service, future_date, "10:00"), headers=headers(customer))

    response = client.post(
        "/api/bookings", json=booking_payload(service, future_date, "11:00"), headers=headers(make_user("user"))
    )

    assert response.status_code == 201


def test_cancelled_slot_can_be_rebooked(client, headers, customer, make_user, service, future_date, make_booking):
    make_booking(customer, service, future_date, "10:00", status="cancelled")

    response = client.post(
        "/api/bookings", json=booking_payload(service, future_date, "10:00"), headers=headers(make_user("user"))
    )

    assert response.status_code == 201


def test_storage_index_closes_the_slot_race(client, headers, customer, make_user, service, future_date, monkeypatch):
    """A duplicate that slips past the overlap check is still rejected by the active-slot index"""
    client.post("/api/bookings", json=booking_payload(service, future_date), headers=headers(customer))
    monkeypatch.setattr(BookingRepository, "get_active_bookings_for_date", staticmethod(lambda db, pid, day: []))

    response = client.post(
        "/api/bookings", json=booking_payload(service, future_date), headers=headers(make_user("user"))
    )

    assert response.status_code == 409


# ============================================================================
# CANCEL
# ============================================================================


def test_cancel_well_ahead_is_free(client, headers, customer, service, make_booking, slot_at, sent_emails, provider):
    day, time = slot_at(48)
    booking = make_booking(customer, service, day, time)

    response = client.patch(
        f"/api/bookings/{booking.id}/cancel", json={"reason": "Change of plans"}, headers=headers(customer)
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "cancelled"
    assert data["cancellation"]["fee"] == 0.0
    assert data["cancellation"]["refundEligible"] is True
    assert data["cancellation"]["cancelledBy"] == customer.id
    assert data["cancellation"]["reason"] == "Change of plans"
    assert data["pricing"]["cancellationFee"] == 0.0
    assert data["timeline"][-1]["status"] == "cancelled"
    assert data["timeline"][-1]["updatedBy"] == customer.id

    assert [(e["template"], e["to"]) for e in sent_emails] == [("booking-cancelled", provider.email)]


def test_late_cancellation_charges_half(client, headers, customer, service, make_booking, slot_at):
    day, time = slot_at(23)
    booking = make_booking(customer, service, day, time, status="confirmed")

    response = client.patch(f"/api/bookings/{booking.id}/cancel", headers=headers(customer))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["cancellation"]["fee"] == 50.0
    assert data["cancellation"]["refundEligible"] is False
    assert data["pricing"]["cancellationFee"] == 50.0


def test_provider_can_cancel(client, headers, customer, provider, service, make_booking, future_date):
    booking = make_booking(customer, service, future_date)

    response = client.patch(f"/api/bookings/{booking.id}/cancel", headers=headers(provider))

    assert response.status_code == 200
    assert response.json()["data"]["cancellation"]["cancelledBy"] == provider.id


def test_stranger_cannot_cancel(client, headers, customer, make_user, service, make_booking, future_date):
    booking = make_booking(customer, service, future_date)

    response = client.patch(f"/api/bookings/{booking.id}/cancel", headers=headers(make_user("user")))

    assert response.status_code == 403


def test_completed_booking_cannot_be_cancelled(client, headers, customer, service, make_booking, future_date):
    booking = make_booking(customer, service, future_date, status="completed")

    response = client.patch(f"/api/bookings/{booking.id}/cancel", headers=headers(customer))

    assert response.status_code == 400
    assert "completed" in response.json()["message"]


def test_in_progress_booking_cannot_use_cancel_endpoint(client, headers, customer, service, make_booking, future_date):
    booking = make_booking(customer, service, future_date, status="in-progress")

    response = client.patch(f"/api/bookings/{booking.id}/cancel", headers=headers(customer))

    assert response.status_code == 400


def test_cancel_missing_booking(client, headers, customer):
    response = client.patch("/api/bookings/9999/cancel", headers=headers(customer))

    assert response.status_code == 404


# ============================================================================
# STATUS TRANSITIONS
# ============================================================================


def test_full_happy_path(client, headers, customer, provider, service, make_booking, future_date, db_session, sent_emails):
    booking = make_booking(customer, service, future_date)

    for action, status in [("accept", "confirmed"), ("start", "in-progress"), ("complete", "completed")]:
        response = client.patch(f"/api/bookings/{booking.id}/{action}", headers=headers(provider))
        assert response.status_code == 200, response.json()
        assert response.json()["data"]["status"] == status

    timeline = response.json()["data"]["timeline"]
    assert [e["status"] for e in timeline] == ["pending", "confirmed", "in-progress", "completed"]
    assert all(e["updatedBy"] == provider.id for e in timeline[1:])

    db_session.expire_all()
    assert db_session.get(Service, service.id).total_bookings == 1
    assert [e["data"]["status"] for e in sent_emails] == ["confirmed", "in-progress", "completed"]
    types = {n.type for n in db_session.query(Notification).filter_by(recipient_id=customer.id)}
    assert types == {"booking-confirmed", "booking-started", "booking-completed"}


def test_customer_cannot_accept(client, headers, customer, service, make_booking, future_date):
    booking = make_booking(customer, service, future_date)

    response = client.patch(f"/api/bookings/{booking.id}/accept", headers=headers(customer))

    assert response.status_code == 403


def test_admin_can_drive_any_transition(client, headers, customer, admin, service, make_booking, future_date):
    booking = make_booking(customer, service, future_date)

    response = client.patch(f"/api/bookings/{booking.id}/reject", headers=headers(admin))

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "rejected"


def test_repeating_a_transition_fails(client, headers, customer, provider, service, make_booking, future_date):
    booking = make_booking(customer, service, future_date)
    client.patch(f"/api/bookings/{booking.id}/accept", headers=headers(provider))

    response = client.patch(f"/api/bookings/{booking.id}/accept", headers=headers(provider))

    assert response.status_code == 400
    assert "confirmed" in response.json()["message"]


def test_no_show_only_from_confirmed(client, headers, customer, provider, service, make_booking, future_date):
    booking = make_booking(customer, service, future_date)

    assert client.patch(f"/api/bookings/{booking.id}/no-show", headers=headers(provider)).status_code == 400

    client.patch(f"/api/bookings/{booking.id}/accept", headers=headers(provider))
    response = client.patch(f"/api/bookings/{booking.id}/no-show", headers=headers(provider))
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "no-show"


def test_generic_status_update(client, headers, customer, provider, service, make_booking, future_date):
    booking = make_booking(customer, service, future_date)

    response = client.patch(
        f"/api/bookings/{booking.id}/status",
        json={"status": "confirmed", "note": "See you then", "providerNotes": "Gate code 1234"},
        headers=headers(provider),
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "confirmed"
    assert data["providerNotes"] == "Gate code 1234"
    assert data["timeline"][-1]["note"] == "See you then"


def test_generic_status_update_to_cancelled_records_cancellation(
    client, headers, customer, service, make_booking, future_date
):
    booking = make_booking(customer, service, future_date)

    response = client.patch(
        f"/api/bookings/{booking.id}/status", json={"status": "cancelled"}, headers=headers(customer)
    )

    assert response.status_code == 200
    assert response.json()["data"]["cancellation"]["fee"] == 0.0


def test_generic_status_update_rejects_unknown_status(client, headers, provider, customer, service, make_booking, future_date):
    booking = make_booking(customer, service, future_date)

    response = client.patch(
        f"/api/bookings/{booking.id}/status", json={"status": "archived"}, headers=headers(provider)
    )

    assert response.status_code == 400


# ============================================================================
# QUERIES
# ============================================================================


def test_get_booking_visibility(client, headers, customer, provider, admin, make_user, service, make_booking, future_date):
    booking = make_booking(customer, service, future_date)

    for viewer in (customer, provider, admin):
        response = client.get(f"/api/bookings/{booking.id}", headers=headers(viewer))
        assert response.status_code == 200
        assert response.json()["data"]["id"] == booking.id

    assert client.get(f"/api/bookings/{booking.id}", headers=headers(make_user("user"))).status_code == 403
    assert client.get("/api/bookings/9999", headers=headers(customer)).status_code == 404


def test_my_bookings_is_paginated_and_filterable(client, headers, customer, service, make_booking, future_date):
    for hour in range(9, 14):
        make_booking(customer, service, future_date, f"{hour:02d}:00")
    make_booking(customer, service, future_date + timedelta(days=1), "09:00", status="cancelled")

    response = client.get("/api/bookings/my-bookings?page=1&limit=2", headers=headers(customer))
    body = response.json()
    assert response.status_code == 200
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 6, "pages": 3}
    assert len(body["data"]) == 2

    cancelled = client.get("/api/bookings/my-bookings?status=cancelled", headers=headers(customer)).json()
    assert cancelled["pagination"]["total"] == 1


def test_provider_bookings_date_range(client, headers, customer, provider, service, make_booking, future_date):
    make_booking(customer, service, future_date, "09:00")
    make_booking(customer, service, future_date + timedelta(days=3), "09:00")

    response = client.get(
        f"/api/bookings/provider?startDate={future_date.isoformat()}&endDate={future_date.isoformat()}",
        headers=headers(provider),
    )

    assert response.status_code == 200
    assert response.json()["pagination"]["total"] == 1


def test_provider_bookings_requires_provider_role(client, headers, customer):
    assert client.get("/api/bookings/provider", headers=headers(customer)).status_code == 403


def test_booking_stats(client, headers, customer, provider, admin, make_user, service, make_booking, future_date):
    make_booking(customer, service, future_date, "09:00", status="completed")
    make_booking(customer, service, future_date, "10:00", status="completed")
    make_booking(customer, service, future_date, "11:00", status="cancelled")
    make_booking(make_user("user"), service, future_date, "12:00")

    customer_stats = client.get("/api/bookings/stats", headers=headers(customer)).json()["data"]
    assert customer_stats["totalBookings"] == 3
    by_status = {s["status"]: s for s in customer_stats["statusStats"]}
    assert by_status["completed"] == {"status": "completed", "count": 2, "totalRevenue": 200.0}
    assert by_status["cancelled"]["count"] == 1

    provider_stats = client.get("/api/bookings/stats", headers=headers(provider)).json()["data"]
    assert provider_stats["totalBookings"] == 4
    assert sum(m["count"] for m in provider_stats["monthlyStats"]) == 4

    assert client.get("/api/bookings/stats", headers=headers(admin)).json()["data"]["totalBookings"] == 4


def test_monthly_stats_are_grouped_in_the_last_year(
    client, db_session, headers, customer, provider, service, make_booking, future_date
):
    make_booking(customer, service, future_date, "09:00", status="completed")
    make_booking(customer, service, future_date, "10:00")
    old = make_booking(customer, service, future_date, "11:00", status="completed")
    old.created_at = utc_now() - timedelta(days=400)
    db_session.commit()

    data = client.get("/api/bookings/stats", headers=headers(provider)).json()["data"]

    now = utc_now()
    assert data["monthlyStats"] == [{"year": now.year, "month": now.month, "count": 2, "revenue": 200.0}]
    by_status = {s["status"]: s for s in data["statusStats"]}
    assert by_status["completed"] == {"status": "completed", "count": 2, "totalRevenue": 200.0}
    assert by_status["pending"]["count"] == 1
    assert data["totalBookings"] == 3


def test_provider_availability_lists_active_intervals(client, customer, provider, service, make_booking, future_date):
    make_booking(customer, service, future_date, "09:00")
    make_booking(customer, service, future_date, "11:00", status="confirmed")
    make_booking(customer, service, future_date, "13:00", status="cancelled")

    response = client.get(f"/api/bookings/availability?providerId={provider.id}&date={future_date.isoformat()}")

    assert response.status_code == 200
    slots = response.json()["data"]["bookedSlots"]
    assert [(s["startTime"], s["endTime"]) for s in slots] == [("09:00", "10:00"), ("11:00", "12:00")]


def test_scheduling_availability_marks_taken_slots(client, customer, service, make_booking, future_date):
    make_booking(customer, service, future_date, "10:00", status="confirmed")

    response = client.get(f"/api/scheduling/availability?serviceId={service.id}&date={future_date.isoformat()}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data["slots"]) == 8
    assert data["availableCount"] == 7
    taken = [s for s in data["slots"] if not s["available"]]
    assert taken == [{"startTime": "10:00", "endTime": "11:00", "displayLabel": "10:00 AM", "available": False}]


def test_scheduling_availability_uses_weekly_schedule(client, make_service, provider, future_date):
    weekday = future_date.strftime("%A").lower()
    limited = make_service(
        provider, duration=30, availability={weekday: {"available": True, "slots": [{"start": "14:00", "end": "15:00"}]}}
    )

    response = client.get(f"/api/scheduling/availability?serviceId={limited.id}&date={future_date.isoformat()}")

    assert [s["startTime"] for s in response.json()["data"]["slots"]] == ["14:00", "14:30"]


def test_created_booking_is_persisted_once(client, headers, customer, service, future_date, db_session):
    client.post("/api/bookings", json=booking_payload(service, future_date), headers=headers(customer))

    assert db_session.query(Booking).count() == 1
