"""API tests for booking creation, rotation and lifecycle endpoints."""

from datetime import date, datetime
from unittest.mock import patch

import pytest

from backend.app.models.generated import BookingCancellations, Bookings
from backend.app.services.notifications import NotificationKind
from backend.app.services.scheduling import Accepted

MONDAY = date(2025, 1, 6)
SUNDAY = date(2025, 1, 12)


def booking_request(**overrides):
    body = {
        "client_name": "Ana",
        "phone": "(11) 99999-0000",
        "date": MONDAY.isoformat(),
        "time": "10:00",
        "service_ids": [],
    }
    body.update(overrides)
    return body


@pytest.fixture
def haircut(make_service):
    return make_service(name="Haircut", price=40.0, duration_minutes=30)


@pytest.fixture
def carlos(make_professional):
    return make_professional(name="Carlos")


class TestCreateBooking:
    def test_creates_booking(self, client, db_session, carlos, haircut):
        resp = client.post("/bookings/", json=booking_request(
            service_ids=[haircut.id], professional_id=carlos.id,
        ))

        assert resp.status_code == 201
        data = resp.json()
        assert data["professional_id"] == carlos.id
        assert data["professional_name"] == "Carlos"
        assert data["time"] == "10:00"
        assert data["total_price"] == 40.0
        assert data["total_duration_minutes"] == 30
        assert data["status"] == "scheduled"

        booking = db_session.get(Bookings, data["booking_id"])
        assert booking.phone == "11999990000"
        assert [bs.service_id for bs in booking.booking_services] == [haircut.id]

    def test_durations_are_summed(self, client, carlos, make_service):
        cut = make_service(name="Haircut", price=40, duration_minutes=30)
        beard = make_service(name="Beard", price=25, duration_minutes=45)

        resp = client.post("/bookings/", json=booking_request(
            service_ids=[cut.id, beard.id], professional_id=carlos.id,
        ))
        assert resp.status_code == 201
        assert resp.json()["total_duration_minutes"] == 75
        assert resp.json()["total_price"] == 65.0

    def test_service_without_duration_uses_default(self, client, carlos, make_service):
        service = make_service(name="Wash", price=10, duration_minutes=None)
        resp = client.post("/bookings/", json=booking_request(
            service_ids=[service.id], professional_id=carlos.id,
        ))
        assert resp.json()["total_duration_minutes"] == 30

    def test_conflict_then_suggested_slot(self, client, carlos, haircut, make_booking):
        make_booking(carlos, MONDAY, "10:00", duration=30)

        resp = client.post("/bookings/", json=booking_request(
            service_ids=[haircut.id], professional_id=carlos.id,
        ))
        assert resp.status_code == 409
        detail = resp.json()["detail"]
        assert detail["kind"] == "scheduling_conflict"
        assert detail["suggestions"][0] == "10:30"

        resp = client.post("/bookings/", json=booking_request(
            service_ids=[haircut.id], professional_id=carlos.id, time=detail["suggestions"][0],
        ))
        assert resp.status_code == 201

    def test_cancelled_booking_frees_the_slot(self, client, carlos, haircut, make_booking):
        make_booking(carlos, MONDAY, "10:00", status="cancelled")
        resp = client.post("/bookings/", json=booking_request(
            service_ids=[haircut.id], professional_id=carlos.id,
        ))
        assert resp.status_code == 201

    def test_unknown_service(self, client, carlos):
        resp = client.post("/bookings/", json=booking_request(
            service_ids=[999], professional_id=carlos.id,
        ))
        assert resp.status_code == 400
        assert resp.json()["detail"]["kind"] == "invalid_input"

    def test_inactive_service(self, client, carlos, make_service):
        service = make_service(is_active=False)
        resp = client.post("/bookings/", json=booking_request(
            service_ids=[service.id], professional_id=carlos.id,
        ))
        assert resp.status_code == 400

    def test_inactive_professional(self, client, haircut, make_professional):
        retired = make_professional(name="Retired", is_active=False)
        resp = client.post("/bookings/", json=booking_request(
            service_ids=[haircut.id], professional_id=retired.id,
        ))
        assert resp.status_code == 404
        assert resp.json()["detail"]["kind"] == "no_professional_available"

    def test_closed_day(self, client, carlos, haircut):
        resp = client.post("/bookings/", json=booking_request(
            service_ids=[haircut.id], professional_id=carlos.id, date=SUNDAY.isoformat(),
        ))
        assert resp.status_code == 400
        assert "closed" in resp.json()["detail"]["message"]

    def test_runs_past_closing(self, client, carlos, make_service):
        long_service = make_service(name="Color", price=120, duration_minutes=60)
        resp = client.post("/bookings/", json=booking_request(
            service_ids=[long_service.id], professional_id=carlos.id, time="18:30",
        ))
        assert resp.status_code == 400

    @pytest.mark.parametrize("overrides", [
        {"time": "25:00"},
        {"time": "10h00"},
        {"service_ids": []},
        {"phone": "123"},
        {"client_name": ""},
    ])
    def test_request_validation(self, client, carlos, overrides):
        body = booking_request(service_ids=[1], professional_id=carlos.id)
        body.update(overrides)
        assert client.post("/bookings/", json=body).status_code == 422

    def test_confirmation_webhook_scheduled(
        self, client, carlos, haircut, business_settings, mock_dispatcher
    ):
        resp = client.post("/bookings/", json=booking_request(
            service_ids=[haircut.id], professional_id=carlos.id,
        ))
        assert resp.status_code == 201

        mock_dispatcher.send_detached.assert_called_once()
        booking_id, kind, payload, url = mock_dispatcher.send_detached.call_args.args
        assert booking_id == resp.json()["booking_id"]
        assert kind == NotificationKind.CONFIRMATION
        assert payload["booking"]["barber"] == "Carlos"
        assert payload["booking"]["services"] == ["Haircut"]
        assert url == business_settings.webhook_url

    def test_no_webhook_without_settings(self, client, carlos, haircut, mock_dispatcher):
        client.post("/bookings/", json=booking_request(
            service_ids=[haircut.id], professional_id=carlos.id,
        ))
        mock_dispatcher.send_detached.assert_not_called()

    def test_links_existing_client_by_phone(self, client, db_session, carlos, haircut):
        created = client.post("/clients/", json={"name": "Ana", "phone": "11999990000"}).json()
        resp = client.post("/bookings/", json=booking_request(
            service_ids=[haircut.id], professional_id=carlos.id,
        ))
        booking = db_session.get(Bookings, resp.json()["booking_id"])
        assert booking.client_id == created["id"]

    def test_unknown_client_id(self, client, carlos, haircut):
        resp = client.post("/bookings/", json=booking_request(
            service_ids=[haircut.id], professional_id=carlos.id, client_id=999,
        ))
        assert resp.status_code == 400


class TestConcurrencyGuards:
    def test_lock_is_taken_per_professional_and_day(self, client, carlos, haircut, mock_redis):
        client.post("/bookings/", json=booking_request(
            service_ids=[haircut.id], professional_id=carlos.id,
        ))
        key = mock_redis.lock.call_args.args[0]
        assert key == f"booking:lock:{carlos.id}:{MONDAY.isoformat()}"
        mock_redis.lock.return_value.release.assert_called_once()

    def test_lock_timeout_is_503(self, client, carlos, haircut, mock_redis):
        mock_redis.lock.return_value.acquire.return_value = False
        resp = client.post("/bookings/", json=booking_request(
            service_ids=[haircut.id], professional_id=carlos.id,
        ))
        assert resp.status_code == 503

    def test_unique_index_backs_up_validation(self, client, carlos, haircut, make_booking):
        make_booking(carlos, MONDAY, "10:00")

        with patch(
            "backend.app.routers.bookings.validate",
            return_value=Accepted(professional_id=carlos.id, start_minutes=600),
        ):
            resp = client.post("/bookings/", json=booking_request(
                service_ids=[haircut.id], professional_id=carlos.id,
            ))

        assert resp.status_code == 409
        assert resp.json()["detail"]["kind"] == "scheduling_conflict"


class TestRotation:
    def test_least_loaded_professional_is_assigned(
        self, client, haircut, make_professional, make_booking
    ):
        a = make_professional(name="A")
        b = make_professional(name="B")
        make_booking(a, MONDAY, "15:00")

        resp = client.post("/bookings/", json=booking_request(service_ids=[haircut.id]))
        assert resp.status_code == 201
        assert resp.json()["professional_id"] == b.id

    def test_tie_goes_to_longest_wait(self, client, haircut, make_professional, make_booking):
        a = make_professional(name="A")
        b = make_professional(name="B")
        make_booking(a, MONDAY, "15:00", created_at=datetime(2025, 1, 5, 9, 0))
        make_booking(b, MONDAY, "16:00", created_at=datetime(2025, 1, 5, 11, 0))

        resp = client.post("/bookings/", json=booking_request(service_ids=[haircut.id]))
        assert resp.json()["professional_id"] == a.id

    def test_busy_professional_is_skipped(self, client, haircut, make_professional, make_booking):
        a = make_professional(name="A")
        b = make_professional(name="B")
        make_booking(b, MONDAY, "14:00")
        make_booking(b, MONDAY, "15:00")
        make_booking(a, MONDAY, "10:00")  # a is least loaded but busy at 10:00

        resp = client.post("/bookings/", json=booking_request(service_ids=[haircut.id]))
        assert resp.status_code == 201
        assert resp.json()["professional_id"] == b.id

    def test_everyone_busy_returns_conflict(self, client, haircut, make_professional, make_booking):
        a = make_professional(name="A")
        b = make_professional(name="B")
        make_booking(a, MONDAY, "10:00")
        make_booking(b, MONDAY, "10:00")

        resp = client.post("/bookings/", json=booking_request(service_ids=[haircut.id]))
        assert resp.status_code == 409
        assert resp.json()["detail"]["suggestions"][0] == "10:30"

    def test_no_active_professionals(self, client, haircut, make_professional):
        make_professional(name="Retired", is_active=False)
        resp = client.post("/bookings/", json=booking_request(service_ids=[haircut.id]))
        assert resp.status_code == 404


class TestCancelBooking:
    def test_client_cancels_in_time(
        self, client, db_session, carlos, haircut, make_booking, business_settings, mock_dispatcher
    ):
        booking = make_booking(carlos, MONDAY, "10:00", services=(haircut,))

        resp = client.post(f"/bookings/{booking.id}/cancel", json={"reason": "sick"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "cancelled"
        assert data["hours_notice"] == 2.0
        assert data["released_value"] == 40.0
        assert data["professional_name"] == "Carlos"

        db_session.refresh(booking)
        assert booking.status == "cancelled"
        assert booking.attended is False

        history = db_session.query(BookingCancellations).filter_by(booking_id=booking.id).one()
        assert history.cancelled_by == "client"
        assert history.reason == "sick"

        kind = mock_dispatcher.send_detached.call_args.args[1]
        assert kind == NotificationKind.CANCELLATION

    def test_client_too_late(self, client, carlos, make_booking):
        booking = make_booking(carlos, MONDAY, "09:30")

        resp = client.post(f"/bookings/{booking.id}/cancel", json={})

        assert resp.status_code == 400
        detail = resp.json()["detail"]
        assert detail["kind"] == "policy_violation"
        assert detail["hours_remaining"] == 1.5
        assert detail["lead_hours"] == 2

    def test_admin_overrides_window(self, client, carlos, make_booking):
        booking = make_booking(carlos, MONDAY, "08:30")
        resp = client.post(f"/bookings/{booking.id}/cancel", json={"cancelled_by": "admin"})
        assert resp.status_code == 200
        assert resp.json()["cancelled_by"] == "admin"

    def test_configured_lead_time(self, client, db_session, carlos, make_booking, business_settings):
        business_settings.cancellation_lead_hours = 4
        db_session.commit()
        booking = make_booking(carlos, MONDAY, "11:00")

        resp = client.post(f"/bookings/{booking.id}/cancel", json={})
        assert resp.status_code == 400

    @pytest.mark.parametrize("status", ["cancelled", "completed"])
    def test_terminal_booking(self, client, carlos, make_booking, status):
        booking = make_booking(carlos, MONDAY, "15:00", status=status)
        resp = client.post(f"/bookings/{booking.id}/cancel", json={"cancelled_by": "admin"})
        assert resp.status_code == 400
        assert resp.json()["detail"]["kind"] == "terminal_state_violation"

    def test_unknown_booking(self, client):
        assert client.post("/bookings/999/cancel", json={}).status_code == 404


class TestStatusAndAttendance:
    def test_status_transition(self, client, carlos, make_booking):
        booking = make_booking(carlos, MONDAY, "10:00")
        resp = client.post(f"/bookings/{booking.id}/status", json={"status": "confirmed"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "confirmed"

    def test_invalid_transition(self, client, carlos, make_booking):
        booking = make_booking(carlos, MONDAY, "10:00")
        resp = client.post(f"/bookings/{booking.id}/status", json={"status": "completed"})
        assert resp.status_code == 400
        assert resp.json()["detail"]["kind"] == "invalid_input"

    def test_terminal_status_is_final(self, client, carlos, make_booking):
        booking = make_booking(carlos, MONDAY, "10:00", status="completed")
        resp = client.post(f"/bookings/{booking.id}/status", json={"status": "in_progress"})
        assert resp.json()["detail"]["kind"] == "terminal_state_violation"

    def test_cancel_goes_through_cancel_endpoint(self, client, carlos, make_booking):
        booking = make_booking(carlos, MONDAY, "10:00")
        resp = client.post(f"/bookings/{booking.id}/status", json={"status": "cancelled"})
        assert resp.status_code == 400

    def test_attendance(self, client, carlos, make_booking):
        booking = make_booking(carlos, MONDAY, "10:00", status="completed")
        resp = client.post(f"/bookings/{booking.id}/attendance", json={"attended": True})
        assert resp.status_code == 200
        assert resp.json()["attended"] is True

    def test_attendance_on_cancelled_booking(self, client, carlos, make_booking):
        booking = make_booking(carlos, MONDAY, "10:00", status="cancelled")
        resp = client.post(f"/bookings/{booking.id}/attendance", json={"attended": True})
        assert resp.status_code == 400


class TestListBookings:
    def test_filters(self, client, carlos, make_professional, make_booking):
        other = make_professional(name="Other")
        make_booking(carlos, MONDAY, "10:00")
        make_booking(carlos, MONDAY, "11:00", status="cancelled")
        make_booking(other, MONDAY, "10:00")
        make_booking(carlos, date(2025, 1, 7), "10:00")

        resp = client.get("/bookings/", params={
            "date": MONDAY.isoformat(),
            "professional_id": carlos.id,
            "status": "scheduled",
        })
        assert resp.status_code == 200
        assert len(resp.json()) == 1
        assert resp.json()[0]["start_time"] == "10:00:00"

    def test_get_and_not_found(self, client, carlos, make_booking):
        booking = make_booking(carlos, MONDAY, "10:00")
        assert client.get(f"/bookings/{booking.id}").json()["id"] == booking.id
        assert client.get("/bookings/999").status_code == 404

    def test_patch_and_delete_not_allowed(self, client, carlos, make_booking):
        booking = make_booking(carlos, MONDAY, "10:00")
        assert client.patch(f"/bookings/{booking.id}").status_code == 405
        assert client.delete(f"/bookings/{booking.id}").status_code == 405
