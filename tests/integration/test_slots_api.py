"""API tests for GET /slots/available."""

from datetime import date

MONDAY = date(2025, 1, 6)
SUNDAY = date(2025, 1, 12)


class TestAvailableSlots:
    def test_open_day_without_bookings(self, client, make_professional):
        make_professional(name="Carlos")

        resp = client.get("/slots/available", params={"date": MONDAY.isoformat()})

        assert resp.status_code == 200
        data = resp.json()
        assert data["closed"] is False
        assert data["weekday"] == "Monday"
        assert data["opens_at"] == "09:00"
        assert data["closes_at"] == "19:00"
        assert data["duration_minutes"] == 30
        assert data["total_available"] == 20
        assert data["available"][0] == "09:00"
        assert data["available"][-1] == "18:30"
        assert data["occupied"] == []
        assert data["fully_booked"] is False

    def test_closed_day(self, client, make_professional):
        make_professional()
        data = client.get("/slots/available", params={"date": SUNDAY.isoformat()}).json()
        assert data["closed"] is True
        assert data["available"] == []
        assert data["fully_booked"] is False

    def test_slot_occupied_only_when_everyone_is_busy(
        self, client, make_professional, make_booking
    ):
        a = make_professional(name="A")
        b = make_professional(name="B")
        make_booking(a, MONDAY, "10:00")
        make_booking(a, MONDAY, "11:00")
        make_booking(b, MONDAY, "11:00")

        data = client.get("/slots/available", params={"date": MONDAY.isoformat()}).json()

        assert "10:00" in data["available"]
        assert "11:00" not in data["available"]
        assert data["occupied"] == [{"time": "11:00", "reason": "All professionals are busy"}]
        assert data["total_available"] + data["total_occupied"] == 20

    def test_single_professional(self, client, make_professional, make_booking):
        a = make_professional(name="A")
        make_professional(name="B")
        make_booking(a, MONDAY, "10:00")

        data = client.get("/slots/available", params={
            "date": MONDAY.isoformat(),
            "professional_id": a.id,
        }).json()

        assert "10:00" not in data["available"]
        assert [p["name"] for p in data["professionals"]] == ["A"]

    def test_service_duration_shapes_the_grid(
        self, client, make_professional, make_service, make_booking
    ):
        a = make_professional(name="A")
        service = make_service(name="Color", price=120, duration_minutes=60)
        make_booking(a, MONDAY, "10:00")

        data = client.get("/slots/available", params={
            "date": MONDAY.isoformat(),
            "service_ids": str(service.id),
        }).json()

        assert data["duration_minutes"] == 60
        # 09:30 would run into 10:00; 18:30 would run past closing
        assert "09:30" not in data["available"]
        assert "18:30" not in data["available"]
        assert data["available"][-1] == "18:00"

    def test_cancelled_bookings_are_ignored(self, client, make_professional, make_booking):
        a = make_professional(name="A")
        make_booking(a, MONDAY, "10:00", status="cancelled")

        data = client.get("/slots/available", params={"date": MONDAY.isoformat()}).json()
        assert "10:00" in data["available"]

    def test_unknown_professional(self, client, make_professional):
        make_professional()
        resp = client.get("/slots/available", params={
            "date": MONDAY.isoformat(),
            "professional_id": 999,
        })
        assert resp.status_code == 404

    def test_no_professionals(self, client):
        resp = client.get("/slots/available", params={"date": MONDAY.isoformat()})
        assert resp.status_code == 404
        assert resp.json()["detail"]["kind"] == "no_professional_available"

    def test_bad_service_ids(self, client, make_professional):
        make_professional()
        resp = client.get("/slots/available", params={
            "date": MONDAY.isoformat(),
            "service_ids": "1,x",
        })
        assert resp.status_code == 400

    def test_unknown_or_inactive_services(self, client, make_professional, make_service):
        make_professional()
        retired = make_service(name="Perm", price=90, duration_minutes=120, is_active=False)

        for ids in (str(retired.id), "999"):
            resp = client.get("/slots/available", params={
                "date": MONDAY.isoformat(),
                "service_ids": ids,
            })
            assert resp.status_code == 400
            assert resp.json()["detail"]["kind"] == "invalid_input"

    def test_fully_booked_day(self, client, make_professional, make_booking):
        a = make_professional(name="A")
        make_booking(a, MONDAY, "09:00", duration=600)

        data = client.get("/slots/available", params={"date": MONDAY.isoformat()}).json()

        assert data["closed"] is False
        assert data["fully_booked"] is True
        assert data["available"] == []
        assert data["total_occupied"] == 20

    def test_missing_date(self, client):
        assert client.get("/slots/available").status_code == 422
