from datetime import date, timedelta

ASHA = {"name": "Asha Rao", "email": "asha@example.com", "password": "Passw0rd!"}
VIKRAM = {"name": "Vikram Shah", "email": "vikram@example.com", "password": "Passw0rd!"}


def auth_header(users_client, payload: dict) -> dict[str, str]:
    response = users_client.post("/api/auth/register", json=payload)
    return {"Authorization": f"Bearer {response.json()['token']}"}


def booking_payload(user: dict, stay: dict, **overrides) -> dict:
    payload = {
        "hotelSlug": "taj",
        "roomType": "Deluxe Room",
        "userName": user["name"],
        "email": user["email"],
        "guests": 2,
        "roomsBooked": 1,
        **stay,
    }
    payload.update(overrides)
    return payload


def test_booking_flow(users_client, bookings_client, catalog, stay):
    headers = auth_header(users_client, ASHA)

    create_resp = bookings_client.post("/api/bookings", json=booking_payload(ASHA, stay(), roomsBooked=2), headers=headers)
    assert create_resp.status_code == 201
    body = create_resp.json()
    assert body["message"] == "Booking confirmed!"
    booking = body["booking"]
    assert booking["status"] == "confirmed"
    assert booking["totalPrice"] == 200
    assert booking["hotelName"] == "Taj Palace"

    detail = bookings_client.get(f"/api/bookings/{booking['id']}", headers=headers)
    assert detail.status_code == 200
    assert detail.json()["roomsBooked"] == 2

    mine = bookings_client.get("/api/bookings/my-bookings", headers=headers)
    assert mine.status_code == 200
    assert mine.json()["totalBookings"] == 1
    assert mine.json()["bookings"][0]["id"] == booking["id"]

    cancel = bookings_client.delete(f"/api/bookings/{booking['id']}", headers=headers)
    assert cancel.status_code == 200
    assert cancel.json() == {"message": "Booking cancelled successfully"}

    after = bookings_client.get(f"/api/bookings/{booking['id']}", headers=headers)
    assert after.json()["status"] == "cancelled"


def test_booking_requires_authentication(bookings_client, catalog, stay):
    response = bookings_client.post("/api/bookings", json=booking_payload(ASHA, stay()))
    assert response.status_code == 401


def test_booking_with_missing_fields(users_client, bookings_client, catalog, stay):
    headers = auth_header(users_client, ASHA)
    payload = booking_payload(ASHA, stay())
    del payload["roomType"]
    response = bookings_client.post("/api/bookings", json=payload, headers=headers)
    assert response.status_code == 400


def test_booking_for_someone_else_is_forbidden(users_client, bookings_client, catalog, stay):
    headers = auth_header(users_client, ASHA)
    response = bookings_client.post("/api/bookings", json=booking_payload(VIKRAM, stay()), headers=headers)
    assert response.status_code == 403


def test_booking_starting_today_is_rejected(users_client, bookings_client, catalog, stay):
    headers = auth_header(users_client, ASHA)
    response = bookings_client.post("/api/bookings", json=booking_payload(ASHA, stay(offset_days=0)), headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Check-in date can only be after current day."


def test_booking_unknown_hotel_or_room(users_client, bookings_client, catalog, stay):
    headers = auth_header(users_client, ASHA)
    no_hotel = bookings_client.post(
        "/api/bookings", json=booking_payload(ASHA, stay(), hotelSlug="nowhere"), headers=headers
    )
    assert no_hotel.status_code == 404
    assert no_hotel.json()["detail"] == "Hotel not found"

    no_room = bookings_client.post(
        "/api/bookings", json=booking_payload(ASHA, stay(), roomType="Penthouse"), headers=headers
    )
    assert no_room.status_code == 404
    assert no_room.json()["detail"] == "Room type not found"


def test_booking_beyond_capacity(users_client, bookings_client, catalog, stay):
    headers = auth_header(users_client, ASHA)
    window = stay(offset_days=20, nights=2)
    first = bookings_client.post(
        "/api/bookings", json=booking_payload(ASHA, window, roomType="Suite", roomsBooked=2), headers=headers
    )
    assert first.status_code == 201

    full = bookings_client.post(
        "/api/bookings", json=booking_payload(ASHA, window, roomType="Suite"), headers=headers
    )
    assert full.status_code == 400
    assert full.json()["detail"] == "Not enough rooms available for these dates"


def test_cancel_with_mismatched_details(users_client, bookings_client, catalog, stay):
    headers = auth_header(users_client, ASHA)
    booking = bookings_client.post("/api/bookings", json=booking_payload(ASHA, stay()), headers=headers).json()["booking"]

    response = bookings_client.request(
        "DELETE",
        f"/api/bookings/{booking['id']}",
        json={"hotelSlug": "taj", "roomType": "Suite", "roomsBooked": 1},
        headers=headers,
    )
    assert response.status_code == 400

    matching = bookings_client.request(
        "DELETE",
        f"/api/bookings/{booking['id']}",
        json={"hotelSlug": "taj", "roomType": "Deluxe Room", "roomsBooked": 1},
        headers=headers,
    )
    assert matching.status_code == 200


def test_cancel_someone_elses_booking(users_client, bookings_client, catalog, stay):
    asha = auth_header(users_client, ASHA)
    vikram = auth_header(users_client, VIKRAM)
    booking = bookings_client.post("/api/bookings", json=booking_payload(ASHA, stay()), headers=asha).json()["booking"]

    response = bookings_client.delete(f"/api/bookings/{booking['id']}", headers=vikram)
    assert response.status_code == 404
    assert bookings_client.get(f"/api/bookings/{booking['id']}", headers=vikram).status_code == 404


def test_cancel_twice(users_client, bookings_client, catalog, stay):
    headers = auth_header(users_client, ASHA)
    booking = bookings_client.post("/api/bookings", json=booking_payload(ASHA, stay()), headers=headers).json()["booking"]

    assert bookings_client.delete(f"/api/bookings/{booking['id']}", headers=headers).status_code == 200
    again = bookings_client.delete(f"/api/bookings/{booking['id']}", headers=headers)
    assert again.status_code == 400
    assert again.json()["detail"] == "Booking is already cancelled"


def test_my_bookings_empty_is_not_found(users_client, bookings_client, catalog):
    headers = auth_header(users_client, ASHA)
    response = bookings_client.get("/api/bookings/my-bookings", headers=headers)
    assert response.status_code == 404


def test_my_bookings_pagination_newest_check_in_first(users_client, bookings_client, catalog):
    headers = auth_header(users_client, ASHA)
    for offset in (5, 15, 25):
        check_in = date.today() + timedelta(days=offset)
        window = {"checkIn": check_in.isoformat(), "checkOut": (check_in + timedelta(days=1)).isoformat()}
        assert bookings_client.post("/api/bookings", json=booking_payload(ASHA, window), headers=headers).status_code == 201

    first = bookings_client.get("/api/bookings/my-bookings?page=1&limit=2", headers=headers).json()
    assert first["totalBookings"] == 3
    assert first["currentPage"] == 1
    assert first["totalPages"] == 2
    check_ins = [b["checkIn"] for b in first["bookings"]]
    assert check_ins == sorted(check_ins, reverse=True)
    assert check_ins[0] == (date.today() + timedelta(days=25)).isoformat()

    second = bookings_client.get("/api/bookings/my-bookings?page=2&limit=2", headers=headers).json()
    assert len(second["bookings"]) == 1


def test_metrics_exposed(bookings_client):
    response = bookings_client.get("/metrics")
    assert response.status_code == 200
