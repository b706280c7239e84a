from bson import ObjectId

from cinema_api.database import RESERVATIONS, SESSIONS

from .conftest import auth, run, seat_status


def reserve(client, user, session, seats, **extra):
    return client.post(
        "/api/v1/reservations",
        json={"session": session["_id"], "seats": seats, **extra},
        headers=auth(user),
    )


def test_reserve_two_full_seats(client, db, user, session):
    response = reserve(client, user, session, [
        {"row": "A", "number": 1, "type": "full"},
        {"row": "A", "number": 2, "type": "full"},
    ])

    assert response.status_code == 201
    reservation = response.json()["data"]
    assert reservation["totalPrice"] == 2 * session["fullPrice"]
    assert reservation["status"] == "confirmed"
    assert reservation["paymentStatus"] == "completed"
    assert reservation["paymentMethod"] == "credit_card"
    assert reservation["paymentDate"]
    assert reservation["user"] == str(user["_id"])
    assert reservation["session"]["movie"]["title"] == "Central do Brasil"
    assert reservation["session"]["theater"]["name"] == "Sala 1"

    assert seat_status(db, session["_id"], "A", 1) == "occupied"
    assert seat_status(db, session["_id"], "A", 2) == "occupied"
    assert seat_status(db, session["_id"], "A", 3) == "available"


def test_total_price_with_half_tickets(client, user, session):
    response = reserve(client, user, session, [
        {"row": "D", "number": 1, "type": "full"},
        {"row": "D", "number": 2, "type": "half"},
        {"row": "D", "number": 3, "type": "half"},
    ], paymentMethod="pix")

    reservation = response.json()["data"]
    assert reservation["totalPrice"] == 40
    assert reservation["paymentMethod"] == "pix"


def test_reserving_an_occupied_seat_fails_without_side_effects(client, db, make_user, user, session):
    reserve(client, user, session, [{"row": "A", "number": 1, "type": "full"}])
    other = make_user(name="Other User")

    response = reserve(client, other, session, [
        {"row": "A", "number": 1, "type": "full"},
        {"row": "A", "number": 5, "type": "full"},
        {"row": "Z", "number": 99, "type": "half"},
    ])

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "The following seats are not available: A1, Z99"
    assert body["errors"] == {"seats": ["A1", "Z99"]}
    assert run(db[RESERVATIONS].count_documents({"user": other["_id"]})) == 0
    assert seat_status(db, session["_id"], "A", 5) == "available"


def test_reserve_unknown_session(client, user):
    response = reserve(client, user, {"_id": str(ObjectId())}, [{"row": "A", "number": 1, "type": "full"}])

    assert response.status_code == 404
    assert response.json()["message"] == "Session not found"


def test_reserve_requires_token(client, session):
    response = client.post(
        "/api/v1/reservations",
        json={"session": session["_id"], "seats": [{"row": "A", "number": 1, "type": "full"}]},
    )

    assert response.status_code == 401


def test_reserve_rejects_empty_seat_list_and_bad_ticket_type(client, user, session):
    assert reserve(client, user, session, []).status_code == 400

    response = reserve(client, user, session, [{"row": "A", "number": 1, "type": "student"}])
    assert response.status_code == 400
    assert response.json()["message"] == "Validation failed"


def test_my_reservations_only_lists_own(client, make_user, user, session):
    other = make_user(name="Other User")
    reserve(client, user, session, [{"row": "A", "number": 1, "type": "full"}])
    reserve(client, user, session, [{"row": "A", "number": 2, "type": "half"}])
    reserve(client, other, session, [{"row": "A", "number": 3, "type": "full"}])

    body = client.get("/api/v1/reservations/me", headers=auth(user)).json()

    assert body["count"] == 2
    assert {r["seats"][0]["number"] for r in body["data"]} == {1, 2}


def test_reservation_visible_to_owner_and_admin_only(client, make_user, user, admin, session):
    reservation = reserve(client, user, session, [{"row": "A", "number": 1, "type": "full"}]).json()["data"]
    stranger = make_user(name="Stranger")
    url = f"/api/v1/reservations/{reservation['_id']}"

    assert client.get(url, headers=auth(user)).status_code == 200
    admin_view = client.get(url, headers=auth(admin)).json()["data"]
    assert admin_view["user"]["email"] == user["email"]
    assert "password" not in admin_view["user"]
    assert client.get(url, headers=auth(stranger)).status_code == 403


def test_admin_lists_all_reservations(client, user, admin, session):
    for number in range(1, 4):
        reserve(client, user, session, [{"row": "B", "number": number, "type": "full"}])

    assert client.get("/api/v1/reservations", headers=auth(user)).status_code == 403

    body = client.get("/api/v1/reservations", params={"limit": 2}, headers=auth(admin)).json()
    assert body["count"] == 2
    assert body["pagination"] == {"next": {"page": 2, "limit": 2}}


def test_cancel_then_seats_are_available_again(client, db, user, admin, session):
    seats = [{"row": "E", "number": 4, "type": "full"}, {"row": "E", "number": 5, "type": "half"}]
    reservation = reserve(client, user, session, seats).json()["data"]
    reserve(client, user, session, [{"row": "F", "number": 1, "type": "full"}])
    before = run(db[SESSIONS].find_one({"_id": ObjectId(session["_id"])}))["seats"]

    response = client.put(
        f"/api/v1/reservations/{reservation['_id']}",
        json={"status": "cancelled"},
        headers=auth(admin),
    )

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "cancelled"
    after = run(db[SESSIONS].find_one({"_id": ObjectId(session["_id"])}))["seats"]
    changed = {(b["row"], b["number"]) for b, a in zip(before, after) if b != a}
    assert changed == {("E", 4), ("E", 5)}
    assert seat_status(db, session["_id"], "E", 4) == "available"
    assert seat_status(db, session["_id"], "F", 1) == "occupied"


def test_non_cancel_status_change_keeps_seats(client, db, user, admin, session):
    reservation = reserve(client, user, session, [{"row": "A", "number": 1, "type": "full"}]).json()["data"]

    response = client.put(
        f"/api/v1/reservations/{reservation['_id']}",
        json={"status": "pending"},
        headers=auth(admin),
    )

    assert response.json()["data"]["status"] == "pending"
    assert seat_status(db, session["_id"], "A", 1) == "occupied"


def test_status_update_validates_value_and_role(client, user, admin, session):
    reservation = reserve(client, user, session, [{"row": "A", "number": 1, "type": "full"}]).json()["data"]
    url = f"/api/v1/reservations/{reservation['_id']}"

    assert client.put(url, json={"status": "refunded"}, headers=auth(admin)).status_code == 400
    assert client.put(url, json={"status": "cancelled"}, headers=auth(user)).status_code == 403


def test_cancel_after_session_was_deleted(client, user, admin, session):
    reservation = reserve(client, user, session, [{"row": "A", "number": 1, "type": "full"}]).json()["data"]
    client.delete(f"/api/v1/sessions/{session['_id']}", headers=auth(admin))

    response = client.put(
        f"/api/v1/reservations/{reservation['_id']}",
        json={"status": "cancelled"},
        headers=auth(admin),
    )

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "cancelled"


def test_delete_releases_seats(client, db, user, admin, session):
    reservation = reserve(client, user, session, [
        {"row": "B", "number": 3, "type": "full"},
        {"row": "B", "number": 4, "type": "full"},
    ]).json()["data"]

    response = client.delete(f"/api/v1/reservations/{reservation['_id']}", headers=auth(admin))

    assert response.json() == {"success": True, "message": "Reservation removed"}
    assert run(db[RESERVATIONS].count_documents({})) == 0
    assert seat_status(db, session["_id"], "B", 3) == "available"
    assert seat_status(db, session["_id"], "B", 4) == "available"


def test_delete_missing_reservation(client, admin):
    response = client.delete(f"/api/v1/reservations/{ObjectId()}", headers=auth(admin))

    assert response.status_code == 404
    assert response.json()["message"] == "Reservation not found"
