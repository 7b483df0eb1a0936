import pytest
from starlette.websockets import WebSocketDisconnect

from conftest import QUEUE_DAY, book, issue_token, login

DAY = QUEUE_DAY.isoformat()


def get_appointment(client, headers, appointment_id):
    response = client.get(f"/api/appointments/{appointment_id}", headers=headers)
    assert response.status_code == 200
    return response.json()


def test_full_visit_flow(client, receptionist, doctor):
    created = book(client, receptionist)
    assert created["status"] == "scheduled"
    assert created["token_number"] is None

    tokened = issue_token(client, receptionist, created["id"])
    assert tokened["status"] == "token_generated"
    assert tokened["token_number"] == 1
    assert tokened["token_generated_at"] is not None
    assert get_appointment(client, receptionist, created["id"])["status"] == "token_generated"

    called = client.post(f"/api/queue/{DAY}/call-next", headers=doctor)
    assert called.status_code == 200
    assert called.json()["called"]["id"] == created["id"]
    assert get_appointment(client, receptionist, created["id"])["status"] == "in_progress"

    done = client.post(f"/api/queue/appointments/{created['id']}/complete", headers=doctor)
    assert done.status_code == 200
    assert get_appointment(client, receptionist, created["id"])["status"] == "completed"


def test_tokens_are_gapless_and_never_reused(client, receptionist):
    ids = [book(client, receptionist, patient_name=f"Patient {n}", patient_phone=f"90000000{n:02d}")["id"] for n in range(4)]
    tokens = [issue_token(client, receptionist, i)["token_number"] for i in ids[:3]]
    assert tokens == [1, 2, 3]

    cancelled = client.post(f"/api/queue/appointments/{ids[1]}/cancel", headers=receptionist)
    assert cancelled.status_code == 200
    assert cancelled.json()["token_number"] == 2

    assert issue_token(client, receptionist, ids[3])["token_number"] == 4


def test_tokens_restart_each_day(client, receptionist):
    first = book(client, receptionist)
    next_day = book(client, receptionist, appointment_date="2026-03-03")
    assert issue_token(client, receptionist, first["id"])["token_number"] == 1
    assert issue_token(client, receptionist, next_day["id"])["token_number"] == 1


def test_token_cannot_be_generated_twice(client, receptionist):
    appointment = book(client, receptionist)
    issue_token(client, receptionist, appointment["id"])

    again = client.post(f"/api/queue/appointments/{appointment['id']}/token", headers=receptionist)
    assert again.status_code == 409
    assert get_appointment(client, receptionist, appointment["id"])["token_number"] == 1


def test_illegal_transitions_are_rejected(client, receptionist, doctor):
    appointment = book(client, receptionist)

    start = client.post(f"/api/queue/appointments/{appointment['id']}/start", headers=doctor)
    assert start.status_code == 409
    complete = client.post(f"/api/queue/appointments/{appointment['id']}/complete", headers=doctor)
    assert complete.status_code == 409
    assert get_appointment(client, receptionist, appointment["id"])["status"] == "scheduled"

    client.post(f"/api/queue/appointments/{appointment['id']}/cancel", headers=receptionist)
    for action in ("token", "cancel"):
        response = client.post(f"/api/queue/appointments/{appointment['id']}/{action}", headers=receptionist)
        assert response.status_code == 409


def test_call_next_picks_lowest_waiting_token(client, receptionist, doctor):
    ids = [book(client, receptionist, patient_phone=f"91111111{n:02d}")["id"] for n in range(3)]
    for appointment_id in ids:
        issue_token(client, receptionist, appointment_id)
    # Token 1 leaves the queue
    client.post(f"/api/queue/appointments/{ids[0]}/cancel", headers=receptionist)

    called = client.post(f"/api/queue/{DAY}/call-next", headers=doctor).json()["called"]
    assert called["token_number"] == 2


def test_cancelled_token_is_skipped_by_call_next(client, receptionist, doctor):
    appointment = book(client, receptionist)
    issue_token(client, receptionist, appointment["id"])
    client.post(f"/api/queue/appointments/{appointment['id']}/cancel", headers=receptionist)

    response = client.post(f"/api/queue/{DAY}/call-next", headers=doctor)
    assert response.status_code == 200
    assert response.json() == {"called": None, "message": "No more patients waiting"}


def test_only_one_patient_in_consultation(client, receptionist, doctor):
    first, second = book(client, receptionist)["id"], book(client, receptionist, patient_phone="9222222222")["id"]
    issue_token(client, receptionist, first)
    issue_token(client, receptionist, second)

    assert client.post(f"/api/queue/{DAY}/call-next", headers=doctor).status_code == 200
    assert client.post(f"/api/queue/{DAY}/call-next", headers=doctor).status_code == 409
    assert client.post(f"/api/queue/appointments/{second}/start", headers=doctor).status_code == 409

    client.post(f"/api/queue/appointments/{first}/complete", headers=doctor)
    assert client.post(f"/api/queue/{DAY}/call-next", headers=doctor).json()["called"]["id"] == second


def test_doctor_calls_only_from_own_queue(client, receptionist, doctor, other_doctor):
    appointment = book(client, receptionist, doctor_name="Dr. Meera Nair")
    issue_token(client, receptionist, appointment["id"])

    mine = client.post(f"/api/queue/{DAY}/call-next", headers=doctor).json()
    assert mine["called"] is None

    theirs = client.post(f"/api/queue/{DAY}/call-next", headers=other_doctor).json()
    assert theirs["called"]["id"] == appointment["id"]


def test_queue_roles(client, receptionist, doctor):
    appointment = book(client, receptionist)
    assert client.post(f"/api/queue/appointments/{appointment['id']}/token", headers=doctor).status_code == 403
    issue_token(client, receptionist, appointment["id"])
    assert client.post(f"/api/queue/{DAY}/call-next", headers=receptionist).status_code == 403
    assert client.get(f"/api/queue/{DAY}").status_code == 401


def test_status_endpoint_dispatches_to_queue_operations(client, receptionist):
    appointment = book(client, receptionist)
    url = f"/api/queue/appointments/{appointment['id']}/status"

    assert client.patch(url, json={"status": "completed"}, headers=receptionist).status_code == 409
    tokened = client.patch(url, json={"status": "token_generated"}, headers=receptionist)
    assert tokened.json()["token_number"] == 1
    assert client.patch(url, json={"status": "in_progress"}, headers=receptionist).json()["status"] == "in_progress"
    assert client.patch(url, json={"status": "scheduled"}, headers=receptionist).status_code == 422


def test_day_snapshot(client, receptionist, doctor):
    ids = [book(client, receptionist, patient_name=f"P{n}", patient_phone=f"93333333{n:02d}")["id"] for n in range(4)]
    for appointment_id in ids[:3]:
        issue_token(client, receptionist, appointment_id)
    client.post(f"/api/queue/{DAY}/call-next", headers=doctor)

    snapshot = client.get(f"/api/queue/{DAY}", headers=receptionist).json()
    assert snapshot["current"]["token_number"] == 1
    assert snapshot["next"]["token_number"] == 2
    assert [a["token_number"] for a in snapshot["appointments"]] == [1, 2, 3, None]
    assert snapshot["next_token_number"] == 4
    assert snapshot["stats"] == {"waiting": 2, "in_progress": 1, "completed": 0, "total_tokens": 3}

    searched = client.get(f"/api/queue/{DAY}", params={"search": "P2"}, headers=receptionist).json()
    assert [a["patient_name"] for a in searched["appointments"]] == ["P2"]
    assert searched["stats"]["total_tokens"] == 3


def test_my_queue_uses_the_session_doctor(client, receptionist, doctor):
    book(client, receptionist, doctor_name="Ravi Kumar")
    book(client, receptionist, doctor_name="Dr. Meera Nair", patient_phone="9444444444")

    mine = client.get(f"/api/queue/mine/{DAY}", headers=doctor).json()
    assert [a["doctor_name"] for a in mine["appointments"]] == ["Ravi Kumar"]


def test_public_display(client, receptionist, doctor):
    empty = client.get(f"/api/queue/{DAY}/display").json()
    assert empty["current"] is None
    assert empty["message"] == "No patients are currently waiting or being served."

    for n in range(2):
        appointment = book(client, receptionist, patient_phone=f"95555555{n:02d}")
        issue_token(client, receptionist, appointment["id"])
    client.post(f"/api/queue/{DAY}/call-next", headers=doctor)

    display = client.get(f"/api/queue/{DAY}/display").json()
    assert display["current"]["token_number"] == 1
    assert display["next"]["token_number"] == 2
    assert display["message"] is None
    assert "patient_phone" not in display["current"]


def test_public_display_lists_every_doctor_in_consultation(client, receptionist, doctor, other_doctor):
    ravi = book(client, receptionist)
    meera = book(client, receptionist, doctor_name="Dr. Meera Nair", patient_phone="9333333333")
    issue_token(client, receptionist, ravi["id"])
    issue_token(client, receptionist, meera["id"])
    client.post(f"/api/queue/{DAY}/call-next", headers=doctor)
    client.post(f"/api/queue/{DAY}/call-next", headers=other_doctor)

    display = client.get(f"/api/queue/{DAY}/display").json()
    assert display["current"]["token_number"] == 1
    assert [(t["token_number"], t["doctor_name"]) for t in display["serving"]] == [
        (1, "Dr. Ravi Kumar"),
        (2, "Dr. Meera Nair"),
    ]

    narrowed = client.get(f"/api/queue/{DAY}/display", params={"doctor": "Meera Nair"}).json()
    assert [t["token_number"] for t in narrowed["serving"]] == [2]


def test_live_feed_pushes_every_change(client, receptionist):
    access_token = login(client, "desk@medicare-clinic.com").json()["access_token"]
    appointment = book(client, receptionist)

    with client.websocket_connect(f"/api/queue/ws/{DAY}?token={access_token}") as feed:
        initial = feed.receive_json()
        assert initial["stats"]["total_tokens"] == 0
        assert [a["id"] for a in initial["appointments"]] == [appointment["id"]]

        issue_token(client, receptionist, appointment["id"])
        pushed = feed.receive_json()
        assert pushed["next"]["token_number"] == 1
        assert pushed["stats"]["waiting"] == 1


def test_live_feed_filters_by_doctor(client, receptionist):
    access_token = login(client, "desk@medicare-clinic.com").json()["access_token"]

    with client.websocket_connect(f"/api/queue/ws/{DAY}?doctor=Meera%20Nair&token={access_token}") as feed:
        assert feed.receive_json()["appointments"] == []
        book(client, receptionist, doctor_name="Dr. Ravi Kumar")
        assert feed.receive_json()["appointments"] == []
        book(client, receptionist, doctor_name="Dr. Meera Nair", patient_phone="9666666666")
        assert [a["doctor_name"] for a in feed.receive_json()["appointments"]] == ["Dr. Meera Nair"]


def test_live_feed_requires_a_token(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/api/queue/ws/{DAY}") as feed:
            feed.receive_json()


def test_live_feed_refuses_a_logged_out_token(client, receptionist):
    access_token = login(client, "desk@medicare-clinic.com").json()["access_token"]
    headers = {"Authorization": f"Bearer {access_token}"}
    assert client.post("/api/auth/logout", headers=headers).status_code == 200
    assert client.get("/api/auth/me", headers=headers).status_code == 401

    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/api/queue/ws/{DAY}?token={access_token}") as feed:
            feed.receive_json()
