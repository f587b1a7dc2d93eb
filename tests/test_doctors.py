from conftest import DOCTOR_PASSWORD, bearer


def login_doctor(client, username: str) -> dict:
    response = client.post("/v1/clinics/doctors/login", json={"username": username, "password": DOCTOR_PASSWORD})
    assert response.status_code == 200, response.text
    return bearer(response.json()["data"]["token"])


def test_doctor_login_and_profile(client, clinics):
    ctx = clinics.full_setup("alpha")
    headers = login_doctor(client, "alpha-doc")

    profile = client.get("/v1/clinics/doctors/me", headers=headers).json()["data"]
    assert profile["doctor"]["username"] == "alpha-doc"
    assert profile["clinic"]["clinicUniqueName"] == "alpha"
    assert [b["_id"] for b in profile["branches"]] == [ctx["branch"]["_id"]]
    assert [s["_id"] for s in profile["services"]] == [ctx["service"]["_id"]]


def test_inactive_doctor_cannot_log_in(client, clinics):
    ctx = clinics.full_setup("alpha")
    client.patch(
        f"/v1/clinics/my-clinic/doctors/{ctx['doctor']['_id']}/status",
        json={"isActive": False},
        headers=ctx["headers"],
    )
    response = client.post("/v1/clinics/doctors/login", json={"username": "alpha-doc", "password": DOCTOR_PASSWORD})
    assert response.status_code == 401


def test_doctor_self_update_and_password_change(client, clinics):
    clinics.full_setup("alpha")
    headers = login_doctor(client, "alpha-doc")

    response = client.patch(
        "/v1/clinics/doctors/me",
        json={"bio": "20 years", "avatarUrl": "https://cdn.example.com/a.png", "password": "new-doctor-pass"},
        headers=headers,
    )
    assert response.status_code == 200
    doctor = client.get("/v1/clinics/doctors/me", headers=headers).json()["data"]["doctor"]
    assert doctor["bio"] == "20 years"
    assert doctor["avatarUrl"] == "https://cdn.example.com/a.png"

    client.patch("/v1/clinics/doctors/me", json={"avatarUrl": None}, headers=headers)
    doctor = client.get("/v1/clinics/doctors/me", headers=headers).json()["data"]["doctor"]
    assert doctor["avatarUrl"] is None
    assert doctor["bio"] == "20 years"

    old = client.post("/v1/clinics/doctors/login", json={"username": "alpha-doc", "password": DOCTOR_PASSWORD})
    assert old.status_code == 401
    new = client.post("/v1/clinics/doctors/login", json={"username": "alpha-doc", "password": "new-doctor-pass"})
    assert new.status_code == 200


def test_schedule_keeps_lunch_only_when_complete(client, clinics):
    clinics.full_setup("alpha")
    headers = login_doctor(client, "alpha-doc")

    response = client.patch(
        "/v1/clinics/doctors/me/schedule",
        json={
            "weekly": [
                {"day": 1, "from": "09:00", "to": "17:00", "lunchFrom": "13:00", "lunchTo": "14:00"},
                {"day": 2, "from": "09:00", "to": "17:00", "lunchFrom": "13:00"},
            ]
        },
        headers=headers,
    )
    assert response.status_code == 200
    schedule = response.json()["data"]["schedule"]
    assert schedule["timezone"] == "Asia/Tashkent"
    assert schedule["weekly"][0] == {"day": 1, "from": "09:00", "to": "17:00", "lunchFrom": "13:00", "lunchTo": "14:00"}
    assert schedule["weekly"][1] == {"day": 2, "from": "09:00", "to": "17:00"}


def test_schedule_rejects_bad_time(client, clinics):
    clinics.full_setup("alpha")
    headers = login_doctor(client, "alpha-doc")
    response = client.patch(
        "/v1/clinics/doctors/me/schedule",
        json={"weekly": [{"day": 1, "from": "25:00", "to": "17:00"}]},
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_owner_moves_doctor_between_own_branches_only(client, clinics):
    ctx = clinics.create("alpha", plan="pro")
    headers = ctx["headers"]
    first = clinics.add_branch(headers, "First")
    second = clinics.add_branch(headers, "Second")
    doctor = clinics.add_doctor(headers, first["_id"])
    foreign = clinics.add_branch(clinics.create("beta")["headers"])

    response = client.patch(
        f"/v1/clinics/my-clinic/doctors/{doctor['_id']}", json={"branchId": foreign["_id"]}, headers=headers
    )
    assert response.status_code == 404

    response = client.patch(
        f"/v1/clinics/my-clinic/doctors/{doctor['_id']}", json={"branchId": second["_id"]}, headers=headers
    )
    assert response.status_code == 200
    assert clinics.my_clinic(headers)["doctors"][0]["branchIds"] == [second["_id"]]


def test_rename_checks_other_doctors_but_not_itself(client, clinics):
    alpha = clinics.full_setup("alpha")
    clinics.full_setup("beta")
    url = f"/v1/clinics/my-clinic/doctors/{alpha['doctor']['_id']}"

    taken = client.patch(url, json={"username": "BETA-doc"}, headers=alpha["headers"])
    assert taken.status_code == 409

    same = client.patch(url, json={"username": "alpha-doc", "bio": "Same name"}, headers=alpha["headers"])
    assert same.status_code == 200

    doctors = clinics.my_clinic(alpha["headers"])["doctors"]
    assert [(d["username"], d["bio"]) for d in doctors] == [("alpha-doc", "Same name")]
