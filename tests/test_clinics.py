from conftest import DOCTOR_PASSWORD, OWNER_PASSWORD, bearer


def test_create_clinic_starts_with_empty_aggregate(clinics):
    ctx = clinics.create("alpha")
    clinic = clinics.my_clinic(ctx["headers"])

    assert clinic["clinicUniqueName"] == "alpha"
    assert clinic["status"] == "active"
    assert clinic["plan"]["type"] == "starter"
    assert clinic["plan"]["limits"] == {"maxBranches": 1, "maxServices": 5, "maxAdmins": 1}
    assert clinic["stats"]["branchesCount"] == 0
    assert clinic["stats"]["doctorsCount"] == 0
    assert clinic["stats"]["servicesCount"] == 0
    assert clinic["stats"]["adminsCount"] == 1
    assert [o["role"] for o in clinic["owners"]] == ["owner"]
    assert "security" not in clinic["owners"][0]


def test_duplicate_unique_name_is_conflict(client, clinics, admin_headers, db):
    clinics.create("alpha")
    before = db["clinics"].count_documents({})
    response = client.post(
        "/v1/clinics/create",
        json={
            "clinicDisplayName": "Another",
            "clinicUniqueName": "ALPHA",
            "ownerUserName": "someone-else",
            "ownerDisplayName": "Someone",
            "ownerPassword": OWNER_PASSWORD,
        },
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json() == {
        "success": False,
        "error": "Clinic unique name already exists",
        "code": "CONFLICT",
    }
    assert db["clinics"].count_documents({}) == before


def test_owner_username_collision_ignores_case(client, clinics, admin_headers, db):
    clinics.create("alpha")
    before = db["clinics"].count_documents({})
    response = client.post(
        "/v1/clinics/create",
        json={
            "clinicDisplayName": "Beta",
            "clinicUniqueName": "beta",
            "ownerUserName": "ALPHA-Owner",
            "ownerDisplayName": "Owner",
            "ownerPassword": OWNER_PASSWORD,
        },
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["error"] == "Owner username already exists"
    assert db["clinics"].count_documents({}) == before


def test_create_clinic_requires_platform_admin(client, clinics):
    ctx = clinics.create("alpha")
    response = client.post(
        "/v1/clinics/create",
        json={
            "clinicDisplayName": "Beta",
            "clinicUniqueName": "beta",
            "ownerUserName": "beta-owner",
            "ownerDisplayName": "Owner",
            "ownerPassword": OWNER_PASSWORD,
        },
        headers=ctx["headers"],
    )
    assert response.status_code == 403


def test_owner_login_rejects_bad_password(client, clinics):
    clinics.create("alpha")
    response = client.post("/v1/clinics/login", json={"username": "alpha-owner", "password": "wrong-password"})
    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"


def test_stopped_clinic_cannot_log_in(client, clinics, admin_headers):
    ctx = clinics.create("alpha")
    assert client.patch(f"/v1/clinics/{ctx['id']}/stop", headers=admin_headers).status_code == 200

    response = client.post("/v1/clinics/login", json={"username": "alpha-owner", "password": OWNER_PASSWORD})
    assert response.status_code == 401

    assert client.patch(f"/v1/clinics/{ctx['id']}/activate", headers=admin_headers).status_code == 200
    response = client.post("/v1/clinics/login", json={"username": "alpha-owner", "password": OWNER_PASSWORD})
    assert response.status_code == 200


def test_doctor_requires_branch(client, clinics):
    ctx = clinics.create("alpha")
    response = client.post(
        "/v1/clinics/my-clinic/doctors",
        json={
            "fullName": "No Branch",
            "username": "nobranch",
            "specialty": "General",
            "password": DOCTOR_PASSWORD,
            "branchId": "64b000000000000000000000",
        },
        headers=ctx["headers"],
    )
    assert response.status_code == 409


def test_add_doctor_with_foreign_branch_is_not_found(client, clinics):
    alpha = clinics.create("alpha")
    beta = clinics.create("beta")
    clinics.add_branch(alpha["headers"])
    beta_branch = clinics.add_branch(beta["headers"])

    response = client.post(
        "/v1/clinics/my-clinic/doctors",
        json={
            "fullName": "Wrong Branch",
            "username": "wrongbranch",
            "specialty": "General",
            "password": DOCTOR_PASSWORD,
            "branchId": beta_branch["_id"],
        },
        headers=alpha["headers"],
    )
    assert response.status_code == 404
    assert clinics.my_clinic(alpha["headers"])["stats"]["doctorsCount"] == 0


def test_doctor_username_is_unique_across_clinics(client, clinics):
    alpha = clinics.create("alpha")
    beta = clinics.create("beta")
    clinics.add_doctor(alpha["headers"], clinics.add_branch(alpha["headers"])["_id"], username="dr-shared")
    beta_branch = clinics.add_branch(beta["headers"])

    response = client.post(
        "/v1/clinics/my-clinic/doctors",
        json={
            "fullName": "Copy",
            "username": "DR-SHARED",
            "specialty": "General",
            "password": DOCTOR_PASSWORD,
            "branchId": beta_branch["_id"],
        },
        headers=beta["headers"],
    )
    assert response.status_code == 409


def test_branch_limit_enforced_on_starter_plan(client, clinics):
    ctx = clinics.create("alpha")
    clinics.add_branch(ctx["headers"])

    response = client.post(
        "/v1/clinics/my-clinic/branches",
        json={
            "name": "Second",
            "phone": "+998711234568",
            "address": {"city": "Tashkent", "street": "Navoi 2", "geo": {"lat": 41.3, "lng": 69.2}},
        },
        headers=ctx["headers"],
    )
    assert response.status_code == 409
    assert "limit reached" in response.json()["error"]
    assert clinics.my_clinic(ctx["headers"])["stats"]["branchesCount"] == 1


def test_counts_follow_array_lengths(clinics, client):
    ctx = clinics.full_setup("alpha")
    clinic = clinics.my_clinic(ctx["headers"])
    assert clinic["stats"]["branchesCount"] == len(clinic["branches"]) == 1
    assert clinic["stats"]["doctorsCount"] == len(clinic["doctors"]) == 1
    assert clinic["stats"]["servicesCount"] == len(clinic["services"]) == 1

    client.delete(f"/v1/clinics/my-clinic/services/{ctx['service']['_id']}", headers=ctx["headers"])
    client.delete(f"/v1/clinics/my-clinic/doctors/{ctx['doctor']['_id']}", headers=ctx["headers"])
    clinic = clinics.my_clinic(ctx["headers"])
    assert clinic["stats"]["servicesCount"] == len(clinic["services"]) == 0
    assert clinic["stats"]["doctorsCount"] == len(clinic["doctors"]) == 0


def test_service_doctor_backlinks_stay_bidirectional(client, clinics):
    ctx = clinics.full_setup("alpha")
    headers = ctx["headers"]
    service_id = ctx["service"]["_id"]
    first = ctx["doctor"]["_id"]
    second = clinics.add_doctor(headers, ctx["branch"]["_id"], username="dr-second")["_id"]

    def doctor_services():
        return {d["_id"]: d["serviceIds"] for d in clinics.my_clinic(headers)["doctors"]}

    assert doctor_services() == {first: [service_id], second: []}

    response = client.patch(
        f"/v1/clinics/my-clinic/services/{service_id}", json={"doctorIds": [second]}, headers=headers
    )
    assert response.status_code == 200
    assert doctor_services() == {first: [], second: [service_id]}
    service = clinics.my_clinic(headers)["services"][0]
    assert service["doctorIds"] == [second]

    assert client.delete(f"/v1/clinics/my-clinic/services/{service_id}", headers=headers).status_code == 200
    assert doctor_services() == {first: [], second: []}


def test_remove_doctor_strips_it_from_services(client, clinics):
    ctx = clinics.full_setup("alpha")
    headers = ctx["headers"]

    assert client.delete(f"/v1/clinics/my-clinic/doctors/{ctx['doctor']['_id']}", headers=headers).status_code == 200
    service = clinics.my_clinic(headers)["services"][0]
    assert service["doctorIds"] == []


def test_service_rejects_doctor_of_another_clinic(client, clinics):
    alpha = clinics.full_setup("alpha")
    beta = clinics.full_setup("beta")

    response = client.post(
        "/v1/clinics/my-clinic/services",
        json={
            "title": "Foreign doctor",
            "categoryId": alpha["category"]["_id"],
            "durationMin": 20,
            "price": {"minAmount": 100, "maxAmount": 200},
            "branchIds": [alpha["branch"]["_id"]],
            "doctorIds": [beta["doctor"]["_id"]],
        },
        headers=alpha["headers"],
    )
    assert response.status_code == 404
    assert len(clinics.my_clinic(alpha["headers"])["services"]) == 1


def test_remove_branch_with_doctors_is_conflict(client, clinics):
    ctx = clinics.full_setup("alpha")
    response = client.delete(f"/v1/clinics/my-clinic/branches/{ctx['branch']['_id']}", headers=ctx["headers"])
    assert response.status_code == 409


def test_category_in_use_cannot_be_deleted(client, clinics):
    ctx = clinics.full_setup("alpha")
    response = client.delete(
        f"/v1/clinics/my-clinic/categories/{ctx['category']['_id']}", headers=ctx["headers"]
    )
    assert response.status_code == 409

    client.delete(f"/v1/clinics/my-clinic/services/{ctx['service']['_id']}", headers=ctx["headers"])
    response = client.delete(
        f"/v1/clinics/my-clinic/categories/{ctx['category']['_id']}", headers=ctx["headers"]
    )
    assert response.status_code == 200
    assert clinics.my_clinic(ctx["headers"])["categories"] == []


def test_update_info_is_tri_state(client, clinics):
    ctx = clinics.create("alpha")
    headers = ctx["headers"]

    client.patch(
        "/v1/clinics/my-clinic/info",
        json={"contacts": {"phone": "+998711111111", "email": "Info@Alpha.uz"}, "description": {"short": "Hi"}},
        headers=headers,
    )
    clinic = clinics.my_clinic(headers)
    assert clinic["contacts"] == {"phone": "+998711111111", "email": "info@alpha.uz", "telegram": None}

    client.patch("/v1/clinics/my-clinic/info", json={"contacts": {"email": None}}, headers=headers)
    clinic = clinics.my_clinic(headers)
    assert clinic["contacts"]["phone"] == "+998711111111"
    assert clinic["contacts"]["email"] is None
    assert clinic["description"]["short"] == "Hi"

    client.patch("/v1/clinics/my-clinic/info", json={"description": None}, headers=headers)
    assert clinics.my_clinic(headers)["description"] == {"short": None, "full": None}


def test_clinic_admins_are_owner_only_and_capped(client, clinics, admin_headers):
    ctx = clinics.create("alpha", plan="pro")
    headers = ctx["headers"]

    response = client.post(
        "/v1/clinics/my-clinic/admins",
        json={"userName": "alpha-admin", "displayName": "Front desk", "password": "admin-pass-123"},
        headers=headers,
    )
    assert response.status_code == 201
    admin_id = response.json()["data"]["admin"]["_id"]
    assert clinics.my_clinic(headers)["stats"]["adminsCount"] == 2

    login = client.post("/v1/clinics/login", json={"username": "alpha-admin", "password": "admin-pass-123"})
    assert login.status_code == 200
    admin = bearer(login.json()["data"]["token"])
    assert login.json()["data"]["owner"]["role"] == "admin"

    # Admins manage the clinic but not other admins
    assert client.get("/v1/clinics/my-clinic", headers=admin).status_code == 200
    response = client.post(
        "/v1/clinics/my-clinic/admins",
        json={"userName": "another-admin", "displayName": "X", "password": "admin-pass-123"},
        headers=admin,
    )
    assert response.status_code == 403

    owner_id = clinics.my_clinic(headers)["owners"][0]["_id"]
    assert client.delete(f"/v1/clinics/my-clinic/admins/{owner_id}", headers=headers).status_code == 409
    assert client.delete(f"/v1/clinics/my-clinic/admins/{admin_id}", headers=headers).status_code == 200
    assert clinics.my_clinic(headers)["stats"]["adminsCount"] == 1

    # The removed admin's token stops working right away
    revoked = client.get("/v1/clinics/my-clinic", headers=admin)
    assert revoked.status_code == 401
    assert revoked.json()["error"] == "Account is not active"


def test_starter_plan_allows_no_extra_admin(client, clinics):
    ctx = clinics.create("alpha")
    response = client.post(
        "/v1/clinics/my-clinic/admins",
        json={"userName": "alpha-admin", "displayName": "Front desk", "password": "admin-pass-123"},
        headers=ctx["headers"],
    )
    assert response.status_code == 409


def test_plan_change_and_usage(client, clinics, admin_headers):
    ctx = clinics.full_setup("alpha")
    response = client.patch(f"/v1/clinics/{ctx['id']}/plan", json={"plan": "pro"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["limits"]["maxBranches"] == 5

    plan = client.get("/v1/clinics/my-clinic/plan", headers=ctx["headers"]).json()["data"]
    assert plan["plan"]["type"] == "pro"
    assert plan["usage"] == {"branches": 1, "services": 1, "admins": 1, "doctors": 1}


def test_migrate_plan_limits_rewrites_snapshots(client, clinics, admin_headers, db):
    ctx = clinics.create("alpha")
    db["clinics"].update_one({}, {"$set": {"plan.limits": {"maxBranches": 99}}})

    response = client.post("/v1/clinics/migrate-plan-limits", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["updated"] == 1
    assert clinics.my_clinic(ctx["headers"])["plan"]["limits"]["maxBranches"] == 1


def test_list_clinics_with_search(client, clinics, admin_headers):
    clinics.create("alpha")
    clinics.create("beta")

    response = client.get("/v1/clinics", params={"search": "BET"}, headers=admin_headers)
    data = response.json()["data"]
    assert data["total"] == 1
    assert data["clinics"][0]["clinicUniqueName"] == "beta"

    data = client.get("/v1/clinics", params={"limit": 1}, headers=admin_headers).json()["data"]
    assert data["total"] == 2
    assert data["totalPages"] == 2
    assert len(data["clinics"]) == 1


def test_clinic_details_and_delete(client, clinics, admin_headers):
    ctx = clinics.full_setup("alpha")
    details = client.get(f"/v1/clinics/{ctx['id']}", headers=admin_headers).json()["data"]
    assert details["doctors"][0]["username"] == "alpha-doc"
    assert "security" not in details["doctors"][0]

    assert client.get("/v1/clinics/not-an-id", headers=admin_headers).status_code == 404
    assert client.delete(f"/v1/clinics/{ctx['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/v1/clinics/{ctx['id']}", headers=admin_headers).status_code == 404


def test_stopped_clinic_rejects_existing_tokens(client, clinics, admin_headers):
    ctx = clinics.full_setup("alpha")
    login = client.post("/v1/clinics/doctors/login", json={"username": "alpha-doc", "password": DOCTOR_PASSWORD})
    doctor = bearer(login.json()["data"]["token"])

    assert client.patch(f"/v1/clinics/{ctx['id']}/stop", headers=admin_headers).status_code == 200

    response = client.get("/v1/clinics/my-clinic", headers=ctx["headers"])
    assert response.status_code == 401
    assert response.json()["error"] == "Clinic is not active"
    assert client.get("/v1/clinics/doctors/me", headers=doctor).status_code == 401

    assert client.patch(f"/v1/clinics/{ctx['id']}/activate", headers=admin_headers).status_code == 200
    assert client.get("/v1/clinics/my-clinic", headers=ctx["headers"]).status_code == 200
    assert client.get("/v1/clinics/doctors/me", headers=doctor).status_code == 200
