import os

# Must be set before the application modules read their configuration
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.pop("GOOGLE_CLIENT_ID", None)
os.environ.pop("TELEGRAM_BOT_TOKEN", None)
os.environ.pop("TELEGRAM_GROUP_CHAT_ID", None)

import mongomock  # noqa: E402
import pytest  # noqa: E402
from bson import ObjectId  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from shifo_api.auth import ROLE_PLATFORM_ADMIN, issue_token  # noqa: E402
from shifo_api.database import get_db  # noqa: E402
from shifo_api.main import app  # noqa: E402

OWNER_PASSWORD = "owner-pass-123"
DOCTOR_PASSWORD = "doctor-pass-123"


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def db():
    return mongomock.MongoClient()["shifo_test"]


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return bearer(issue_token(str(ObjectId()), ROLE_PLATFORM_ADMIN, "root"))


class ClinicFactory:
    """Builds clinics through the public API and keeps the owner tokens"""

    def __init__(self, client: TestClient, admin_headers: dict):
        self.client = client
        self.admin_headers = admin_headers

    def create(self, unique_name: str = "alpha", plan: str = "starter") -> dict:
        response = self.client.post(
            "/v1/clinics/create",
            json={
                "clinicDisplayName": f"{unique_name.title()} Clinic",
                "clinicUniqueName": unique_name,
                "ownerUserName": f"{unique_name}-owner",
                "ownerDisplayName": "Owner",
                "ownerPassword": OWNER_PASSWORD,
                "plan": plan,
            },
            headers=self.admin_headers,
        )
        assert response.status_code == 201, response.text
        clinic = response.json()["data"]

        login = self.client.post(
            "/v1/clinics/login", json={"username": f"{unique_name}-owner", "password": OWNER_PASSWORD}
        )
        assert login.status_code == 200, login.text
        return {"id": clinic["_id"], "clinic": clinic, "headers": bearer(login.json()["data"]["token"])}

    def add_branch(self, headers: dict, name: str = "Main") -> dict:
        response = self.client.post(
            "/v1/clinics/my-clinic/branches",
            json={
                "name": name,
                "phone": "+998711234567",
                "address": {"city": "Tashkent", "street": "Amir Temur 1", "geo": {"lat": 41.3, "lng": 69.2}},
                "workingHours": [{"day": 1, "from": "09:00", "to": "18:00"}],
            },
            headers=headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]["branch"]

    def add_doctor(self, headers: dict, branch_id: str, username: str = "dr-house") -> dict:
        response = self.client.post(
            "/v1/clinics/my-clinic/doctors",
            json={
                "fullName": "Gregory House",
                "username": username,
                "specialty": "Diagnostics",
                "password": DOCTOR_PASSWORD,
                "branchId": branch_id,
            },
            headers=headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]["doctor"]

    def add_category(self, headers: dict, name: str = "Consultation") -> dict:
        response = self.client.post("/v1/clinics/my-clinic/categories", json={"name": name}, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]["category"]

    def add_service(
        self, headers: dict, category_id: str, branch_ids: list, doctor_ids: list, title: str = "Checkup"
    ) -> dict:
        response = self.client.post(
            "/v1/clinics/my-clinic/services",
            json={
                "title": title,
                "categoryId": category_id,
                "durationMin": 30,
                "price": {"amount": 150000},
                "branchIds": branch_ids,
                "doctorIds": doctor_ids,
            },
            headers=headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]["service"]

    def my_clinic(self, headers: dict) -> dict:
        response = self.client.get("/v1/clinics/my-clinic", headers=headers)
        assert response.status_code == 200, response.text
        return response.json()["data"]

    def full_setup(self, unique_name: str = "alpha") -> dict:
        """Clinic with one branch, doctor, category and service linked to the doctor"""
        ctx = self.create(unique_name)
        headers = ctx["headers"]
        branch = self.add_branch(headers)
        doctor = self.add_doctor(headers, branch["_id"], username=f"{unique_name}-doc")
        category = self.add_category(headers)
        service = self.add_service(headers, category["_id"], [branch["_id"]], [doctor["_id"]])
        return {**ctx, "branch": branch, "doctor": doctor, "category": category, "service": service}


@pytest.fixture
def clinics(client, admin_headers):
    return ClinicFactory(client, admin_headers)


@pytest.fixture
def patient_login(client):
    def login(phone: str = "+998901234567") -> dict:
        response = client.post("/v1/patients/auth/phone", json={"phone": phone})
        assert response.status_code == 200, response.text
        data = response.json()["data"]
        return {**data, "headers": bearer(data["token"])}

    return login
