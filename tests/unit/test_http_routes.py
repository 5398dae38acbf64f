from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from edu_gateway.adapters.http.server import create_app
from edu_gateway.adapters.persistence.repository import CredentialStore
from edu_gateway.config.schema import ServiceConfig
from edu_gateway.domain.model.roles import Principal, Role
from edu_gateway.security.jwt import TokenService
from edu_gateway.security.password import PasswordService

pytestmark = pytest.mark.filterwarnings(
    "ignore:datetime.datetime.utcnow\\(\\) is deprecated:DeprecationWarning"
)

MANAGER = {"fullname": "Kamola Yusupova", "phone": "+998901234567", "password": "Manag3r01"}
TEACHER = {
    "fullname": "Dilnoza Rahimova",
    "phone": "+998907654321",
    "password": "Teach3r01",
    "salary": 3000,
    "ielts_score": 8.0,
}
STUDENT = {"fullname": "Sardor Nazarov", "phone": "+998935556677", "password": "Stud3nt01"}


@pytest.fixture()
def client(
    service_config: ServiceConfig,
    database_url: str,
    password_service: PasswordService,
    token_service: TokenService,
) -> Iterator[TestClient]:
    app = create_app(
        service_config,
        CredentialStore(database_url),
        passwords=password_service,
        token_service=token_service,
    )
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def offline_client(
    service_config: ServiceConfig,
    tmp_path: Path,
    password_service: PasswordService,
    token_service: TokenService,
) -> TestClient:
    """Client whose database directory does not exist.

    Used without a context manager so the startup hook never initializes the
    store; every query fails to connect.
    """
    unreachable = CredentialStore(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'db.sqlite'}")
    app = create_app(
        service_config,
        unreachable,
        passwords=password_service,
        token_service=token_service,
    )
    return TestClient(app)


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _login(client: TestClient, channel: str, login: str, password: str) -> str:
    response = client.post(
        f"/api/v1/auth/login/{channel}",
        json={"login": login, "password": password},
    )
    assert response.status_code == 200, response.text
    return response.json()["access_token"]


@pytest.fixture()
def superadmin_token(client: TestClient, superadmin_password: str) -> str:
    return _login(client, "superadmin", "SuperAdmin", superadmin_password)


@pytest.fixture()
def manager_token(client: TestClient, superadmin_token: str) -> str:
    response = client.post("/api/v1/managers", json=MANAGER, headers=_bearer(superadmin_token))
    assert response.status_code == 201, response.text
    return _login(client, "manager", response.json()["login"], MANAGER["password"])


def test_health_check(client: TestClient) -> None:
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"

    ready = client.get("/api/v1/ready")
    assert ready.status_code == 200
    assert ready.json()["status"] == "ready"


def test_ready_reports_unreachable_store(offline_client: TestClient) -> None:
    response = offline_client.get("/api/v1/ready")

    assert response.status_code == 503
    assert response.json()["status"] == "not_ready"
    assert response.json()["detail"] == "credential store is not reachable"
    assert offline_client.get("/api/v1/health").status_code == 200


def test_store_failure_is_500_payload(offline_client: TestClient) -> None:
    response = offline_client.post(
        "/api/v1/auth/login/teacher",
        json={"login": "T00001", "password": "Teach3r01"},
    )

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "store_unavailable"
    assert body["message"].startswith("error while")
    assert "WWW-Authenticate" not in response.headers


def test_request_id_header(client: TestClient) -> None:
    response = client.get("/api/v1/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_superadmin_login(client: TestClient, superadmin_password: str) -> None:
    response = client.post(
        "/api/v1/auth/login/superadmin",
        json={"login": "SuperAdmin", "password": superadmin_password},
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["token_type"] == "bearer"
    assert payload["access_token"]
    assert payload["refresh_token"]


def test_unknown_login_and_wrong_password_same_payload(
    client: TestClient, manager_token: str
) -> None:
    unknown = client.post(
        "/api/v1/auth/login/manager",
        json={"login": "M09999", "password": MANAGER["password"]},
    )
    wrong = client.post(
        "/api/v1/auth/login/manager",
        json={"login": "M00001", "password": "Wrong1234"},
    )

    assert unknown.status_code == wrong.status_code == 401
    assert unknown.json() == wrong.json() == {
        "error": "invalid_credentials",
        "message": "incorrect login or password",
        "detail": None,
    }


def test_unknown_channel_rejected(client: TestClient) -> None:
    response = client.post("/api/v1/auth/login/janitor", json={"login": "x", "password": "y"})
    assert response.status_code == 422


def test_missing_token_is_401(client: TestClient) -> None:
    response = client.get("/api/v1/teachers")

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert response.json()["error"] == "token_invalid"
    assert response.json()["message"] == "Not authenticated"


def test_create_manager_issues_sequential_logins(
    client: TestClient, superadmin_token: str
) -> None:
    first = client.post("/api/v1/managers", json=MANAGER, headers=_bearer(superadmin_token))
    second = client.post("/api/v1/managers", json=MANAGER, headers=_bearer(superadmin_token))

    assert first.json()["login"] == "M00001"
    assert second.json()["login"] == "M00002"
    assert "password" not in first.json()
    assert "password_hash" not in first.json()


def test_create_manager_requires_bootstrap_superadmin(
    client: TestClient, token_service: TokenService
) -> None:
    other = token_service.create_access_token(
        Principal(id="not-the-bootstrap-id", role=Role.SUPER_ADMIN)
    )

    response = client.post("/api/v1/managers", json=MANAGER, headers=_bearer(other))

    assert response.status_code == 401
    assert response.json()["error"] == "unauthorized"
    assert response.json()["message"] == "You are not a SUPER admin"


def test_manager_cannot_create_manager(client: TestClient, manager_token: str) -> None:
    response = client.post("/api/v1/managers", json=MANAGER, headers=_bearer(manager_token))
    assert response.status_code == 401


def test_teacher_flow(client: TestClient, manager_token: str) -> None:
    created = client.post("/api/v1/teachers", json=TEACHER, headers=_bearer(manager_token))
    assert created.status_code == 201, created.text
    teacher = created.json()
    assert teacher["login"] == "T00001"
    assert teacher["salary"] == 3000
    assert teacher["ielts_score"] == 8.0

    teacher_token = _login(client, "teacher", "T00001", TEACHER["password"])

    me = client.get("/api/v1/auth/me", headers=_bearer(teacher_token))
    assert me.status_code == 200
    assert me.json() == {
        "id": teacher["id"],
        "role": "Teacher",
        "login": "T00001",
        "fullname": TEACHER["fullname"],
    }

    denied = client.get("/api/v1/teachers", headers=_bearer(teacher_token))
    assert denied.status_code == 401
    assert denied.json()["message"] == "You are not a SuperAdmin or a Manager"


def test_list_get_update_delete(client: TestClient, manager_token: str) -> None:
    headers = _bearer(manager_token)
    created = client.post("/api/v1/support-teachers", json=TEACHER, headers=headers).json()
    assert created["login"] == "ST00001"

    listed = client.get("/api/v1/support-teachers", params={"search": "dilnoza"}, headers=headers)
    assert listed.status_code == 200
    assert listed.json()["pagination"]["total"] == 1
    assert listed.json()["items"][0]["id"] == created["id"]

    updated = client.put(
        f"/api/v1/support-teachers/{created['id']}",
        json={"salary": 3600},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["salary"] == 3600
    assert updated.json()["fullname"] == TEACHER["fullname"]

    deleted = client.delete(f"/api/v1/support-teachers/{created['id']}", headers=headers)
    assert deleted.status_code == 200
    assert deleted.json()["success"] is True

    missing = client.get(f"/api/v1/support-teachers/{created['id']}", headers=headers)
    assert missing.status_code == 404
    assert missing.json()["error"] == "not_found"


def test_updated_password_used_for_login(client: TestClient, manager_token: str) -> None:
    headers = _bearer(manager_token)
    created = client.post("/api/v1/students", json=STUDENT, headers=headers).json()

    client.put(
        f"/api/v1/students/{created['id']}",
        json={"password": "NewStud3nt"},
        headers=headers,
    )

    stale = client.post(
        "/api/v1/auth/login/student",
        json={"login": created["login"], "password": STUDENT["password"]},
    )
    assert stale.status_code == 401
    assert _login(client, "student", created["login"], "NewStud3nt")


def test_administration_can_manage_students_only(
    client: TestClient, superadmin_token: str
) -> None:
    admin = {**MANAGER, "fullname": "Admin One"}
    created = client.post(
        "/api/v1/administrations", json=admin, headers=_bearer(superadmin_token)
    )
    assert created.json()["login"] == "A00001"
    admin_token = _login(client, "administration", "A00001", admin["password"])

    student = client.post("/api/v1/students", json=STUDENT, headers=_bearer(admin_token))
    assert student.status_code == 201
    assert student.json()["login"] == "S00001"

    teacher = client.post("/api/v1/teachers", json=TEACHER, headers=_bearer(admin_token))
    assert teacher.status_code == 401


def test_invalid_phone_is_400(client: TestClient, manager_token: str) -> None:
    response = client.post(
        "/api/v1/students",
        json={**STUDENT, "phone": "12345"},
        headers=_bearer(manager_token),
    )

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"
    assert response.json()["detail"] == {"field": "phone"}


def test_weak_password_is_400(client: TestClient, manager_token: str) -> None:
    response = client.post(
        "/api/v1/students",
        json={**STUDENT, "password": "onlyletters"},
        headers=_bearer(manager_token),
    )

    assert response.status_code == 400
    assert response.json()["message"] == "password should contain at least one number"


def test_teacher_report_superadmin_only(
    client: TestClient, superadmin_token: str, manager_token: str
) -> None:
    client.post("/api/v1/teachers", json=TEACHER, headers=_bearer(manager_token))

    denied = client.get("/api/v1/teachers/report", headers=_bearer(manager_token))
    assert denied.status_code == 401

    report = client.get("/api/v1/teachers/report", headers=_bearer(superadmin_token))
    assert report.status_code == 200
    item = report.json()["items"][0]
    assert item["login"] == "T00001"
    assert item["salary"] == 3000
    assert item["total_sum"] == 0


def test_refresh_flow(client: TestClient, superadmin_password: str) -> None:
    login = client.post(
        "/api/v1/auth/login/superadmin",
        json={"login": "SuperAdmin", "password": superadmin_password},
    ).json()

    refreshed = client.post("/api/v1/auth/refresh", json={"refresh_token": login["refresh_token"]})
    assert refreshed.status_code == 200
    assert refreshed.json()["access_token"]

    rejected = client.post("/api/v1/auth/refresh", json={"refresh_token": login["access_token"]})
    assert rejected.status_code == 401


def test_refresh_token_not_accepted_as_access(client: TestClient, superadmin_password: str) -> None:
    login = client.post(
        "/api/v1/auth/login/superadmin",
        json={"login": "SuperAdmin", "password": superadmin_password},
    ).json()

    response = client.get("/api/v1/auth/me", headers=_bearer(login["refresh_token"]))

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token type"
