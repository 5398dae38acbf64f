from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from edu_gateway.adapters.persistence.repository import CredentialStore
from edu_gateway.config.schema import AuthConfig, ServiceConfig, SuperAdminConfig
from edu_gateway.security.jwt import TokenService
from edu_gateway.security.password import PasswordService

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

JWT_SECRET = "test-secret-key-that-is-at-least-32-characters-long"
BOOTSTRAP_ID = "e924cb31-e068-4062-a3b9-66790722e68a"
SUPERADMIN_LOGIN = "SuperAdmin"
SUPERADMIN_PASSWORD = "Bootstrap2024"


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        item.add_marker(pytest.mark.unit)


@pytest.fixture
def password_service() -> PasswordService:
    """PasswordService with low cost parameters for fast tests."""
    return PasswordService(time_cost=1, memory_cost=1024, parallelism=1)


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(secret=JWT_SECRET)


@pytest.fixture
def superadmin_config(password_service: PasswordService) -> SuperAdminConfig:
    return SuperAdminConfig(
        id=BOOTSTRAP_ID,
        login=SUPERADMIN_LOGIN,
        password_hash=password_service.hash_password(SUPERADMIN_PASSWORD),
    )


@pytest.fixture
def service_config(superadmin_config: SuperAdminConfig) -> ServiceConfig:
    return ServiceConfig(
        auth=AuthConfig(jwt_secret=JWT_SECRET),
        superadmin=superadmin_config,
    )


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'credentials.db'}"


@pytest.fixture
async def store(database_url: str) -> AsyncIterator[CredentialStore]:
    """Initialized credential store backed by a temporary SQLite file."""
    credential_store = CredentialStore(database_url)
    await credential_store.initialize()
    yield credential_store
    await credential_store.close()


@pytest.fixture
def superadmin_password() -> str:
    return SUPERADMIN_PASSWORD
