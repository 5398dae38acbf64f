"""Tests for the principal directory."""

from __future__ import annotations

import threading

import pytest

from edu_gateway.adapters.persistence.repository import CredentialStore
from edu_gateway.application.principals import PrincipalDirectory
from edu_gateway.domain.errors import NotFound, ValidationError
from edu_gateway.domain.model.roles import Role
from edu_gateway.security.password import PasswordService

PROFILE = {"fullname": "Jasur Aliyev", "phone": "+998935556677", "salary": 2500}


@pytest.fixture
def directory(store: CredentialStore, password_service: PasswordService) -> PrincipalDirectory:
    return PrincipalDirectory(store, password_service)


class TestCreate:
    """Tests for create()."""

    @pytest.mark.asyncio
    async def test_hashes_password_once(
        self, directory: PrincipalDirectory, password_service: PasswordService
    ) -> None:
        record = await directory.create(Role.MANAGER, dict(PROFILE), "Manag3r01")

        assert record.login == "M00001"
        assert record.password_hash != "Manag3r01"
        assert password_service.verify_password("Manag3r01", record.password_hash)

    @pytest.mark.asyncio
    async def test_hashing_runs_off_event_loop_thread(
        self,
        directory: PrincipalDirectory,
        password_service: PasswordService,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        hash_password = password_service.hash_password
        threads: list[int] = []

        def tracking_hash(password: str) -> str:
            threads.append(threading.get_ident())
            return hash_password(password)

        monkeypatch.setattr(password_service, "hash_password", tracking_hash)

        await directory.create(Role.MANAGER, dict(PROFILE), "Manag3r01")

        assert threads
        assert threads[0] != threading.get_ident()

    @pytest.mark.asyncio
    async def test_invalid_phone_rejected_before_store(
        self,
        directory: PrincipalDirectory,
        store: CredentialStore,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def fail(_role: Role) -> None:
            raise AssertionError("store consulted")

        monkeypatch.setattr(store, "repository", fail)

        with pytest.raises(ValidationError, match="phone"):
            await directory.create(Role.MANAGER, {**PROFILE, "phone": "901234567"}, "Manag3r01")
        with pytest.raises(ValidationError, match="password"):
            await directory.create(Role.MANAGER, dict(PROFILE), "short")


class TestReadUpdateDelete:
    """Tests for get(), update() and delete()."""

    @pytest.mark.asyncio
    async def test_get_missing(self, directory: PrincipalDirectory) -> None:
        with pytest.raises(NotFound, match="Teacher not found"):
            await directory.get(Role.TEACHER, "missing-id")

    @pytest.mark.asyncio
    async def test_update_rehashes_new_password(
        self, directory: PrincipalDirectory, password_service: PasswordService
    ) -> None:
        created = await directory.create(Role.TEACHER, dict(PROFILE), "Teach3r01")

        updated = await directory.update(Role.TEACHER, created.id, {}, password="Teach3r02")

        assert updated.password_hash != created.password_hash
        assert password_service.verify_password("Teach3r02", updated.password_hash)
        assert not password_service.verify_password("Teach3r01", updated.password_hash)

    @pytest.mark.asyncio
    async def test_update_without_password_keeps_hash(
        self, directory: PrincipalDirectory
    ) -> None:
        created = await directory.create(Role.TEACHER, dict(PROFILE), "Teach3r01")

        updated = await directory.update(Role.TEACHER, created.id, {"salary": 2800})

        assert updated.password_hash == created.password_hash
        assert updated.salary == 2800

    @pytest.mark.asyncio
    async def test_update_validates_phone(self, directory: PrincipalDirectory) -> None:
        created = await directory.create(Role.TEACHER, dict(PROFILE), "Teach3r01")

        with pytest.raises(ValidationError):
            await directory.update(Role.TEACHER, created.id, {"phone": "+1555"})

    @pytest.mark.asyncio
    async def test_delete_hides_record(self, directory: PrincipalDirectory) -> None:
        created = await directory.create(
            Role.STUDENT, {"fullname": "Sardor", "phone": "+998901234567"}, "Stud3nt01"
        )

        await directory.delete(Role.STUDENT, created.id)

        with pytest.raises(NotFound):
            await directory.get(Role.STUDENT, created.id)
        records, total = await directory.get_list(Role.STUDENT)
        assert (records, total) == ([], 0)
