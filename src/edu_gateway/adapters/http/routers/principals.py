"""Principal management routers.

One router per stored role, built from a resource description that names
the request/response schemas and the allow-list of every operation.
"""

# Annotations are evaluated eagerly here: the endpoint bodies are typed with
# per-resource schema classes that only exist inside build_router.

from dataclasses import dataclass, field
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from edu_gateway.adapters.http.dependencies import (
    PrincipalDirectoryDep,
    require_bootstrap_superadmin,
    require_roles,
)
from edu_gateway.adapters.http.schemas.common import (
    PaginatedResponse,
    PaginationMeta,
    SuccessResponse,
)
from edu_gateway.adapters.http.schemas.principals import (
    AdministrationCreate,
    AdministrationResponse,
    AdministrationUpdate,
    ManagerCreate,
    ManagerResponse,
    ManagerUpdate,
    ReportEntry,
    StudentCreate,
    StudentResponse,
    StudentUpdate,
    SupportTeacherCreate,
    SupportTeacherResponse,
    SupportTeacherUpdate,
    TeacherCreate,
    TeacherResponse,
    TeacherUpdate,
)
from edu_gateway.domain.model.roles import Principal, Role

logger = structlog.get_logger(__name__)

SUPERADMIN_MANAGER = (Role.SUPER_ADMIN, Role.MANAGER)
STAFF = (Role.SUPER_ADMIN, Role.MANAGER, Role.ADMINISTRATION)


@dataclass(frozen=True)
class PrincipalResource:
    """HTTP surface of one stored role.

    Attributes:
        role: Role stored behind the resource
        path: URL segment (e.g. "support-teachers")
        create_model: Create request body
        update_model: Update request body
        response_model: Response body for a single record
        create_roles: Roles allowed to create; empty means bootstrap SuperAdmin only
        read_roles: Roles allowed to list and get
        write_roles: Roles allowed to update and delete
        report_roles: Roles allowed to read the salary report; empty disables it
    """

    role: Role
    path: str
    create_model: type[BaseModel]
    update_model: type[BaseModel]
    response_model: type[BaseModel]
    create_roles: tuple[Role, ...]
    read_roles: tuple[Role, ...]
    write_roles: tuple[Role, ...]
    report_roles: tuple[Role, ...] = field(default=())


RESOURCES: tuple[PrincipalResource, ...] = (
    PrincipalResource(
        role=Role.ADMINISTRATION,
        path="administrations",
        create_model=AdministrationCreate,
        update_model=AdministrationUpdate,
        response_model=AdministrationResponse,
        create_roles=SUPERADMIN_MANAGER,
        read_roles=SUPERADMIN_MANAGER,
        write_roles=SUPERADMIN_MANAGER,
        report_roles=SUPERADMIN_MANAGER,
    ),
    PrincipalResource(
        role=Role.MANAGER,
        path="managers",
        create_model=ManagerCreate,
        update_model=ManagerUpdate,
        response_model=ManagerResponse,
        create_roles=(),
        read_roles=SUPERADMIN_MANAGER,
        write_roles=(Role.SUPER_ADMIN,),
    ),
    PrincipalResource(
        role=Role.TEACHER,
        path="teachers",
        create_model=TeacherCreate,
        update_model=TeacherUpdate,
        response_model=TeacherResponse,
        create_roles=SUPERADMIN_MANAGER,
        read_roles=SUPERADMIN_MANAGER,
        write_roles=SUPERADMIN_MANAGER,
        report_roles=(Role.SUPER_ADMIN,),
    ),
    PrincipalResource(
        role=Role.SUPPORT_TEACHER,
        path="support-teachers",
        create_model=SupportTeacherCreate,
        update_model=SupportTeacherUpdate,
        response_model=SupportTeacherResponse,
        create_roles=SUPERADMIN_MANAGER,
        read_roles=SUPERADMIN_MANAGER,
        write_roles=SUPERADMIN_MANAGER,
        report_roles=SUPERADMIN_MANAGER,
    ),
    PrincipalResource(
        role=Role.STUDENT,
        path="students",
        create_model=StudentCreate,
        update_model=StudentUpdate,
        response_model=StudentResponse,
        create_roles=STAFF,
        read_roles=STAFF,
        write_roles=STAFF,
    ),
)


def build_router(resource: PrincipalResource) -> APIRouter:
    """Build the CRUD (and report) router of one resource.

    Args:
        resource: Resource description

    Returns:
        Router to mount under ``/api/v1/{resource.path}``
    """
    router = APIRouter()
    role = resource.role
    create_model = resource.create_model
    update_model = resource.update_model
    response_model = resource.response_model

    if resource.create_roles:
        create_guard = require_roles(*resource.create_roles)
    else:
        create_guard = require_bootstrap_superadmin()
    read_guard = require_roles(*resource.read_roles)
    write_guard = require_roles(*resource.write_roles)

    @router.post("", response_model=response_model, status_code=status.HTTP_201_CREATED)
    async def create_principal(
        body: create_model,
        principal: Annotated[Principal, Depends(create_guard)],
        directory: PrincipalDirectoryDep,
    ) -> BaseModel:
        fields = body.model_dump(exclude={"password"})
        record = await directory.create(role, fields, body.password)

        logger.info(
            "Principal created via API",
            role=role.value,
            login=record.login,
            created_by=principal.id,
        )
        return response_model.model_validate(record)

    @router.get("", response_model=PaginatedResponse[response_model])
    async def list_principals(
        _principal: Annotated[Principal, Depends(read_guard)],
        directory: PrincipalDirectoryDep,
        search: Annotated[str | None, Query(max_length=255)] = None,
        page: Annotated[int, Query(ge=1)] = 1,
        limit: Annotated[int, Query(ge=1, le=100)] = 10,
    ) -> PaginatedResponse:
        records, total = await directory.get_list(role, search=search, page=page, limit=limit)

        return PaginatedResponse[response_model](
            items=[response_model.model_validate(record) for record in records],
            pagination=PaginationMeta.build(total=total, page=page, page_size=limit),
        )

    if resource.report_roles:
        report_guard = require_roles(*resource.report_roles)

        # Registered before "/{principal_id}" so "report" is not taken as an id
        @router.get("/report", response_model=PaginatedResponse[ReportEntry])
        async def report_principals(
            _principal: Annotated[Principal, Depends(report_guard)],
            directory: PrincipalDirectoryDep,
            search: Annotated[str | None, Query(max_length=255)] = None,
            page: Annotated[int, Query(ge=1)] = 1,
            limit: Annotated[int, Query(ge=1, le=100)] = 10,
        ) -> PaginatedResponse:
            rows, total = await directory.get_report_list(
                role, search=search, page=page, limit=limit
            )

            return PaginatedResponse[ReportEntry](
                items=[
                    ReportEntry(
                        id=row.record.id,
                        login=row.record.login,
                        fullname=row.record.fullname,
                        phone=row.record.phone,
                        salary=row.record.salary,
                        days_worked=row.days_worked,
                        total_sum=row.total_sum,
                    )
                    for row in rows
                ],
                pagination=PaginationMeta.build(total=total, page=page, page_size=limit),
            )

    @router.get("/{principal_id}", response_model=response_model)
    async def get_principal(
        principal_id: str,
        _principal: Annotated[Principal, Depends(read_guard)],
        directory: PrincipalDirectoryDep,
    ) -> BaseModel:
        record = await directory.get(role, principal_id)
        return response_model.model_validate(record)

    @router.put("/{principal_id}", response_model=response_model)
    async def update_principal(
        principal_id: str,
        body: update_model,
        principal: Annotated[Principal, Depends(write_guard)],
        directory: PrincipalDirectoryDep,
    ) -> BaseModel:
        fields = body.model_dump(exclude_unset=True, exclude_none=True)
        password = fields.pop("password", None)
        record = await directory.update(role, principal_id, fields, password=password)

        logger.info(
            "Principal updated via API",
            role=role.value,
            principal_id=principal_id,
            updated_by=principal.id,
            password_changed=password is not None,
        )
        return response_model.model_validate(record)

    @router.delete("/{principal_id}", response_model=SuccessResponse)
    async def delete_principal(
        principal_id: str,
        principal: Annotated[Principal, Depends(write_guard)],
        directory: PrincipalDirectoryDep,
    ) -> SuccessResponse:
        await directory.delete(role, principal_id)

        logger.info(
            "Principal deleted via API",
            role=role.value,
            principal_id=principal_id,
            deleted_by=principal.id,
        )
        return SuccessResponse(message=f"{role.value} deleted")

    return router
