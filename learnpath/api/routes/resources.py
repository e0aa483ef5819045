"""Resource endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.core.auth import get_current_user, require_admin
from learnpath.core.database import get_db
from learnpath.models.resource import Difficulty, ResourceType
from learnpath.schemas.common import success
from learnpath.schemas.resource import (
    CompletedResourceResponse,
    ResourceCreate,
    ResourceResponse,
    ResourceUpdate,
)
from learnpath.services import resource_service

router = APIRouter(prefix="/resources", tags=["resources"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_resource(
    payload: ResourceCreate,
    user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    resource = await resource_service.create_resource(db, payload)
    return success(ResourceResponse.model_validate(resource), "Resource created")


@router.get("")
async def list_resources(
    resource_type: Optional[ResourceType] = Query(default=None, alias="type"),
    difficulty: Optional[Difficulty] = None,
    user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    resources = await resource_service.list_resources(db, type=resource_type, difficulty=difficulty)
    return success([ResourceResponse.model_validate(r) for r in resources])


# /{resource_id} 보다 먼저 선언해야 한다
@router.get("/completed")
async def list_completed_resources(
    user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    completions = await resource_service.list_completed(db, user_id=user["id"])
    return success([CompletedResourceResponse.model_validate(c) for c in completions])


@router.get("/{resource_id}")
async def get_resource(
    resource_id: int,
    user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    resource = await resource_service.get_resource(db, resource_id)
    return success(ResourceResponse.model_validate(resource))


@router.put("/{resource_id}")
async def update_resource(
    resource_id: int,
    payload: ResourceUpdate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> dict:
    resource = await resource_service.update_resource(db, resource_id, payload)
    return success(ResourceResponse.model_validate(resource), "Resource updated")


@router.delete("/{resource_id}")
async def delete_resource(
    resource_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await resource_service.delete_resource(db, resource_id)
    return success(message="Resource deleted")


@router.post("/{resource_id}/complete", status_code=status.HTTP_201_CREATED)
async def complete_resource(
    resource_id: int,
    user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    completion = await resource_service.complete_resource(
        db, user_id=user["id"], resource_id=resource_id
    )
    return success(CompletedResourceResponse.model_validate(completion), "Resource completed")
