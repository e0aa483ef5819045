"""Resource catalogue and per-user completion tracking."""

import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from learnpath.core.database import transaction
from learnpath.models.resource import Difficulty, Resource, ResourceType, UserResource
from learnpath.schemas.resource import ResourceCreate, ResourceUpdate

logger = logging.getLogger(__name__)


async def _get_or_404(db: AsyncSession, resource_id: int) -> Resource:
    resource = await db.get(Resource, resource_id)
    if resource is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Resource not found",
        )
    return resource


async def create_resource(db: AsyncSession, payload: ResourceCreate) -> Resource:
    data = payload.model_dump()
    data["url"] = str(payload.url)
    resource = Resource(**data)
    async with transaction(db):
        db.add(resource)
    await db.refresh(resource)
    logger.info("Resource created: id=%s type=%s", resource.id, resource.type.value)
    return resource


async def list_resources(
    db: AsyncSession,
    *,
    type: Optional[ResourceType] = None,
    difficulty: Optional[Difficulty] = None,
) -> list[Resource]:
    stmt = select(Resource).order_by(Resource.created_at.desc(), Resource.id.desc())
    if type is not None:
        stmt = stmt.where(Resource.type == type)
    if difficulty is not None:
        stmt = stmt.where(Resource.difficulty == difficulty)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_resource(db: AsyncSession, resource_id: int) -> Resource:
    return await _get_or_404(db, resource_id)


async def update_resource(db: AsyncSession, resource_id: int, payload: ResourceUpdate) -> Resource:
    resource = await _get_or_404(db, resource_id)
    changes = payload.model_dump(exclude_unset=True)
    if "url" in changes and changes["url"] is not None:
        changes["url"] = str(changes["url"])
    async with transaction(db):
        for field, value in changes.items():
            setattr(resource, field, value)
    await db.refresh(resource)
    return resource


async def delete_resource(db: AsyncSession, resource_id: int) -> None:
    resource = await _get_or_404(db, resource_id)
    async with transaction(db):
        await db.delete(resource)
    logger.info("Resource deleted: id=%s", resource_id)


async def complete_resource(db: AsyncSession, *, user_id: int, resource_id: int) -> UserResource:
    await _get_or_404(db, resource_id)
    existing = await db.execute(
        select(UserResource).where(
            UserResource.user_id == user_id,
            UserResource.resource_id == resource_id,
        )
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Resource already marked as completed",
        )

    completion = UserResource(user_id=user_id, resource_id=resource_id)
    try:
        async with transaction(db):
            db.add(completion)
    except IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Resource already marked as completed",
        )

    result = await db.execute(
        select(UserResource)
        .where(UserResource.id == completion.id)
        .options(selectinload(UserResource.resource))
    )
    return result.scalar_one()


async def list_completed(db: AsyncSession, *, user_id: int) -> list[UserResource]:
    result = await db.execute(
        select(UserResource)
        .where(UserResource.user_id == user_id)
        .options(selectinload(UserResource.resource))
        .order_by(UserResource.completed_at.desc())
    )
    return list(result.scalars().all())
