"""Resource catalogue / completion service tests (SQLite)."""

import pytest
from fastapi import HTTPException

from learnpath.models.resource import Difficulty, ResourceType
from learnpath.schemas.resource import ResourceCreate, ResourceUpdate
from learnpath.services import resource_service


class TestResourceCatalogue:
    async def test_create_and_filter(self, db):
        video = await resource_service.create_resource(
            db,
            ResourceCreate(
                title="Binary search",
                description="Walkthrough of binary search",
                type="VIDEO",
                url="https://example.com/binary-search",
                duration=12,
                difficulty="EASY",
            ),
        )
        await resource_service.create_resource(
            db,
            ResourceCreate(
                title="Two sum",
                description="Classic hash map problem",
                type="LEETCODE",
                url="https://leetcode.com/problems/two-sum/",
                difficulty="MEDIUM",
            ),
        )

        videos = await resource_service.list_resources(db, type=ResourceType.VIDEO)
        easy = await resource_service.list_resources(db, difficulty=Difficulty.EASY)

        assert [r.id for r in videos] == [video.id]
        assert [r.id for r in easy] == [video.id]
        assert video.url == "https://example.com/binary-search"

    async def test_update_and_delete(self, db, make_resource):
        resource = await make_resource(ResourceType.BLOG, "Stacks")

        updated = await resource_service.update_resource(
            db, resource.id, ResourceUpdate(difficulty="HARD")
        )
        assert updated.difficulty == Difficulty.HARD
        assert updated.title == "Stacks"

        await resource_service.delete_resource(db, resource.id)
        with pytest.raises(HTTPException) as exc_info:
            await resource_service.get_resource(db, resource.id)
        assert exc_info.value.status_code == 404


class TestResourceCompletion:
    async def test_completing_twice_is_rejected(self, db, owner, make_resource):
        resource = await make_resource()

        completion = await resource_service.complete_resource(
            db, user_id=owner["id"], resource_id=resource.id
        )
        assert completion.resource.id == resource.id

        with pytest.raises(HTTPException) as exc_info:
            await resource_service.complete_resource(
                db, user_id=owner["id"], resource_id=resource.id
            )
        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "Resource already marked as completed"

    async def test_completion_is_per_user(self, db, owner, stranger, make_resource):
        resource = await make_resource()
        await resource_service.complete_resource(db, user_id=owner["id"], resource_id=resource.id)

        await resource_service.complete_resource(
            db, user_id=stranger["id"], resource_id=resource.id
        )

        owned = await resource_service.list_completed(db, user_id=owner["id"])
        assert [c.resource_id for c in owned] == [resource.id]

    async def test_missing_resource(self, db, owner):
        with pytest.raises(HTTPException) as exc_info:
            await resource_service.complete_resource(db, user_id=owner["id"], resource_id=999)
        assert exc_info.value.status_code == 404
