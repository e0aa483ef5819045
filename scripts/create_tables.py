"""
DB 스키마 생성 스크립트

모든 테이블을 생성하고, 선택적으로 JSON 파일에서 리소스를 일괄 등록합니다.

사용법:
    python scripts/create_tables.py                          # 테이블 생성
    python scripts/create_tables.py --drop                   # 기존 테이블 삭제 후 재생성
    python scripts/create_tables.py --seed resources.json    # 리소스 일괄 등록

resources.json 형식:
    [{"title": "...", "description": "...", "type": "VIDEO", "url": "https://...",
      "duration": 15, "difficulty": "EASY"}, ...]
"""

import argparse
import asyncio
import logging
from pathlib import Path

from pydantic import TypeAdapter

from learnpath.core.database import AsyncSessionLocal, Base, engine, transaction
from learnpath.core.logging import setup_logging
from learnpath.models import Resource
from learnpath.schemas.resource import ResourceCreate

logger = logging.getLogger("learnpath.scripts.create_tables")


async def create_tables(drop: bool = False) -> None:
    async with engine.begin() as conn:
        if drop:
            await conn.run_sync(Base.metadata.drop_all)
            logger.info("Dropped all tables")
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Created tables: %s", ", ".join(sorted(Base.metadata.tables)))


async def seed_resources(path: Path) -> int:
    items = TypeAdapter(list[ResourceCreate]).validate_json(path.read_text(encoding="utf-8"))
    async with AsyncSessionLocal() as session:
        async with transaction(session):
            for item in items:
                data = item.model_dump()
                data["url"] = str(item.url)
                session.add(Resource(**data))
    logger.info("Seeded %d resources from %s", len(items), path)
    return len(items)


async def main(args: argparse.Namespace) -> None:
    try:
        await create_tables(drop=args.drop)
        if args.seed:
            await seed_resources(Path(args.seed))
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create LearnPath database tables")
    parser.add_argument("--drop", action="store_true", help="기존 테이블 삭제 후 재생성")
    parser.add_argument("--seed", metavar="JSON", help="리소스 JSON 파일 경로")
    setup_logging(level="INFO")
    asyncio.run(main(parser.parse_args()))
