#!/usr/bin/env python3
"""
Seed the learning database with the demo catalog.
Run from repo root after migrating: python scripts/seed-data.py
Uses LEARNING_DATABASE_URL from env or .env.
"""
import sys
from pathlib import Path

# Shared package and the learning service on path
repo_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(repo_root / "shared"))
sys.path.insert(0, str(repo_root / "services" / "learning"))


def seed_learning() -> None:
    from app.config import Settings
    from app.repository.fixtures import DEMO_TENANT_ID, build_fixture_rows
    from shared.database.postgres import get_async_session_factory

    url = Settings().learning_database_url
    session_factory = get_async_session_factory(url)

    async def _run() -> None:
        courses, modules, lessons = build_fixture_rows()
        async with session_factory() as session:
            # merge() keeps re-runs idempotent on the fixed demo ids
            for row in [*courses, *modules, *lessons]:
                await session.merge(row)
            await session.commit()
        await session_factory.kw["bind"].dispose()
        print(
            f"Learning: seeded {len(courses)} courses, {len(modules)} modules, "
            f"{len(lessons)} lessons for tenant {DEMO_TENANT_ID}"
        )

    import asyncio
    asyncio.run(_run())


def main() -> None:
    seed_learning()
    print("Seed done.")


if __name__ == "__main__":
    main()
