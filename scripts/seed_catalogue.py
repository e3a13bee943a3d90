#!/usr/bin/env python3
"""
Seed a dev database with a small derivatives catalogue.
Run from repo root: python scripts/seed_catalogue.py
Uses DATABASE_URL from env or .env. Skips seeding when modules already exist.
"""
import asyncio
import sys
from pathlib import Path

# Repo root on path for app and shared imports
repo_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(repo_root))

CATALOGUE = [
    ("Futures", "Futures fundamentals", "Beginner", [("What is a future?", 15), ("Margin and settlement", 25)]),
    ("Options", "Options pricing", "Intermediate", [("Calls and puts", 20), ("Black-Scholes", 40), ("The Greeks", 35)]),
    ("Options", "Volatility trading", "Advanced", [("Implied vs realised", 30), ("Variance swaps", 45)]),
]


async def seed() -> None:
    from sqlalchemy import func, select

    from app.backoffice import service
    from app.config import Settings
    from app.context import open_context
    from app.models.enums import Difficulty
    from app.models.learning_module import LearningModule

    context = open_context(Settings(), with_redis=False)
    try:
        async with context.session_factory() as db:
            if await db.scalar(select(func.count()).select_from(LearningModule)):
                print("Catalogue already seeded, skipping.")
                return
            categories = {}
            for category_name, title, difficulty, chapters in CATALOGUE:
                if category_name not in categories:
                    categories[category_name] = await service.create_category(db, name=category_name)
                module = await service.create_module(
                    db,
                    title=title,
                    description=None,
                    category_id=categories[category_name].category_id,
                    picture_url=None,
                    notes=None,
                    difficulty=Difficulty(difficulty),
                    is_published=True,
                )
                for name, minutes in chapters:
                    await service.create_chapter(
                        db, module.module_id, name=name, estimated_time_minutes=minutes,
                    )
                print(f"Seeded module {module.order_index}: {title}")
            await db.commit()
    finally:
        await context.aclose()


def main() -> None:
    asyncio.run(seed())
    print("Seed done.")


if __name__ == "__main__":
    main()
