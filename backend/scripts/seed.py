"""Seed script: creates sample catalog classes for local development.

Idempotent: rows whose special ID already exists are skipped.
Run: python scripts/seed.py  (from the backend/ directory)
"""
import asyncio
import sys
import os
from decimal import Decimal

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import AsyncSessionLocal, init_db
from app.models.catalog_class import CatalogClass
from app.services.special_id import next_special_id

SAMPLE_CLASSES = [
    {
        "special_id": "CR01",
        "main_category": "Chairs",
        "quality": "Premium",
        "class_name": "Oak Dining Chair",
        "class_name_arabic": "كرسي طعام من خشب البلوط",
        "class_name_english": "Oak Dining Chair",
        "class_features": "Solid oak frame, linen seat",
        "class_weight": Decimal("6.5"),
        "class_price": Decimal("120.00"),
        "class_quantity": 24,
    },
    {
        "special_id": "CR02",
        "main_category": "Chairs",
        "quality": "Standard",
        "class_name": "Stacking Chair",
        "class_features": "Powder-coated steel",
        "class_weight": Decimal("4.2"),
        "class_price": Decimal("45.00"),
        "class_quantity": 100,
    },
    {
        "main_category": "Tables",
        "quality": "Premium",
        "class_name": "Walnut Coffee Table",
        "class_weight": Decimal("18"),
        "class_price": Decimal("340.00"),
        "class_quantity": 5,
    },
]


async def _upsert_class(db: AsyncSession, data: dict) -> None:
    special_id = data.get("special_id")
    if special_id:
        existing = (
            await db.execute(select(CatalogClass).where(CatalogClass.special_id == special_id))
        ).scalar_one_or_none()
        if existing:
            print(f"  [skip] Class {special_id}")
            return
    else:
        existing = (
            await db.execute(select(CatalogClass).where(CatalogClass.class_name == data["class_name"]))
        ).scalars().first()
        if existing:
            print(f"  [skip] Class {existing.special_id}")
            return
        data = {**data, "special_id": await next_special_id(db)}

    db.add(CatalogClass(**data))
    await db.commit()
    print(f"  [new]  Class {data['special_id']} ({data['class_name']})")


async def seed():
    await init_db()
    async with AsyncSessionLocal() as db:
        for data in SAMPLE_CLASSES:
            await _upsert_class(db, data)
    print("Seed complete.")


if __name__ == "__main__":
    asyncio.run(seed())
