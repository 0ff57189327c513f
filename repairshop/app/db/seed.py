from __future__ import annotations

from sqlalchemy import select

from repairshop.app.db.base import Base
from repairshop.app.db.session import SessionLocal, engine
from repairshop.app.db.models.models_v1 import StockItem

DEMO_CATALOG = [
    # (part_name, stock_north, stock_south)
    ("iPhone 11 Screen", 10, 8),
    ("iPhone 11 Battery", 15, 12),
    ("Battery", 20, 20),
    ("Charging Port Flex", 6, 4),
    ("Back Glass 1set", 5, 5),
]


def run_seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        created = 0
        for part_name, north, south in DEMO_CATALOG:
            item = db.scalar(select(StockItem).where(StockItem.part_name == part_name))
            if not item:
                db.add(StockItem(part_name=part_name, stock_north=north, stock_south=south))
                created += 1
        db.commit()

        print(f"SEED OK: {created} stock items created")
    finally:
        db.close()


if __name__ == "__main__":
    run_seed()
