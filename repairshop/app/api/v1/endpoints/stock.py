from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from repairshop.app.api.deps import get_db
from repairshop.app.config import settings
from repairshop.app.db.models.models_v1 import StockItem
from repairshop.app.schemas.stock_item import BranchStockRead, StockItemRead
from repairshop.services.branches import region_for_branch

router = APIRouter(prefix="/stock")


@router.get(
    "",
    response_model=list[StockItemRead],
)
def get_stock(
    part_name: str | None = None,
    db: Session = Depends(get_db),
):
    """
    Stock (READ ONLY)
    - les quantités ne bougent que via la création de job
    """

    stmt = select(StockItem).order_by(StockItem.part_name)

    if part_name is not None:
        stmt = stmt.where(StockItem.part_name.contains(part_name, autoescape=True))

    return db.execute(stmt).scalars().all()


@router.get(
    "/branch/{branch}",
    response_model=list[BranchStockRead],
)
def get_branch_stock(branch: str, db: Session = Depends(get_db)):
    region = region_for_branch(branch, settings.branch_regions or None)
    column = region.stock_column

    rows = db.execute(select(StockItem).order_by(StockItem.part_name)).scalars().all()
    return [
        BranchStockRead(
            id=item.id,
            part_name=item.part_name,
            column=column,
            quantity=getattr(item, column),
        )
        for item in rows
    ]
