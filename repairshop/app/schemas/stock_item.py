from pydantic import BaseModel


class StockItemRead(BaseModel):
    id: int
    part_name: str

    stock_north: int
    stock_south: int

    class Config:
        from_attributes = True


class BranchStockRead(BaseModel):
    id: int
    part_name: str
    column: str
    quantity: int
