from decimal import Decimal

from pydantic import BaseModel, Field

from repairshop.app.db.models.core_types import JobType, MatchKind


class JobCreate(BaseModel):
    branch: str = Field(min_length=1, max_length=128)
    job_type: JobType = JobType.repair
    customer: str = Field(min_length=1, max_length=200)
    phone: str | None = Field(default=None, max_length=32)
    device_model: str | None = Field(default=None, max_length=200)
    repair_desc: str = ""  # "Screen (x1) || Battery (x2)"
    price: Decimal = Field(default=Decimal("0"), ge=0)


class LineItemRead(BaseModel):
    part_name: str
    quantity: int
    match: MatchKind
    matched_part: str | None = None
    deducted: bool


class JobCreateResponse(BaseModel):
    success: bool = True
    newJobId: str
    lines: list[LineItemRead]
