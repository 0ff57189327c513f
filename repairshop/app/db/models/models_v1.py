from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String,
    Integer,
    BigInteger,
    DateTime,
    ForeignKey,
    Numeric,
    Text,
    Enum,
    Index,
)
from sqlalchemy.orm import Mapped, mapped_column

from repairshop.app.db.base import Base
from repairshop.app.db.models.core_types import JobStatus, JobType


# ---------- INVENTORY ----------
class StockItem(Base):
    """
    Catalogue de pièces, une colonne de quantité par région.

    Pas de contrainte >= 0 : le stock peut passer en négatif
    (voir NEGATIVE_STOCK_POLICY côté service).
    """

    __tablename__ = "stock_list"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    part_name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    stock_north: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    stock_south: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )


# ---------- JOBS ----------
class Job(Base):
    __tablename__ = "jobs"
    # id = clé d'ordre de création ("dernier inséré")
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    job_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    job_type: Mapped[JobType] = mapped_column(
        Enum(JobType, name="job_type"),
        default=JobType.repair,
        nullable=False,
    )

    branch: Mapped[str] = mapped_column(String(128), nullable=False)
    customer: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32))
    device_model: Mapped[str | None] = mapped_column(String(200))
    repair_desc: Mapped[str] = mapped_column(Text, default="", nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)

    status: Mapped[JobStatus] = mapped_column(
        Enum(JobStatus, name="job_status"),
        default=JobStatus.pending,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    __table_args__ = (Index("ix_jobs_branch_created", "branch", "created_at"),)


class JobSequence(Base):
    """Compteur atomique par préfixe (ex: "N-REP-")."""

    __tablename__ = "job_sequences"
    prefix: Mapped[str] = mapped_column(String(16), primary_key=True)
    last_value: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)


# ---------- AUDIT ----------
class ActivityLog(Base):
    __tablename__ = "activity_logs"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int | None] = mapped_column(Integer)
    job_pk: Mapped[int | None] = mapped_column(ForeignKey("jobs.id", ondelete="SET NULL"))
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    __table_args__ = (Index("ix_activity_logs_action", "action"),)
