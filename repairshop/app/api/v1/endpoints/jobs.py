from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from repairshop.app.api.deps import get_db
from repairshop.app.schemas.job import JobCreate, JobCreateResponse, LineItemRead
from repairshop.services.errors import JobCreationError
from repairshop.services.jobs import create_job_with_deductions
from repairshop.services.stock_matcher import Unmatched

router = APIRouter(prefix="/jobs")


@router.post("", response_model=JobCreateResponse)
def create_job(payload: JobCreate, db: Session = Depends(get_db)):
    """
    Crée un job et déduit les pièces de la description.

    Les pièces introuvables ne bloquent pas la création : elles sont
    renvoyées avec match=UNMATCHED pour affichage opérateur.
    """
    try:
        result = create_job_with_deductions(db, payload)
    except JobCreationError as exc:
        raise HTTPException(status_code=400, detail=f"Job Creation Failed: {exc.reason}")

    return JobCreateResponse(
        newJobId=result.job_id,
        lines=[
            LineItemRead(
                part_name=line.item.part_name,
                quantity=line.item.quantity,
                match=line.outcome.kind,
                matched_part=None if isinstance(line.outcome, Unmatched) else line.outcome.entry.part_name,
                deducted=line.deducted,
            )
            for line in result.lines
        ],
    )
