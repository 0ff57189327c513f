"""
Création d'un job + déductions de stock, en UNE transaction.

Étapes :
    a) job_id (SequenceProvider atomique)
    b) parsing de la description
    c) pour chaque ligne : match catalogue -> déduction atomique
    d) INSERT du job (+ activity_logs)

Politique d'échec (décision métier assumée, à ne pas "corriger") :
    - job_id / INSERT job / déduction en erreur -> rollback complet
    - pièce introuvable (Unmatched) -> le job est créé quand même,
      l'événement est juste tracé (log WARNING + activity_logs).
      STRICT_STOCK_MATCHING=true inverse ce comportement.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from repairshop.app.config import Settings, settings
from repairshop.app.db.models.core_types import (
    ActivityAction,
    FuzzyTieBreak,
    JobStatus,
    NegativeStockPolicy,
    Region,
)
from repairshop.app.db.models.models_v1 import ActivityLog, Job
from repairshop.app.schemas.job import JobCreate
from repairshop.services.branches import region_for_branch
from repairshop.services.deductions import apply_deduction
from repairshop.services.errors import JobCreationError, PersistenceError, UnmatchedStockError
from repairshop.services.job_ids import DatabaseSequenceProvider, JobIdGenerator, SequenceProvider
from repairshop.services.line_items import LineItem, parse_line_items
from repairshop.services.stock_matcher import MatchOutcome, Unmatched, match_stock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineOptions:
    strict_stock_matching: bool = False
    negative_stock_policy: NegativeStockPolicy = NegativeStockPolicy.allow
    fuzzy_tie_break: FuzzyTieBreak = FuzzyTieBreak.shortest
    branch_regions: Mapping[str, Region] | None = None

    @classmethod
    def from_settings(cls, s: Settings) -> "EngineOptions":
        return cls(
            strict_stock_matching=s.strict_stock_matching,
            negative_stock_policy=s.negative_stock_policy,
            fuzzy_tie_break=s.fuzzy_tie_break,
            branch_regions=s.branch_regions or None,
        )


@dataclass(frozen=True)
class ResolvedLineItem:
    item: LineItem
    outcome: MatchOutcome
    deducted: bool


@dataclass
class JobCreationResult:
    job_id: str
    lines: list[ResolvedLineItem] = field(default_factory=list)

    @property
    def outcomes(self) -> list[MatchOutcome]:
        return [line.outcome for line in self.lines]

    @property
    def unmatched(self) -> list[ResolvedLineItem]:
        return [line for line in self.lines if isinstance(line.outcome, Unmatched)]

    @property
    def deducted_count(self) -> int:
        return sum(1 for line in self.lines if line.deducted)


def _record_activity(db: Session, action: ActivityAction, description: str, *, job_pk: int | None, user_id: int | None):
    db.add(
        ActivityLog(
            user_id=user_id,
            job_pk=job_pk,
            action=action.value,
            description=description,
        )
    )


def create_job_with_deductions(
    db: Session,
    payload: JobCreate,
    *,
    options: EngineOptions | None = None,
    provider: SequenceProvider | None = None,
    user_id: int | None = None,
) -> JobCreationResult:
    """
    Crée le job et applique les déductions ; commit si tout passe.

    Retourne le job_id + le résultat de chaque ligne (ex: "2 pièces
    déduites sur 3, 1 introuvable"). Lève une JobCreationError après
    rollback sinon.
    """
    options = options or EngineOptions.from_settings(settings)
    region = region_for_branch(payload.branch, options.branch_regions)
    generator = JobIdGenerator(provider or DatabaseSequenceProvider(db), options.branch_regions)

    try:
        # a) identifiant
        job_id = generator.next_id(payload.job_type, payload.branch)

        # b) + c) lignes -> match -> déduction
        lines: list[ResolvedLineItem] = []
        for item in parse_line_items(payload.repair_desc):
            outcome = match_stock(db, item.part_name, tie_break=options.fuzzy_tie_break)
            if isinstance(outcome, Unmatched):
                if options.strict_stock_matching:
                    raise UnmatchedStockError(outcome.search_term)
                logger.warning(
                    "Stock warning: could not find item %r in inventory (job %s)",
                    outcome.search_term,
                    job_id,
                )

            deducted = apply_deduction(
                db,
                outcome,
                item.quantity,
                region,
                negative_policy=options.negative_stock_policy,
            )
            lines.append(ResolvedLineItem(item=item, outcome=outcome, deducted=deducted))

        # d) job
        job = Job(
            job_id=job_id,
            job_type=payload.job_type,
            branch=payload.branch,
            customer=payload.customer,
            phone=payload.phone,
            device_model=payload.device_model,
            repair_desc=payload.repair_desc,
            price=payload.price,
            status=JobStatus.pending,
        )
        db.add(job)
        db.flush()

        result = JobCreationResult(job_id=job_id, lines=lines)
        for line in result.unmatched:
            _record_activity(
                db,
                ActivityAction.stock_unmatched,
                f"Could not find item '{line.item.part_name}' (x{line.item.quantity}) for job {job_id}",
                job_pk=job.id,
                user_id=user_id,
            )
        _record_activity(
            db,
            ActivityAction.job_created,
            f"Job {job_id} created ({result.deducted_count}/{len(lines)} parts deducted)",
            job_pk=job.id,
            user_id=user_id,
        )
        db.commit()

    except JobCreationError as exc:
        db.rollback()
        logger.error("Job creation failed for branch %r: %s", payload.branch, exc.reason)
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Job creation failed for branch %r", payload.branch)
        raise PersistenceError(f"Database error: {exc.__class__.__name__}") from exc
    except Exception:
        db.rollback()
        logger.exception("Job creation failed for branch %r", payload.branch)
        raise

    logger.info("Job %s created (%s/%s parts deducted)", job_id, result.deducted_count, len(lines))
    return result
