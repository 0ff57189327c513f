"""
Génération des identifiants de job : <Région>-<Type>-<00042>.

Le numéro vient d'un SequenceProvider atomique par préfixe, jamais d'un
"SELECT dernier id + 1" (course en concurrence -> doublons).
"""

from __future__ import annotations

import logging
import threading
from typing import Mapping, Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from repairshop.app.db.models.core_types import JobType, Region
from repairshop.app.db.models.models_v1 import Job, JobSequence
from repairshop.services.branches import region_for_branch
from repairshop.services.errors import IdentifierGenerationError

logger = logging.getLogger(__name__)

SEQUENCE_WIDTH = 5
MAX_SEQUENCE = 10**SEQUENCE_WIDTH - 1
MAX_SEED_ATTEMPTS = 3


class SequenceProvider(Protocol):
    def next_value(self, prefix: str) -> int: ...


def job_prefix(job_type: JobType, region: Region) -> str:
    return f"{region.value}-{job_type.code}-"


def parse_sequence(job_id: str) -> int:
    # 5 derniers caractères = numéro
    return int(job_id[-SEQUENCE_WIDTH:])


class InMemorySequenceProvider:
    """Compteur process-local protégé par un mutex (instance unique)."""

    def __init__(self, start: Mapping[str, int] | None = None):
        self._values: dict[str, int] = dict(start or {})
        self._lock = threading.Lock()

    def next_value(self, prefix: str) -> int:
        with self._lock:
            value = self._values.get(prefix, 0) + 1
            self._values[prefix] = value
            return value


class DatabaseSequenceProvider:
    """
    Compteur par préfixe dans la table job_sequences.

    - UPDATE last_value = last_value + 1 ... RETURNING : atomique, et le
      verrou de ligne tient jusqu'à la fin de la transaction du job.
    - Ligne absente : on l'initialise depuis le dernier job_id inséré pour ce
      préfixe (ORDER BY jobs.id DESC), puis on réessaie. Un INSERT concurrent
      sur le même préfixe -> IntegrityError dans un SAVEPOINT, on réessaie.
    """

    def __init__(self, db: Session):
        self.db = db

    def next_value(self, prefix: str) -> int:
        try:
            for _ in range(MAX_SEED_ATTEMPTS):
                value = self._increment(prefix)
                if value is not None:
                    return value
                self._seed(prefix)
        except SQLAlchemyError as exc:
            raise IdentifierGenerationError(f"Sequence storage error for {prefix}: {exc}") from exc

        raise IdentifierGenerationError(f"Could not allocate a sequence value for {prefix}")

    def _increment(self, prefix: str) -> int | None:
        value = self.db.execute(
            update(JobSequence)
            .where(JobSequence.prefix == prefix)
            .values(last_value=JobSequence.last_value + 1)
            .returning(JobSequence.last_value)
        ).scalar_one_or_none()
        return None if value is None else int(value)

    def _seed(self, prefix: str) -> None:
        last_job_id = self.db.execute(
            select(Job.job_id)
            .where(Job.job_id.startswith(prefix, autoescape=True))
            .order_by(Job.id.desc())
            .limit(1)
        ).scalar_one_or_none()
        try:
            start = parse_sequence(last_job_id) if last_job_id else 0
        except ValueError as exc:
            raise IdentifierGenerationError(f"Malformed existing job id {last_job_id!r}") from exc

        try:
            with self.db.begin_nested():
                self.db.add(JobSequence(prefix=prefix, last_value=start))
        except IntegrityError:
            logger.debug("Sequence %s seeded concurrently, retrying", prefix)


class JobIdGenerator:
    def __init__(
        self,
        provider: SequenceProvider,
        branch_regions: Mapping[str, Region] | None = None,
    ):
        self.provider = provider
        self.branch_regions = branch_regions

    def next_id(self, job_type: JobType, branch: str) -> str:
        region = region_for_branch(branch, self.branch_regions)
        prefix = job_prefix(job_type, region)

        value = self.provider.next_value(prefix)
        if value > MAX_SEQUENCE:
            raise IdentifierGenerationError(
                f"Sequence overflow for {prefix}: {value} does not fit in {SEQUENCE_WIDTH} digits"
            )
        return f"{prefix}{value:0{SEQUENCE_WIDTH}d}"
