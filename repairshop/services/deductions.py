from __future__ import annotations

import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from repairshop.app.db.models.core_types import NegativeStockPolicy, Region
from repairshop.app.db.models.models_v1 import StockItem
from repairshop.services.errors import InsufficientStockError, PersistenceError
from repairshop.services.stock_matcher import ExactMatch, FuzzyMatch, MatchOutcome

logger = logging.getLogger(__name__)


def apply_deduction(
    db: Session,
    outcome: MatchOutcome,
    quantity: int,
    region: Region,
    *,
    negative_policy: NegativeStockPolicy = NegativeStockPolicy.allow,
) -> bool:
    """
    Décrémente la colonne de stock de la région pour la pièce résolue.

    - UPDATE ... SET col = col - :qty (décrément en base, jamais
      lecture/écriture côté Python) -> pas de lost update en concurrence.
    - Unmatched : aucune écriture, retourne False.
    - policy "reject" : décrément conditionnel (col >= qty), sinon
      InsufficientStockError.
    """
    if not isinstance(outcome, (ExactMatch, FuzzyMatch)):
        return False

    if quantity <= 0:
        raise ValueError("quantity must be positive")

    column = getattr(StockItem, region.stock_column)
    stmt = (
        update(StockItem)
        .where(StockItem.id == outcome.entry.id)
        .values({column: column - quantity})
    )
    if negative_policy is NegativeStockPolicy.reject:
        stmt = stmt.where(column >= quantity)

    result = db.execute(stmt)
    if result.rowcount == 0:
        if negative_policy is NegativeStockPolicy.reject:
            raise InsufficientStockError(outcome.entry.part_name, region.stock_column, quantity)
        raise PersistenceError(f"Stock item '{outcome.entry.part_name}' disappeared during deduction")

    if isinstance(outcome, FuzzyMatch):
        logger.info(
            "Fuzzy match success: deducted %s from %s (searched %r)",
            quantity,
            outcome.entry.part_name,
            outcome.search_term,
        )
    else:
        logger.debug("Deducted %s from %s (%s)", quantity, outcome.entry.part_name, region.stock_column)
    return True
