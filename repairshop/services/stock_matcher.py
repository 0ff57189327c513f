"""
Résolution d'un nom de pièce vers une entrée du catalogue (stock_list).

1. Correspondance exacte sur part_name.
2. Sinon, recherche "fuzzy" : on retire "1set" / "set" du terme puis on
   cherche les pièces dont le nom CONTIENT le terme nettoyé.

Lecture seule : aucune écriture ici. La déduction est faite ensuite, de
façon atomique, par services.deductions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from repairshop.app.db.models.core_types import FuzzyTieBreak, MatchKind
from repairshop.app.db.models.models_v1 import StockItem

# Ordre important : "1set" d'abord, sinon il resterait un "1" orphelin
NOISE_TOKENS = ("1set", "set")


@dataclass(frozen=True)
class CatalogRef:
    id: int
    part_name: str


@dataclass(frozen=True)
class ExactMatch:
    entry: CatalogRef
    kind = MatchKind.exact


@dataclass(frozen=True)
class FuzzyMatch:
    entry: CatalogRef
    search_term: str
    kind = MatchKind.fuzzy


@dataclass(frozen=True)
class Unmatched:
    search_term: str
    kind = MatchKind.unmatched


MatchOutcome = Union[ExactMatch, FuzzyMatch, Unmatched]


def normalize_search_term(term: str) -> str:
    for token in NOISE_TOKENS:
        term = term.replace(token, "")
    return term


def find_exact(db: Session, part_name: str) -> StockItem | None:
    return (
        db.execute(select(StockItem).where(StockItem.part_name == part_name))
        .scalars()
        .first()
    )


def find_by_substring(
    db: Session,
    term: str,
    *,
    tie_break: FuzzyTieBreak = FuzzyTieBreak.shortest,
) -> StockItem | None:
    """
    Première pièce dont le nom contient `term`, avec un départage déterministe.

    LIKE est insensible à la casse selon le moteur (SQLite, MySQL) : on
    re-filtre côté Python pour garder une containment sensible à la casse.
    Terme vide (ex: "set" une fois nettoyé) : toutes les pièces matchent,
    on prend la première selon le départage.
    """
    stmt = select(StockItem).where(StockItem.part_name.contains(term, autoescape=True))
    if tie_break is FuzzyTieBreak.shortest:
        stmt = stmt.order_by(func.length(StockItem.part_name), StockItem.part_name, StockItem.id)
    else:
        stmt = stmt.order_by(StockItem.part_name, StockItem.id)

    for item in db.execute(stmt).scalars():
        if term in item.part_name:
            return item
    return None


def match_stock(
    db: Session,
    part_name: str,
    *,
    tie_break: FuzzyTieBreak = FuzzyTieBreak.shortest,
) -> MatchOutcome:
    item = find_exact(db, part_name)
    if item is not None:
        return ExactMatch(CatalogRef(id=int(item.id), part_name=item.part_name))

    item = find_by_substring(db, normalize_search_term(part_name), tie_break=tie_break)
    if item is not None:
        return FuzzyMatch(CatalogRef(id=int(item.id), part_name=item.part_name), search_term=part_name)

    return Unmatched(search_term=part_name)
