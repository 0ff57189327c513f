"""
Erreurs de la création de job.

Toutes dérivent de JobCreationError : l'appelant n'a qu'un seul type à
attraper et récupère une raison lisible (reason).

Les lignes mal formées (ParseSkip) ne sont PAS des exceptions : elles sont
simplement ignorées par le parser.
"""

from __future__ import annotations


class JobCreationError(Exception):
    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class IdentifierGenerationError(JobCreationError):
    """Impossible d'obtenir un job_id unique (stockage, overflow du compteur)."""


class PersistenceError(JobCreationError):
    """Échec d'écriture du job ou d'une déduction de stock."""


class InsufficientStockError(PersistenceError):
    def __init__(self, part_name: str, column: str, quantity: int):
        super().__init__(f"Insufficient stock for '{part_name}' ({column}, requested={quantity})")
        self.part_name = part_name
        self.column = column
        self.quantity = quantity


class UnmatchedStockError(JobCreationError):
    """Levée uniquement en mode strict (STRICT_STOCK_MATCHING)."""

    def __init__(self, search_term: str):
        super().__init__(f"Could not find item '{search_term}' in inventory")
        self.search_term = search_term
