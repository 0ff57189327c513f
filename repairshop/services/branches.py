from __future__ import annotations

from typing import Mapping

from repairshop.app.db.models.core_types import Region

# Règle historique : "North" dans le libellé -> région Nord, sinon Sud.
DEFAULT_BRANCH_REGIONS: dict[str, Region] = {"North": Region.north}
DEFAULT_REGION = Region.south


def region_for_branch(
    branch: str,
    table: Mapping[str, Region] | None = None,
    *,
    default: Region = DEFAULT_REGION,
) -> Region:
    """
    Résout la région d'une branche.

    Chaque clé est cherchée (insensible à la casse) dans le libellé de la
    branche, première clé trouvée gagne : d'abord la table configurée,
    puis la règle "North". Sans correspondance -> région par défaut.
    """
    label = (branch or "").lower()
    for lookup in (table or {}, DEFAULT_BRANCH_REGIONS):
        for key, region in lookup.items():
            if key.lower() in label:
                return region
    return default


def stock_column_for(region: Region) -> str:
    return region.stock_column
