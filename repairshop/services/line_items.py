"""
Parser des descriptions de réparation.

Format : "iPhone 11 Screen (x2) || Battery (x1)"
  - séparateur littéral " || "
  - chaque entrée : <nom> (x<quantité>)

Une entrée qui ne matche pas, ou dont la quantité est <= 0, est ignorée
silencieusement (log DEBUG uniquement).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

ITEM_SEPARATOR = " || "
LINE_ITEM_RE = re.compile(r"^(.*?) \(x(\d+)\)")


@dataclass(frozen=True)
class LineItem:
    part_name: str
    quantity: int


def parse_line_items(text: str | None) -> list[LineItem]:
    if not text:
        return []

    items: list[LineItem] = []
    for segment in text.split(ITEM_SEPARATOR):
        m = LINE_ITEM_RE.match(segment.strip())
        if not m:
            logger.debug("Skipping malformed line item: %r", segment)
            continue

        part_name = m.group(1).strip()
        qty = int(m.group(2))
        if qty <= 0 or not part_name:
            logger.debug("Skipping line item with invalid quantity: %r", segment)
            continue

        items.append(LineItem(part_name=part_name, quantity=qty))

    return items
