from __future__ import annotations
import logging
from typing import Any, Iterator, List, Mapping, NamedTuple, Optional, Tuple

from pydantic import ValidationError

from core.models.invoice import InvoiceItem

log = logging.getLogger(__name__)

class AddItemResult(NamedTuple):
    accepted: bool
    item: Optional[InvoiceItem] = None
    reason: Optional[str] = None

def _describe(err: ValidationError) -> str:
    parts = []
    for e in err.errors():
        field = ".".join(str(x) for x in e.get("loc", ())) or "item"
        parts.append(f"{field}: {e.get('msg')}")
    return "; ".join(parts)

class ItemLedger:
    """Lignes de facture, dans l'ordre d'insertion."""

    def __init__(self, items: Optional[List[InvoiceItem]] = None):
        self._items: List[InvoiceItem] = list(items or [])

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[InvoiceItem]:
        return iter(list(self._items))

    @property
    def items(self) -> Tuple[InvoiceItem, ...]:
        return tuple(self._items)

    def add_item(self, candidate: InvoiceItem | Mapping[str, Any]) -> AddItemResult:
        """
        Ajoute une ligne en fin de liste si elle est valide :
        description non vide, quantité > 0, prix >= 0.
        Une ligne refusée ne modifie rien et ne lève pas d'exception.
        """
        data = candidate.model_dump() if isinstance(candidate, InvoiceItem) else dict(candidate)
        try:
            item = InvoiceItem.model_validate(data)
        except ValidationError as e:
            reason = _describe(e)
            log.info("Ligne refusée (%s)", reason)
            return AddItemResult(False, None, reason)
        self._items.append(item)
        return AddItemResult(True, item, None)

    def remove_item(self, index: int) -> InvoiceItem:
        # pas d'index négatif façon Python : -1 est une erreur, pas "la dernière"
        if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < len(self._items):
            raise IndexError(f"No item at position {index!r} (ledger has {len(self._items)} items)")
        return self._items.pop(index)

    def clear(self) -> None:
        self._items.clear()
