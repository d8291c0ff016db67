# core/services/invoice_service.py
from __future__ import annotations
import math
import logging
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Tuple

from core.models.common import DiscountType, format_money
from core.models.invoice import Discount, Invoice, InvoiceItem, Totals
from core.models.settings import AppSettings
from core.services.export_service import DocumentExporter, ExportError, ExportResult
from core.services.ledger_service import AddItemResult, ItemLedger
from core.services.numbering_service import new_identity
from core.services.pricing_service import derive_totals

log = logging.getLogger(__name__)

# scheduler(delay_ms, callback) : QTimer.singleShot dans l'UI
Scheduler = Callable[[int, Callable[[], None]], None]


class InvoiceService:
    """
    Propriétaire unique de la facture en cours d'édition.

    Toute mutation passe par ici et incrémente `version` ; les totaux sont
    recalculés à la demande (`totals()`) et mémorisés pour une version donnée.
    """

    def __init__(self, settings: Optional[AppSettings] = None,
                 exporter: Optional[DocumentExporter] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.settings = settings or AppSettings()
        self.exporter = exporter
        self.clock = clock

        # état privé : toute écriture passe par les méthodes (version)
        self._ledger = ItemLedger()
        self.number = ""
        self.date = ""
        self.customer = ""
        self._discount = Discount()
        self._tax_rate = 0.0
        self.preview_open = False

        self.version = 0
        self._totals_cache: Optional[Tuple[int, Totals]] = None

        self.generate_new_invoice()

    def _touch(self) -> None:
        self.version += 1

    # ----------- lecture -----------
    @property
    def items(self) -> Tuple[InvoiceItem, ...]:
        return self._ledger.items

    @property
    def discount(self) -> Discount:
        return self._discount.model_copy()

    @property
    def tax_rate(self) -> float:
        return self._tax_rate

    def totals(self) -> Totals:
        if self._totals_cache and self._totals_cache[0] == self.version:
            return self._totals_cache[1]
        t = derive_totals(
            self._ledger.items, self._discount, self._tax_rate,
            clamp_percentage=self.settings.pricing.clamp_percentage_discount,
        )
        self._totals_cache = (self.version, t)
        return t

    def snapshot(self) -> Invoice:
        return Invoice(
            number=self.number, date=self.date, customer=self.customer,
            items=[it.model_copy() for it in self._ledger.items],
            discount=self._discount.model_copy(), tax_rate=self._tax_rate,
        )

    def money(self, amount: float) -> str:
        return format_money(amount, self.settings.display.currency_symbol)

    # ----------- lignes -----------
    def add_item(self, candidate: InvoiceItem | Mapping[str, Any]) -> AddItemResult:
        res = self._ledger.add_item(candidate)
        if res.accepted:
            self._touch()
        return res

    def remove_item(self, index: int) -> InvoiceItem:
        removed = self._ledger.remove_item(index)
        self._touch()
        return removed

    # ----------- configuration -----------
    def set_customer(self, name: str) -> None:
        self.customer = name or ""
        self._touch()

    def set_discount(self, type: DiscountType, value: float) -> None:
        # ValidationError si type inconnu ou valeur négative
        self._discount = Discount(type=type, value=value)
        self._touch()

    def set_tax_rate(self, rate: float) -> None:
        rate = float(rate)
        if not math.isfinite(rate) or rate < 0:
            raise ValueError(f"Tax rate must be a finite number >= 0, got {rate}")
        self._tax_rate = rate
        self._touch()

    # ----------- nouvelle facture -----------
    def generate_new_invoice(self) -> Invoice:
        previous = self.number
        self.number, self.date = new_identity(self.clock())
        if previous and previous == self.number:
            log.warning("Numéro de facture identique au précédent (%s) : même seconde", self.number)
        self._ledger.clear()
        self.customer = ""
        self._discount = Discount()
        self._tax_rate = 0.0
        self._touch()
        log.info("Nouvelle facture %s", self.number)
        return self.snapshot()

    # ----------- aperçu / impression -----------
    def open_preview(self) -> None:
        self.preview_open = True

    def close_preview(self) -> None:
        self.preview_open = False

    def execute_print(self, schedule: Scheduler, do_print: Callable[[], None]) -> None:
        """
        Ferme l'aperçu puis lance l'impression après `print.delay_ms`.
        Le délai laisse la fenêtre d'aperçu disparaître ; ce n'est pas un
        signal de fin de rendu.
        """
        self.close_preview()
        schedule(self.settings.print.delay_ms, do_print)

    # ----------- exports -----------
    def _no_exporter(self, kind: str) -> ExportResult:
        err = ExportError("target-missing", "No document exporter configured")
        log.error("Export %s annulé [%s] : %s", kind, err.reason, err)
        return ExportResult(False, None, err)

    def save_as_image(self) -> ExportResult:
        if self.exporter is None:
            return self._no_exporter("image")
        return self.exporter.save_as_image(self.number)

    def save_as_pdf(self) -> ExportResult:
        if self.exporter is None:
            return self._no_exporter("pdf")
        return self.exporter.save_as_pdf(self.number)
