from __future__ import annotations
import logging
from typing import Iterable

from core.models.invoice import Discount, InvoiceItem, Totals

log = logging.getLogger(__name__)

def compute_subtotal(items: Iterable[InvoiceItem]) -> float:
    return sum((it.quantity * it.price for it in items), 0.0)

def compute_discount_amount(subtotal: float, discount: Discount, clamp_percentage: bool = True) -> float:
    """
    Remise en % : subtotal * value / 100, plafonnée à [0, subtotal] sauf si
    clamp_percentage=False (ancien comportement, peut dépasser le sous-total).
    Remise fixe : toujours min(subtotal, value).
    """
    if discount.type == "percentage":
        amount = subtotal * (discount.value / 100.0)
        if not clamp_percentage:
            if amount > subtotal:
                log.warning("Remise de %s%% supérieure au sous-total (non plafonnée)", discount.value)
            return amount
        return max(0.0, min(subtotal, amount))
    return max(0.0, min(subtotal, discount.value))

def compute_tax_amount(subtotal: float, discount_amount: float, tax_rate: float) -> float:
    return (subtotal - discount_amount) * tax_rate

def compute_total(subtotal: float, discount_amount: float, tax_amount: float) -> float:
    return (subtotal - discount_amount) + tax_amount

def derive_totals(items: Iterable[InvoiceItem], discount: Discount, tax_rate: float,
                  clamp_percentage: bool = True) -> Totals:
    subtotal = compute_subtotal(items)
    discount_amount = compute_discount_amount(subtotal, discount, clamp_percentage)
    tax_amount = compute_tax_amount(subtotal, discount_amount, tax_rate)
    return Totals(
        subtotal=subtotal,
        discount_amount=discount_amount,
        tax_amount=tax_amount,
        total=compute_total(subtotal, discount_amount, tax_amount),
    )
