from __future__ import annotations
from datetime import datetime
from typing import Optional, Tuple

# Résolution à la seconde : deux factures créées dans la même seconde
# obtiennent le même numéro (limite connue, outil mono-utilisateur).
def generate_invoice_number(now: datetime) -> str:
    return now.strftime("INV-%Y%m%d-%H%M%S")

def generate_display_date(now: datetime) -> str:
    """Date longue pour l'affichage, ex. '19 October 2026'."""
    return f"{now.day} {now.strftime('%B')} {now.year}"

def new_identity(now: Optional[datetime] = None) -> Tuple[str, str]:
    now = now or datetime.now()
    return generate_invoice_number(now), generate_display_date(now)
