from __future__ import annotations
from typing import Any, Dict
from PySide6.QtWidgets import QGroupBox, QFormLayout, QLineEdit, QDoubleSpinBox, QPushButton
from PySide6.QtCore import Signal


class ItemForm(QGroupBox):
    """Saisie d'une nouvelle ligne ; la validation est faite par le service."""
    submitted = Signal(dict)

    def __init__(self, parent=None):
        super().__init__("Add item", parent)

        self.ed_description = QLineEdit()
        self.sp_qty = QDoubleSpinBox(); self.sp_qty.setRange(0.0, 1e6); self.sp_qty.setDecimals(2)
        self.sp_price = QDoubleSpinBox(); self.sp_price.setRange(0.0, 1e9); self.sp_price.setDecimals(2)
        self.ed_unit = QLineEdit(); self.ed_unit.setPlaceholderText("hours, pcs…")
        btn_add = QPushButton("Add")

        form = QFormLayout(self)
        form.addRow("Description", self.ed_description)
        form.addRow("Quantity", self.sp_qty)
        form.addRow("Price", self.sp_price)
        form.addRow("Unit", self.ed_unit)
        form.addRow(btn_add)

        btn_add.clicked.connect(lambda: self.submitted.emit(self.get_candidate()))
        self.ed_description.returnPressed.connect(lambda: self.submitted.emit(self.get_candidate()))

    def get_candidate(self) -> Dict[str, Any]:
        return {
            "description": self.ed_description.text(),
            "quantity": float(self.sp_qty.value()),
            "price": float(self.sp_price.value()),
            "unit": self.ed_unit.text().strip(),
        }

    def reset(self):
        self.ed_description.clear()
        self.sp_qty.setValue(0.0)
        self.sp_price.setValue(0.0)
        self.ed_unit.clear()
        self.ed_description.setFocus()
