from __future__ import annotations
from PySide6.QtWidgets import QDialog, QVBoxLayout, QHBoxLayout, QPushButton, QScrollArea

from core.services.invoice_service import InvoiceService
from ui.widgets.receipt_view import ReceiptView


class PreviewDialog(QDialog):
    def __init__(self, parent=None, service: InvoiceService | None = None, width_px: int = 400):
        super().__init__(parent)
        self.setWindowTitle("Print preview")
        self.setModal(True)

        self.view = ReceiptView()
        self.view.setFixedWidth(width_px)
        if service is not None:
            self.view.refresh(service)

        scroll = QScrollArea()
        scroll.setWidget(self.view)
        scroll.setWidgetResizable(False)

        self.btn_print = QPushButton("Print")
        self.btn_image = QPushButton("Save as image")
        self.btn_pdf = QPushButton("Save as PDF")
        btn_close = QPushButton("Close")
        btn_close.clicked.connect(self.reject)

        bar = QHBoxLayout()
        for b in (self.btn_print, self.btn_image, self.btn_pdf):
            bar.addWidget(b)
        bar.addStretch(1)
        bar.addWidget(btn_close)

        lay = QVBoxLayout(self)
        lay.addWidget(scroll, 1)
        lay.addLayout(bar)
        self.resize(width_px + 60, 640)
