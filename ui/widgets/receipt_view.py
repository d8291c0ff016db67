from __future__ import annotations
from typing import Optional
from PySide6.QtWidgets import QWidget, QVBoxLayout, QGridLayout, QLabel, QFrame
from PySide6.QtGui import QColor, QImage, QPainter, QRegion
from PySide6.QtCore import Qt, QBuffer, QByteArray, QIODevice, QPoint

from core.services.export_service import CaptureOptions, PresentationState
from core.services.invoice_service import InvoiceService

QWIDGETSIZE_MAX = (1 << 24) - 1


def _line() -> QFrame:
    f = QFrame()
    f.setFrameShape(QFrame.HLine)
    f.setStyleSheet("color:#999;")
    return f


class ReceiptView(QWidget):
    """Mise en page du reçu ; sert aussi de cible de capture pour l'export."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setStyleSheet("background:#ffffff; color:#111; font-family:monospace;")
        self._fixed_width: Optional[int] = None

        self.lab_title = QLabel("INVOICE")
        self.lab_title.setAlignment(Qt.AlignCenter)
        self.lab_title.setStyleSheet("font-size:18px; font-weight:700;")
        self.lab_meta = QLabel()
        self.lab_customer = QLabel()
        self.grid_items = QGridLayout()
        self.grid_totals = QGridLayout()

        lay = QVBoxLayout(self)
        lay.addWidget(self.lab_title)
        lay.addWidget(self.lab_meta)
        lay.addWidget(self.lab_customer)
        lay.addWidget(_line())
        lay.addLayout(self.grid_items)
        lay.addWidget(_line())
        lay.addLayout(self.grid_totals)
        lay.addStretch(1)

    # -------- contenu --------
    @staticmethod
    def _clear(grid: QGridLayout):
        while grid.count():
            it = grid.takeAt(0)
            if it.widget():
                it.widget().deleteLater()

    def refresh(self, service: InvoiceService):
        self.lab_meta.setText(f"No: {service.number}\nDate: {service.date}")
        self.lab_customer.setText(f"Customer: {service.customer or '—'}")

        self._clear(self.grid_items)
        if not service.items:
            self.grid_items.addWidget(QLabel("No items"), 0, 0)
        for r, it in enumerate(service.items):
            detail = f"{it.quantity:g} {it.unit} x {service.money(it.price)}".replace("  ", " ")
            self.grid_items.addWidget(QLabel(f"{it.description}\n  {detail}"), r, 0)
            amount = QLabel(service.money(it.line_total()))
            amount.setAlignment(Qt.AlignRight | Qt.AlignTop)
            self.grid_items.addWidget(amount, r, 1)

        t = service.totals()
        disc = service.discount
        disc_label = f"Discount ({disc.value:g}%)" if disc.type == "percentage" else "Discount"
        rows = [
            ("Subtotal", t.subtotal),
            (disc_label, -t.discount_amount),
            (f"Tax ({service.tax_rate * 100:g}%)", t.tax_amount),
            ("TOTAL", t.total),
        ]
        self._clear(self.grid_totals)
        for r, (label, amount) in enumerate(rows):
            lab = QLabel(label)
            val = QLabel(service.money(amount))
            val.setAlignment(Qt.AlignRight)
            if label == "TOTAL":
                lab.setStyleSheet("font-weight:700;")
                val.setStyleSheet("font-weight:700;")
            self.grid_totals.addWidget(lab, r, 0)
            self.grid_totals.addWidget(val, r, 1)

    # -------- présentation (capture) --------
    def presentation(self) -> PresentationState:
        return PresentationState(self.x(), self.y(), self.isVisible(), self._fixed_width)

    def apply_presentation(self, state: PresentationState) -> None:
        self.move(state.x, state.y)
        self._fixed_width = state.width
        if state.width is None:
            self.setMinimumWidth(0)
            self.setMaximumWidth(QWIDGETSIZE_MAX)
        else:
            self.setFixedWidth(state.width)
        self.setVisible(state.visible)


class QtBitmap:
    def __init__(self, image: QImage):
        self.image = image

    @property
    def width(self) -> int:
        return self.image.width()

    @property
    def height(self) -> int:
        return self.image.height()

    def to_png(self) -> bytes:
        ba = QByteArray()
        buf = QBuffer(ba)
        buf.open(QIODevice.WriteOnly)
        if not self.image.save(buf, "PNG"):
            raise RuntimeError("PNG encoding failed")
        buf.close()
        return bytes(ba.data())


def rasterize_widget(target: QWidget, opts: CaptureOptions) -> QtBitmap:
    """Rend le widget dans une QImage suréchantillonnée, fond opaque."""
    target.adjustSize()
    size = target.size()
    if size.isEmpty():
        raise RuntimeError("Receipt view has no size")

    img = QImage(round(size.width() * opts.scale), round(size.height() * opts.scale), QImage.Format_ARGB32)
    img.fill(QColor(opts.background))
    p = QPainter(img)
    try:
        p.scale(opts.scale, opts.scale)
        target.render(p, QPoint(0, 0), QRegion(), QWidget.RenderFlag.DrawChildren)
    finally:
        p.end()
    return QtBitmap(img)
