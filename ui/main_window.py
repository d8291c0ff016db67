from __future__ import annotations
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QFormLayout,
    QLabel, QPushButton, QLineEdit, QComboBox, QDoubleSpinBox, QMessageBox,
    QTableWidget, QTableWidgetItem, QHeaderView, QGroupBox
)
from PySide6.QtCore import Qt, QTimer, QRectF
from PySide6.QtGui import QPainter
from PySide6.QtPrintSupport import QPrinter, QPrintDialog

from core.models.settings import AppSettings
from core.services.export_service import DocumentExporter, ExportResult
from core.services.invoice_service import InvoiceService
from ui.widgets.item_form import ItemForm
from ui.widgets.preview_dialog import PreviewDialog
from ui.widgets.receipt_view import ReceiptView, rasterize_widget


class MainWindow(QMainWindow):
    def __init__(self, settings: AppSettings | None = None):
        super().__init__()
        self.setWindowTitle("Invoice")
        self.resize(1100, 720)
        self.settings = settings or AppSettings()

        # vue reçu hors écran, cible des exports
        self.receipt_view = ReceiptView()
        self.receipt_view.hide()
        self.exporter = DocumentExporter(
            locate=lambda: self.receipt_view,
            rasterize=rasterize_widget,
            settings=self.settings,
        )
        self.service = InvoiceService(self.settings, exporter=self.exporter)
        self._preview: PreviewDialog | None = None

        w = QWidget()
        self.setCentralWidget(w)
        root = QHBoxLayout(w)
        root.addLayout(self._editor_column(), 3)
        root.addWidget(self._totals_box(), 1)

        self._refresh()

    # ==================== LAYOUT ====================
    def _editor_column(self):
        col = QVBoxLayout()

        head = QFormLayout()
        self.lab_number = QLabel()
        self.lab_date = QLabel()
        self.ed_customer = QLineEdit()
        self.ed_customer.textEdited.connect(self._on_customer)
        head.addRow("Invoice #", self.lab_number)
        head.addRow("Date", self.lab_date)
        head.addRow("Customer", self.ed_customer)
        col.addLayout(head)

        self.item_form = ItemForm()
        self.item_form.submitted.connect(self._add_item)
        col.addWidget(self.item_form)

        self.tbl = QTableWidget(0, 5)
        self.tbl.setHorizontalHeaderLabels(["Description", "Qty", "Unit", "Price", "Total"])
        self.tbl.horizontalHeader().setSectionResizeMode(QHeaderView.Stretch)
        self.tbl.setSelectionBehavior(self.tbl.SelectionBehavior.SelectRows)
        self.tbl.setEditTriggers(self.tbl.EditTrigger.NoEditTriggers)
        col.addWidget(self.tbl, 1)

        bar = QHBoxLayout()
        btn_del = QPushButton("Remove item")
        btn_new = QPushButton("New invoice")
        btn_preview = QPushButton("Preview")
        btn_print = QPushButton("Print")
        btn_img = QPushButton("Save as image")
        btn_pdf = QPushButton("Save as PDF")
        bar.addWidget(btn_del); bar.addStretch(1)
        for b in (btn_new, btn_preview, btn_print, btn_img, btn_pdf):
            bar.addWidget(b)
        col.addLayout(bar)

        btn_del.clicked.connect(self._remove_item)
        btn_new.clicked.connect(self._new_invoice)
        btn_preview.clicked.connect(self._open_preview)
        btn_print.clicked.connect(self._execute_print)
        btn_img.clicked.connect(self._save_image)
        btn_pdf.clicked.connect(self._save_pdf)
        return col

    def _totals_box(self):
        grp = QGroupBox("Totals")
        form = QFormLayout(grp)

        self.cb_discount_type = QComboBox()
        self.cb_discount_type.addItem("Percentage (%)", "percentage")
        self.cb_discount_type.addItem("Fixed amount", "fixed")
        self.sp_discount = QDoubleSpinBox(); self.sp_discount.setRange(0.0, 1e9); self.sp_discount.setDecimals(2)
        self.sp_tax = QDoubleSpinBox(); self.sp_tax.setRange(0.0, 100.0); self.sp_tax.setDecimals(2); self.sp_tax.setSuffix(" %")

        self.lab_subtotal = QLabel(); self.lab_discount = QLabel()
        self.lab_tax = QLabel(); self.lab_total = QLabel()
        self.lab_total.setStyleSheet("font-size:16px; font-weight:700;")
        for lab in (self.lab_subtotal, self.lab_discount, self.lab_tax, self.lab_total):
            lab.setAlignment(Qt.AlignRight)

        form.addRow("Discount type", self.cb_discount_type)
        form.addRow("Discount", self.sp_discount)
        form.addRow("Tax rate", self.sp_tax)
        form.addRow("Subtotal", self.lab_subtotal)
        form.addRow("Discount amount", self.lab_discount)
        form.addRow("Tax", self.lab_tax)
        form.addRow("Total", self.lab_total)

        self.cb_discount_type.currentIndexChanged.connect(self._on_discount)
        self.sp_discount.valueChanged.connect(self._on_discount)
        self.sp_tax.valueChanged.connect(self._on_tax)
        return grp

    # ==================== REFRESH ====================
    def _refresh(self):
        s = self.service
        self.lab_number.setText(s.number)
        self.lab_date.setText(s.date)

        self.tbl.setRowCount(0)
        for it in s.items:
            r = self.tbl.rowCount(); self.tbl.insertRow(r)
            self.tbl.setItem(r, 0, QTableWidgetItem(it.description))
            self.tbl.setItem(r, 1, QTableWidgetItem(f"{it.quantity:g}"))
            self.tbl.setItem(r, 2, QTableWidgetItem(it.unit))
            self.tbl.setItem(r, 3, QTableWidgetItem(s.money(it.price)))
            self.tbl.setItem(r, 4, QTableWidgetItem(s.money(it.line_total())))
        self.tbl.resizeRowsToContents()

        t = s.totals()
        self.lab_subtotal.setText(s.money(t.subtotal))
        self.lab_discount.setText(s.money(t.discount_amount))
        self.lab_tax.setText(s.money(t.tax_amount))
        self.lab_total.setText(s.money(t.total))

        self.receipt_view.refresh(s)
        if self._preview is not None:
            self._preview.view.refresh(s)

    def _sync_config_widgets(self):
        for wdg in (self.ed_customer, self.cb_discount_type, self.sp_discount, self.sp_tax):
            wdg.blockSignals(True)
        self.ed_customer.setText(self.service.customer)
        self.cb_discount_type.setCurrentIndex(max(0, self.cb_discount_type.findData(self.service.discount.type)))
        self.sp_discount.setValue(self.service.discount.value)
        self.sp_tax.setValue(self.service.tax_rate * 100.0)
        for wdg in (self.ed_customer, self.cb_discount_type, self.sp_discount, self.sp_tax):
            wdg.blockSignals(False)

    # ==================== ACTIONS ====================
    def _on_customer(self, text: str):
        self.service.set_customer(text)
        self._refresh()

    def _on_discount(self, *_):
        self.service.set_discount(self.cb_discount_type.currentData(), float(self.sp_discount.value()))
        self._refresh()

    def _on_tax(self, value: float):
        self.service.set_tax_rate(float(value) / 100.0)
        self._refresh()

    def _add_item(self, candidate: dict):
        res = self.service.add_item(candidate)
        if not res.accepted:
            QMessageBox.warning(self, "Validation", f"Item not added.\n{res.reason}")
            return
        self.item_form.reset()
        self._refresh()

    def _remove_item(self):
        row = self.tbl.currentRow()
        if row < 0:
            QMessageBox.information(self, "Items", "Select a row first.")
            return
        self.service.remove_item(row)
        self._refresh()

    def _new_invoice(self):
        self.service.generate_new_invoice()
        self.item_form.reset()
        self._sync_config_widgets()
        self._refresh()

    # ----- aperçu / impression -----
    def _open_preview(self):
        self.service.open_preview()
        dlg = PreviewDialog(self, self.service, self.settings.export.capture_width_px)
        dlg.btn_print.clicked.connect(lambda: (dlg.accept(), self._execute_print()))
        dlg.btn_image.clicked.connect(self._save_image)
        dlg.btn_pdf.clicked.connect(self._save_pdf)
        self._preview = dlg
        try:
            dlg.exec()
        finally:
            self._preview = None
            self.service.close_preview()

    def _execute_print(self):
        self.service.execute_print(QTimer.singleShot, self._print_now)

    def _print_now(self):
        printer = QPrinter(QPrinter.HighResolution)
        if QPrintDialog(printer, self).exec() != QPrintDialog.Accepted:
            return

        def paint(bitmap):
            img = bitmap.image
            p = QPainter(printer)
            try:
                page = p.viewport()
                ratio = page.width() / img.width()
                p.drawImage(QRectF(0, 0, page.width(), img.height() * ratio), img)
            finally:
                p.end()

        res = self.exporter.print_capture(paint)
        if not res.ok:
            QMessageBox.critical(self, "Print", str(res.error))

    # ----- exports -----
    def _report(self, title: str, res: ExportResult):
        if res.ok:
            QMessageBox.information(self, title, f"File saved:\n{res.path}")
        else:
            QMessageBox.critical(self, title, str(res.error))

    def _save_image(self):
        self._report("Save as image", self.service.save_as_image())

    def _save_pdf(self):
        self._report("Save as PDF", self.service.save_as_pdf())
