from datetime import datetime, timedelta
from pathlib import Path

import pytest
from pydantic import ValidationError

from core.models.invoice import Discount
from core.models.settings import AppSettings
from core.services.export_service import DocumentExporter
from core.services.invoice_service import InvoiceService
from tests.fakes import FakeComposer, FakeRasterizer, FakeTarget


class TickingClock:
    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now += self.step
        return current


@pytest.fixture
def service() -> InvoiceService:
    return InvoiceService(clock=TickingClock(datetime(2026, 10, 19, 10, 0, 0)))


def _fill(s: InvoiceService) -> None:
    s.add_item({"description": "Web Development Services", "quantity": 10, "price": 150, "unit": "hours"})
    s.add_item({"description": "UI/UX Design Mockups", "quantity": 5, "price": 80, "unit": "mockups"})


def test_starts_with_fresh_invoice(service: InvoiceService) -> None:
    assert service.number == "INV-20261019-100000"
    assert service.date == "19 October 2026"
    assert service.items == ()
    assert service.totals().total == 0


def test_totals_follow_every_mutation(service: InvoiceService) -> None:
    _fill(service)
    service.set_discount("percentage", 10)
    service.set_tax_rate(0.05)

    t = service.totals()
    assert t.subtotal == pytest.approx(1900)
    assert t.discount_amount == pytest.approx(190)
    assert t.tax_amount == pytest.approx(85.5)
    assert t.total == pytest.approx(1795.5)

    service.remove_item(0)
    assert service.totals().subtotal == pytest.approx(400)


def test_totals_memoized_until_next_mutation(service: InvoiceService) -> None:
    _fill(service)
    first = service.totals()

    assert service.totals() is first
    service.set_customer("John Doe")
    assert service.totals() is not first


def test_rejected_item_leaves_state_untouched(service: InvoiceService) -> None:
    version = service.version
    res = service.add_item({"description": "", "quantity": 1, "price": 1})

    assert res.accepted is False
    assert service.version == version
    assert service.items == ()


def test_remove_bad_index_raises(service: InvoiceService) -> None:
    with pytest.raises(IndexError):
        service.remove_item(0)


def test_negative_tax_rate_refused(service: InvoiceService) -> None:
    with pytest.raises(ValueError):
        service.set_tax_rate(-0.1)


def test_generate_new_invoice_resets_everything(service: InvoiceService) -> None:
    _fill(service)
    service.set_customer("John Doe")
    service.set_discount("fixed", 50)
    service.set_tax_rate(0.18)
    previous = service.number

    inv = service.generate_new_invoice()

    assert inv.number != previous
    assert inv.items == []
    assert inv.customer == ""
    assert inv.discount.type == "percentage"
    assert inv.discount.value == 0
    assert inv.tax_rate == 0
    assert service.totals().total == 0


def test_unclamped_percentage_setting() -> None:
    settings = AppSettings.model_validate({"pricing": {"clamp_percentage_discount": False}})
    s = InvoiceService(settings)
    _fill(s)
    s.set_discount("percentage", 110)

    assert s.totals().discount_amount == pytest.approx(2090)


def test_execute_print_closes_preview_then_schedules(service: InvoiceService) -> None:
    scheduled = []
    printed = []

    def schedule(delay_ms, fn):
        assert service.preview_open is False
        scheduled.append((delay_ms, fn))

    service.open_preview()
    assert service.preview_open is True
    service.execute_print(schedule, lambda: printed.append(True))

    assert scheduled[0][0] == 100
    assert printed == []
    scheduled[0][1]()
    assert printed == [True]


def test_exports_use_invoice_number(tmp_path: Path) -> None:
    composer = FakeComposer()
    exporter = DocumentExporter(lambda: FakeTarget(), FakeRasterizer(), composer=composer, out_dir=tmp_path)
    s = InvoiceService(exporter=exporter, clock=lambda: datetime(2026, 1, 2, 3, 4, 5))

    img = s.save_as_image()
    pdf = s.save_as_pdf()

    assert img.path.name == "invoice-INV-20260102-030405.png"
    assert pdf.path.name == "invoice-INV-20260102-030405.pdf"
    assert s.items == ()


def test_export_without_target_does_not_raise(tmp_path: Path) -> None:
    exporter = DocumentExporter(lambda: None, FakeRasterizer(), composer=FakeComposer(), out_dir=tmp_path)
    s = InvoiceService(exporter=exporter)

    res = s.save_as_pdf()

    assert res.ok is False
    assert list(tmp_path.iterdir()) == []


def test_state_changes_only_through_operations(service: InvoiceService) -> None:
    _fill(service)
    before = service.totals()

    with pytest.raises(AttributeError):
        service.tax_rate = 0.05
    with pytest.raises(AttributeError):
        service.discount = Discount(type="fixed", value=100)
    copy = service.discount
    copy.value = 10
    with pytest.raises(ValidationError):
        service.items[0].price = 100

    after = service.totals()
    assert after.subtotal == pytest.approx(before.subtotal)
    assert after.discount_amount == pytest.approx(0)
    assert service.discount.value == 0

    service.add_item({"description": "Hosting", "quantity": 1, "price": 100})
    service.set_tax_rate(0.05)
    t = service.totals()
    assert t.subtotal == pytest.approx(2000)
    assert t.total == pytest.approx(2100)


@pytest.mark.parametrize("rate", [float("nan"), float("inf")])
def test_non_finite_tax_rate_refused(service: InvoiceService, rate: float) -> None:
    with pytest.raises(ValueError):
        service.set_tax_rate(rate)
    assert service.tax_rate == 0


@pytest.mark.parametrize("field", ["quantity", "price"])
def test_non_finite_item_values_rejected(service: InvoiceService, field: str) -> None:
    candidate = {"description": "Hosting", "quantity": 1, "price": 10}
    candidate[field] = float("inf")

    res = service.add_item(candidate)

    assert res.accepted is False
    assert field in res.reason
    assert service.totals().subtotal == 0


def test_non_finite_discount_refused(service: InvoiceService) -> None:
    with pytest.raises(ValidationError):
        service.set_discount("fixed", float("inf"))
    assert service.discount.value == 0


@pytest.mark.parametrize("save", ["save_as_image", "save_as_pdf"])
def test_export_without_exporter_returns_failure(save: str) -> None:
    res = getattr(InvoiceService(), save)()

    assert res.ok is False
    assert res.path is None
    assert res.error.reason == "target-missing"
