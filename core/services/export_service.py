from __future__ import annotations
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, NamedTuple, Optional, Protocol, Tuple

from core.models.settings import AppSettings
from core.services.settings_service import export_dir

log = logging.getLogger(__name__)

OFFSCREEN_X = -9999

class ExportError(RuntimeError):
    """Échec d'export ; `reason` est un code court (target-missing, rasterize-failed...)."""

    def __init__(self, reason: str, message: str = ""):
        super().__init__(message or reason)
        self.reason = reason

class ExportResult(NamedTuple):
    ok: bool
    path: Optional[Path] = None
    error: Optional[ExportError] = None

class PresentationState(NamedTuple):
    x: int
    y: int
    visible: bool
    width: Optional[int]  # None = largeur libre (layout)

class CaptureOptions(NamedTuple):
    scale: float
    background: str

class RenderTarget(Protocol):
    def presentation(self) -> PresentationState: ...
    def apply_presentation(self, state: PresentationState) -> None: ...

class Bitmap(Protocol):
    @property
    def width(self) -> int: ...
    @property
    def height(self) -> int: ...
    def to_png(self) -> bytes: ...

class Composer(Protocol):
    def compose(self, png: bytes, width_mm: float, height_mm: float, out_path: Path) -> Path: ...

Locator = Callable[[], Optional[RenderTarget]]
Rasterizer = Callable[[RenderTarget, CaptureOptions], Bitmap]

def page_size_mm(bitmap_width: int, bitmap_height: int, page_width_mm: float) -> Tuple[float, float]:
    """Largeur fixe, hauteur au prorata de l'image."""
    if bitmap_width <= 0 or bitmap_height <= 0:
        raise ExportError("empty-bitmap", f"Captured bitmap is empty ({bitmap_width}x{bitmap_height})")
    return page_width_mm, bitmap_height * page_width_mm / bitmap_width

def image_filename(number: str) -> str:
    return f"invoice-{number}.png"

def pdf_filename(number: str) -> str:
    return f"invoice-{number}.pdf"


class DocumentExporter:
    """
    Capture de la vue reçu puis export PNG ou PDF.

    Étapes : localiser la cible, forcer sa présentation (hors écran, visible,
    largeur fixe), rastériser, restaurer la présentation (toujours), écrire.
    Les erreurs ne remontent jamais à l'appelant : elles sont journalisées et
    renvoyées dans un ExportResult.
    """

    def __init__(self, locate: Locator, rasterize: Rasterizer, composer: Optional[Composer] = None,
                 settings: Optional[AppSettings] = None, out_dir: Optional[Path] = None):
        self.locate = locate
        self.rasterize = rasterize
        self.settings = settings or AppSettings()
        if composer is None:
            from core.services.pdf_service import PdfService
            composer = PdfService(self.settings)
        self.composer = composer
        self._out_dir = Path(out_dir) if out_dir else None
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    def out_dir(self) -> Path:
        if self._out_dir is not None:
            self._out_dir.mkdir(parents=True, exist_ok=True)
            return self._out_dir
        return export_dir(self.settings)

    # ----------- capture -----------
    @contextmanager
    def _capture_presentation(self, target: RenderTarget) -> Iterator[None]:
        try:
            saved = target.presentation()
        except Exception as e:
            raise ExportError("presentation-failed", f"Cannot read receipt presentation: {e}") from e

        # l'application peut échouer à mi-chemin : la restauration est toujours tentée
        try:
            try:
                target.apply_presentation(PresentationState(
                    x=OFFSCREEN_X, y=saved.y, visible=True,
                    width=self.settings.export.capture_width_px,
                ))
            except Exception as e:
                raise ExportError("presentation-failed", f"Cannot prepare receipt for capture: {e}") from e
            yield
        finally:
            try:
                target.apply_presentation(saved)
            except Exception as e:
                log.exception("Restauration de la vue reçu impossible")
                raise ExportError("restore-failed", f"Cannot restore receipt presentation: {e}") from e

    def capture(self) -> Bitmap:
        try:
            target = self.locate()
        except Exception as e:
            raise ExportError("target-missing", f"Receipt view for export not available: {e}") from e
        if target is None:
            raise ExportError("target-missing", "Receipt view for export not found")

        opts = CaptureOptions(scale=self.settings.export.scale, background=self.settings.export.background)
        with self._capture_presentation(target):
            try:
                return self.rasterize(target, opts)
            except Exception as e:
                raise ExportError("rasterize-failed", f"Error capturing receipt: {e}") from e

    # ----------- exports -----------
    def save_as_image(self, number: str) -> ExportResult:
        def produce() -> Path:
            bitmap = self.capture()
            out = self.out_dir() / image_filename(number)
            out.write_bytes(bitmap.to_png())
            return out
        return self._run("image", produce)

    def save_as_pdf(self, number: str) -> ExportResult:
        def produce() -> Path:
            bitmap = self.capture()
            width_mm, height_mm = page_size_mm(bitmap.width, bitmap.height, self.settings.export.page_width_mm)
            out = self.out_dir() / pdf_filename(number)
            return self.composer.compose(bitmap.to_png(), width_mm, height_mm, out)
        return self._run("pdf", produce)

    def print_capture(self, sink: Callable[[Bitmap], None]) -> ExportResult:
        """Capture pour l'impression, sous le même verrou que les exports."""
        def produce() -> None:
            sink(self.capture())
        return self._run("print", produce)

    def _run(self, kind: str, produce: Callable[[], Optional[Path]]) -> ExportResult:
        if self._busy:
            err = ExportError("busy", "An export is already in progress")
            log.warning("Export %s refusé : %s", kind, err)
            return ExportResult(False, None, err)

        self._busy = True
        try:
            path = produce()
        except ExportError as e:
            log.error("Export %s annulé [%s] : %s", kind, e.reason, e)
            return ExportResult(False, None, e)
        except Exception as e:
            log.exception("Export %s : écriture impossible", kind)
            return ExportResult(False, None, ExportError("write-failed", str(e)))
        finally:
            self._busy = False

        if path is None:
            log.info("Export %s terminé", kind)
            return ExportResult(True, None, None)
        log.info("Export %s généré : %s", kind, path)
        return ExportResult(True, Path(path), None)
