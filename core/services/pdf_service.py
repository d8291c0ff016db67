# core/services/pdf_service.py
from __future__ import annotations
import os
import base64
import logging
from pathlib import Path
from shutil import which
from typing import Optional

import pdfkit  # utilisé si wkhtmltopdf dispo
from jinja2 import Environment, FileSystemLoader, select_autoescape

from core.models.settings import AppSettings

log = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates" / "pdf"

# ---------- PDF helpers ----------
def _clean_path(p: str) -> str:
    """Corrige 'C\\:\\Program Files\\...' -> 'C:\\Program Files\\...' et normalise."""
    if not p:
        return ""
    p = p.strip().strip('"').strip("'")
    p = p.replace("\\:", ":")
    return os.path.normpath(p)

def find_wkhtmltopdf(settings: Optional[AppSettings] = None) -> Optional[str]:
    """
    Localise wkhtmltopdf :
    - Variables d'env (WKHTMLTOPDF, WKHTMLTOPDF_CMD)
    - settings.json -> pdf.wkhtmltopdf_path
    - chemins Windows connus
    - PATH
    """
    for env_key in ("WKHTMLTOPDF", "WKHTMLTOPDF_CMD"):
        val = os.environ.get(env_key)
        if val:
            path = _clean_path(val)
            if Path(path).is_file():
                return path

    if settings and settings.pdf.wkhtmltopdf_path:
        path = _clean_path(settings.pdf.wkhtmltopdf_path)
        if Path(path).is_file():
            return path

    for c in (
        r"C:\Program Files\wkhtmltopdf\bin\wkhtmltopdf.exe",
        r"C:\Program Files (x86)\wkhtmltopdf\bin\wkhtmltopdf.exe",
    ):
        if Path(c).is_file():
            return c

    found = which("wkhtmltopdf")
    return _clean_path(found) if found else None

def _mm(v: float) -> str:
    return f"{v:.3f}"

def render_page_html(png: bytes, width_mm: float, height_mm: float, title: str = "invoice") -> str:
    """HTML d'une page unique [width_mm x height_mm], image pleine page sans marge."""
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "xml"])
    )
    tpl = env.get_template("receipt.html")
    return tpl.render(
        title=title,
        width_mm=_mm(width_mm),
        height_mm=_mm(height_mm),
        png_b64=base64.b64encode(png).decode("ascii"),
    )

def _render_pdf_with_weasyprint(html: str, out_path: Path) -> None:
    """Fallback WeasyPrint (si wkhtmltopdf absent)."""
    try:
        from weasyprint import HTML
    except Exception as e:
        raise RuntimeError(
            "Aucun wkhtmltopdf trouvé et WeasyPrint n'est pas installé. "
            "Installe WeasyPrint (pip install weasyprint) ou configure wkhtmltopdf.\n"
            f"Détails: {e}"
        ) from e
    HTML(string=html, base_url=str(TEMPLATES_DIR)).write_pdf(str(out_path))

# ---------- Service ----------
class PdfService:
    """Compose un PDF d'une page à partir d'une image PNG."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self.settings = settings or AppSettings()

    def compose(self, png: bytes, width_mm: float, height_mm: float, out_path: os.PathLike | str) -> Path:
        out = Path(out_path)
        out.parent.mkdir(parents=True, exist_ok=True)
        html = render_page_html(png, width_mm, height_mm, title=out.stem)

        # 1) wkhtmltopdf d'abord
        wkhtml = find_wkhtmltopdf(self.settings)
        if wkhtml:
            try:
                config = pdfkit.configuration(wkhtmltopdf=wkhtml)
                options = {
                    "page-width": f"{_mm(width_mm)}mm",
                    "page-height": f"{_mm(height_mm)}mm",
                    "margin-top": "0",
                    "margin-right": "0",
                    "margin-bottom": "0",
                    "margin-left": "0",
                    "disable-smart-shrinking": None,
                    "enable-local-file-access": None,
                    "quiet": "",
                    "encoding": "UTF-8",
                }
                pdfkit.from_string(html, str(out), options=options, configuration=config)
                return out
            except Exception as e:
                log.warning("Échec wkhtmltopdf (%s). Fallback WeasyPrint...", e)

        # 2) Fallback WeasyPrint
        _render_pdf_with_weasyprint(html, out)
        return out
