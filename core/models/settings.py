from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Optional

class ExportSettings(BaseModel):
    export_dir: Optional[str] = None  # None -> <racine>/exports
    capture_width_px: int = Field(default=400, gt=0)
    scale: float = Field(default=2.0, gt=0)
    background: str = "#ffffff"
    page_width_mm: float = Field(default=80.0, gt=0)  # rouleau thermique standard

class PricingSettings(BaseModel):
    # False = ancien comportement : remise en % non plafonnée au sous-total
    clamp_percentage_discount: bool = True

class PrintSettings(BaseModel):
    delay_ms: int = Field(default=100, ge=0)

class PdfSettings(BaseModel):
    wkhtmltopdf_path: Optional[str] = None

class DisplaySettings(BaseModel):
    currency_symbol: str = "₹"

class LoggingSettings(BaseModel):
    level: str = "INFO"

class AppSettings(BaseModel):
    export: ExportSettings = Field(default_factory=ExportSettings)
    pricing: PricingSettings = Field(default_factory=PricingSettings)
    print: PrintSettings = Field(default_factory=PrintSettings)
    pdf: PdfSettings = Field(default_factory=PdfSettings)
    display: DisplaySettings = Field(default_factory=DisplaySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    class Config:
        extra = "ignore"  # tolère d'anciennes clés dans le JSON
