"""
Ledger page renderers.

LedgerRenderer is what the composer draws through. ReportLabRenderer writes
a PDF with reportlab, converting top-left millimetre coordinates into PDF
points measured from the bottom-left.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from PIL import Image
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from sitephoto.ledger.layout import Rect
from sitephoto.services.logging_service import get_logger

ALIGN_LEFT = "left"
ALIGN_CENTER = "center"
ALIGN_RIGHT = "right"

REGULAR_FONT = "Helvetica"
BOLD_FONT = "Helvetica-Bold"


class LedgerRenderer(ABC):
    """Drawing operations for ledger pages, in page millimetres."""

    @abstractmethod
    def begin_page(self) -> None:
        pass

    @abstractmethod
    def draw_image(self, image: Image.Image, rect: Rect) -> None:
        pass

    @abstractmethod
    def draw_text(
        self,
        x: float,
        y: float,
        text: str,
        size: float,
        bold: bool = False,
        align: str = ALIGN_LEFT,
    ) -> None:
        """Draw text with its baseline at y."""
        pass

    @abstractmethod
    def draw_rect(self, rect: Rect, line_width: float = 0.2) -> None:
        pass

    @abstractmethod
    def draw_line(self, x1: float, y1: float, x2: float, y2: float, line_width: float = 0.2) -> None:
        pass

    @abstractmethod
    def end_page(self) -> None:
        pass

    @abstractmethod
    def finish(self) -> None:
        """Complete and close the document."""
        pass


def register_ttf_fonts(regular_path: str, bold_path: Optional[str] = None) -> tuple:
    """
    Register TrueType fonts for captions outside Helvetica's character set.

    Returns the (regular, bold) font names to draw with.
    """
    pdfmetrics.registerFont(TTFont("LedgerFont", regular_path))
    if bold_path:
        pdfmetrics.registerFont(TTFont("LedgerFontBold", bold_path))
        return ("LedgerFont", "LedgerFontBold")
    return ("LedgerFont", "LedgerFont")


class ReportLabRenderer(LedgerRenderer):
    """LedgerRenderer writing an A4 portrait PDF."""

    def __init__(
        self,
        path: Union[str, Path],
        title: str = "Photo Ledger",
        font_path: Optional[str] = None,
        bold_font_path: Optional[str] = None,
    ) -> None:
        self._logger = get_logger(__name__)
        self._path = Path(path)
        self._page_width, self._page_height = A4
        self._canvas = canvas.Canvas(str(self._path), pagesize=A4)
        self._canvas.setTitle(title)
        self._pages = 0

        self._regular_font = REGULAR_FONT
        self._bold_font = BOLD_FONT
        if font_path and Path(font_path).is_file():
            if bold_font_path and not Path(bold_font_path).is_file():
                self._logger.warning(f"Bold ledger font {bold_font_path} not found; using {font_path}")
                bold_font_path = None
            self._regular_font, self._bold_font = register_ttf_fonts(font_path, bold_font_path)
        elif font_path:
            self._logger.warning(f"Ledger font {font_path} not found; using {REGULAR_FONT}")

    @property
    def fonts(self) -> tuple:
        """(regular, bold) font names in use."""
        return (self._regular_font, self._bold_font)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def page_count(self) -> int:
        return self._pages

    def _y(self, y_mm: float) -> float:
        return self._page_height - y_mm * mm

    def begin_page(self) -> None:
        self._pages += 1

    def draw_image(self, image: Image.Image, rect: Rect) -> None:
        self._canvas.drawImage(
            ImageReader(image),
            rect.x * mm,
            self._y(rect.bottom),
            width=rect.width * mm,
            height=rect.height * mm,
        )

    def draw_text(
        self,
        x: float,
        y: float,
        text: str,
        size: float,
        bold: bool = False,
        align: str = ALIGN_LEFT,
    ) -> None:
        self._canvas.setFont(self._bold_font if bold else self._regular_font, size)
        if align == ALIGN_CENTER:
            self._canvas.drawCentredString(x * mm, self._y(y), text)
        elif align == ALIGN_RIGHT:
            self._canvas.drawRightString(x * mm, self._y(y), text)
        else:
            self._canvas.drawString(x * mm, self._y(y), text)

    def draw_rect(self, rect: Rect, line_width: float = 0.2) -> None:
        self._canvas.setLineWidth(line_width * mm)
        self._canvas.rect(
            rect.x * mm,
            self._y(rect.bottom),
            rect.width * mm,
            rect.height * mm,
            stroke=1,
            fill=0,
        )

    def draw_line(self, x1: float, y1: float, x2: float, y2: float, line_width: float = 0.2) -> None:
        self._canvas.setLineWidth(line_width * mm)
        self._canvas.line(x1 * mm, self._y(y1), x2 * mm, self._y(y2))

    def end_page(self) -> None:
        self._canvas.showPage()

    def finish(self) -> None:
        self._canvas.save()
        self._logger.info(f"Wrote {self._pages} page(s) to {self._path}")
