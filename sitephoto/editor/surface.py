"""
Raster surface for the annotation buffer.

RasterSurface is the drawing seam between the annotation session and the
pixels. QImageSurface implements it over an ARGB32 premultiplied QImage
with QPainter; the editor widget displays that image and tests inspect it
directly.
"""

from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import Optional, Tuple

from PySide6.QtCore import QPointF, QRectF, QSize, Qt
from PySide6.QtGui import QColor, QFont, QFontMetricsF, QImage, QPainter, QPen


class ShapeKind(Enum):
    """Shapes the surface can draw."""
    RECTANGLE = auto()
    CIRCLE = auto()
    FILLED_RECTANGLE = auto()


class TextAlign(Enum):
    LEFT = auto()
    CENTER = auto()


class RasterSurface(ABC):
    """Fixed-size mutable raster the annotation tools draw on."""

    @property
    @abstractmethod
    def size(self) -> Tuple[int, int]:
        """Return (width, height) in pixels."""
        pass

    @abstractmethod
    def draw_line(
        self,
        start: QPointF,
        end: QPointF,
        color: QColor,
        width: float,
        destination_out: bool = False,
    ) -> None:
        """
        Stroke a segment with round caps and joins.

        With destination_out the stroke clears alpha instead of painting.
        """
        pass

    @abstractmethod
    def draw_shape(
        self,
        kind: ShapeKind,
        rect: QRectF,
        color: QColor,
        width: float = 1,
        fill: Optional[QColor] = None,
    ) -> None:
        """Draw a rectangle or circle outline, or a filled rectangle."""
        pass

    @abstractmethod
    def draw_text(
        self,
        pos: QPointF,
        text: str,
        color: QColor,
        font_size: float,
        bold: bool = False,
        align: TextAlign = TextAlign.LEFT,
        middle: bool = False,
    ) -> None:
        """
        Fill text at pos.

        pos is on the baseline unless middle is set, in which case the text
        is vertically centred on it. With TextAlign.CENTER pos.x() is the
        horizontal centre.
        """
        pass

    @abstractmethod
    def measure_text(self, text: str, font_size: float, bold: bool = False) -> float:
        """Return the advance width of text."""
        pass

    @abstractmethod
    def draw_image(self, image: QImage, target: Optional[QRectF] = None) -> None:
        """Draw image scaled into target (the whole surface by default)."""
        pass

    @abstractmethod
    def get_pixels(self) -> QImage:
        """Return a copy of the current pixels."""
        pass

    @abstractmethod
    def put_pixels(self, pixels: QImage) -> None:
        """Replace the surface content with pixels (same size)."""
        pass

    @abstractmethod
    def to_image(self) -> QImage:
        pass

    @abstractmethod
    def fill(self, color: QColor) -> None:
        pass

    @abstractmethod
    def flattened(self, background: QColor) -> QImage:
        """Composite the buffer over an opaque background."""
        pass


def make_font(font_size: float, bold: bool = False) -> QFont:
    font = QFont()
    font.setPixelSize(max(1, int(round(font_size))))
    font.setBold(bold)
    return font


class QImageSurface(RasterSurface):
    """RasterSurface backed by an in-memory QImage."""

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Surface must have a positive size, got {width}x{height}")
        self._image = QImage(width, height, QImage.Format.Format_ARGB32_Premultiplied)
        self._image.fill(Qt.GlobalColor.transparent)

    @property
    def size(self) -> Tuple[int, int]:
        return (self._image.width(), self._image.height())

    @property
    def qsize(self) -> QSize:
        return self._image.size()

    @property
    def image(self) -> QImage:
        """The live buffer, for painting onto a widget."""
        return self._image

    def _begin(self, destination_out: bool = False) -> QPainter:
        painter = QPainter(self._image)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        if destination_out:
            painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_DestinationOut)
        return painter

    def _pen(self, color: QColor, width: float) -> QPen:
        pen = QPen(color)
        pen.setWidthF(width)
        pen.setCapStyle(Qt.PenCapStyle.RoundCap)
        pen.setJoinStyle(Qt.PenJoinStyle.RoundJoin)
        return pen

    def draw_line(
        self,
        start: QPointF,
        end: QPointF,
        color: QColor,
        width: float,
        destination_out: bool = False,
    ) -> None:
        painter = self._begin(destination_out)
        painter.setPen(self._pen(color, width))
        painter.drawLine(start, end)
        painter.end()

    def draw_shape(
        self,
        kind: ShapeKind,
        rect: QRectF,
        color: QColor,
        width: float = 1,
        fill: Optional[QColor] = None,
    ) -> None:
        painter = self._begin()
        if kind == ShapeKind.FILLED_RECTANGLE:
            painter.setPen(Qt.PenStyle.NoPen)
            painter.setBrush(fill if fill is not None else color)
            painter.drawRect(rect)
        else:
            pen = self._pen(color, width)
            # Canvas-style outlines have mitred corners
            pen.setJoinStyle(Qt.PenJoinStyle.MiterJoin)
            painter.setPen(pen)
            if fill is not None:
                painter.setBrush(fill)
            else:
                painter.setBrush(Qt.BrushStyle.NoBrush)
            if kind == ShapeKind.CIRCLE:
                painter.drawEllipse(rect)
            else:
                painter.drawRect(rect)
        painter.end()

    def draw_text(
        self,
        pos: QPointF,
        text: str,
        color: QColor,
        font_size: float,
        bold: bool = False,
        align: TextAlign = TextAlign.LEFT,
        middle: bool = False,
    ) -> None:
        font = make_font(font_size, bold)
        metrics = QFontMetricsF(font)
        x, y = pos.x(), pos.y()
        if align == TextAlign.CENTER:
            x -= metrics.horizontalAdvance(text) / 2
        if middle:
            y += (metrics.ascent() - metrics.descent()) / 2

        painter = self._begin()
        painter.setFont(font)
        painter.setPen(color)
        painter.drawText(QPointF(x, y), text)
        painter.end()

    def measure_text(self, text: str, font_size: float, bold: bool = False) -> float:
        return QFontMetricsF(make_font(font_size, bold)).horizontalAdvance(text)

    def draw_image(self, image: QImage, target: Optional[QRectF] = None) -> None:
        if target is None:
            target = QRectF(0, 0, self._image.width(), self._image.height())
        painter = self._begin()
        painter.drawImage(target, image)
        painter.end()

    def get_pixels(self) -> QImage:
        return self._image.copy()

    def put_pixels(self, pixels: QImage) -> None:
        if pixels.size() != self._image.size():
            raise ValueError("Pixel data does not match the surface size")
        self._image = pixels.convertToFormat(QImage.Format.Format_ARGB32_Premultiplied)

    def to_image(self) -> QImage:
        return self._image.copy()

    def fill(self, color: QColor) -> None:
        self._image.fill(color)

    def flattened(self, background: QColor) -> QImage:
        result = QImage(self._image.size(), QImage.Format.Format_RGB32)
        result.fill(background)
        painter = QPainter(result)
        painter.drawImage(0, 0, self._image)
        painter.end()
        return result

