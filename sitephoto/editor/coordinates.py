"""
Display to buffer coordinate mapping.

The canvas buffer keeps a fixed pixel size while the widget showing it can
be scaled by the layout. Pointer positions arrive in widget coordinates and
must be mapped into buffer pixels before anything is drawn.
"""

from typing import NamedTuple, Tuple

from PySide6.QtCore import QPointF, QRectF, QSize


class DisplayRect(NamedTuple):
    """Where the buffer is currently shown, in widget coordinates."""
    left: float
    top: float
    width: float
    height: float

    @classmethod
    def from_qrect(cls, rect: QRectF) -> "DisplayRect":
        return cls(rect.left(), rect.top(), rect.width(), rect.height())


def map_to_buffer(
    client_x: float,
    client_y: float,
    display: DisplayRect,
    buffer_size: Tuple[int, int],
) -> Tuple[float, float]:
    """
    Map a pointer position to buffer coordinates.

    Each axis is scaled independently by buffer size / displayed size.

    Raises:
        ValueError: If the displayed rectangle has no area.
    """
    if display.width <= 0 or display.height <= 0:
        raise ValueError(f"Displayed area has no size: {display.width}x{display.height}")

    buffer_w, buffer_h = buffer_size
    return (
        (client_x - display.left) * buffer_w / display.width,
        (client_y - display.top) * buffer_h / display.height,
    )


def map_point(pos: QPointF, display: QRectF, buffer_size: QSize) -> QPointF:
    """QPointF flavour of map_to_buffer used by the canvas widget."""
    x, y = map_to_buffer(
        pos.x(),
        pos.y(),
        DisplayRect.from_qrect(display),
        (buffer_size.width(), buffer_size.height()),
    )
    return QPointF(x, y)
