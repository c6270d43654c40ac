"""
Signboard rendering.

A site signboard (project name, construction period, contractor, ...) can
be burned into a photo as a placard along the bottom edge, or rendered on
its own as a board image that is then hand-annotated like a blackboard.
"""

from typing import List

from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import QColor, QImage

from sitephoto.core.models import Signboard
from sitephoto.editor.surface import QImageSurface, RasterSurface, ShapeKind

OVERLAY_PADDING = 20
OVERLAY_HEIGHT = 150
OVERLAY_FILL = QColor(255, 248, 225, round(0.95 * 255))
OVERLAY_BORDER = QColor("#f57c00")
OVERLAY_TITLE = QColor("#e65100")

BOARD_BACKGROUND = QColor("#fff8e1")
BOARD_WIDTH = 600
BOARD_HEIGHT = 400


def signboard_lines(signboard: Signboard, include_contact: bool = False) -> List[str]:
    """Detail lines for the fields that are filled in."""
    content = signboard.content
    lines = []
    if content.construction_period:
        lines.append(f"Period: {content.construction_period}")
    if content.contractor:
        lines.append(f"Contractor: {content.contractor}")
    if content.supervisor:
        lines.append(f"Supervisor: {content.supervisor}")
    if include_contact and content.contact:
        lines.append(f"Contact: {content.contact}")
    return lines


def overlay_rect(width: int, height: int) -> QRectF:
    """Placard rectangle for a buffer of the given size."""
    return QRectF(
        OVERLAY_PADDING,
        height - OVERLAY_HEIGHT - OVERLAY_PADDING,
        width - OVERLAY_PADDING * 2,
        OVERLAY_HEIGHT,
    )


def draw_signboard_overlay(surface: RasterSurface, signboard: Signboard) -> None:
    """Draw the signboard placard along the bottom of the surface."""
    width, height = surface.size
    rect = overlay_rect(width, height)
    x, y = rect.left(), rect.top()
    black = QColor(Qt.GlobalColor.black)

    surface.draw_shape(ShapeKind.FILLED_RECTANGLE, rect, OVERLAY_FILL, fill=OVERLAY_FILL)
    surface.draw_shape(ShapeKind.RECTANGLE, rect, OVERLAY_BORDER, 3)

    surface.draw_text(QPointF(x + 12, y + 35), signboard.heading, OVERLAY_TITLE, 24, bold=True)
    surface.draw_line(
        QPointF(x + 12, y + 45), QPointF(rect.right() - 12, y + 45), OVERLAY_BORDER, 2
    )

    text_y = y + 68
    for line in signboard_lines(signboard):
        surface.draw_text(QPointF(x + 12, text_y), line, black, 16)
        text_y += 22


def render_signboard_board(
    signboard: Signboard,
    width: int = BOARD_WIDTH,
    height: int = BOARD_HEIGHT,
) -> QImage:
    """Render a signboard as a standalone board image."""
    surface = QImageSurface(width, height)
    surface.fill(BOARD_BACKGROUND)
    black = QColor(Qt.GlobalColor.black)

    surface.draw_text(QPointF(20, 40), signboard.heading, black, 20, bold=True)
    y = 70
    for line in signboard_lines(signboard, include_contact=True):
        surface.draw_text(QPointF(20, y), line, black, 14)
        y += 25

    return surface.to_image()
