"""
Annotation models for the SitePhoto editor.

Annotations are burned into the raster buffer as they are drawn; nothing
here is repainted later. This module holds what the session needs to draw
and log them:

- StrokeStyle: colour and line width shared by the gesture tools
- AnnotationRecord: one entry of the append-only annotation log
- StampKind: OK / NG / review badges and their colour pairs
- Geometry helpers for arrows, shapes, stamps and text
"""

import math
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional, Tuple
from uuid import uuid4

from PySide6.QtCore import QPointF, QRectF
from PySide6.QtGui import QColor

# Arrowhead: two strokes of this length, this far off the reverse direction
ARROW_HEAD_LENGTH = 20.0
ARROW_HEAD_ANGLE = math.pi / 6

# Stamp badge is 2 * STAMP_SIZE wide and STAMP_SIZE tall
STAMP_SIZE = 80
STAMP_BORDER_WIDTH = 3

# Text font size is the line width times this factor
TEXT_SIZE_FACTOR = 8

# The eraser clears a band this many times wider than the pen
ERASER_WIDTH_FACTOR = 3


class AnnotationType(Enum):
    """Enum for annotation log entry types."""
    PEN = auto()
    ERASER = auto()
    ARROW = auto()
    RECTANGLE = auto()
    CIRCLE = auto()
    TEXT = auto()
    STAMP = auto()
    SIGNBOARD = auto()


class StampKind(Enum):
    """Verdict stamps with (label, background, foreground) colours."""
    OK = ("OK", "#e8f5e9", "#388e3c")
    NG = ("NG", "#ffebee", "#d32f2f")
    NEEDS_REVIEW = ("REVIEW", "#fff3e0", "#f57c00")

    @property
    def label(self) -> str:
        return self.value[0]

    @property
    def background(self) -> QColor:
        return QColor(self.value[1])

    @property
    def foreground(self) -> QColor:
        return QColor(self.value[2])


@dataclass
class StrokeStyle:
    """
    Style properties for the gesture tools.

    Text size and eraser width derive from the line width.
    """
    color: QColor = field(default_factory=lambda: QColor("#ff0000"))
    line_width: int = 3

    @property
    def text_size(self) -> int:
        return self.line_width * TEXT_SIZE_FACTOR

    @property
    def eraser_width(self) -> int:
        return self.line_width * ERASER_WIDTH_FACTOR

    def clone(self) -> "StrokeStyle":
        """Create a copy of this style."""
        return StrokeStyle(color=QColor(self.color), line_width=self.line_width)


@dataclass
class AnnotationRecord:
    """
    One committed annotation.

    Points are buffer coordinates. Shapes store the geometry of their final
    (committed) draw: arrow and rectangle store (start, end), circle stores
    (centre, edge point).
    """
    annotation_type: AnnotationType
    points: List[Tuple[float, float]] = field(default_factory=list)
    color: Optional[str] = None
    line_width: Optional[int] = None
    text: Optional[str] = None
    stamp: Optional[StampKind] = None
    id: str = field(default_factory=lambda: str(uuid4()))


def to_tuple(point: QPointF) -> Tuple[float, float]:
    return (point.x(), point.y())


def arrowhead_segments(start: QPointF, end: QPointF) -> List[Tuple[QPointF, QPointF]]:
    """
    Return the two arrowhead strokes for an arrow from start to end.

    Each stroke runs from the tip back ARROW_HEAD_LENGTH units at
    ±ARROW_HEAD_ANGLE from the shaft. A zero-length arrow keeps the head
    pointing along +x, so the head is still drawn at the point.
    """
    angle = math.atan2(end.y() - start.y(), end.x() - start.x())
    segments = []
    for offset in (-ARROW_HEAD_ANGLE, ARROW_HEAD_ANGLE):
        barb = QPointF(
            end.x() - ARROW_HEAD_LENGTH * math.cos(angle + offset),
            end.y() - ARROW_HEAD_LENGTH * math.sin(angle + offset),
        )
        segments.append((QPointF(end), barb))
    return segments


def rectangle_rect(start: QPointF, end: QPointF) -> QRectF:
    """Rectangle spanning the gesture start and current corner."""
    return QRectF(start, end).normalized()


def circle_rect(center: QPointF, edge: QPointF) -> QRectF:
    """Bounding square of a circle centred on center and passing through edge."""
    radius = math.hypot(edge.x() - center.x(), edge.y() - center.y())
    return QRectF(center.x() - radius, center.y() - radius, radius * 2, radius * 2)


def stamp_rect(center: QPointF, size: int = STAMP_SIZE) -> QRectF:
    """Badge rectangle centred on center."""
    return QRectF(center.x() - size, center.y() - size / 2, size * 2, size)
