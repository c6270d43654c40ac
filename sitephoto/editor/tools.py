"""
Tool framework and implementations for the SitePhoto editor.

Each tool turns pointer events, already mapped to buffer coordinates, into
pixels on the session's surface and, on release, into an annotation record.

Tools:
- PenTool: Freehand strokes with round caps
- EraserTool: Freehand strokes that clear the buffer
- ArrowTool: Line with a two-stroke V head
- RectangleTool: Rectangle outline between two corners
- CircleTool: Circle outline centred on the press point
- TextTool: Asks the session for text at the press point
"""

from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import TYPE_CHECKING, List, Optional

from PySide6.QtCore import QPointF, Qt

from sitephoto.editor.annotations import (
    AnnotationRecord,
    AnnotationType,
    StrokeStyle,
    arrowhead_segments,
    circle_rect,
    rectangle_rect,
    to_tuple,
)
from sitephoto.editor.surface import ShapeKind
from sitephoto.services.logging_service import get_logger

if TYPE_CHECKING:
    from sitephoto.editor.session import AnnotationSession


class ToolType(Enum):
    """Enum for tool types."""
    PEN = auto()
    ERASER = auto()
    ARROW = auto()
    RECTANGLE = auto()
    CIRCLE = auto()
    TEXT = auto()


class ToolBase(ABC):
    """
    Base class for all tools.

    The session forwards pointer events while DRAWING. A tool holds only the
    state of the gesture in progress.
    """

    def __init__(self) -> None:
        self._logger = get_logger(__name__)

    @property
    @abstractmethod
    def tool_type(self) -> ToolType:
        """Return the type of this tool."""
        pass

    @property
    @abstractmethod
    def cursor(self) -> Qt.CursorShape:
        """Return the cursor to use when this tool is active."""
        pass

    @abstractmethod
    def on_pointer_down(self, pos: QPointF, session: "AnnotationSession") -> None:
        """Start a gesture at pos."""
        pass

    @abstractmethod
    def on_pointer_move(self, pos: QPointF, session: "AnnotationSession") -> None:
        """Continue the gesture to pos."""
        pass

    @abstractmethod
    def on_pointer_up(self, session: "AnnotationSession") -> Optional[AnnotationRecord]:
        """
        Finish the gesture.

        Returns the record to log, or None when nothing was drawn.
        """
        pass


class PenTool(ToolBase):
    """Freehand drawing: each move strokes last point to current point."""

    def __init__(self) -> None:
        super().__init__()
        self._points: List[QPointF] = []

    @property
    def tool_type(self) -> ToolType:
        return ToolType.PEN

    @property
    def cursor(self) -> Qt.CursorShape:
        return Qt.CursorShape.CrossCursor

    def _stroke_width(self, style: StrokeStyle) -> int:
        return style.line_width

    def on_pointer_down(self, pos: QPointF, session: "AnnotationSession") -> None:
        self._points = [QPointF(pos)]

    def on_pointer_move(self, pos: QPointF, session: "AnnotationSession") -> None:
        if not self._points:
            return
        style = session.style
        session.surface.draw_line(
            self._points[-1],
            pos,
            style.color,
            self._stroke_width(style),
            destination_out=self.tool_type == ToolType.ERASER,
        )
        self._points.append(QPointF(pos))

    def on_pointer_up(self, session: "AnnotationSession") -> Optional[AnnotationRecord]:
        points, self._points = self._points, []
        if len(points) < 2:
            return None
        return self._make_record(points, session.style)

    def _make_record(self, points: List[QPointF], style: StrokeStyle) -> AnnotationRecord:
        return AnnotationRecord(
            AnnotationType.PEN,
            points=[to_tuple(p) for p in points],
            color=style.color.name(),
            line_width=style.line_width,
        )


class EraserTool(PenTool):
    """Pen geometry with a destination-out blend, three times as wide."""

    @property
    def tool_type(self) -> ToolType:
        return ToolType.ERASER

    def _stroke_width(self, style: StrokeStyle) -> int:
        return style.eraser_width

    def _make_record(self, points: List[QPointF], style: StrokeStyle) -> AnnotationRecord:
        return AnnotationRecord(
            AnnotationType.ERASER,
            points=[to_tuple(p) for p in points],
            line_width=style.eraser_width,
        )


class ShapeTool(ToolBase):
    """
    Base for tools with a live preview.

    Press captures a snapshot of the buffer; every move restores it and
    draws the shape from the start to the current point, so only the final
    draw survives the gesture.
    """

    annotation_type: AnnotationType

    def __init__(self) -> None:
        super().__init__()
        self._start: Optional[QPointF] = None
        self._end: Optional[QPointF] = None

    @property
    def cursor(self) -> Qt.CursorShape:
        return Qt.CursorShape.CrossCursor

    def on_pointer_down(self, pos: QPointF, session: "AnnotationSession") -> None:
        self._start = QPointF(pos)
        self._end = None
        session.capture_snapshot()

    def on_pointer_move(self, pos: QPointF, session: "AnnotationSession") -> None:
        if self._start is None:
            return
        session.restore_snapshot()
        self.draw(session, self._start, pos, session.style)
        self._end = QPointF(pos)

    def on_pointer_up(self, session: "AnnotationSession") -> Optional[AnnotationRecord]:
        session.discard_snapshot()
        start, end = self._start, self._end
        self._start = None
        self._end = None
        if start is None or end is None:
            return None
        style = session.style
        return AnnotationRecord(
            self.annotation_type,
            points=[to_tuple(start), to_tuple(end)],
            color=style.color.name(),
            line_width=style.line_width,
        )

    @abstractmethod
    def draw(self, session: "AnnotationSession", start: QPointF, end: QPointF, style: StrokeStyle) -> None:
        """Draw the shape for a gesture from start to end."""
        pass


class ArrowTool(ShapeTool):
    """Straight arrow with an open V head at the end point."""

    annotation_type = AnnotationType.ARROW

    @property
    def tool_type(self) -> ToolType:
        return ToolType.ARROW

    def draw(self, session: "AnnotationSession", start: QPointF, end: QPointF, style: StrokeStyle) -> None:
        surface = session.surface
        surface.draw_line(start, end, style.color, style.line_width)
        for tip, barb in arrowhead_segments(start, end):
            surface.draw_line(tip, barb, style.color, style.line_width)


class RectangleTool(ShapeTool):
    annotation_type = AnnotationType.RECTANGLE

    @property
    def tool_type(self) -> ToolType:
        return ToolType.RECTANGLE

    def draw(self, session: "AnnotationSession", start: QPointF, end: QPointF, style: StrokeStyle) -> None:
        session.surface.draw_shape(
            ShapeKind.RECTANGLE, rectangle_rect(start, end), style.color, style.line_width
        )


class CircleTool(ShapeTool):
    """Circle centred on the press point through the current point."""

    annotation_type = AnnotationType.CIRCLE

    @property
    def tool_type(self) -> ToolType:
        return ToolType.CIRCLE

    def draw(self, session: "AnnotationSession", start: QPointF, end: QPointF, style: StrokeStyle) -> None:
        session.surface.draw_shape(
            ShapeKind.CIRCLE, circle_rect(start, end), style.color, style.line_width
        )


class TextTool(ToolBase):
    """
    Text placement.

    A press never starts a drawing gesture: the session switches to
    AWAITING_TEXT and asks its text-request callback for the content.
    """

    @property
    def tool_type(self) -> ToolType:
        return ToolType.TEXT

    @property
    def cursor(self) -> Qt.CursorShape:
        return Qt.CursorShape.IBeamCursor

    def on_pointer_down(self, pos: QPointF, session: "AnnotationSession") -> None:
        session.request_text(pos)

    def on_pointer_move(self, pos: QPointF, session: "AnnotationSession") -> None:
        pass

    def on_pointer_up(self, session: "AnnotationSession") -> Optional[AnnotationRecord]:
        return None


def create_tool(tool_type: ToolType) -> ToolBase:
    """
    Factory function to create a tool by type.

    Args:
        tool_type: The type of tool to create.

    Returns:
        A new tool instance.
    """
    tools = {
        ToolType.PEN: PenTool,
        ToolType.ERASER: EraserTool,
        ToolType.ARROW: ArrowTool,
        ToolType.RECTANGLE: RectangleTool,
        ToolType.CIRCLE: CircleTool,
        ToolType.TEXT: TextTool,
    }

    tool_class = tools.get(tool_type)
    if tool_class is None:
        raise ValueError(f"Unknown tool type: {tool_type}")
    return tool_class()
