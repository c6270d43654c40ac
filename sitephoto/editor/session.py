"""
Annotation session for the SitePhoto editor.

An AnnotationSession owns the raster buffer for one photo being edited and
runs the pointer state machine:

    IDLE --down--> DRAWING --move--> DRAWING --up/leave--> IDLE
    IDLE --down (text tool)--> AWAITING_TEXT --submit/cancel--> IDLE

The source image is never modified. Saving flattens the buffer over white
and encodes it as JPEG; the result becomes a new sibling photo record.
"""

import time
from enum import Enum, auto
from typing import Callable, List, Optional, Tuple

from PySide6.QtCore import QBuffer, QByteArray, QIODevice, QPointF, Qt
from PySide6.QtGui import QColor, QImage

from sitephoto.core.errors import ExportError, LoadError, ValidationError
from sitephoto.core.models import NewPhoto, PhotoRecord, Signboard
from sitephoto.editor.annotations import (
    STAMP_BORDER_WIDTH,
    STAMP_SIZE,
    AnnotationRecord,
    AnnotationType,
    StampKind,
    StrokeStyle,
    stamp_rect,
    to_tuple,
)
from sitephoto.editor.signboard_overlay import draw_signboard_overlay
from sitephoto.editor.surface import QImageSurface, RasterSurface, ShapeKind, TextAlign
from sitephoto.editor.tools import ToolBase, ToolType, create_tool
from sitephoto.services.logging_service import get_logger

DEFAULT_JPEG_QUALITY = 95
ANNOTATED_SUFFIX = " (annotated)"


class SessionState(Enum):
    """Pointer state of an annotation session."""
    IDLE = auto()
    DRAWING = auto()
    AWAITING_TEXT = auto()


def load_source_image(data: bytes) -> QImage:
    """
    Decode image bytes into a QImage.

    Raises:
        LoadError: If the bytes are empty or do not decode to an image.
    """
    image = QImage()
    if not data or not image.loadFromData(data) or image.isNull():
        raise LoadError("The image could not be decoded")
    return image


def buffer_size_for(
    source: QImage,
    display_width: Optional[int] = None,
    max_width: Optional[int] = None,
) -> Tuple[int, int]:
    """
    Buffer dimensions for a source image.

    Width is the display width (the source width when not given) capped at
    max_width; height follows the source aspect ratio.
    """
    if source.isNull() or source.width() <= 0 or source.height() <= 0:
        raise LoadError("The image has no pixels")

    width = display_width or source.width()
    if max_width:
        width = min(width, max_width)
    width = max(1, int(width))
    height = max(1, round(width * source.height() / source.width()))
    return (width, height)


def build_annotated_photo(source: PhotoRecord, jpeg: bytes) -> NewPhoto:
    """
    Create request for the annotated copy of a photo.

    The copy goes to the same project and keeps the category and signboard;
    the original record is left untouched.
    """
    caption = f"{source.caption or 'Photo'}{ANNOTATED_SUFFIX}"
    return NewPhoto(
        project_id=source.project_id,
        image_bytes=jpeg,
        filename=f"annotated-{int(time.time() * 1000)}.jpg",
        caption=caption,
        category=source.category,
        signboard_id=source.signboard_id,
    )


class AnnotationSession:
    """
    Drawing state for one photo.

    Args:
        source: Decoded source image; the session never modifies it.
        buffer_width: Buffer width in pixels. Defaults to the source width.
        style: Initial stroke style.
    """

    def __init__(
        self,
        source: QImage,
        buffer_width: Optional[int] = None,
        style: Optional[StrokeStyle] = None,
    ) -> None:
        self._logger = get_logger(__name__)
        if source.isNull():
            raise LoadError("Cannot annotate an empty image")

        self._source = source
        width, height = buffer_size_for(source, buffer_width)
        self._surface: RasterSurface = QImageSurface(width, height)
        self._style = style.clone() if style else StrokeStyle()
        self._tool: ToolBase = create_tool(ToolType.PEN)
        self._state = SessionState.IDLE
        self._snapshot: Optional[QImage] = None
        self._pending_text_pos: Optional[QPointF] = None
        self._annotations: List[AnnotationRecord] = []

        # Called with the buffer position when the text tool needs input
        self.on_text_requested: Optional[Callable[[QPointF], None]] = None

        self._paint_source()
        self._logger.info(f"Annotation session opened ({width}x{height})")

    # ─── Properties ───────────────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def surface(self) -> RasterSurface:
        return self._surface

    @property
    def source(self) -> QImage:
        return self._source

    @property
    def buffer_size(self) -> Tuple[int, int]:
        return self._surface.size

    @property
    def style(self) -> StrokeStyle:
        return self._style

    @property
    def tool_type(self) -> ToolType:
        return self._tool.tool_type

    @property
    def tool(self) -> ToolBase:
        return self._tool

    @property
    def annotations(self) -> List[AnnotationRecord]:
        """Copy of the annotation log, oldest first."""
        return list(self._annotations)

    @property
    def has_snapshot(self) -> bool:
        return self._snapshot is not None

    @property
    def pending_text_position(self) -> Optional[QPointF]:
        return self._pending_text_pos

    # ─── Tool & Style ─────────────────────────────────────────────────────

    def set_tool(self, tool_type: ToolType) -> None:
        """Switch tools, finishing any gesture in progress first."""
        if self._state == SessionState.DRAWING:
            self._finish_gesture()
        elif self._state == SessionState.AWAITING_TEXT:
            self.cancel_text()

        if tool_type != self._tool.tool_type:
            self._tool = create_tool(tool_type)
            self._logger.debug(f"Tool changed to {tool_type.name}")

    def set_color(self, color: QColor) -> None:
        self._style.color = QColor(color)

    def set_line_width(self, width: int) -> None:
        if width < 1:
            raise ValidationError(f"Line width must be at least 1, got {width}")
        self._style.line_width = int(width)

    # ─── Pointer Events ───────────────────────────────────────────────────

    def pointer_down(self, pos: QPointF) -> None:
        if self._state != SessionState.IDLE:
            return
        if self._tool.tool_type != ToolType.TEXT:
            self._state = SessionState.DRAWING
        self._tool.on_pointer_down(pos, self)

    def pointer_move(self, pos: QPointF) -> None:
        if self._state != SessionState.DRAWING:
            return
        self._tool.on_pointer_move(pos, self)

    def pointer_up(self) -> None:
        if self._state != SessionState.DRAWING:
            return
        self._finish_gesture()

    def pointer_leave(self) -> None:
        self.pointer_up()

    def _finish_gesture(self) -> None:
        record = self._tool.on_pointer_up(self)
        self._state = SessionState.IDLE
        if record is not None:
            self._annotations.append(record)

    # ─── Preview Snapshot (used by shape tools) ───────────────────────────

    def capture_snapshot(self) -> None:
        self._snapshot = self._surface.get_pixels()

    def restore_snapshot(self) -> None:
        if self._snapshot is not None:
            self._surface.put_pixels(self._snapshot)

    def discard_snapshot(self) -> None:
        self._snapshot = None

    # ─── Text ─────────────────────────────────────────────────────────────

    def request_text(self, pos: QPointF) -> None:
        """Enter AWAITING_TEXT at pos and notify the text-request callback."""
        self._state = SessionState.AWAITING_TEXT
        self._pending_text_pos = QPointF(pos)
        if self.on_text_requested is not None:
            self.on_text_requested(QPointF(pos))

    def submit_text(self, text: Optional[str]) -> bool:
        """
        Stamp text at the remembered point.

        Returns False, drawing nothing, for empty text or when no text was
        requested.
        """
        if self._state != SessionState.AWAITING_TEXT or self._pending_text_pos is None:
            return False

        pos = self._pending_text_pos
        self._state = SessionState.IDLE
        self._pending_text_pos = None

        if not text:
            self._logger.debug("Empty text ignored")
            return False

        self._surface.draw_text(
            pos, text, self._style.color, self._style.text_size, bold=True
        )
        self._annotations.append(AnnotationRecord(
            AnnotationType.TEXT,
            points=[to_tuple(pos)],
            color=self._style.color.name(),
            line_width=self._style.line_width,
            text=text,
        ))
        return True

    def cancel_text(self) -> None:
        if self._state == SessionState.AWAITING_TEXT:
            self._state = SessionState.IDLE
            self._pending_text_pos = None

    # ─── Stamps & Signboard ───────────────────────────────────────────────

    def add_stamp(self, kind: StampKind, center: Optional[QPointF] = None) -> None:
        """Draw a verdict badge, centred on the buffer unless center is given."""
        if center is None:
            width, height = self._surface.size
            center = QPointF(width / 2, height / 2)

        rect = stamp_rect(center)
        self._surface.draw_shape(ShapeKind.FILLED_RECTANGLE, rect, kind.background, fill=kind.background)
        self._surface.draw_shape(ShapeKind.RECTANGLE, rect, kind.foreground, STAMP_BORDER_WIDTH)
        self._surface.draw_text(
            center,
            kind.label,
            kind.foreground,
            STAMP_SIZE / 2,
            bold=True,
            align=TextAlign.CENTER,
            middle=True,
        )
        self._annotations.append(AnnotationRecord(
            AnnotationType.STAMP,
            points=[to_tuple(center)],
            stamp=kind,
        ))
        self._logger.debug(f"Stamp {kind.name} added")

    def composite_signboard(self, signboard: Signboard) -> None:
        """Burn the signboard placard into the bottom of the buffer."""
        draw_signboard_overlay(self._surface, signboard)
        self._annotations.append(AnnotationRecord(
            AnnotationType.SIGNBOARD,
            text=signboard.heading,
        ))

    # ─── Clear & Export ───────────────────────────────────────────────────

    def _paint_source(self) -> None:
        self._surface.fill(QColor(Qt.GlobalColor.transparent))
        self._surface.draw_image(self._source)

    def clear(self) -> None:
        """Restore the buffer to the source image and empty the log."""
        self._snapshot = None
        self._pending_text_pos = None
        self._state = SessionState.IDLE
        self._paint_source()
        self._annotations.clear()
        self._logger.info("Annotations cleared")

    def export_image(self) -> QImage:
        """Flatten the buffer over white; erased pixels come out white."""
        return self._surface.flattened(QColor("white"))

    def export_jpeg(self, quality: int = DEFAULT_JPEG_QUALITY) -> bytes:
        """
        Encode the flattened buffer as JPEG.

        Raises:
            ExportError: If encoding fails.
        """
        image = self.export_image()
        data = QByteArray()
        buffer = QBuffer(data)
        if not buffer.open(QIODevice.OpenModeFlag.WriteOnly):
            raise ExportError("Could not open an encode buffer")
        try:
            ok = image.save(buffer, "JPEG", quality)
        finally:
            buffer.close()

        if not ok or data.isEmpty():
            raise ExportError("JPEG encoding failed")

        self._logger.info(
            f"Exported {image.width()}x{image.height()} JPEG "
            f"({data.size()} bytes, {len(self._annotations)} annotations)"
        )
        return bytes(data)
