"""
Editor canvas widget for SitePhoto.

The EditorCanvas shows the annotation buffer of an AnnotationSession scaled
to fit the widget and forwards pointer events to the session. Pointer
positions are mapped into buffer coordinates through the rectangle the
buffer currently occupies, recomputed on every event.
"""

from typing import Optional

from PySide6.QtCore import QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QColor, QMouseEvent, QPainter
from PySide6.QtWidgets import QWidget

from sitephoto.editor.coordinates import map_point
from sitephoto.editor.session import AnnotationSession, SessionState
from sitephoto.editor.tools import ToolType
from sitephoto.services.logging_service import get_logger


class EditorCanvas(QWidget):
    """
    Canvas widget for annotating a photo.

    Signals:
        text_requested: Emitted with the buffer position when the text tool
            needs input.
        changed: Emitted after the buffer was modified.
    """

    text_requested = Signal(QPointF)
    changed = Signal()

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._session: Optional[AnnotationSession] = None
        self._setup_widget()

    def _setup_widget(self) -> None:
        """Configure widget properties."""
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setMinimumSize(320, 240)

    # ─── Session ──────────────────────────────────────────────────────────

    def set_session(self, session: Optional[AnnotationSession]) -> None:
        """Show a session, or nothing when session is None."""
        self._session = session
        if session is not None:
            session.on_text_requested = self.text_requested.emit
            self.setCursor(session.tool.cursor)
        self.update()

    @property
    def session(self) -> Optional[AnnotationSession]:
        return self._session

    def set_tool(self, tool_type: ToolType) -> None:
        if self._session is None:
            return
        self._session.set_tool(tool_type)
        self.setCursor(self._session.tool.cursor)
        self.update()

    def refresh(self) -> None:
        """Repaint after the session was changed from outside the canvas."""
        self.update()
        self.changed.emit()

    # ─── Coordinate Conversion ────────────────────────────────────────────

    def display_rect(self) -> QRectF:
        """
        Rectangle the buffer occupies in widget coordinates.

        The buffer is scaled to fit (never enlarged) and centred.
        """
        if self._session is None:
            return QRectF()

        buffer_w, buffer_h = self._session.buffer_size
        if self.width() <= 0 or self.height() <= 0:
            return QRectF()

        scale = min(self.width() / buffer_w, self.height() / buffer_h, 1.0)
        shown_w = buffer_w * scale
        shown_h = buffer_h * scale
        return QRectF(
            (self.width() - shown_w) / 2,
            (self.height() - shown_h) / 2,
            shown_w,
            shown_h,
        )

    def widget_to_buffer(self, pos: QPointF) -> Optional[QPointF]:
        """Map a widget position into the buffer, None when nothing is shown."""
        if self._session is None:
            return None
        rect = self.display_rect()
        if rect.isEmpty():
            return None
        return map_point(pos, rect, self._session.surface.qsize)

    # ─── Event Handlers ───────────────────────────────────────────────────

    def paintEvent(self, event) -> None:
        """Paint the buffer."""
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.fillRect(self.rect(), QColor(26, 26, 26))

        if self._session is None:
            painter.setPen(QColor(100, 100, 100))
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, "No photo loaded")
            painter.end()
            return

        rect = self.display_rect()
        # Erased pixels show white, as they will after export
        painter.fillRect(rect, QColor("white"))
        painter.drawImage(rect, self._session.surface.image)
        painter.end()

    def mousePressEvent(self, event: QMouseEvent) -> None:
        """Handle mouse press."""
        if event.button() != Qt.MouseButton.LeftButton or self._session is None:
            return
        pos = self.widget_to_buffer(event.position())
        if pos is None:
            return
        self._session.pointer_down(pos)
        if self._session.state == SessionState.DRAWING:
            self.refresh()

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        """Handle mouse move."""
        if self._session is None or self._session.state != SessionState.DRAWING:
            return
        pos = self.widget_to_buffer(event.position())
        if pos is None:
            return
        self._session.pointer_move(pos)
        self.refresh()

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        """Handle mouse release."""
        if event.button() != Qt.MouseButton.LeftButton or self._session is None:
            return
        if self._session.state == SessionState.DRAWING:
            self._session.pointer_up()
            self.refresh()

    def leaveEvent(self, event) -> None:
        """Leaving the canvas ends the gesture like a release."""
        if self._session is not None and self._session.state == SessionState.DRAWING:
            self._session.pointer_leave()
            self.refresh()
        super().leaveEvent(event)
