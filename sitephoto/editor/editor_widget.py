"""
Annotation dialog for SitePhoto.

This dialog composes the annotation editor:
- Top toolbar with tool buttons, colour, line width and stamps
- Center canvas showing the annotation buffer
- Bottom row with Clear, Save and Cancel

Saving uploads the flattened JPEG as a new photo next to the original.
"""

from typing import Optional

from PySide6.QtCore import QPoint, QPointF, Qt, Signal, Slot
from PySide6.QtGui import QColor, QIcon, QPainter, QPen, QPixmap, QPolygon
from PySide6.QtWidgets import (
    QButtonGroup,
    QColorDialog,
    QDialog,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QMessageBox,
    QPushButton,
    QSizePolicy,
    QSpinBox,
    QToolBar,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from sitephoto.core.backend import PhotoBackend
from sitephoto.core.errors import BackendError, ExportError
from sitephoto.core.models import PhotoRecord, Signboard
from sitephoto.editor.annotations import StampKind
from sitephoto.editor.editor_canvas import EditorCanvas
from sitephoto.editor.session import DEFAULT_JPEG_QUALITY, AnnotationSession, build_annotated_photo
from sitephoto.editor.tools import ToolType
from sitephoto.services.config_service import ConfigService
from sitephoto.services.logging_service import get_logger


class ColorButton(QPushButton):
    """Button that shows a color and opens color picker on click."""

    color_changed = Signal(QColor)

    def __init__(self, color: QColor = QColor("#ff0000"), parent=None):
        super().__init__(parent)
        self._color = QColor(color)
        self.setFixedSize(32, 32)
        self.setToolTip("Stroke colour")
        self.clicked.connect(self._on_click)
        self._update_style()

    @property
    def color(self) -> QColor:
        return self._color

    @color.setter
    def color(self, value: QColor) -> None:
        self._color = QColor(value)
        self._update_style()

    def _update_style(self) -> None:
        self.setStyleSheet(f"""
            QPushButton {{
                background-color: {self._color.name()};
                border: 2px solid #555;
                border-radius: 4px;
            }}
            QPushButton:hover {{
                border-color: #888;
            }}
        """)

    def _on_click(self) -> None:
        color = QColorDialog.getColor(self._color, self, "Select Color")
        if color.isValid():
            self._color = color
            self._update_style()
            self.color_changed.emit(color)


def _create_tool_icon(shape: str, color: QColor = QColor(220, 220, 220)) -> QIcon:
    """Draw a small tool icon."""
    size = 24
    pixmap = QPixmap(size, size)
    pixmap.fill(Qt.GlobalColor.transparent)

    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.RenderHint.Antialiasing)
    painter.setPen(QPen(color, 2))

    margin = 4

    if shape == "pen":
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawLine(5, 19, 17, 7)
        painter.drawLine(17, 7, 20, 4)

    elif shape == "eraser":
        painter.setBrush(color)
        points = [QPoint(4, 18), QPoint(10, 6), QPoint(20, 10), QPoint(14, 22)]
        painter.drawPolygon(QPolygon(points))

    elif shape == "arrow":
        # Open V head, like the arrows the tool draws
        painter.drawLine(5, 19, 19, 5)
        painter.drawLine(19, 5, 12, 6)
        painter.drawLine(19, 5, 18, 12)

    elif shape == "rectangle":
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawRect(margin, margin, size - margin * 2, size - margin * 2)

    elif shape == "circle":
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawEllipse(margin, margin, size - margin * 2, size - margin * 2)

    elif shape == "text":
        font = painter.font()
        font.setPixelSize(16)
        font.setBold(True)
        painter.setFont(font)
        painter.drawText(pixmap.rect(), Qt.AlignmentFlag.AlignCenter, "T")

    painter.end()
    return QIcon(pixmap)


class EditorWidget(QDialog):
    """
    Modal annotation editor for one photo.

    Signals:
        photo_saved: Emitted with the created PhotoRecord after a save.
    """

    photo_saved = Signal(object)

    TOOL_CONFIGS = [
        (ToolType.PEN, "Pen", "pen", "P"),
        (ToolType.ERASER, "Eraser", "eraser", "E"),
        (ToolType.ARROW, "Arrow", "arrow", "A"),
        (ToolType.RECTANGLE, "Rectangle", "rectangle", "R"),
        (ToolType.CIRCLE, "Circle", "circle", "C"),
        (ToolType.TEXT, "Text", "text", "T"),
    ]

    STAMP_CONFIGS = [
        (StampKind.OK, "OK"),
        (StampKind.NG, "NG"),
        (StampKind.NEEDS_REVIEW, "Review"),
    ]

    def __init__(
        self,
        backend: PhotoBackend,
        photo: PhotoRecord,
        session: AnnotationSession,
        config_service: Optional[ConfigService] = None,
        signboard: Optional[Signboard] = None,
        parent=None,
    ):
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._backend = backend
        self._photo = photo
        self._session = session
        self._config = config_service
        self._signboard = signboard

        self.setWindowTitle(f"Annotate: {photo.caption or photo.filename}")
        self.setModal(True)
        self.resize(1000, 760)

        self._setup_ui()
        self._connect_signals()

        self._canvas.set_session(session)
        self._select_tool(ToolType.PEN)

    @property
    def session(self) -> AnnotationSession:
        return self._session

    @property
    def canvas(self) -> EditorCanvas:
        return self._canvas

    def _setup_ui(self) -> None:
        """Build the UI layout."""
        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)

        # ─── Top Toolbar ──────────────────────────────────────────────
        self._toolbar = QToolBar()
        self._toolbar.setMovable(False)
        self._toolbar.setStyleSheet("""
            QToolBar {
                background-color: #2a2a2a;
                border-bottom: 1px solid #3a3a3a;
                padding: 6px 8px;
                spacing: 4px;
            }
            QToolButton {
                background-color: transparent;
                color: #ddd;
                border: none;
                border-radius: 8px;
                padding: 6px 8px;
                margin: 2px;
                min-width: 32px;
                min-height: 32px;
            }
            QToolButton:hover {
                background-color: rgba(255, 255, 255, 0.1);
            }
            QToolButton:checked {
                background-color: rgba(74, 144, 226, 0.3);
            }
        """)

        self._tool_group = QButtonGroup(self)
        self._tool_group.setExclusive(True)

        for tool_type, tooltip, icon_shape, shortcut in self.TOOL_CONFIGS:
            btn = QToolButton()
            btn.setIcon(_create_tool_icon(icon_shape))
            btn.setToolTip(f"{tooltip} ({shortcut})")
            btn.setCheckable(True)
            btn.setProperty("tool_type", tool_type)
            btn.clicked.connect(lambda checked, t=tool_type: self._select_tool(t))
            self._tool_group.addButton(btn)
            self._toolbar.addWidget(btn)

        self._toolbar.addSeparator()

        self._color_btn = ColorButton(self._session.style.color)
        self._toolbar.addWidget(self._color_btn)

        self._width_spin = QSpinBox()
        self._width_spin.setRange(1, 20)
        self._width_spin.setValue(self._session.style.line_width)
        self._width_spin.setToolTip("Line width")
        self._width_spin.setSuffix(" px")
        self._toolbar.addWidget(self._width_spin)

        self._toolbar.addSeparator()

        self._stamp_buttons = {}
        for kind, text in self.STAMP_CONFIGS:
            btn = QToolButton()
            btn.setText(text)
            btn.setToolTip(f"Add {text} stamp")
            btn.setStyleSheet(
                f"QToolButton {{ color: {kind.foreground.name()}; font-weight: bold; }}"
            )
            btn.clicked.connect(lambda checked=False, k=kind: self._add_stamp(k))
            self._stamp_buttons[kind] = btn
            self._toolbar.addWidget(btn)

        self._signboard_btn = QToolButton()
        self._signboard_btn.setText("Signboard")
        self._signboard_btn.setToolTip("Draw the site signboard onto the photo")
        self._signboard_btn.setEnabled(self._signboard is not None)
        self._signboard_btn.clicked.connect(self._add_signboard)
        self._toolbar.addWidget(self._signboard_btn)

        main_layout.addWidget(self._toolbar)

        # ─── Center Content ───────────────────────────────────────────
        self._canvas = EditorCanvas()
        main_layout.addWidget(self._canvas, 1)

        # ─── Bottom Buttons ───────────────────────────────────────────
        buttons = QHBoxLayout()
        buttons.setContentsMargins(8, 8, 8, 8)

        width, height = self._session.buffer_size
        self._size_label = QLabel(f"{width} × {height}")
        self._size_label.setStyleSheet("color: #888;")
        buttons.addWidget(self._size_label)

        spacer = QWidget()
        spacer.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Preferred)
        buttons.addWidget(spacer)

        self._clear_btn = QPushButton("Clear")
        self._clear_btn.clicked.connect(self._confirm_clear)
        buttons.addWidget(self._clear_btn)

        self._cancel_btn = QPushButton("Cancel")
        self._cancel_btn.clicked.connect(self.reject)
        buttons.addWidget(self._cancel_btn)

        self._save_btn = QPushButton("Save")
        self._save_btn.setDefault(True)
        self._save_btn.clicked.connect(self._save)
        buttons.addWidget(self._save_btn)

        main_layout.addLayout(buttons)

    def _connect_signals(self) -> None:
        """Connect widget signals."""
        self._canvas.text_requested.connect(self._on_text_requested)
        self._color_btn.color_changed.connect(self._on_color_changed)
        self._width_spin.valueChanged.connect(self._on_width_changed)

    # ─── Tool Management ──────────────────────────────────────────────────

    def _select_tool(self, tool_type: ToolType) -> None:
        """Select a tool by type."""
        self._canvas.set_tool(tool_type)

        for btn in self._tool_group.buttons():
            if btn.property("tool_type") == tool_type:
                btn.setChecked(True)
                break

    # ─── Signal Handlers ──────────────────────────────────────────────────

    @Slot(QColor)
    def _on_color_changed(self, color: QColor) -> None:
        self._session.set_color(color)

    @Slot(int)
    def _on_width_changed(self, value: int) -> None:
        self._session.set_line_width(value)

    @Slot(QPointF)
    def _on_text_requested(self, pos: QPointF) -> None:
        text, ok = QInputDialog.getText(self, "Add Text", "Text:")
        if ok:
            self._session.submit_text(text)
        else:
            self._session.cancel_text()
        self._canvas.refresh()

    # ─── Actions ──────────────────────────────────────────────────────────

    def _add_stamp(self, kind: StampKind) -> None:
        self._session.add_stamp(kind)
        self._canvas.refresh()

    def _add_signboard(self) -> None:
        if self._signboard is None:
            return
        self._session.composite_signboard(self._signboard)
        self._canvas.refresh()

    def _confirm_clear(self) -> None:
        """Clear all annotations after confirmation."""
        answer = QMessageBox.question(
            self,
            "Clear Annotations",
            "Remove all annotations and restore the original photo?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        if answer == QMessageBox.StandardButton.Yes:
            self._session.clear()
            self._canvas.refresh()

    def _save(self) -> None:
        """Upload the annotated photo and close the dialog."""
        quality = self._config.jpeg_quality if self._config else DEFAULT_JPEG_QUALITY

        try:
            jpeg = self._session.export_jpeg(quality)
            record = self._backend.create_photo(build_annotated_photo(self._photo, jpeg))
        except (ExportError, BackendError) as e:
            self._logger.error(f"Saving annotated photo failed: {e}")
            QMessageBox.critical(self, "Save Failed", f"Could not save the annotated photo:\n{e}")
            return

        self._logger.info(f"Annotated copy {record.id} saved for photo {self._photo.id}")
        self.photo_saved.emit(record)
        self.accept()

    def keyPressEvent(self, event) -> None:
        """Tool shortcuts."""
        if event.modifiers() == Qt.KeyboardModifier.NoModifier:
            shortcuts = {
                Qt.Key.Key_P: ToolType.PEN,
                Qt.Key.Key_E: ToolType.ERASER,
                Qt.Key.Key_A: ToolType.ARROW,
                Qt.Key.Key_R: ToolType.RECTANGLE,
                Qt.Key.Key_C: ToolType.CIRCLE,
                Qt.Key.Key_T: ToolType.TEXT,
            }
            tool_type = shortcuts.get(event.key())
            if tool_type is not None:
                self._select_tool(tool_type)
                return
        super().keyPressEvent(event)
