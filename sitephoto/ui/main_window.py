"""
Main window for SitePhoto.

Lists the photos of the selected project and offers the two workflows:
annotating a photo and exporting the listed photos as a ledger. The window
only collects the user's intent and emits it; AppCore carries it out.
"""

from typing import List, Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import (
    QComboBox,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QToolBar,
    QWidget,
)

from sitephoto.core.models import PhotoRecord, Project
from sitephoto.services.logging_service import get_logger


def photo_label(photo: PhotoRecord) -> str:
    """List entry text for a photo."""
    parts = [photo.caption or "(no caption)", photo.taken_at.strftime("%Y/%m/%d %H:%M")]
    if photo.category:
        parts.extend(photo.category.labels())
    return "  ·  ".join(parts)


class MainWindow(QMainWindow):
    """
    Main application window for SitePhoto.

    Signals:
        refresh_requested: Reload projects and photos.
        project_changed: Emitted with the selected project id (None for all).
        annotate_requested: Emitted with the PhotoRecord to annotate.
        board_requested: Emitted to hand-annotate a signboard of the project.
        export_requested: Emitted when the user asks for a ledger export.
    """

    refresh_requested = Signal()
    project_changed = Signal(object)
    annotate_requested = Signal(object)
    board_requested = Signal()
    export_requested = Signal()

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._photos: List[PhotoRecord] = []
        self._projects: List[Project] = []

        self._setup_window()
        self._setup_toolbar()
        self._setup_central_widget()
        self._setup_menu_bar()

        self._logger.info("MainWindow initialized")

    def _setup_window(self) -> None:
        """Configure main window properties."""
        self.setWindowTitle("SitePhoto - Construction Photo Ledger")
        self.setMinimumSize(800, 600)
        self.resize(1100, 760)

    def _setup_toolbar(self) -> None:
        toolbar = QToolBar("Main")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        toolbar.addWidget(QLabel(" Project: "))
        self._project_combo = QComboBox()
        self._project_combo.setMinimumWidth(240)
        self._project_combo.currentIndexChanged.connect(self._on_project_index_changed)
        toolbar.addWidget(self._project_combo)
        toolbar.addSeparator()

        self._refresh_action = QAction("Refresh", self)
        self._refresh_action.setShortcut(QKeySequence.StandardKey.Refresh)
        self._refresh_action.triggered.connect(self.refresh_requested.emit)
        toolbar.addAction(self._refresh_action)

        self._annotate_action = QAction("Annotate…", self)
        self._annotate_action.setEnabled(False)
        self._annotate_action.triggered.connect(self._on_annotate)
        toolbar.addAction(self._annotate_action)

        self._board_action = QAction("Signboard Board…", self)
        self._board_action.setToolTip("Annotate a signboard of the selected project like a blackboard")
        self._board_action.triggered.connect(self.board_requested.emit)
        toolbar.addAction(self._board_action)

        self._export_action = QAction("Export Ledger…", self)
        self._export_action.setShortcut("Ctrl+E")
        self._export_action.triggered.connect(self.export_requested.emit)
        toolbar.addAction(self._export_action)

    def _setup_central_widget(self) -> None:
        """Set up the photo list."""
        self._photo_list = QListWidget()
        self._photo_list.itemSelectionChanged.connect(self._on_selection_changed)
        self._photo_list.itemDoubleClicked.connect(lambda item: self._on_annotate())
        self.setCentralWidget(self._photo_list)
        self.statusBar().showMessage("Ready")

    def _setup_menu_bar(self) -> None:
        """Create and configure the menu bar."""
        menu_bar = self.menuBar()

        # ─── File Menu ────────────────────────────────────────────────
        file_menu = menu_bar.addMenu("&File")
        file_menu.addAction(self._export_action)
        file_menu.addSeparator()

        quit_action = QAction("&Quit", self)
        quit_action.setShortcut(QKeySequence.StandardKey.Quit)
        quit_action.triggered.connect(self.close)
        file_menu.addAction(quit_action)

        # ─── Photo Menu ───────────────────────────────────────────────
        photo_menu = menu_bar.addMenu("&Photo")
        photo_menu.addAction(self._annotate_action)
        photo_menu.addAction(self._board_action)
        photo_menu.addAction(self._refresh_action)

        # ─── Help Menu ────────────────────────────────────────────────
        help_menu = menu_bar.addMenu("&Help")
        about_action = QAction("&About", self)
        about_action.triggered.connect(self._show_about_dialog)
        help_menu.addAction(about_action)

    # ─── Public Methods ───────────────────────────────────────────────────

    def set_projects(self, projects: List[Project]) -> None:
        """Fill the project filter, keeping the current selection if possible."""
        current = self.current_project_id
        self._projects = list(projects)

        self._project_combo.blockSignals(True)
        self._project_combo.clear()
        self._project_combo.addItem("All projects", None)
        for project in self._projects:
            self._project_combo.addItem(project.name, project.id)
        index = self._project_combo.findData(current)
        self._project_combo.setCurrentIndex(index if index >= 0 else 0)
        self._project_combo.blockSignals(False)

    def set_photos(self, photos: List[PhotoRecord]) -> None:
        self._photos = list(photos)
        self._photo_list.clear()
        for photo in self._photos:
            item = QListWidgetItem(photo_label(photo))
            item.setData(Qt.ItemDataRole.UserRole, photo.id)
            self._photo_list.addItem(item)
        self._annotate_action.setEnabled(False)
        self.statusBar().showMessage(f"{len(self._photos)} photo(s)")

    @property
    def photos(self) -> List[PhotoRecord]:
        """Photos currently listed, in display order."""
        return list(self._photos)

    @property
    def current_project_id(self) -> Optional[str]:
        return self._project_combo.currentData()

    @property
    def current_project(self) -> Optional[Project]:
        project_id = self.current_project_id
        for project in self._projects:
            if project.id == project_id:
                return project
        return None

    @property
    def selected_photo(self) -> Optional[PhotoRecord]:
        row = self._photo_list.currentRow()
        if 0 <= row < len(self._photos):
            return self._photos[row]
        return None

    def show_status(self, message: str) -> None:
        self.statusBar().showMessage(message, 5000)

    # ─── Handlers ─────────────────────────────────────────────────────────

    def _on_project_index_changed(self, index: int) -> None:
        self.project_changed.emit(self._project_combo.itemData(index))

    def _on_selection_changed(self) -> None:
        self._annotate_action.setEnabled(self.selected_photo is not None)

    def _on_annotate(self) -> None:
        photo = self.selected_photo
        if photo is not None:
            self.annotate_requested.emit(photo)

    def _show_about_dialog(self) -> None:
        """Display the About dialog."""
        about_text = (
            "<h2>SitePhoto</h2>"
            "<p>Construction site photo annotation and ledger export.</p>"
            "<p><b>Annotation tools:</b> Pen (P), Eraser (E), Arrow (A), "
            "Rectangle (R), Circle (C), Text (T), OK / NG / Review stamps</p>"
            "<p><b>Ledger:</b> 1, 2, 4 or 6 photos per A4 page</p>"
        )
        QMessageBox.about(self, "About SitePhoto", about_text)
