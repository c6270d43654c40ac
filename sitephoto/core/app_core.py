"""
Application core for SitePhoto.

This module contains the AppCore class which is responsible for:
- Initializing the services (config, logging, backend)
- Creating and managing the main window
- Applying global styling (dark theme)
- Running the annotate and ledger export flows

This is the central orchestration point for the application.
"""

from datetime import datetime, timezone
from typing import List, Optional

from PySide6.QtCore import QObject, Slot
from PySide6.QtGui import QColor, QGuiApplication, QPalette
from PySide6.QtWidgets import QApplication, QDialog, QInputDialog, QMessageBox

from sitephoto.core.backend import InMemoryBackend, PhotoBackend, RestBackend
from sitephoto.core.demo_data import seed_demo_backend
from sitephoto.core.errors import BackendError, ExportError, LoadError, ValidationError
from sitephoto.core.models import PhotoRecord, Signboard
from sitephoto.editor.annotations import StrokeStyle
from sitephoto.editor.editor_widget import EditorWidget
from sitephoto.editor.session import AnnotationSession, load_source_image
from sitephoto.editor.signboard_overlay import render_signboard_board
from sitephoto.ledger.composer import ExportResult, LedgerComposer
from sitephoto.ledger.layout import LedgerConfig
from sitephoto.services.config_service import ConfigService
from sitephoto.services.logging_service import get_logger
from sitephoto.ui.ledger_dialog import LedgerDialog
from sitephoto.ui.main_window import MainWindow

# Share of the screen width the annotation buffer may take
EDITOR_SCREEN_RATIO = 0.8


def board_photo(signboard: Signboard) -> PhotoRecord:
    """Stand-in record for a rendered signboard board; its annotated copy goes to the board's project."""
    return PhotoRecord(
        id="",
        project_id=signboard.project_id,
        filename="signboard.jpg",
        image_url="",
        taken_at=datetime.now(timezone.utc),
        caption=signboard.title,
        signboard_id=signboard.id,
    )


class AppCore(QObject):
    """
    Central application core that wires together all components.

    Responsibilities:
    - Initialize the config service and the photo backend
    - Apply global dark theme
    - Create and show the MainWindow
    - Handle the annotate flow (photo → session → editor → upload)
    - Handle the ledger flow (settings dialog → PDF)

    Args:
        app: The QApplication instance.
        backend: Backend to use; created from the config when omitted.
        offline: Use a seeded in-memory backend instead of the REST API.
        config_service: Configuration; loaded from disk when omitted.
    """

    def __init__(
        self,
        app: QApplication,
        backend: Optional[PhotoBackend] = None,
        offline: bool = False,
        config_service: Optional[ConfigService] = None,
    ) -> None:
        super().__init__()
        self._app = app
        self._logger = get_logger(__name__)
        self._logger.info("Initializing SitePhoto application core...")

        self._config_service = config_service or ConfigService()
        self._backend = backend or self._create_backend(offline)
        self._main_window: Optional[MainWindow] = None
        self._editor: Optional[EditorWidget] = None

        self._apply_dark_theme()
        self._init_ui()
        self._connect_signals()

    def _create_backend(self, offline: bool) -> PhotoBackend:
        if offline:
            backend = InMemoryBackend()
            seed_demo_backend(backend)
            self._logger.info("Offline mode: using seeded in-memory backend")
            return backend

        config = self._config_service
        self._logger.info(f"Using REST backend at {config.api_base_url}")
        return RestBackend(config.api_base_url, token=config.api_token, timeout=config.request_timeout)

    def _apply_dark_theme(self) -> None:
        """
        Apply a dark color palette to the application.

        Uses Qt's QPalette for a native-looking dark theme.
        """
        self._logger.debug("Applying dark theme...")

        palette = QPalette()

        # Window and base colors
        palette.setColor(QPalette.ColorRole.Window, QColor(45, 45, 45))
        palette.setColor(QPalette.ColorRole.WindowText, QColor(220, 220, 220))
        palette.setColor(QPalette.ColorRole.Base, QColor(35, 35, 35))
        palette.setColor(QPalette.ColorRole.AlternateBase, QColor(50, 50, 50))

        # Text colors
        palette.setColor(QPalette.ColorRole.Text, QColor(220, 220, 220))
        palette.setColor(QPalette.ColorRole.BrightText, QColor(255, 255, 255))

        # Button colors
        palette.setColor(QPalette.ColorRole.Button, QColor(55, 55, 55))
        palette.setColor(QPalette.ColorRole.ButtonText, QColor(220, 220, 220))

        # Highlight colors
        palette.setColor(QPalette.ColorRole.Highlight, QColor(80, 120, 180))
        palette.setColor(QPalette.ColorRole.HighlightedText, QColor(255, 255, 255))

        palette.setColor(QPalette.ColorRole.ToolTipBase, QColor(60, 60, 60))
        palette.setColor(QPalette.ColorRole.ToolTipText, QColor(220, 220, 220))

        # Disabled state colors
        for role in (
            QPalette.ColorRole.WindowText,
            QPalette.ColorRole.Text,
            QPalette.ColorRole.ButtonText,
        ):
            palette.setColor(QPalette.ColorGroup.Disabled, role, QColor(127, 127, 127))

        self._app.setPalette(palette)

        self._app.setStyleSheet("""
            QToolTip {
                background-color: #3d3d3d;
                color: #dcdcdc;
                border: 1px solid #5a5a5a;
                padding: 4px;
            }
            QMenuBar {
                background-color: #2d2d2d;
                padding: 2px;
            }
            QMenuBar::item:selected {
                background-color: #4a4a4a;
            }
            QMenu {
                background-color: #2d2d2d;
                border: 1px solid #3a3a3a;
            }
            QMenu::item:selected {
                background-color: #4a6a9a;
            }
            QListWidget::item {
                padding: 6px;
            }
        """)

        self._logger.info("Dark theme applied")

    def _init_ui(self) -> None:
        self._main_window = MainWindow()
        self._main_window.show()
        self.refresh()

    def _connect_signals(self) -> None:
        window = self.main_window
        window.refresh_requested.connect(self.refresh)
        window.project_changed.connect(self._on_project_changed)
        window.annotate_requested.connect(self.open_editor)
        window.board_requested.connect(self.open_board_editor)
        window.export_requested.connect(self.export_ledger)
        self._logger.debug("All signals connected")

    # ─── Listing ──────────────────────────────────────────────────────────

    @Slot()
    def refresh(self) -> None:
        """Reload the project list and the photos of the selected project."""
        window = self.main_window
        try:
            window.set_projects(self._backend.list_projects())
        except BackendError as e:
            self._logger.error(f"Could not load projects: {e}")
            window.show_status(f"Could not load projects: {e.message}")
            return
        self._load_photos(window.current_project_id)

    @Slot(object)
    def _on_project_changed(self, project_id: Optional[str]) -> None:
        self._load_photos(project_id)

    def _load_photos(self, project_id: Optional[str]) -> None:
        try:
            photos = self._backend.list_all_photos(project_id)
        except BackendError as e:
            self._logger.error(f"Could not load photos: {e}")
            self.main_window.show_status(f"Could not load photos: {e.message}")
            return
        self.main_window.set_photos(photos)
        self._logger.info(f"Listed {len(photos)} photo(s) for project {project_id or 'all'}")

    # ─── Editor Flow ──────────────────────────────────────────────────────

    def _buffer_width(self) -> int:
        max_width = self._config_service.max_buffer_width
        screen = QGuiApplication.primaryScreen()
        if screen is None:
            return max_width
        return min(int(screen.availableGeometry().width() * EDITOR_SCREEN_RATIO), max_width)

    def _signboard_for(self, photo: PhotoRecord) -> Optional[Signboard]:
        if not photo.signboard_id:
            return None
        try:
            return self._backend.get_signboard(photo.signboard_id)
        except BackendError as e:
            self._logger.warning(f"Signboard {photo.signboard_id} unavailable: {e}")
            return None

    @Slot(object)
    def open_editor(self, photo: PhotoRecord) -> None:
        """Open the annotation editor for a photo; one editor at a time."""
        if self._editor is not None:
            self._editor.raise_()
            self._editor.activateWindow()
            return

        try:
            source = load_source_image(self._backend.fetch_image(photo))
            style = StrokeStyle(
                color=QColor(self._config_service.default_color),
                line_width=self._config_service.default_line_width,
            )
            session = AnnotationSession(source, self._buffer_width(), style)
        except (LoadError, BackendError) as e:
            self._logger.error(f"Could not open photo {photo.id}: {e}")
            QMessageBox.warning(self.main_window, "Cannot Open Photo", f"The photo could not be loaded.\n\n{e}")
            return

        self._show_editor(photo, session, self._signboard_for(photo))
        self._logger.info(f"Editor opened for photo {photo.id}")

    @Slot()
    def open_board_editor(self) -> None:
        """Render a signboard of the selected project as a board and annotate it."""
        if self._editor is not None:
            self._editor.raise_()
            self._editor.activateWindow()
            return

        project = self.main_window.current_project
        if project is None:
            QMessageBox.information(self.main_window, "Signboard Board", "Select a project first.")
            return

        try:
            signboards = self._backend.list_signboards(project.id)
        except BackendError as e:
            self._logger.error(f"Could not list signboards for {project.id}: {e}")
            QMessageBox.warning(self.main_window, "Signboard Board", f"Signboards could not be loaded.\n\n{e}")
            return

        if not signboards:
            QMessageBox.information(self.main_window, "Signboard Board", f"{project.name} has no signboards.")
            return

        signboard = signboards[0]
        if len(signboards) > 1:
            titles = [s.title for s in signboards]
            title, ok = QInputDialog.getItem(
                self.main_window, "Signboard Board", "Signboard:", titles, 0, False
            )
            if not ok:
                return
            signboard = signboards[titles.index(title)]

        style = StrokeStyle(
            color=QColor(self._config_service.default_color),
            line_width=self._config_service.default_line_width,
        )
        session = AnnotationSession(render_signboard_board(signboard), style=style)
        self._show_editor(board_photo(signboard), session, None)
        self._logger.info(f"Board editor opened for signboard {signboard.id}")

    def _show_editor(self, photo: PhotoRecord, session: AnnotationSession, signboard: Optional[Signboard]) -> None:
        self._editor = EditorWidget(
            self._backend,
            photo,
            session,
            config_service=self._config_service,
            signboard=signboard,
            parent=self.main_window,
        )
        self._editor.photo_saved.connect(self._on_photo_saved)
        self._editor.finished.connect(self._on_editor_finished)
        self._editor.open()

    @Slot(object)
    def _on_photo_saved(self, photo: PhotoRecord) -> None:
        self.main_window.show_status(f"Saved {photo.filename}")
        self._load_photos(self.main_window.current_project_id)

    @Slot(int)
    def _on_editor_finished(self, result: int) -> None:
        if self._editor is not None:
            self._editor.deleteLater()
        self._editor = None

    # ─── Ledger Flow ──────────────────────────────────────────────────────

    @Slot()
    def export_ledger(self) -> None:
        """Ask for ledger settings and write the listed photos as a PDF."""
        window = self.main_window
        photos = window.photos
        project = window.current_project

        dialog = LedgerDialog(
            self._config_service,
            project_name=project.name if project else "",
            photo_count=len(photos),
            parent=window,
        )
        if dialog.exec() != QDialog.DialogCode.Accepted:
            return

        try:
            result = self.write_ledger(photos, dialog.ledger_config())
        except ValidationError as e:
            QMessageBox.information(window, "Export Ledger", str(e))
            return
        except ExportError as e:
            QMessageBox.critical(window, "Export Failed", str(e))
            return

        message = f"Ledger saved to:\n{result.path}\n\n{result.page_count} page(s)"
        if result.failed_photo_ids:
            message += f"\n{len(result.failed_photo_ids)} photo(s) could not be loaded and were left blank."
        QMessageBox.information(window, "Ledger Exported", message)
        window.show_status(f"Ledger exported: {result.path.name}")

    def write_ledger(self, photos: List[PhotoRecord], config: LedgerConfig) -> ExportResult:
        """
        Write photos as a ledger PDF into the configured export folder.

        The filename names the project selected in the filter, if any; the
        header text in config does not affect it.
        """
        project = self.main_window.current_project
        composer = LedgerComposer(
            self._backend.fetch_image,
            font_path=self._config_service.font_path,
            bold_font_path=self._config_service.bold_font_path,
        )
        return composer.export_pdf(
            photos,
            config,
            self._config_service.export_folder,
            self._config_service.filename_prefix,
            project_name=project.name if project else None,
        )

    # ─── Application Lifecycle ────────────────────────────────────────────

    def shutdown(self) -> None:
        """Close any open editor and quit the application."""
        self._logger.info("Shutting down SitePhoto...")
        if self._editor is not None:
            self._editor.reject()
        QApplication.quit()

    # ─── Properties ───────────────────────────────────────────────────────

    @property
    def config(self) -> ConfigService:
        """Get the configuration service."""
        return self._config_service

    @property
    def backend(self) -> PhotoBackend:
        return self._backend

    @property
    def main_window(self) -> MainWindow:
        """Get the main window."""
        if self._main_window is None:
            raise RuntimeError("MainWindow not initialized")
        return self._main_window
