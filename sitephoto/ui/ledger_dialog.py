"""
Ledger export settings dialog.

Collects the layout, header texts and footer switches for a photo ledger.
Defaults come from the configuration; the company name is remembered.
"""

from typing import Any, Dict, Optional

from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QLabel,
    QLineEdit,
    QVBoxLayout,
    QWidget,
)

from sitephoto.ledger.layout import GRID_LAYOUTS, LedgerConfig
from sitephoto.services.config_service import ConfigService
from sitephoto.services.logging_service import get_logger


class LedgerDialog(QDialog):
    """Settings for one ledger export."""

    def __init__(
        self,
        config_service: Optional[ConfigService] = None,
        project_name: str = "",
        photo_count: int = 0,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._config = config_service

        self.setWindowTitle("Export Photo Ledger")
        self.setModal(True)
        self._setup_ui(project_name, photo_count)

    def _setup_ui(self, project_name: str, photo_count: int) -> None:
        layout = QVBoxLayout(self)
        form = QFormLayout()

        self._layout_combo = QComboBox()
        for per_page, (cols, rows) in GRID_LAYOUTS.items():
            self._layout_combo.addItem(f"{per_page} per page ({cols} × {rows})", per_page)

        self._company_edit = QLineEdit()
        self._company_edit.setPlaceholderText("Shown at the top of every page")
        self._project_edit = QLineEdit(project_name)

        self._show_date_check = QCheckBox("Print date in footer")
        self._show_page_check = QCheckBox("Print page numbers")

        default_layout = 4
        if self._config:
            default_layout = self._config.ledger_layout
            self._company_edit.setText(self._config.company_name)
            self._show_date_check.setChecked(self._config.show_date)
            self._show_page_check.setChecked(self._config.show_page_number)
        else:
            self._show_date_check.setChecked(True)
            self._show_page_check.setChecked(True)

        index = self._layout_combo.findData(default_layout)
        self._layout_combo.setCurrentIndex(index if index >= 0 else 0)

        form.addRow("Layout:", self._layout_combo)
        form.addRow("Company name:", self._company_edit)
        form.addRow("Project name:", self._project_edit)
        form.addRow("", self._show_date_check)
        form.addRow("", self._show_page_check)
        layout.addLayout(form)

        count_label = QLabel(f"{photo_count} photo(s) will be exported.")
        count_label.setStyleSheet("color: #888;")
        layout.addWidget(count_label)

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel
        )
        buttons.button(QDialogButtonBox.StandardButton.Ok).setText("Export PDF")
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def options(self) -> Dict[str, Any]:
        """Current settings in LedgerConfig.from_options form."""
        options: Dict[str, Any] = {
            "layout": self._layout_combo.currentData(),
            "companyName": self._company_edit.text(),
            "projectName": self._project_edit.text(),
            "showDate": self._show_date_check.isChecked(),
            "showPageNumber": self._show_page_check.isChecked(),
        }
        if self._config:
            options["fitMode"] = self._config.fit_mode
        return options

    def ledger_config(self) -> LedgerConfig:
        """
        Build the LedgerConfig for the current settings.

        Raises:
            ValidationError: If the settings are invalid.
        """
        return LedgerConfig.from_options(self.options())

    def accept(self) -> None:
        if self._config:
            ledger = dict(self._config.get("ledger", {}))
            ledger["layout"] = self._layout_combo.currentData()
            ledger["company_name"] = self._company_edit.text().strip()
            ledger["show_date"] = self._show_date_check.isChecked()
            ledger["show_page_number"] = self._show_page_check.isChecked()
            self._config.set("ledger", ledger)
            self._config.save()
        super().accept()
