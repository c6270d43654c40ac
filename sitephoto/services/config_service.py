"""
Configuration service for SitePhoto.

This module handles loading, saving, and managing application settings.
Configuration is stored as JSON in ~/.config/sitephoto/config.json following
the XDG Base Directory Specification. The backend URL and token can be
overridden with the SITEPHOTO_API_URL and SITEPHOTO_API_TOKEN environment
variables.
"""

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from sitephoto.services.logging_service import get_logger

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "sitephoto"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.json"

ENV_API_URL = "SITEPHOTO_API_URL"
ENV_API_TOKEN = "SITEPHOTO_API_TOKEN"

# Default configuration values
DEFAULT_CONFIG: Dict[str, Any] = {
    # REST backend (local server, edge worker or lambda deployment)
    "api_base_url": "http://localhost:3000/api",
    "api_token": "",
    "request_timeout": 15,
    "editor": {
        "default_color": "#ff0000",
        "default_line_width": 3,
        # Annotation buffer never exceeds this width, whatever the window size
        "max_buffer_width": 1200,
        "jpeg_quality": 95,
    },
    "ledger": {
        "layout": 4,
        "company_name": "",
        "show_date": True,
        "show_page_number": True,
        "export_folder": str(Path.home() / "Documents" / "SitePhoto"),
        "filename_prefix": "photos",
        # "fit" keeps the photo aspect ratio, "stretch" fills the cell
        "fit_mode": "fit",
        # TrueType fonts for captions Helvetica cannot show (e.g. Japanese)
        "font_path": "",
        "bold_font_path": "",
    },
}


class ConfigService:
    """
    Service for managing application configuration.

    Handles loading, saving, and accessing configuration values.
    Provides sensible defaults when config file is missing or corrupted.
    """

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """
        Initialize the ConfigService.

        Args:
            config_path: Optional path to config file. Defaults to
                        ~/.config/sitephoto/config.json
        """
        self._logger = get_logger(__name__)
        self._config_path = config_path or DEFAULT_CONFIG_FILE
        self._config: Dict[str, Any] = {}

        self._load()

    def _load(self) -> None:
        """Load configuration from file, using defaults if needed."""
        self._config = copy.deepcopy(DEFAULT_CONFIG)

        if not self._config_path.exists():
            self._logger.info(
                f"Config file not found at {self._config_path}. Using defaults."
            )
            self._save_to_file()
            return

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                loaded_config = json.load(f)

            if isinstance(loaded_config, dict):
                self._deep_merge(self._config, loaded_config)
                self._logger.info(f"Configuration loaded from {self._config_path}")
                # Save back so new default keys are persisted
                self._save_to_file()
            else:
                raise ValueError("Config file does not contain a valid JSON object")

        except (json.JSONDecodeError, ValueError) as e:
            self._logger.warning(
                f"Config file corrupted or invalid: {e}. Recreating with defaults."
            )
            self._config = copy.deepcopy(DEFAULT_CONFIG)
            self._save_to_file()

        except (OSError, PermissionError) as e:
            self._logger.warning(
                f"Could not read config file: {e}. Using defaults."
            )

    def _deep_merge(self, base: Dict, override: Dict) -> None:
        """Recursively merge override dict into base dict."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _save_to_file(self) -> None:
        """Save current configuration to file."""
        try:
            self._config_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self._config_path, "w", encoding="utf-8") as f:
                json.dump(self._config, f, indent=2, ensure_ascii=False)

            self._logger.debug(f"Configuration saved to {self._config_path}")

        except (OSError, PermissionError) as e:
            self._logger.error(f"Could not save config file: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: The configuration key to retrieve.
            default: Default value if key doesn't exist.

        Returns:
            The configuration value, or default if not found.
        """
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value (in memory only).

        Note:
            Call save() to persist changes to disk.
        """
        self._config[key] = value
        self._logger.debug(f"Config key '{key}' set to '{value}'")

    def save(self) -> None:
        """Persist current configuration to disk."""
        self._save_to_file()

    def _section(self, name: str) -> Dict[str, Any]:
        return self.get(name, DEFAULT_CONFIG[name])

    # ─── Backend Settings ─────────────────────────────────────────────────

    @property
    def api_base_url(self) -> str:
        """Base URL of the REST backend, environment variable first."""
        return os.environ.get(ENV_API_URL) or self.get("api_base_url", DEFAULT_CONFIG["api_base_url"])

    @property
    def api_token(self) -> Optional[str]:
        """Bearer token for the backend, or None when not configured."""
        return os.environ.get(ENV_API_TOKEN) or self.get("api_token") or None

    @property
    def request_timeout(self) -> float:
        return float(self.get("request_timeout", DEFAULT_CONFIG["request_timeout"]))

    # ─── Editor Settings ──────────────────────────────────────────────────

    @property
    def default_color(self) -> str:
        return self._section("editor").get("default_color", "#ff0000")

    @property
    def default_line_width(self) -> int:
        return int(self._section("editor").get("default_line_width", 3))

    @property
    def max_buffer_width(self) -> int:
        return int(self._section("editor").get("max_buffer_width", 1200))

    @property
    def jpeg_quality(self) -> int:
        """JPEG quality (0-100) used when saving annotated photos."""
        return int(self._section("editor").get("jpeg_quality", 95))

    # ─── Ledger Settings ──────────────────────────────────────────────────

    @property
    def ledger_layout(self) -> int:
        return int(self._section("ledger").get("layout", 4))

    @property
    def company_name(self) -> str:
        return self._section("ledger").get("company_name", "")

    @property
    def show_date(self) -> bool:
        return bool(self._section("ledger").get("show_date", True))

    @property
    def show_page_number(self) -> bool:
        return bool(self._section("ledger").get("show_page_number", True))

    @property
    def export_folder(self) -> str:
        """Folder where ledger PDFs are written."""
        return self._section("ledger").get(
            "export_folder", str(Path.home() / "Documents" / "SitePhoto")
        )

    @property
    def filename_prefix(self) -> str:
        return self._section("ledger").get("filename_prefix", "photos")

    @property
    def fit_mode(self) -> str:
        return self._section("ledger").get("fit_mode", "fit")

    @property
    def font_path(self) -> Optional[str]:
        """TrueType font for ledger text, or None for Helvetica."""
        return self._section("ledger").get("font_path") or None

    @property
    def bold_font_path(self) -> Optional[str]:
        return self._section("ledger").get("bold_font_path") or None
