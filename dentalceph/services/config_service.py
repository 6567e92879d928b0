"""
Configuration service for DentalCeph.

This module handles loading, saving, and managing application settings.
Configuration is stored as JSON in ~/.config/dentalceph/config.json following
the XDG Base Directory Specification.
"""

import copy
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from dentalceph.services.logging_service import DEFAULT_LOG_DIR, get_logger

# Default configuration directory following XDG Base Directory Specification
DEFAULT_CONFIG_DIR = Path.home() / ".config" / "dentalceph"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.json"

# Default configuration values
DEFAULT_CONFIG: Dict[str, Any] = {
    # Annotation defaults for new points, lines, texts and angles
    "annotation": {
        "color": "#ff9800",
        "thickness": 4,
        "font_size": 18,
        "font_family": "Arial",
    },
    # Options offered by the editor toolbar
    "thickness_options": [2, 4, 6, 8],
    "font_size_options": [12, 14, 18, 24, 32],
    "font_families": [
        "Arial",
        "Verdana",
        "Tahoma",
        "Times New Roman",
        "Courier New",
        "Georgia",
    ],
    # Zoom is a percentage of the image's natural size
    "zoom": {
        "default": 100,
        "levels": [50, 75, 100, 125, 150, 175, 200],
    },
    # Pointer tolerance (image pixels) when picking lines for angles
    "hit_tolerance": 8.0,
    "export": {
        "default_format": "png",
        "folder": str(Path.home() / "Pictures" / "DentalCeph"),
    },
    # Console and daily log file; level is a logging level name
    "logging": {
        "level": "INFO",
        "to_file": True,
        "folder": str(DEFAULT_LOG_DIR),
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
                        ~/.config/dentalceph/config.json
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

            # Loaded values override defaults
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
                json.dump(self._config, f, indent=2)

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

    def _section(self, key: str) -> Dict[str, Any]:
        section = self.get(key)
        if isinstance(section, dict):
            return section
        return DEFAULT_CONFIG[key]

    # ─── Annotation Settings ──────────────────────────────────────────────

    @property
    def annotation_color(self) -> str:
        """Get the default annotation color as a hex string."""
        return self._section("annotation").get("color", "#ff9800")

    @property
    def thickness(self) -> int:
        """Get the default stroke thickness."""
        return int(self._section("annotation").get("thickness", 4))

    @property
    def font_size(self) -> int:
        """Get the default text font size in pixels."""
        return int(self._section("annotation").get("font_size", 18))

    @property
    def font_family(self) -> str:
        """Get the default text font family."""
        return self._section("annotation").get("font_family", "Arial")

    @property
    def thickness_options(self) -> List[int]:
        return self.get("thickness_options", DEFAULT_CONFIG["thickness_options"])

    @property
    def font_size_options(self) -> List[int]:
        return self.get("font_size_options", DEFAULT_CONFIG["font_size_options"])

    @property
    def font_families(self) -> List[str]:
        return self.get("font_families", DEFAULT_CONFIG["font_families"])

    @property
    def hit_tolerance(self) -> float:
        """Get the line picking tolerance in image pixels."""
        return float(self.get("hit_tolerance", 8.0))

    # ─── View Settings ────────────────────────────────────────────────────

    @property
    def default_zoom(self) -> int:
        """Get the zoom percentage applied when an image is opened."""
        return int(self._section("zoom").get("default", 100))

    @property
    def zoom_levels(self) -> List[int]:
        return self._section("zoom").get("levels", DEFAULT_CONFIG["zoom"]["levels"])

    # ─── Export Settings ──────────────────────────────────────────────────

    @property
    def default_export_format(self) -> str:
        """Get the format pre-filled in the export prompt."""
        return self._section("export").get("default_format", "png")

    @property
    def export_folder(self) -> str:
        """Get the folder suggested by the export dialog."""
        return self._section("export").get(
            "folder", str(Path.home() / "Pictures" / "DentalCeph")
        )

    # ─── Logging Settings ─────────────────────────────────────────────────

    @property
    def log_level(self) -> str:
        """Get the logging level name (DEBUG, INFO, WARNING, ...)."""
        return str(self._section("logging").get("level", "INFO"))

    @property
    def log_to_file(self) -> bool:
        return bool(self._section("logging").get("to_file", True))

    @property
    def log_folder(self) -> Path:
        """Get the folder that receives the daily log files."""
        return Path(self._section("logging").get("folder", str(DEFAULT_LOG_DIR)))
