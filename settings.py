"""
settings.py

Persistent settings management for the Run Sheet Builder.

Handles cross-platform settings storage using TOML format with platformdirs
for proper user config directory detection.

Settings file location:
    - Windows: %APPDATA%/runsheet/settings.toml
    - macOS: ~/Library/Application Support/runsheet/settings.toml
    - Linux: ~/.config/runsheet/settings.toml

If settings.toml is missing or corrupted, the defaults below are used.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import platformdirs

# TOML reading - use tomllib for Python 3.11+, tomli for earlier versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w

APP_NAME = "runsheet"

# Global settings manager instance (singleton)
_settings_manager: Optional["SettingsManager"] = None


def get_settings() -> "SettingsManager":
    """Get the global settings manager instance.

    Returns:
        The singleton SettingsManager instance.
    """
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager()
    return _settings_manager


# =============================================================================
# Sections
# =============================================================================

@dataclass
class GeneralSettings:
    """General settings.

    Defaults:
        log_level: "INFO"
        data_dir: "" (platformdirs user data dir)
    """
    log_level: str = "INFO"
    data_dir: str = ""


@dataclass
class GeminiSettings:
    """AI import settings.

    Defaults:
        model: "gemini-2.5-flash"
        api_key_env: "GOOGLE_API_KEY"
    """
    model: str = "gemini-2.5-flash"
    api_key_env: str = "GOOGLE_API_KEY"


@dataclass
class StageSettings:
    """Stage diagram gesture settings.

    Defaults:
        double_click_ms: 300
        default_x: 50.0
        default_y: 50.0
    """
    double_click_ms: int = 300      # Default: 300 ms between presses
    default_x: float = 50.0         # Default: stage centre
    default_y: float = 50.0


@dataclass
class StorageSettings:
    """Local persistence settings.

    Defaults:
        blob_key: "runSheetData"
    """
    blob_key: str = "runSheetData"


@dataclass
class ExportSettings:
    """Export settings.

    Defaults:
        filename_prefix: "run-sheet"
    """
    filename_prefix: str = "run-sheet"


@dataclass
class AppSettings:
    """Application settings with default values."""
    general: GeneralSettings = field(default_factory=GeneralSettings)
    gemini: GeminiSettings = field(default_factory=GeminiSettings)
    stage: StageSettings = field(default_factory=StageSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    export: ExportSettings = field(default_factory=ExportSettings)


# =============================================================================
# Settings Manager
# =============================================================================

class SettingsManager:
    """Manages loading, saving, and accessing application settings.

    Settings are stored in a TOML file at the platform-appropriate location.
    If the settings file doesn't exist, defaults are used and the file is
    created on first save.

    Args:
        app_name: Application name used for the config directory.
        settings_dir: Explicit directory, overriding the platform default.
    """

    def __init__(self, app_name: str = APP_NAME, settings_dir: Optional[Path] = None):
        self.app_name = app_name
        self.settings_dir = Path(settings_dir) if settings_dir else Path(platformdirs.user_config_dir(app_name))
        self.settings_file = self.settings_dir / "settings.toml"
        self.settings = self.load()

    def load(self) -> AppSettings:
        """Load settings from the TOML file.

        Returns:
            AppSettings instance with values from file or defaults if file
            doesn't exist or is invalid.
        """
        if not self.settings_file.exists():
            return AppSettings()

        try:
            with open(self.settings_file, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError):
            # If file is corrupted or unreadable, return defaults
            return AppSettings()

        return self._parse_toml(data)

    def _parse_toml(self, data: Dict[str, Any]) -> AppSettings:
        """Parse TOML data into AppSettings.

        Args:
            data: Parsed TOML dictionary.

        Returns:
            AppSettings instance populated from TOML data.
        """
        settings = AppSettings()

        general = data.get("general", {})
        settings.general.log_level = general.get("log_level", settings.general.log_level)
        settings.general.data_dir = general.get("data_dir", settings.general.data_dir)

        gemini = data.get("gemini", {})
        settings.gemini.model = gemini.get("model", settings.gemini.model)
        settings.gemini.api_key_env = gemini.get("api_key_env", settings.gemini.api_key_env)

        stage = data.get("stage", {})
        settings.stage.double_click_ms = stage.get("double_click_ms", settings.stage.double_click_ms)
        settings.stage.default_x = stage.get("default_x", settings.stage.default_x)
        settings.stage.default_y = stage.get("default_y", settings.stage.default_y)

        storage = data.get("storage", {})
        settings.storage.blob_key = storage.get("blob_key", settings.storage.blob_key)

        export = data.get("export", {})
        settings.export.filename_prefix = export.get("filename_prefix", settings.export.filename_prefix)

        return settings

    def save(self) -> None:
        """Save current settings to the TOML file.

        Creates the settings directory if it doesn't exist.
        """
        self.settings_dir.mkdir(parents=True, exist_ok=True)

        data = self._to_toml_dict()

        with open(self.settings_file, "wb") as f:
            tomli_w.dump(data, f)

    def _to_toml_dict(self) -> Dict[str, Any]:
        """Convert settings to a TOML-compatible dictionary structure.

        Returns:
            Dictionary organized by TOML sections.
        """
        s = self.settings
        return {
            "general": {
                "log_level": s.general.log_level,
                "data_dir": s.general.data_dir,
            },
            "gemini": {
                "model": s.gemini.model,
                "api_key_env": s.gemini.api_key_env,
            },
            "stage": {
                "double_click_ms": s.stage.double_click_ms,
                "default_x": s.stage.default_x,
                "default_y": s.stage.default_y,
            },
            "storage": {
                "blob_key": s.storage.blob_key,
            },
            "export": {
                "filename_prefix": s.export.filename_prefix,
            },
        }

    def to_toml(self) -> str:
        """Convert current settings to a TOML-formatted string."""
        return tomli_w.dumps(self._to_toml_dict())

    def get_data_dir(self) -> Path:
        """Get the directory holding the persisted document.

        Returns:
            The configured data_dir, or the platformdirs user data dir
            when it is empty.
        """
        if self.settings.general.data_dir:
            return Path(self.settings.general.data_dir)
        return Path(platformdirs.user_data_dir(self.app_name))

    def get_settings_path(self) -> Path:
        """Get the path to the settings file."""
        return self.settings_file
