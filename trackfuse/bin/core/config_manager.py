"""
Configuration Manager - Handles settings and configuration for TrackFuse
Keeps a backup copy and writes atomically so a crash never leaves a corrupt file
"""

import copy
import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Optional, List
from PySide6.QtCore import QObject, Signal

from .config_validator import ConfigValidator


DEFAULT_CONFIG = {
    # Application settings
    "app": {
        "version": "1.0.0",
        "language": "en"
    },

    # Tracker registry settings
    "trackers": {
        "max_trackers": 64
    },

    # Hand source selection
    "hand_sources": {
        "substitute_inside_out_tracking": False
    },

    # Flex sensor calibration
    "flex": {
        "clamp_angles": False,
        "saved_ranges": {}
    },

    # Recording settings
    "recording": {
        "enabled": False,
        "output_directory": "recordings"
    },

    # Performance settings
    "performance": {
        "tick_rate": 90,
        "monitor_interval": 1.0,
        "log_level": "INFO"
    }
}


class ConfigManager(QObject):
    """Manages application configuration and settings with corruption protection"""

    config_changed = Signal(str, object)  # setting_name, new_value
    config_loaded = Signal()
    config_saved = Signal()

    def __init__(self, config_file: Optional[str] = None):
        super().__init__()
        self.logger = logging.getLogger(__name__)

        # Configuration file path
        if config_file:
            self.config_file = Path(config_file)
        else:
            # Default to project directory
            project_root = Path(__file__).parent.parent.parent
            self.config_file = project_root / "config" / "trackfuse_config.json"

        self.backup_file = self.config_file.with_suffix('.json.backup')

        # Ensure config directory exists
        self.config_file.parent.mkdir(parents=True, exist_ok=True)

        self.default_config = copy.deepcopy(DEFAULT_CONFIG)
        self.config = copy.deepcopy(self.default_config)

        self.load_config()

    def load_config(self) -> bool:
        """Load configuration from file with validation and auto-restore"""
        try:
            if self.config_file.exists():
                try:
                    with open(self.config_file, 'r', encoding='utf-8') as f:
                        content = f.read()
                        if not content.strip():
                            raise ValueError("Empty config file")
                        loaded_config = json.loads(content)
                except (json.JSONDecodeError, ValueError) as e:
                    self.logger.error(f"Config file corrupted: {e}")
                    loaded_config = self._restore_from_backup()

                self.config = self._merge_configs(self.default_config, loaded_config)

                validator = ConfigValidator()
                if not validator.validate_config(self.config):
                    self.logger.warning("Configuration validation found issues:")
                validator.log_validation_report()

                self.logger.info(f"Configuration loaded from: {self.config_file}")
            else:
                self.config = copy.deepcopy(self.default_config)
                if not self.backup_file.exists():
                    self.save_config()
                self.logger.info("Created default configuration")
            self.config_loaded.emit()
            return True
        except OSError as e:
            self.logger.error(f"Failed to load configuration: {e}")
            self.config = copy.deepcopy(self.default_config)
            return False

    def _restore_from_backup(self) -> dict:
        if not self.backup_file.exists():
            self.logger.warning("No backup found, using defaults")
            return {}
        try:
            shutil.copy2(self.backup_file, self.config_file)
            with open(self.config_file, 'r', encoding='utf-8') as f:
                restored = json.load(f)
            self.logger.info("Restored config from backup")
            return restored
        except (OSError, json.JSONDecodeError):
            self.logger.error("Backup also corrupted, using defaults")
            return {}

    def save_config(self) -> bool:
        """Save configuration to file with atomic write and backup protection"""
        try:
            if self.config_file.exists():
                shutil.copy2(self.config_file, self.backup_file)
            try:
                payload = json.dumps(self.config, indent=2, ensure_ascii=False)
            except (TypeError, ValueError) as e:
                self.logger.error(f"Configuration is not serializable: {e}")
                return False
            dirpath = os.path.dirname(self.config_file)
            with tempfile.NamedTemporaryFile('w', dir=dirpath, delete=False, encoding='utf-8') as tf:
                tf.write(payload)
                tempname = tf.name
            os.replace(tempname, self.config_file)
            self.logger.info(f"Configuration saved to: {self.config_file}")
            self.config_saved.emit()
            return True
        except OSError as e:
            self.logger.error(f"Failed to save configuration: {e}")
            if self.backup_file.exists():
                try:
                    shutil.copy2(self.backup_file, self.config_file)
                    self.logger.info("Restored configuration from backup")
                except OSError as restore_error:
                    self.logger.error(f"Failed to restore backup: {restore_error}")
            return False

    def _merge_configs(self, default: dict, loaded: dict) -> dict:
        """Recursively merge loaded config with defaults"""
        result = copy.deepcopy(default)

        for key, value in loaded.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'flex.clamp_angles')"""
        keys = key_path.split('.')
        try:
            value = self.config
            for key in keys:
                value = value[key]
            return value

        except (KeyError, TypeError):
            if default is not None:
                return default

            # Try to get from defaults
            try:
                value = self.default_config
                for key in keys:
                    value = value[key]
                return value
            except (KeyError, TypeError):
                return None

    def set(self, key_path: str, value: Any, save_immediately: bool = False):
        """Set configuration value using dot notation"""
        keys = key_path.split('.')
        config_ref = self.config

        # Navigate to the parent of the target key
        for key in keys[:-1]:
            if not isinstance(config_ref.get(key), dict):
                config_ref[key] = {}
            config_ref = config_ref[key]

        old_value = config_ref.get(keys[-1])
        config_ref[keys[-1]] = value

        if old_value != value:
            self.config_changed.emit(key_path, value)

        if save_immediately:
            self.save_config()

        self.logger.debug(f"Config set: {key_path} = {value}")

    def get_section(self, section: str) -> dict:
        """Get entire configuration section"""
        return self.config.get(section, {})

    def reset_to_defaults(self, section: Optional[str] = None):
        """Reset configuration to defaults"""
        if section:
            if section in self.default_config:
                self.config[section] = copy.deepcopy(self.default_config[section])
                self.config_changed.emit(section, self.config[section])
        else:
            self.config = copy.deepcopy(self.default_config)
            self.config_changed.emit("*", self.config)

        self.logger.info(f"Configuration reset to defaults: {section or 'all'}")

    def validate_config(self) -> List[str]:
        """Validate current configuration and return list of errors"""
        validator = ConfigValidator()
        validator.validate_config(self.config)
        return validator.get_errors()

    def get_flex_range(self, tracker_name: str) -> Optional[tuple]:
        """Get a saved (min, max) resistance range for a flex tracker"""
        saved = self.get('flex.saved_ranges', {}).get(tracker_name)
        if not saved:
            return None
        return saved.get('min'), saved.get('max')

    def set_flex_range(self, tracker_name: str, min_observed: Optional[float], max_observed: Optional[float]):
        """Remember the resistance range observed for a flex tracker and write it to disk"""
        ranges = dict(self.get('flex.saved_ranges', {}))
        ranges[tracker_name] = {'min': min_observed, 'max': max_observed}
        self.set('flex.saved_ranges', ranges, save_immediately=True)

    def __str__(self) -> str:
        return f"ConfigManager(file={self.config_file})"

    def __repr__(self) -> str:
        return self.__str__()
