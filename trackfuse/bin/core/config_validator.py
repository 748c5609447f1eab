"""
Configuration Validator for TrackFuse
Validates configuration files and provides helpful error messages
"""

import json
import logging
from typing import Dict, List, Any


class ConfigValidator:
    """Validates TrackFuse configuration files"""

    REQUIRED_SECTIONS = ['app', 'trackers', 'hand_sources', 'flex', 'recording', 'performance']
    LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.errors = []
        self.warnings = []

    def validate_config(self, config: Dict[str, Any]) -> bool:
        """Validate a configuration dictionary"""
        self.errors.clear()
        self.warnings.clear()

        for section in self.REQUIRED_SECTIONS:
            if section not in config:
                self.errors.append(f"Missing required configuration section: {section}")

        if self.errors:
            return False

        self._validate_app_section(config.get('app', {}))
        self._validate_trackers_section(config.get('trackers', {}))
        self._validate_hand_sources_section(config.get('hand_sources', {}))
        self._validate_flex_section(config.get('flex', {}))
        self._validate_recording_section(config.get('recording', {}))
        self._validate_performance_section(config.get('performance', {}))

        return len(self.errors) == 0

    def _validate_app_section(self, app_config: Dict[str, Any]):
        if 'version' not in app_config:
            self.warnings.append("App version not specified")

    def _validate_trackers_section(self, trackers_config: Dict[str, Any]):
        if 'max_trackers' not in trackers_config:
            self.errors.append("max_trackers not specified in trackers section")
        elif not isinstance(trackers_config['max_trackers'], int) or isinstance(trackers_config['max_trackers'], bool):
            self.errors.append("max_trackers must be an integer")
        elif trackers_config['max_trackers'] <= 0:
            self.errors.append("max_trackers must be greater than 0")

    def _validate_hand_sources_section(self, hand_config: Dict[str, Any]):
        value = hand_config.get('substitute_inside_out_tracking', False)
        if not isinstance(value, bool):
            self.errors.append("substitute_inside_out_tracking must be true or false")

    def _validate_flex_section(self, flex_config: Dict[str, Any]):
        if not isinstance(flex_config.get('clamp_angles', False), bool):
            self.errors.append("flex clamp_angles must be true or false")

        ranges = flex_config.get('saved_ranges', {})
        if not isinstance(ranges, dict):
            self.errors.append("flex saved_ranges must be a dictionary")
            return

        for name, saved in ranges.items():
            if not isinstance(saved, dict):
                self.errors.append(f"flex range for {name} must be an object with min and max")
                continue
            low, high = saved.get('min'), saved.get('max')
            for bound in (low, high):
                if bound is not None and not isinstance(bound, (int, float)):
                    self.errors.append(f"flex range bounds for {name} must be numbers or null")
                    break
            else:
                if low is not None and high is not None and low > high:
                    self.warnings.append(f"flex range for {name} is inverted ({low} > {high})")

    def _validate_recording_section(self, recording_config: Dict[str, Any]):
        directory = recording_config.get('output_directory')
        if directory is not None and not isinstance(directory, str):
            self.errors.append("recording output_directory must be a string")

    def _validate_performance_section(self, performance_config: Dict[str, Any]):
        if 'tick_rate' in performance_config:
            rate = performance_config['tick_rate']
            if not isinstance(rate, (int, float)) or rate <= 0:
                self.errors.append("tick_rate must be a positive number")

        if 'monitor_interval' in performance_config:
            interval = performance_config['monitor_interval']
            if not isinstance(interval, (int, float)) or interval <= 0:
                self.errors.append("monitor_interval must be a positive number")

        level = performance_config.get('log_level', 'INFO')
        if level not in self.LOG_LEVELS:
            self.warnings.append(f"Unknown log level: {level}")

    def get_errors(self) -> List[str]:
        """Get list of validation errors"""
        return self.errors.copy()

    def get_warnings(self) -> List[str]:
        """Get list of validation warnings"""
        return self.warnings.copy()

    def log_validation_report(self):
        """Log validation errors and warnings"""
        if self.errors:
            self.logger.error("Configuration validation errors:")
            for error in self.errors:
                self.logger.error(f"  - {error}")

        if self.warnings:
            self.logger.warning("Configuration validation warnings:")
            for warning in self.warnings:
                self.logger.warning(f"  - {warning}")

        if not self.errors and not self.warnings:
            self.logger.info("Configuration validation passed")
        elif not self.errors:
            self.logger.info("Configuration validation passed (with warnings)")
        else:
            self.logger.error("Configuration validation failed")


def validate_config_file(config_path: str) -> bool:
    """Validate a configuration file"""
    validator = ConfigValidator()

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = json.load(f)

        is_valid = validator.validate_config(config)
        validator.log_validation_report()
        return is_valid

    except FileNotFoundError:
        validator.logger.error(f"Configuration file not found: {config_path}")
        return False
    except json.JSONDecodeError as e:
        validator.logger.error(f"Invalid JSON in configuration file: {e}")
        return False
