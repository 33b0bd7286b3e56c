"""Centralized logging configuration loaded from logging-config.yaml."""

import os
import yaml
from pathlib import Path
from typing import Dict, Optional


_TRUE_VALUES = ('true', '1', 'yes')


class LoggingConfig:
    """
    Logging levels and formats per component.

    Lookup order for a component: LOG_LEVEL_<COMPONENT> env var, LOG_LEVEL
    (default component only), the yaml 'components' section, 'default_level'.
    """

    _instance: Optional['LoggingConfig'] = None

    def __init__(self, config_path: Optional[str] = None):
        """Initialize logging configuration.

        Args:
            config_path: Path to logging-config.yaml (default: searched upwards
                from this package, then LOGGING_CONFIG env var)
        """
        config_path = config_path or os.getenv('LOGGING_CONFIG')
        if config_path is None:
            current = Path(__file__).parent
            for _ in range(5):
                config_file = current / "logging-config.yaml"
                if config_file.exists():
                    config_path = str(config_file)
                    break
                current = current.parent

        self._config: Dict = {
            'default_level': 'INFO',
            'components': {},
            'modules': {},
        }
        if config_path and Path(config_path).exists():
            with open(config_path) as f:
                self._config.update(yaml.safe_load(f) or {})

    @classmethod
    def get_instance(cls) -> 'LoggingConfig':
        """Get shared instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the shared instance so the next call re-reads the file."""
        cls._instance = None

    def get_level(self, component: str = 'default') -> str:
        """Get log level for a component (DEBUG, INFO, WARNING, ERROR)."""
        env_var = f"LOG_LEVEL_{component.upper().replace('-', '_')}"
        if env_level := os.getenv(env_var):
            return env_level.upper()

        if component == 'default' and (env_level := os.getenv('LOG_LEVEL')):
            return env_level.upper()

        comp_cfg = self._config.get('components', {}).get(component)
        if isinstance(comp_cfg, dict) and 'level' in comp_cfg:
            return comp_cfg['level'].upper()
        if isinstance(comp_cfg, str):
            return comp_cfg.upper()

        return str(self._config.get('default_level', 'INFO')).upper()

    def get_json_format(self, component: str = 'default') -> bool:
        """Whether a component logs JSON instead of plain text."""
        env_var = f"LOG_JSON_FORMAT_{component.upper().replace('-', '_')}"
        if env_json := os.getenv(env_var):
            return env_json.lower() in _TRUE_VALUES

        if component == 'default' and (env_json := os.getenv('LOG_JSON_FORMAT')):
            return env_json.lower() in _TRUE_VALUES

        comp_cfg = self._config.get('components', {}).get(component)
        if isinstance(comp_cfg, dict):
            return bool(comp_cfg.get('json_format', False))

        return False

    def get_module_level(self, module_name: str) -> Optional[str]:
        """Get log level override for a specific Python module, if any."""
        modules_cfg = self._config.get('modules', {}) or {}
        if module_name in modules_cfg:
            return modules_cfg[module_name].upper()
        return None

    @property
    def module_levels(self) -> Dict[str, str]:
        """All per-module level overrides."""
        return {k: v.upper() for k, v in (self._config.get('modules') or {}).items()}


def get_logging_config() -> LoggingConfig:
    """Get shared logging configuration instance."""
    return LoggingConfig.get_instance()
