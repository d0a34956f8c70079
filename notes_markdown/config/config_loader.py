"""YAML configuration loading and validation.

Configuration files are flat YAML mappings whose keys are the field names of
ConverterConfig. Every key is optional; omitted keys keep their defaults.

Example:
    html_sub_superscript: true
    convert_indents_to_quotes: false
    max_image_size_mb: 4
    allowed_image_hosts:
      - logoscdn.com
"""

import logging
import os
from dataclasses import asdict, fields
from typing import Any, Dict

import yaml

from ..error_handling.errors import ConfigError, FileSystemError
from .models import ConverterConfig

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Handles configuration file loading, validation, and saving."""

    BOOL_FIELDS = {
        'html_sub_superscript',
        'convert_indents_to_quotes',
        'ignore_unknown_elements',
        'download_images',
    }

    # Numeric fields that must be strictly positive
    POSITIVE_FIELDS = {
        'max_image_size_mb': float,
        'download_timeout_ms': int,
        'download_retries': int,
        'max_concurrent_downloads': int,
        'small_text_max_size': float,
        'max_errors': int,
    }

    STRING_LIST_FIELDS = {'allowed_image_hosts', 'monospace_fonts'}

    @classmethod
    def load(cls, config_path: str) -> ConverterConfig:
        """Load and parse configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            ConverterConfig with parsed configuration

        Raises:
            FileSystemError: If file cannot be read
            ConfigError: If configuration is invalid or malformed
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError as e:
            raise FileSystemError(
                f"Configuration file not found: {config_path}",
                path=config_path,
                operation='read',
                cause=e,
            )
        except PermissionError as e:
            raise FileSystemError(
                f"Permission denied reading configuration: {config_path}",
                path=config_path,
                operation='read',
                cause=e,
            )
        except OSError as e:
            raise FileSystemError(
                str(e), path=config_path, operation='read', cause=e
            )

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {str(e)}")

        if config_dict is None:
            logger.debug(f"Configuration file {config_path} is empty, using defaults")
            return ConverterConfig()

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        logger.info(f"Loaded configuration from {config_path}")
        return cls.from_dict(config_dict)

    @classmethod
    def save(cls, config_path: str, config: ConverterConfig) -> None:
        """Save configuration to a YAML file.

        Args:
            config_path: Path to the YAML configuration file
            config: ConverterConfig to save

        Raises:
            FileSystemError: If file cannot be written
        """
        yaml_str = yaml.safe_dump(
            asdict(config),
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )

        config_dir = os.path.dirname(config_path)
        if config_dir:
            try:
                os.makedirs(config_dir, exist_ok=True)
            except OSError as e:
                raise FileSystemError(
                    str(e), path=config_dir, operation='create_directory', cause=e
                )

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                f.write(yaml_str)
        except OSError as e:
            raise FileSystemError(
                str(e), path=config_path, operation='write', cause=e
            )

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> ConverterConfig:
        """Validate a raw configuration mapping and build a ConverterConfig.

        Args:
            config_dict: Raw configuration dictionary (e.g. from YAML)

        Returns:
            Validated ConverterConfig

        Raises:
            ConfigError: If a key is unknown or a value is invalid
        """
        known = {f.name for f in fields(ConverterConfig)}
        unknown = set(config_dict.keys()) - known
        if unknown:
            raise ConfigError(
                f"Unknown configuration keys: {', '.join(sorted(str(k) for k in unknown))}"
            )

        values: Dict[str, Any] = {}
        for key, raw in config_dict.items():
            if key in cls.BOOL_FIELDS:
                if not isinstance(raw, bool):
                    raise ConfigError(f"Field must be true or false, got {raw!r}", key)
                values[key] = raw
            elif key in cls.POSITIVE_FIELDS:
                values[key] = cls._parse_positive(key, raw, cls.POSITIVE_FIELDS[key])
            elif key in cls.STRING_LIST_FIELDS:
                values[key] = cls._parse_string_list(key, raw)
            elif key == 'heading_font_sizes':
                values[key] = cls._parse_heading_sizes(raw)
            elif key == 'retry_backoff_seconds':
                values[key] = cls._parse_number(key, raw, float)
                if values[key] < 0:
                    raise ConfigError(f"Field cannot be negative, got {raw}", key)
            elif key == 'user_agent':
                if not isinstance(raw, str) or not raw.strip():
                    raise ConfigError("Field must be a non-empty string", key)
                values[key] = raw

        if not values.get('monospace_fonts', True):
            raise ConfigError("At least one monospace font is required", 'monospace_fonts')

        return ConverterConfig(**values)

    @staticmethod
    def _parse_number(key: str, raw: Any, kind: type) -> Any:
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise ConfigError(f"Field must be a number, got {raw!r}", key)
        if kind is int and not float(raw).is_integer():
            raise ConfigError(f"Field must be an integer, got {raw!r}", key)
        return kind(raw)

    @classmethod
    def _parse_positive(cls, key: str, raw: Any, kind: type) -> Any:
        value = cls._parse_number(key, raw, kind)
        if value <= 0:
            raise ConfigError(f"Field must be positive, got {raw}", key)
        return value

    @staticmethod
    def _parse_string_list(key: str, raw: Any) -> list:
        if not isinstance(raw, list):
            raise ConfigError("Field must be a list", key)
        items = []
        for i, item in enumerate(raw):
            if not isinstance(item, str) or not item.strip():
                raise ConfigError(f"Entry {i} must be a non-empty string", key)
            items.append(item.strip().lower())
        return items

    @classmethod
    def _parse_heading_sizes(cls, raw: Any) -> list:
        key = 'heading_font_sizes'
        if not isinstance(raw, list) or len(raw) != 6:
            raise ConfigError("Field must be a list of six font sizes (H1..H6)", key)
        sizes = [cls._parse_positive(key, item, float) for item in raw]
        for larger, smaller in zip(sizes, sizes[1:]):
            if smaller >= larger:
                raise ConfigError(
                    f"Font sizes must be strictly descending, got {raw}", key
                )
        return [int(size) if size.is_integer() else size for size in sizes]
