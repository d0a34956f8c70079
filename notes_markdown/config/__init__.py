"""Converter configuration: typed defaults and YAML loading."""

from .models import (
    ConverterConfig,
    DEFAULT_HEADING_FONT_SIZES,
    DEFAULT_MONOSPACE_FONTS,
    DEFAULT_ALLOWED_IMAGE_HOSTS,
)
from .config_loader import ConfigLoader

__all__ = [
    'ConverterConfig',
    'DEFAULT_HEADING_FONT_SIZES',
    'DEFAULT_MONOSPACE_FONTS',
    'DEFAULT_ALLOWED_IMAGE_HOSTS',
    'ConfigLoader',
]
