"""Settings - Site/Config models and the settings file loader"""

from .loader import ConfigProvider, build_config, extract_section, find_settings_file, load_config
from .models import Config, Site

__all__ = [
    "Config",
    "Site",
    "ConfigProvider",
    "build_config",
    "extract_section",
    "find_settings_file",
    "load_config",
]
