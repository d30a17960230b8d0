"""Scanner configuration."""

from patternscan.config.loader import get_config_path, load_config, save_config
from patternscan.config.schema import ScannerConfig

__all__ = ["ScannerConfig", "get_config_path", "load_config", "save_config"]
