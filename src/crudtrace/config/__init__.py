"""
설정 관리 모듈
"""

from .config_manager import Configuration, ConfigurationError, load_config

__all__ = ["Configuration", "ConfigurationError", "load_config"]
