"""
공통 유틸리티 모듈
"""

from .identifier import make_identifier, simple_name, split_identifier

__all__ = ["make_identifier", "split_identifier", "simple_name"]
