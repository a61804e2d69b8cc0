"""
CLI 모듈
"""

from .cli_controller import CLIController, main

__all__ = ["CLIController", "main"]
