"""
Utility helpers for s3rolling.
"""

from .executor import SerialExecutor
from .signals import setup_signal_handlers

__all__ = ["SerialExecutor", "setup_signal_handlers"]
