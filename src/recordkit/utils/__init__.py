"""
Utility helpers shared across recordkit packages.
"""

from .logging import configure_logging, get_logger, set_correlation_id, time_call
from .naming import camel_to_snake

__all__ = ["camel_to_snake", "configure_logging", "get_logger", "set_correlation_id", "time_call"]
