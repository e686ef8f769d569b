"""
Logging infrastructure for twig.

Provides component loggers and decorators for tracking repository operations.
"""

from .logger import (
    TwigLogger,
    get_twig_logger,
    initialize_logging,
    get_logger_instance,
    log_repository_operation,
)

from .decorators import (
    track_operation,
    performance_monitor,
)

__all__ = [
    # Logger
    "TwigLogger",
    "get_twig_logger",
    "initialize_logging",
    "get_logger_instance",
    "log_repository_operation",
    # Decorators
    "track_operation",
    "performance_monitor",
]
