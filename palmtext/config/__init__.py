"""Configuration modules for palmtext."""

from .logging_config import (
    TRACE,
    configure_logging,
    get_logger,
)
from .settings import (
    PalmSettings,
    load_palm_settings,
    get_palm_settings,
    reset_palm_settings,
)

__all__ = [
    'TRACE',
    'configure_logging',
    'get_logger',
    'PalmSettings',
    'load_palm_settings',
    'get_palm_settings',
    'reset_palm_settings',
]
