"""
Configuration module for billsense.
"""
from .settings import (
    BillSenseSettings,
    get_config,
    load_config,
    reload_config
)
from .logging_config import (
    JSONFormatter,
    LoggingConfig,
    configure_logging,
    get_logger,
    reset_logging
)

__all__ = [
    'BillSenseSettings',
    'get_config',
    'load_config',
    'reload_config',
    'JSONFormatter',
    'LoggingConfig',
    'configure_logging',
    'get_logger',
    'reset_logging'
]
