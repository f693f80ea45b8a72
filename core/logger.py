"""
Service Logger Setup

Configures the root logging handlers for a service from LoggingConfig.

Usage:
    from core.logger import setup_service_logger
    logger = setup_service_logger("order_service")
"""
import logging
import sys
from typing import Optional

from core.config import get_settings

_configured = False


def setup_service_logger(service_name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Configure logging for a service and return its logger.

    Handlers are installed on the root logger once per process; module
    loggers created with logging.getLogger(__name__) propagate to them.

    Args:
        service_name: Service name used as the logger name
        level: Optional level override (defaults to LOG_LEVEL)

    Returns:
        Logger for the service
    """
    global _configured

    config = get_settings().logging
    log_level = getattr(logging, (level or config.log_level).upper(), logging.INFO)

    if not _configured:
        formatter = logging.Formatter(config.log_format)
        root = logging.getLogger()
        root.setLevel(log_level)

        if config.enable_console:
            console = logging.StreamHandler(sys.stdout)
            console.setFormatter(formatter)
            root.addHandler(console)

        if config.log_file:
            file_handler = logging.FileHandler(config.log_file)
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)

        _configured = True

    logger = logging.getLogger(service_name)
    logger.setLevel(log_level)
    return logger
