"""Logging configuration for the application."""
import logging
import sys
from userapi.config import get_settings

_level = logging.DEBUG if get_settings().is_development else logging.INFO

# Configure application logger
logger = logging.getLogger("userapi")
logger.setLevel(_level)

# Create console handler
handler = logging.StreamHandler(sys.stdout)
handler.setLevel(_level)

# Create formatter
formatter = logging.Formatter(
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
handler.setFormatter(formatter)

# Add handler to logger if not already added
if not logger.handlers:
    logger.addHandler(handler)

# Prevent duplicate logs
logger.propagate = False

__all__ = ["logger"]
