#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SnarlKit v0.1.0

Package initialization, version metadata and logging setup.

Author: SnarlKit Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import logging
from typing import Optional, Union
from pathlib import Path

from .version import __version__

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """
    Attach handlers to the package logger.
    
    Args:
        level: Logging level name or number (e.g. 'DEBUG', logging.INFO)
        log_file: Optional path for an additional file handler
    
    Returns:
        The configured 'snarlkit' logger
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    
    package_logger = logging.getLogger("snarlkit")
    package_logger.setLevel(level)
    
    # Replace handlers from an earlier call rather than stacking them
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    
    formatter = logging.Formatter(LOG_FORMAT)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    package_logger.addHandler(stream_handler)
    
    if log_file:
        file_handler = logging.FileHandler(str(log_file))
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)
    
    return package_logger


def configure_logging_from_config(config: dict) -> logging.Logger:
    """Apply the output.logging section of a configuration dict."""
    logging_cfg = config.get('output', {}).get('logging', {})
    return configure_logging(
        logging_cfg.get('level', 'INFO'),
        logging_cfg.get('log_file'),
    )


__all__ = ["__version__", "configure_logging", "configure_logging_from_config"]

# SnarlKit v0.1.0
# Any usage is subject to this software's license.
