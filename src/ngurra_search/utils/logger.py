"""
Logger setup using loguru.

Console and rotating file sinks for ngurra_search itself. The Elasticsearch
client logs through the standard library (every request at INFO); those
loggers are held at engine_log_level so request traces do not drown out
sync and fallback messages.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from ngurra_search.config import settings

ENGINE_LOGGERS = ("elasticsearch", "elastic_transport", "elastic_transport.transport")

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def quiet_engine_loggers(level: Optional[str] = None) -> str:
    """Set the Elasticsearch client's stdlib loggers to level; returns the level applied"""
    level = (level or settings.engine_log_level).upper()
    for name in ENGINE_LOGGERS:
        logging.getLogger(name).setLevel(level)
    return level


def setup_logger(
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
    rotation: str = "10 MB",
    retention: str = "1 week",
    engine_level: Optional[str] = None,
):
    """
    Configure loguru logger.
    
    Args:
        level: Log level for ngurra_search (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (None for console only)
        rotation: Log rotation policy
        retention: Log retention policy
        engine_level: Level for the Elasticsearch client loggers
    """
    logger.remove()
    
    level = level or settings.log_level
    log_file = log_file or settings.log_file
    
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)
    
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        
        logger.add(
            str(log_file),
            format=FILE_FORMAT,
            level=level,
            rotation=rotation,
            retention=retention,
            compression="zip"
        )
        
        logger.info(f"Logging to file: {log_file}")
    
    engine_level = quiet_engine_loggers(engine_level)
    logger.debug(f"Logger configured with level: {level} (engine client: {engine_level})")
