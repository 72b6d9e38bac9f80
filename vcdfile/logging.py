"""
Logging for the VCD loader.

All modules log through one package logger:

    from vcdfile.logging import logger
    logger.debug('Parsed 12 $var declarations')

Applications tune it with:

    import vcdfile
    vcdfile.set_log_level('SILENT')     # Nothing at all
    vcdfile.set_log_level('WARNING')    # Only odd input and failures
    vcdfile.add_file_handler('load.log')  # Full debug trace to a file
"""

import logging
from pathlib import Path

logger = logging.getLogger('vcdfile')
logger.setLevel(logging.INFO)

if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter('[%(levelname)s] %(message)s'))
    logger.addHandler(handler)


def set_log_level(level: str | int) -> None:
    """
    Set the vcdfile logging level.

    Args:
        level: 'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL', 'SILENT',
               or a numeric level (logging.DEBUG, etc.)
    """
    if isinstance(level, str):
        level = level.upper()
        if level == 'SILENT':
            logger.setLevel(logging.CRITICAL + 1)
        else:
            logger.setLevel(getattr(logging, level))
    else:
        logger.setLevel(level)


def add_file_handler(path: str | Path, level: int = logging.DEBUG) -> logging.Handler:
    """
    Mirror the package log into a file.

    Args:
        path: Log file, truncated on open
        level: Minimum level written to the file

    Returns:
        The installed handler, so callers can remove it again
    """
    file_handler = logging.FileHandler(path, mode='w')
    file_handler.setLevel(level)
    file_handler.setFormatter(
        logging.Formatter('%(asctime)s::%(name)s::%(levelname)s::%(message)s'))
    logger.addHandler(file_handler)
    if logger.level > level:
        logger.setLevel(level)
    return file_handler
