# -- Logging Configuration -- #

'''
Sets up the package logger for command-line runs.

Library modules only create module-level loggers under the TetFlipSim
namespace; handlers are attached here.

TetFlipSim [10/18/2026]
'''

from __future__ import annotations

import logging
import sys


def setupLogging(level: int = logging.INFO, logFile: str | None = None) -> logging.Logger:
    '''
    Configure the 'TetFlipSim' logger.

    Parameters:
    -----------
    level : int
        Logging level (e.g. logging.DEBUG, logging.INFO)
    logFile : str | None
        Optional path to also write logs to a file

    Returns:
    --------
    logging.Logger : The configured package logger
    '''
    logger = logging.getLogger('TetFlipSim')
    logger.setLevel(level)

    # Avoid duplicate handlers on repeated setup
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S',
    )

    consoleHandler = logging.StreamHandler(sys.stdout)
    consoleHandler.setLevel(level)
    consoleHandler.setFormatter(formatter)
    logger.addHandler(consoleHandler)

    if logFile:
        fileHandler = logging.FileHandler(logFile, mode='w', encoding='utf-8')
        fileHandler.setLevel(level)
        fileHandler.setFormatter(formatter)
        logger.addHandler(fileHandler)

    logger.debug('Logging initialized')
    return logger
