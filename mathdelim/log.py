#!/usr/bin/env python3
"""
Logging Setup
Shared by the command line tool and the preview server
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(log_file: Optional[Union[str, Path]] = None,
                  level: int = logging.INFO) -> logging.Logger:
    """
    Configure the 'mathdelim' logger with a stderr handler and an optional
    file handler. Calling it again only updates the level
    """
    logger = logging.getLogger('mathdelim')
    logger.setLevel(level)

    # Avoid adding duplicate handlers
    if not logger.handlers:
        formatter = logging.Formatter(LOG_FORMAT)

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        if log_file:
            log_path = Path(log_file).expanduser()
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
