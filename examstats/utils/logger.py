import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from examstats.config import Config

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def log_file_path(log_dir: Optional[str] = None, day: Optional[datetime] = None) -> Path:
    """Dated log file for the analytics service, one per day"""
    day = day or datetime.now()
    return Path(log_dir or Config.LOG_DIR) / f'examstats_{day.strftime("%Y%m%d")}.log'


def setup_logger(name: str) -> logging.Logger:
    """Setup a logger writing to stdout and, when enabled, the daily log file"""

    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    log_level = logging.DEBUG if Config.DEBUG else logging.INFO
    logger.setLevel(log_level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if Config.LOG_TO_FILE:
        path = log_file_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        # File keeps DEBUG detail (cache hits, TTLs) even outside debug mode
        file_handler = logging.FileHandler(path, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
