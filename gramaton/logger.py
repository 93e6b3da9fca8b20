# gramaton/logger.py

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

import colorlog


def setup_gramaton_logger(
    log_level=logging.INFO,
    log_to_file=False,
    log_to_console=True,
    log_file: Optional[str] = None,
    max_bytes=5 * 1024 * 1024,
    backup_count=5,
    use_color=True
):
    logger = logging.getLogger("gramaton")
    logger.setLevel(log_level)

    # Clear existing handlers if rerun
    if logger.hasHandlers():
        logger.handlers.clear()

    if log_to_console:
        ch = logging.StreamHandler(sys.stdout)
        ch.setLevel(log_level)
        if use_color:
            ch.setFormatter(colorlog.ColoredFormatter(
                fmt="%(log_color)s[%(levelname)s]%(reset)s %(name)s - %(message)s",
                log_colors={
                    "DEBUG": "cyan",
                    "INFO": "green",
                    "WARNING": "yellow",
                    "ERROR": "red",
                    "CRITICAL": "bold_red",
                },
            ))
        else:
            ch.setFormatter(logging.Formatter("[%(levelname)s] %(name)s - %(message)s"))
        logger.addHandler(ch)

    # file handler (rotating)
    if log_to_file:
        if log_file is None:
            log_dir = os.path.expanduser("~/.gramaton")
            os.makedirs(log_dir, exist_ok=True)
            log_file = os.path.join(log_dir, "gramaton.log")
        fh = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count
        )
        fh.setLevel(log_level)
        file_fmt = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
        fh.setFormatter(file_fmt)
        logger.addHandler(fh)

    logger.debug("gramaton logger configured. color: %s, log_to_file: %s", use_color, log_to_file)
    return logger
