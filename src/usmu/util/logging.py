# -*- coding: utf-8 -*-
"""
Loguru sinks for the usmu command line and scripts.

By default loguru logs to stderr; `start_log` replaces that with a log file
(and optionally a coloured stderr sink) at the requested level.
"""

import os
import pathlib
import sys
import traceback
from typing import Optional

from loguru import logger

from .defaults import DEFAULT_LOGLEVEL, SINGLE_LINE_ERR_LOG


def format_error_response(exc: Optional[BaseException] = None) -> str:
    """Traceback of `exc` (default: the exception being handled) for the log.

    Tab separated on one line when `SINGLE_LINE_ERR_LOG` is set.
    """
    if exc is None:
        err_str = traceback.format_exc()
    else:
        err_str = "".join(traceback.format_exception(exc))
    if SINGLE_LINE_ERR_LOG:
        return "\t".join(line.strip() for line in err_str.splitlines())
    return err_str


def start_log(
    log_to_file=True,
    log_to_stdout=False,
    log_path=None,
    clear_prev=True,
    log_level=DEFAULT_LOGLEVEL,
):
    if log_path is None or log_path == "":
        log_path = log_default_path()
    else:
        log_path = os.path.abspath(log_path)

    if clear_prev:
        clear_log(log_path)

    # first remove (default) stderr output
    logger.remove()

    if log_to_file:
        logger.add(log_path, level=log_level, colorize=False)
        logger.our_naughty_log_path_attr = log_path
    if log_to_stdout:
        logger.add(sys.stderr, level=log_level, colorize=True)
    if log_to_file:
        logger.info("Log started at {}", log_path)
    else:
        logger.info("Log started.")


def log_default_path() -> str:
    return str(pathlib.Path.home().joinpath(".usmu/usmu.log"))


def clear_log(log_path: str):
    """
    Clear the logger file at the given path.

    Arguments
    ---------
    log_path : str
        The path to the logger file. Can get the default path with
        log_default_path().
    """
    if os.path.exists(log_path):
        try:
            os.remove(log_path)
        except PermissionError:
            logger.error(
                f"Could not clear log file {log_path}. Permission denied. Continuing."
            )


def shutdown_log():
    try:
        logger.info("Closing down log.")
        logger.remove()
    except Exception:
        logger.exception("Error shutting down log - skipping.")


def get_log_filename() -> str:
    """Finds the logger filename."""
    if hasattr(logger, "our_naughty_log_path_attr"):
        return logger.our_naughty_log_path_attr
    else:
        return ""
