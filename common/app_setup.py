"""
Reusable logging and print setup for all parts of the project.

Functions:
    setup_logging      - Configure and return a logger.
    set_print_logger   - Set the logger for print_and_log, print_warning and print_error.
    print_and_log      - Print and log an info message.
    print_warning      - Print and log a warning message.
    print_error        - Print and log an error message.
"""

import logging
import os
import sys
from typing import Optional

from rich import print as rich_print
from rich.markup import escape

# Module-level variable to hold the logger for the print helpers
_print_logger = None


def setup_logging(app_name: str = "gitops_preview", loglevel: int = logging.INFO, logfile: Optional[str] = None) -> logging.Logger:
    """
    Set up logging for the application.
    Logs to a file in ~/.<app_name>/log.txt or to a custom logfile.
    Returns the configured logger.
    """
    logger = logging.getLogger()
    logger.setLevel(loglevel)
    formatter = logging.Formatter('%(asctime)s %(levelname)s %(process)d %(message)s')
    if logfile is None:
        log_dir = os.path.expanduser(f"~/.{app_name}")
        os.makedirs(log_dir, exist_ok=True)
        logfile = os.path.join(log_dir, "log.txt")
    handler = logging.FileHandler(logfile)

    # Remove any existing handlers
    for h in logger.handlers[:]:
        logger.removeHandler(h)
        h.close()

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    set_print_logger(logger)
    logger.debug("Logger initialized for %s (logfile=%s)", app_name, logfile)
    return logger


def set_print_logger(logger: Optional[logging.Logger]):
    """
    Set the logger to be used by print_and_log, print_warning and print_error.
    Call this after setting up logging in your app.
    """
    global _print_logger
    _print_logger = logger


def print_and_log(message: str, **kwargs):
    """
    Print to console (rich markup) and log as info.
    """
    rich_print(message, **kwargs)
    if _print_logger is not None:
        _print_logger.info(message)


def print_warning(message: str, **kwargs):
    """
    Print a warning to stderr and log it at warning level.
    """
    rich_print(f'[bold yellow]Warning:[/bold yellow] {escape(message)}', file=sys.stderr, **kwargs)
    if _print_logger is not None:
        _print_logger.warning(message)


def print_error(message: str, **kwargs):
    """
    Print and log an error message (stderr and error level), using the logger set by set_print_logger.
    """
    rich_print(f'[bold red]{escape(message)}[/bold red]', file=sys.stderr, **kwargs)
    if _print_logger is not None:
        _print_logger.error(message)
