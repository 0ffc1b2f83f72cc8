"""
Logging configuration for store-zotero.

Quiet by default; --debug or STORE_ZOTERO_DEBUG=1 turns on debug output.
"""

import logging
import sys
import warnings


def configure_quiet_mode(quiet: bool = True):
    """
    Configure logging so only errors reach the terminal.

    Args:
        quiet: If True, suppress warnings and info output. If False, leave
            the logging configuration untouched.
    """
    if quiet:
        warnings.filterwarnings("ignore")
        logging.getLogger("store_zotero").setLevel(logging.ERROR)


def enable_debug_mode():
    """Enable debug-level logging to stderr."""
    warnings.filterwarnings("default")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Add stderr handler if not already present
    if not any(isinstance(h, logging.StreamHandler) and h.stream == sys.stderr
               for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%H:%M:%S"
        ))
        root_logger.addHandler(handler)

    logging.getLogger("store_zotero").setLevel(logging.DEBUG)
