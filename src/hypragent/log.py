"""
Logging setup.

The terminal belongs to the TUI, so records never go to stderr: in debug
mode everything goes to a log file, otherwise only warnings do.
"""
import logging
from pathlib import Path
from typing import Union

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def setup_logging(debug: bool = False, log_file: Union[str, Path] = 'debug.log') -> logging.Logger:
    root = logging.getLogger('hypragent')
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    handler = logging.FileHandler(log_file, encoding='utf-8')
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.WARNING)
    root.propagate = False

    root.debug("Logger initialized")
    return root
