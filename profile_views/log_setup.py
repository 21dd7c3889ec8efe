# file: profile_views/log_setup.py
import logging
import os
import sys
from pathlib import Path
from typing import Optional

# The package logger. Modules log through child loggers obtained with
# logging.getLogger(__name__), which propagate here.
logger = logging.getLogger('profile_views')

DEBUG_ENV_VAR = 'PROFILE_VIEWS_DEBUG'


def debug_enabled_from_env() -> bool:
    """True when PROFILE_VIEWS_DEBUG is set to a truthy value."""
    return os.environ.get(DEBUG_ENV_VAR, '').strip().lower() in ('1', 'true', 'yes', 'on')


def setup_logging(debug_mode: bool = False, log_file_path: Optional[str] = None):
    """Configures the package logger.

    The setup is idempotent and will not reconfigure the logger if it already
    has handlers.

    Args:
        debug_mode (bool): If True, sets the console level to DEBUG. The
                           PROFILE_VIEWS_DEBUG environment variable has the
                           same effect.
        log_file_path (Optional[str]): If provided, logs are written to this
                                       file instead of the console. File
                                       logging is always at DEBUG level.
    """
    # Avoid duplicate handlers if setup_logging is called multiple times.
    if logger.handlers:
        return

    debug_mode = debug_mode or debug_enabled_from_env()

    if log_file_path:
        log_path = Path(log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        logger.setLevel(logging.DEBUG)
        file_handler = logging.FileHandler(log_path, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        logger.addHandler(file_handler)
    else:
        level = logging.DEBUG if debug_mode else logging.INFO
        logger.setLevel(level)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        if debug_mode:
            formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        else:
            formatter = logging.Formatter('[%(name)s] %(message)s')
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)
