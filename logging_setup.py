import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from app_info import APP_ID

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(log_path=None, level=None):
    """
    Configure the root logger: stderr plus a rotating file when ``log_path``
    is given. Level comes from APP_GRID_WIZARD_LOG_LEVEL unless passed in.
    """
    level = level or os.environ.get("APP_GRID_WIZARD_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    if getattr(root, "_app_grid_wizard_configured", False):
        return root

    fmt = logging.Formatter(LOG_FORMAT)
    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(fmt)
    root.addHandler(stream)

    if log_path:
        try:
            handler = RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
            handler.setFormatter(fmt)
            root.addHandler(handler)
        except OSError as e:
            logging.getLogger(APP_ID).warning("File logging disabled (%s): %s", log_path, e)

    root._app_grid_wizard_configured = True
    return root
