import logging
import os
from datetime import datetime

LOG_DIR = 'logs'

def setup_logger(name):
    """
    Logger shared by the hexbin modules, the CLI and the dashboard

    Everything from DEBUG up (per-feature drops, abandoned recomputes) goes to
    logs/hexbin_MMDDYYYY.log, one file per day relative to the working
    directory; INFO and above is echoed to the console. Calling it again for
    the same name returns the already configured logger.

    Parameters
    name (str) : Name of the logger, usually the module's __name__

    Returns:
    logging.Logger : Configured Logger Instance
    """

    os.makedirs(LOG_DIR, exist_ok=True)

    # Create Logger
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    # Already configured by an earlier import
    if logger.handlers:
        return logger

    # Configs for how logs will appear in logs/
    file_format = logging.Formatter(
        '%(levelname)s : %(name)s : %(funcName)s : %(lineno)d : %(message)s'
    )

    log_file = os.path.join(LOG_DIR, f'hexbin_{datetime.now().strftime("%m%d%Y")}.log')
    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(file_format)

    # Console logs configs
    console_format = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s'
    )
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(console_format)


    # Add the config to the Logger obj
    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger
