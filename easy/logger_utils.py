# EASY/easy/logger_utils.py
import logging
import sys
from pathlib import Path
from typing import Optional

LOG_DIR = Path.home() / ".config" / "easy"
LOG_FILENAME = "easy.log"


def setup_logger(
    logger_name: str = "EASY",
    log_level: int = logging.INFO,
    log_to_file: bool = True,
    log_file_path: Optional[Path] = None,
    log_to_console: bool = False,
    console_log_level: int = logging.WARNING
) -> logging.Logger:
    """
    Configures and returns a logger instance.

    Args:
        logger_name (str): The name for the logger instance.
        log_level (int): Base level for the logger and the file handler.
        log_to_file (bool): Whether to enable logging to a file.
        log_file_path (Optional[Path]): Path to the log file. Defaults to
                                        ~/.config/easy/easy.log.
        log_to_console (bool): Whether to also log to stderr. User-facing
                               messages normally go through console_output.
        console_log_level (int): Level for the console handler, if enabled.

    Returns:
        logging.Logger: The configured logger instance.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(log_level)

    # Calling this twice for the same name (e.g. --debug) replaces the handlers.
    if logger.hasHandlers():
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - [%(module)s:%(lineno)d] - %(message)s"
    )

    if log_to_file:
        effective_log_file_path = log_file_path or (LOG_DIR / LOG_FILENAME)
        try:
            effective_log_file_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(effective_log_file_path, mode='a', encoding='utf-8')
        except OSError as e:
            # console_output is not used here so the logger stays importable on its own.
            sys.stderr.write(f"ERROR [logger_utils]: Could not open log file {effective_log_file_path}. File logging disabled. Error: {e}\n")
        else:
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
            logger.debug(f"File logging initialized to: {effective_log_file_path}")

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(console_log_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger


# Default application logger; the entry point may call setup_logger() again
# with different parameters for the same name.
app_logger = setup_logger()
