"""Logging configuration and utilities."""

import logging
import sys
from pathlib import Path

class CustomFormatter(logging.Formatter):
    def __init__(self):
        super().__init__()
        # Format for DEBUG, WARNING, and ERROR
        self.detailed_fmt = '%(asctime)s [%(name)s:%(lineno)d] %(levelname)s: %(message)s'
        self.detailed_formatter = logging.Formatter(self.detailed_fmt, datefmt='%H:%M:%S')

        # Simpler format for INFO
        self.info_fmt = '%(asctime)s %(message)s'
        self.info_formatter = logging.Formatter(self.info_fmt, datefmt='%H:%M:%S')

    def format(self, record):
        if record.levelno == logging.INFO:
            return self.info_formatter.format(record)
        return self.detailed_formatter.format(record)

def configure_logging(development: bool = False, log_file: Path = None) -> None:
    """Configure logging to stderr and, optionally, a log file."""
    formatter = CustomFormatter()
    handlers = []

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    handlers.append(stream_handler)

    if log_file is not None:
        log_file = Path(log_file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    # Configure root logger to catch third-party warnings
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING)
    root_logger.handlers.clear()
    root_logger.addHandler(stream_handler)

    # Configure app-specific logger
    app_logger = logging.getLogger('activewindow')
    app_logger.setLevel(logging.DEBUG if development else logging.INFO)
    app_logger.propagate = False
    app_logger.handlers.clear()
    for handler in handlers:
        app_logger.addHandler(handler)

    # Capture warnings
    logging.captureWarnings(True)

    app_logger.info("=" * 60)
    app_logger.info("Starting new logging session")
    app_logger.info("=" * 60)

def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    # If the name starts with '__main__', replace it with 'activewindow.main'
    if name == '__main__':
        return logging.getLogger('activewindow.main')
    # Otherwise prepend 'activewindow.' if it's not already there
    if not name.startswith('activewindow.') and name != 'activewindow':
        name = f'activewindow.{name}'
    return logging.getLogger(name)
