import logging
import os
from logging import Formatter, StreamHandler, getLogger
from logging.handlers import RotatingFileHandler
from logging import DEBUG, INFO, WARNING, ERROR, CRITICAL

# Third-party loggers that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "aiohttp.access")


class ColourFormatter(Formatter):
    """Console formatter with a colour per log level."""

    LEVEL_COLOURS = [
        (DEBUG, "\x1b[40;1m"),
        (INFO, "\x1b[34;1m"),
        (WARNING, "\x1b[33;1m"),
        (ERROR, "\x1b[31m"),
        (CRITICAL, "\x1b[41m"),
    ]

    FORMATS = {
        level: Formatter(
            f"\x1b[30;1m%(asctime)s\x1b[0m {colour}%(levelname)-8s\x1b[0m "
            f"\x1b[35m%(name)s\x1b[0m %(message)s",
            "%H:%M:%S",
        )
        for level, colour in LEVEL_COLOURS
    }

    def format(self, record):
        formatter = self.FORMATS.get(record.levelno, self.FORMATS[DEBUG])
        return formatter.format(record)


class PlainFormatter(Formatter):
    """Colourless formatter for process managers and log files."""

    def __init__(self):
        super().__init__(
            "%(asctime)s %(levelname)-8s %(name)s %(message)s (%(filename)s:%(lineno)d)",
            "%Y-%m-%d %H:%M:%S"
        )


class SystemdFormatter(Formatter):
    """Formatter for systemd journal output (journald adds its own timestamp)."""

    def __init__(self):
        super().__init__("%(levelname)s %(name)s %(message)s")


def _console_formatter() -> Formatter:
    is_pm2 = os.environ.get('PM2_HOME') is not None or os.environ.get('PM2_JSON_PROCESSING') is not None
    is_systemd = os.environ.get('JOURNAL_STREAM') is not None or os.environ.get('INVOCATION_ID') is not None

    if is_pm2:
        return PlainFormatter()
    if is_systemd:
        return SystemdFormatter()
    return ColourFormatter()


def setup_logging(level="INFO", log_to_file=False, log_file_path="logs/imagegen_studio.log",
                  max_file_size=10*1024*1024, backup_count=5):
    """
    Set up logging for the proxy, with optional rotating file output.

    Args:
        level (str): Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file (bool): Whether to log to a file in addition to console
        log_file_path (str): Path to the log file (if log_to_file is True)
        max_file_size (int): Maximum size of log file before rotation (default 10MB)
        backup_count (int): Number of backup files to keep

    Returns:
        logging.Logger: The configured root logger
    """
    console_handler = StreamHandler()
    console_handler.setFormatter(_console_formatter())
    handlers = [console_handler]

    if log_to_file:
        log_dir = os.path.dirname(log_file_path)
        if log_dir:
            try:
                os.makedirs(log_dir, exist_ok=True)
            except OSError:
                # Fall back to the working directory
                log_file_path = os.path.basename(log_file_path)

        try:
            file_handler = RotatingFileHandler(
                log_file_path,
                maxBytes=max_file_size,
                backupCount=backup_count
            )
            file_handler.setFormatter(PlainFormatter())
            handlers.append(file_handler)
        except OSError as e:
            print(f"Warning: Could not set up file logging: {e}")

    numeric_level = getattr(logging, str(level).upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        handlers=handlers,
        force=True  # Override any existing configuration
    )

    # Keep per-request transport chatter out of INFO output
    if numeric_level > DEBUG:
        for name in NOISY_LOGGERS:
            getLogger(name).setLevel(WARNING)

    return logging.getLogger()


def get_logger(name=None):
    """
    Get a module logger; handlers are inherited from the root logger.

    Args:
        name (str): Logger name (typically __name__ from the calling module)

    Returns:
        logging.Logger: Logger instance
    """
    return getLogger(name)
