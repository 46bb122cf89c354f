import logging
import logging.config
from pathlib import Path
from datetime import datetime


def setup_logging(
    file_log_level: str = 'INFO',
    console_log_level: str = 'INFO',
    log_dir: Path | str | None = None
) -> Path:
    """
    Configures logging for the entire application.
    The RichHandler for the console will not interfere with Rich spinners.

    Returns:
        The path of the log file for this run.
    """
    project_root = Path(__file__).resolve().parents[3]
    log_dir = log_dir or (project_root / "logs")
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    log_filename = log_path / f"solana_pool_tracker_{timestamp}.log"

    LOGGING_CONFIG = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'file_formatter': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(message)s',
            },
            'console_formatter': {
                'format': '%(message)s',
            },
        },
        'handlers': {
            'console': {
                'class': 'rich.logging.RichHandler',
                'level': console_log_level.upper(),
                'formatter': 'console_formatter',
                'rich_tracebacks': True,
            },
            'file': {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': file_log_level.upper(),
                'formatter': 'file_formatter',
                'filename': log_filename,
                'maxBytes': 10*1024*1024,
                'backupCount': 5,
                'encoding': 'utf-8',
            },
        },
        'loggers': {
            # websocket-client is chatty at DEBUG
            'websocket': {'level': 'WARNING'},
            'urllib3': {'level': 'WARNING'},
        },
        'root': {
            'level': 'DEBUG',
            'handlers': ['console', 'file'],
        },
    }

    logging.config.dictConfig(LOGGING_CONFIG)
    logging.getLogger(__name__).info(f"Logging configured. Log file at: {log_filename}")
    return log_filename


def set_log_level(level: int | str, logger: logging.Logger | None = None) -> None:
    """
    Apply a level to every handler of an already configured logger (root by default).
    """
    logger = logger or logging.getLogger()
    for handler in logger.handlers:
        handler.setLevel(level)
