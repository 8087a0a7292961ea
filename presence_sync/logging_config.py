"""Logging setup for the presence sync command."""
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from presence_sync.config import Settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class SQLTransactionFilter(logging.Filter):
    def filter(self, record):
        # Only filter INFO level messages
        if record.levelno == logging.INFO and hasattr(record, 'getMessage'):
            message = record.getMessage()

            # Filter out ROLLBACK, BEGIN, and "generated in" messages completely
            if any(keyword in message for keyword in ['ROLLBACK', 'BEGIN', 'COMMIT', 'generated in']):
                return False

            # Collapse multi-line statements onto one line
            if any(kw in message for kw in ['SELECT', 'UPDATE', 'DELETE', 'INSERT']):
                record.msg = ' '.join(message.split())
                record.args = ()

        return True


def configure_logging(settings: Settings, verbose: bool = False) -> Path:
    """
    Configure console and rotating file logging.

    SQLAlchemy engine output goes to its own rotating file so it does not drown
    the job's progress records.

    Args:
        settings: Application settings (log directory and level)
        verbose: Force DEBUG level regardless of settings

    Returns:
        Path of the general log file
    """
    logs_dir = Path(settings.log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)

    log_file = logs_dir / "presence_sync.log"
    sql_log_file = logs_dir / "presence_sync_sql.log"

    # 1 MB per file, keep 5 backups
    rotating_handler = RotatingFileHandler(
        log_file,
        maxBytes=1024 * 1024,
        backupCount=5,
        encoding='utf-8',
    )
    rotating_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    sql_rotating_handler = RotatingFileHandler(
        sql_log_file,
        maxBytes=1024 * 1024,
        backupCount=5,
        encoding='utf-8',
    )
    sql_rotating_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    level = logging.DEBUG if verbose else getattr(logging, settings.log_level, logging.INFO)

    # Force=True ensures we override any existing configuration
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(),
            rotating_handler,
        ],
        force=True,
    )

    sqlalchemy_logger = logging.getLogger("sqlalchemy.engine.Engine")
    sqlalchemy_logger.handlers.clear()
    sqlalchemy_logger.addHandler(sql_rotating_handler)
    sqlalchemy_logger.propagate = False  # Prevent duplication in the general log
    sqlalchemy_logger.addFilter(SQLTransactionFilter())

    return log_file
