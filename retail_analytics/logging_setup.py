import logging
import logging.handlers
import traceback
from datetime import datetime
from pathlib import Path

from retail_analytics.config import config as default_config


class Logger:
    """Logging manager for the Retail Analytics engine."""

    def __init__(self, settings=None):
        """Initialize the logger.

        Args:
            settings: Config instance; the module default is used when omitted
        """
        self._log_config = (settings or default_config).log_config
        self._log_dir = Path(self._log_config['directory'])
        self._loggers = {}

        if self._log_config['file_output'] and not self._log_dir.exists():
            self._log_dir.mkdir(parents=True)

        self._app_logger = self.get_logger('app')

    def _level(self):
        level_name = self._log_config['level'].upper()
        return getattr(logging, level_name, logging.INFO)

    def get_logger(self, name):
        """Get a logger with the specified name.

        Args:
            name: Name of the logger

        Returns:
            Configured logger instance
        """
        if name in self._loggers:
            return self._loggers[name]

        logger = logging.getLogger(name)
        logger.setLevel(self._level())

        # Remove existing handlers to prevent duplicates
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)

        formatter = logging.Formatter(self._log_config['format'])

        if self._log_config['file_output']:
            log_file = self._log_dir / f"{name}.log"
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=self._log_config['max_size_mb'] * 1024 * 1024,
                backupCount=self._log_config['backup_count']
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        if self._log_config['console_output']:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
            logger.addHandler(console_handler)

        logger.propagate = False

        self._loggers[name] = logger
        return logger

    def log_exception(self, logger_name, exception, message=None):
        """Log an exception with stack trace.

        Args:
            logger_name: Logger name
            exception: Exception object
            message: Optional message to include
        """
        logger = self.get_logger(logger_name)

        if message:
            logger.error(f"{message}: {str(exception)}")
        else:
            logger.error(str(exception))

        logger.error(traceback.format_exc())

    @property
    def app_logger(self):
        """Get the application logger."""
        return self._app_logger

    def refresh_start_log(self, view_names, snapshot_version=None):
        """Log the start of a view refresh run.

        Args:
            view_names: Views about to be refreshed
            snapshot_version: Version of the snapshot being read

        Returns:
            Dictionary with refresh logging information
        """
        refresh_logger = self.get_logger('refresh')
        log_info = {
            'views': list(view_names),
            'start_time': datetime.now(),
            'snapshot_version': snapshot_version
        }

        refresh_logger.info(
            f"Refreshing {len(log_info['views'])} view(s) at snapshot version {snapshot_version}"
        )
        return log_info

    def refresh_end_log(self, log_info, failures=None):
        """Log the end of a view refresh run.

        Args:
            log_info: Dictionary returned by refresh_start_log
            failures: Optional mapping of view name to error
        """
        refresh_logger = self.get_logger('refresh')
        duration = datetime.now() - log_info.get('start_time', datetime.now())

        if failures:
            refresh_logger.error(f"Refresh finished with {len(failures)} failed view(s): {sorted(failures)}")
        else:
            refresh_logger.info("Refresh completed")

        refresh_logger.info(f"Refresh duration: {duration}")


_logger = None


def _get_manager():
    global _logger
    if _logger is None:
        _logger = Logger()
    return _logger


def configure_logging(settings):
    """Rebuild the logging manager from an explicit Config."""
    global _logger
    _logger = Logger(settings)
    return _logger


def get_logger(name):
    """Get a logger with the specified name."""
    return _get_manager().get_logger(name)


def log_exception(logger_name, exception, message=None):
    """Log an exception with stack trace."""
    _get_manager().log_exception(logger_name, exception, message)


def refresh_start_log(view_names, snapshot_version=None):
    return _get_manager().refresh_start_log(view_names, snapshot_version)


def refresh_end_log(log_info, failures=None):
    _get_manager().refresh_end_log(log_info, failures)
