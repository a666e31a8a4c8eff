import os
import configparser
from decimal import Decimal, InvalidOperation
from pathlib import Path

DEFAULT_CONFIG_PATH = Path('config') / 'settings.ini'

DEFAULTS = {
    'DATABASE': {
        'url': 'sqlite:///retail_analytics.db',
        'echo': 'False'
    },
    'LOGGING': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        'directory': 'logs',
        'max_size_mb': '10',
        'backup_count': '5',
        'console_output': 'True',
        'file_output': 'True'
    },
    'ENGINE': {
        'max_workers': '4',
        'parallel_refresh': 'True',
        'money_places': '2',
        'day_places': '1',
        # No cost-of-goods data yet, so profit is estimated at a flat margin
        'assumed_profit_margin': '0.30'
    }
}


class Config:
    """Configuration manager for the Retail Analytics engine.

    Settings are read from an INI file. Missing files fall back to the
    built-in defaults; nothing is written to disk until ``save`` is called.
    """

    def __init__(self, config_path=None):
        """Load configuration.

        Args:
            config_path: Optional path to an INI file. Falls back to the
                RETAIL_ANALYTICS_CONFIG environment variable and then to
                config/settings.ini.
        """
        if config_path is None:
            config_path = os.getenv('RETAIL_ANALYTICS_CONFIG', DEFAULT_CONFIG_PATH)
        self._config_path = Path(config_path)
        self._config = configparser.ConfigParser(interpolation=None)
        self._config.read_dict(DEFAULTS)

        if self._config_path.exists():
            self._config.read(self._config_path)

    @property
    def path(self):
        return self._config_path

    def save(self):
        """Save configuration to file."""
        if not self._config_path.parent.exists():
            self._config_path.parent.mkdir(parents=True)
        with open(self._config_path, 'w') as configfile:
            self._config.write(configfile)

    def get(self, section, key, default=None):
        """Get configuration value."""
        try:
            return self._config.get(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return default

    def get_int(self, section, key, default=None):
        """Get configuration value as integer."""
        try:
            return self._config.getint(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def get_float(self, section, key, default=None):
        """Get configuration value as float."""
        try:
            return self._config.getfloat(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def get_boolean(self, section, key, default=None):
        """Get configuration value as boolean."""
        try:
            return self._config.getboolean(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def get_decimal(self, section, key, default=None):
        """Get configuration value as Decimal."""
        value = self.get(section, key)
        if value is None:
            return default
        try:
            return Decimal(value.strip())
        except InvalidOperation:
            return default

    def set(self, section, key, value):
        """Set configuration value (in memory only)."""
        if not self._config.has_section(section):
            self._config.add_section(section)

        self._config.set(section, key, str(value))

    @property
    def db_url(self):
        """SQLAlchemy database URL."""
        return os.getenv('RETAIL_ANALYTICS_DB_URL') or self.get(
            'DATABASE', 'url', DEFAULTS['DATABASE']['url']
        )

    @property
    def log_config(self):
        """Get logging configuration."""
        return {
            'level': self.get('LOGGING', 'level', 'INFO'),
            'format': self.get('LOGGING', 'format', DEFAULTS['LOGGING']['format']),
            'directory': self.get('LOGGING', 'directory', 'logs'),
            'max_size_mb': self.get_int('LOGGING', 'max_size_mb', 10),
            'backup_count': self.get_int('LOGGING', 'backup_count', 5),
            'console_output': self.get_boolean('LOGGING', 'console_output', True),
            'file_output': self.get_boolean('LOGGING', 'file_output', True)
        }

    @property
    def engine_config(self):
        """Get derivation engine configuration."""
        return {
            'max_workers': self.get_int('ENGINE', 'max_workers', 4),
            'parallel_refresh': self.get_boolean('ENGINE', 'parallel_refresh', True),
            'money_places': self.get_int('ENGINE', 'money_places', 2),
            'day_places': self.get_int('ENGINE', 'day_places', 1),
            'assumed_profit_margin': self.get_decimal(
                'ENGINE', 'assumed_profit_margin', Decimal('0.30')
            )
        }


# Default instance for callers that do not pass their own
config = Config()
