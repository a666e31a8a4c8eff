"""
Unit tests for configuration and logging setup.
"""
import logging
import os
import shutil
import tempfile
import unittest
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

from retail_analytics.config import Config
from retail_analytics.core.derivations import EngineSettings
from retail_analytics.exceptions import ConfigError, RetailAnalyticsError
from retail_analytics.logging_setup import Logger


class TestConfig(unittest.TestCase):
    """Test cases for Config."""

    def setUp(self):
        """Set up test fixtures."""
        self.directory = Path(tempfile.mkdtemp())
        self.path = self.directory / 'settings.ini'

    def tearDown(self):
        """Tear down test fixtures."""
        shutil.rmtree(self.directory, ignore_errors=True)

    def test_defaults_without_file(self):
        settings = Config(self.path)

        self.assertFalse(self.path.exists())
        self.assertEqual(settings.engine_config, {
            'max_workers': 4,
            'parallel_refresh': True,
            'money_places': 2,
            'day_places': 1,
            'assumed_profit_margin': Decimal('0.30')
        })
        self.assertEqual(settings.db_url, 'sqlite:///retail_analytics.db')
        self.assertTrue(settings.log_config['file_output'])

    def test_reads_ini_file(self):
        self.path.write_text(
            "[DATABASE]\n"
            "url = postgresql://analytics@localhost/retail\n"
            "\n"
            "[ENGINE]\n"
            "max_workers = 8\n"
            "parallel_refresh = no\n"
            "assumed_profit_margin = 0.25\n"
            "\n"
            "[LOGGING]\n"
            "level = DEBUG\n"
            "format = %(levelname)s %(message)s\n"
        )
        settings = Config(self.path)

        self.assertEqual(settings.db_url, 'postgresql://analytics@localhost/retail')
        self.assertEqual(settings.engine_config['max_workers'], 8)
        self.assertFalse(settings.engine_config['parallel_refresh'])
        self.assertEqual(settings.engine_config['assumed_profit_margin'], Decimal('0.25'))
        # Untouched keys keep their defaults
        self.assertEqual(settings.engine_config['money_places'], 2)
        self.assertEqual(settings.log_config['format'], '%(levelname)s %(message)s')

    def test_environment_variables(self):
        self.path.write_text("[ENGINE]\nday_places = 2\n")
        env = {
            'RETAIL_ANALYTICS_CONFIG': str(self.path),
            'RETAIL_ANALYTICS_DB_URL': 'sqlite:///from-env.db'
        }
        with patch.dict(os.environ, env):
            settings = Config()

        self.assertEqual(settings.path, self.path)
        self.assertEqual(settings.engine_config['day_places'], 2)
        with patch.dict(os.environ, env):
            self.assertEqual(settings.db_url, 'sqlite:///from-env.db')

    def test_typed_getters_fall_back_on_bad_values(self):
        settings = Config(self.path)
        settings.set('ENGINE', 'max_workers', 'many')
        settings.set('ENGINE', 'assumed_profit_margin', 'thirty percent')

        self.assertIsNone(settings.get_int('ENGINE', 'max_workers'))
        self.assertEqual(settings.engine_config['max_workers'], 4)
        self.assertEqual(settings.engine_config['assumed_profit_margin'], Decimal('0.30'))
        self.assertEqual(settings.get('MISSING', 'key', 'fallback'), 'fallback')

    def test_save(self):
        settings = Config(self.directory / 'nested' / 'settings.ini')
        settings.set('ENGINE', 'money_places', 3)
        settings.save()

        self.assertEqual(Config(settings.path).get_int('ENGINE', 'money_places'), 3)

    def test_engine_settings_from_config(self):
        settings = Config(self.path)
        settings.set('ENGINE', 'day_places', 0)

        engine = EngineSettings.from_config(settings)
        self.assertEqual(engine.day_places, 0)
        self.assertEqual(str(engine.days(Decimal('8.5'))), '9')

    def test_engine_settings_reject_bad_values(self):
        for key, value in (('money_places', -1), ('assumed_profit_margin', '1.5')):
            with self.subTest(key=key):
                settings = Config(self.path)
                settings.set('ENGINE', key, value)
                with self.assertRaises(ConfigError):
                    EngineSettings.from_config(settings)


class TestLogger(unittest.TestCase):
    """Test cases for the logging manager."""

    def setUp(self):
        """Set up test fixtures."""
        self.directory = Path(tempfile.mkdtemp())
        self.settings = Config(self.directory / 'settings.ini')
        self.settings.set('LOGGING', 'directory', self.directory / 'logs')
        self.settings.set('LOGGING', 'console_output', False)

    def tearDown(self):
        """Tear down test fixtures."""
        for name in ('app', 'refresh'):
            logger = logging.getLogger(name)
            for handler in logger.handlers[:]:
                handler.close()
                logger.removeHandler(handler)
        shutil.rmtree(self.directory, ignore_errors=True)

    def test_file_handler_writes_to_log_directory(self):
        manager = Logger(self.settings)
        log_info = manager.refresh_start_log(['store_sales'], snapshot_version=3)
        manager.refresh_end_log(log_info, failures={'store_sales': RetailAnalyticsError('boom')})
        for handler in manager.get_logger('refresh').handlers:
            handler.flush()

        content = (self.directory / 'logs' / 'refresh.log').read_text()
        self.assertIn('snapshot version 3', content)
        self.assertIn("['store_sales']", content)

    def test_loggers_are_reused(self):
        manager = Logger(self.settings)
        first = manager.get_logger('refresh')

        self.assertIs(manager.get_logger('refresh'), first)
        self.assertEqual(len(first.handlers), 1)
        self.assertFalse(first.propagate)


if __name__ == '__main__':
    unittest.main()
