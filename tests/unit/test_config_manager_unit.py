"""
Tests for the centralized ConfigManager.

This module tests the configuration management system to ensure it
properly handles environment variables, settings files and validation.
"""

import os
import json
import logging
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from xml_binder.config.binder_defaults import BinderDefaults
from xml_binder.config.config_manager import (
    ConfigManager,
    get_config_manager,
    reset_config_manager,
    ExistConfig,
    SerializationParameters
)
from xml_binder.exceptions import ConfigurationError


ENV_VARS = [
    'XML_BINDER_EXIST_URL',
    'XML_BINDER_EXIST_USER',
    'XML_BINDER_EXIST_PASSWORD',
    'XML_BINDER_ALLOW_EMPTY_PASSWORD',
    'XML_BINDER_REQUEST_TIMEOUT',
    'XML_BINDER_MAX_RESULTS',
    'XML_BINDER_PRETTY_PRINT',
    'XML_BINDER_ENCODING',
    'XML_BINDER_LOG_LEVEL'
]


def clean_environment():
    return {key: value for key, value in os.environ.items() if key not in ENV_VARS}


class TestExistConfig(unittest.TestCase):
    """Test ExistConfig class."""

    @patch.dict(os.environ, clean_environment(), clear=True)
    def test_default_configuration(self):
        """Test default connection configuration."""
        config = ExistConfig.from_environment()

        self.assertEqual(config.url, "http://localhost:8080/exist")
        self.assertEqual(config.user, "admin")
        self.assertEqual(config.password, "")
        self.assertIsNone(config.request_timeout)
        self.assertEqual(config.max_results, BinderDefaults.MAX_RESULTS)
        self.assertFalse(config.allow_empty_password)
        self.assertEqual(config.rest_url, "http://localhost:8080/exist/rest")

    @patch.dict(os.environ, clean_environment(), clear=True)
    def test_environment_variable_override(self):
        """Test connection configuration from environment variables."""
        os.environ['XML_BINDER_EXIST_URL'] = 'http://exist.example:8443/exist/'
        os.environ['XML_BINDER_EXIST_USER'] = 'reader'
        os.environ['XML_BINDER_EXIST_PASSWORD'] = 'secret'
        os.environ['XML_BINDER_REQUEST_TIMEOUT'] = '12.5'
        os.environ['XML_BINDER_MAX_RESULTS'] = '250'
        os.environ['XML_BINDER_ALLOW_EMPTY_PASSWORD'] = 'yes'

        config = ExistConfig.from_environment()

        self.assertEqual(config.user, 'reader')
        self.assertEqual(config.password, 'secret')
        self.assertEqual(config.request_timeout, 12.5)
        self.assertEqual(config.max_results, 250)
        self.assertTrue(config.allow_empty_password)
        self.assertEqual(config.rest_url, 'http://exist.example:8443/exist/rest')

    @patch.dict(os.environ, clean_environment(), clear=True)
    def test_invalid_integer_environment_value(self):
        os.environ['XML_BINDER_MAX_RESULTS'] = 'many'
        with self.assertRaises(ConfigurationError):
            ExistConfig.from_environment()

    def test_validation(self):
        with self.assertRaises(ConfigurationError):
            ExistConfig(url='')
        with self.assertRaises(ConfigurationError):
            ExistConfig(max_results=0)
        with self.assertRaises(ConfigurationError):
            ExistConfig(request_timeout=-1)


class TestSerializationParameters(unittest.TestCase):
    """Test SerializationParameters class."""

    @patch.dict(os.environ, clean_environment(), clear=True)
    def test_default_parameters(self):
        params = SerializationParameters.from_environment()

        self.assertTrue(params.pretty_print)
        self.assertEqual(params.encoding, 'UTF-8')

    @patch.dict(os.environ, clean_environment(), clear=True)
    def test_environment_variable_override(self):
        os.environ['XML_BINDER_PRETTY_PRINT'] = 'false'
        os.environ['XML_BINDER_ENCODING'] = 'ISO-8859-1'

        params = SerializationParameters.from_environment()

        self.assertFalse(params.pretty_print)
        self.assertEqual(params.encoding, 'ISO-8859-1')


class TestConfigManager(unittest.TestCase):
    """Test ConfigManager class."""

    def setUp(self):
        """Set up test environment."""
        self.env_patch = patch.dict(os.environ, clean_environment(), clear=True)
        self.env_patch.start()
        reset_config_manager()
        self.temp_dir = tempfile.TemporaryDirectory()

    def tearDown(self):
        """Clean up test environment."""
        reset_config_manager()
        self.temp_dir.cleanup()
        self.env_patch.stop()

    def write_settings(self, name: str, content: str) -> Path:
        path = Path(self.temp_dir.name) / name
        path.write_text(content, encoding='utf-8')
        return path

    def test_defaults(self):
        manager = ConfigManager()

        self.assertEqual(manager.get_exist_config().url, BinderDefaults.EXIST_URL)
        self.assertTrue(manager.get_serialization_parameters().pretty_print)
        self.assertEqual(manager.get_log_level(), 'WARNING')

    def test_log_level_from_environment(self):
        os.environ['XML_BINDER_LOG_LEVEL'] = 'debug'
        self.assertEqual(ConfigManager().get_log_level(), 'DEBUG')

    def test_yaml_settings_override_environment(self):
        os.environ['XML_BINDER_EXIST_USER'] = 'env-user'
        path = self.write_settings('settings.yaml', (
            "exist:\n"
            "  user: file-user\n"
            "  password: secret\n"
            "  max_results: 50\n"
            "serialization:\n"
            "  pretty_print: false\n"
            "log_level: info\n"
        ))

        manager = ConfigManager(path)

        self.assertEqual(manager.get_exist_config().user, 'file-user')
        self.assertEqual(manager.get_exist_config().password, 'secret')
        self.assertEqual(manager.get_exist_config().max_results, 50)
        self.assertFalse(manager.get_serialization_parameters().pretty_print)
        self.assertEqual(manager.get_log_level(), 'INFO')
        self.assertEqual(manager.settings_path, path)

    def test_json_settings(self):
        path = self.write_settings('settings.json', json.dumps({'exist': {'url': 'https://db.example/exist'}}))

        manager = ConfigManager(path)

        self.assertEqual(manager.get_exist_config().url, 'https://db.example/exist')
        self.assertEqual(manager.get_exist_config().user, 'admin')

    def test_empty_yaml_file(self):
        path = self.write_settings('empty.yml', '')
        manager = ConfigManager(path)
        self.assertEqual(manager.get_exist_config().url, BinderDefaults.EXIST_URL)

    def test_missing_settings_file(self):
        with self.assertRaises(ConfigurationError):
            ConfigManager(Path(self.temp_dir.name) / 'missing.yaml')

    def test_unsupported_settings_format(self):
        path = self.write_settings('settings.ini', '[exist]\nuser=x\n')
        with self.assertRaises(ConfigurationError):
            ConfigManager(path)

    def test_malformed_settings_file(self):
        path = self.write_settings('settings.json', '{"exist": ')
        with self.assertRaises(ConfigurationError):
            ConfigManager(path)

    def test_unknown_section(self):
        path = self.write_settings('settings.yaml', "database:\n  server: x\n")
        with self.assertRaises(ConfigurationError):
            ConfigManager(path)

    def test_unknown_key(self):
        path = self.write_settings('settings.yaml', "exist:\n  host: x\n")
        with self.assertRaises(ConfigurationError):
            ConfigManager(path)

    def test_invalid_value_in_settings(self):
        path = self.write_settings('settings.yaml', "exist:\n  max_results: 0\n")
        with self.assertRaises(ConfigurationError):
            ConfigManager(path)

    def test_validate_configuration(self):
        os.environ['XML_BINDER_EXIST_PASSWORD'] = 'secret'
        self.assertTrue(ConfigManager().validate_configuration())

    def test_validate_configuration_requires_password(self):
        with self.assertLogs('xml_binder.config.config_manager', level='ERROR'):
            self.assertFalse(ConfigManager().validate_configuration())

    def test_validate_configuration_allows_empty_password_when_enabled(self):
        os.environ['XML_BINDER_ALLOW_EMPTY_PASSWORD'] = 'true'
        self.assertTrue(ConfigManager().validate_configuration())

    def test_validate_configuration_rejects_non_http_url(self):
        os.environ['XML_BINDER_EXIST_URL'] = 'xmldb:exist://localhost:8080/exist/xmlrpc'
        os.environ['XML_BINDER_EXIST_PASSWORD'] = 'secret'
        self.assertFalse(ConfigManager().validate_configuration())

    def test_summary_masks_password(self):
        os.environ['XML_BINDER_EXIST_PASSWORD'] = 'secret'

        summary = ConfigManager().get_configuration_summary()

        self.assertEqual(summary['exist']['password'], '***')
        self.assertNotIn('secret', json.dumps(summary))
        self.assertEqual(summary['exist']['rest_url'], 'http://localhost:8080/exist/rest')
        self.assertEqual(summary['logging']['level'], 'WARNING')
        self.assertIsNone(summary['settings_file'])

    def test_global_config_manager(self):
        manager1 = get_config_manager()
        manager2 = get_config_manager()
        self.assertIs(manager1, manager2)

        reset_config_manager()
        self.assertIsNot(manager1, get_config_manager())


class TestBinderDefaults(unittest.TestCase):

    def test_to_dict(self):
        defaults = BinderDefaults.to_dict()
        self.assertEqual(defaults['EXIST_URL'], BinderDefaults.EXIST_URL)
        self.assertNotIn('to_dict', defaults)

    def test_log_summary_masks_password(self):
        with patch.object(BinderDefaults, 'EXIST_PASSWORD', 'secret'):
            with self.assertLogs('binder-test', level='INFO') as captured:
                BinderDefaults.log_summary(logging.getLogger('binder-test'))
        self.assertNotIn('secret', captured.output[0])
