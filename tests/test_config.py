"""
Tests for configuration management

Tests cover:
- Configuration loading and defaults
- Persistence of changed values
- Configuration validation
"""
import json

import pytest

from mailsync.utils.config_manager import AppConfig, ConfigManager, SyncConfig
from mailsync.utils.errors import InvalidConfigError, MissingConfigError


class TestConfigManagerInitialization:
    """Tests for ConfigManager initialization"""

    def test_creates_default_file(self, tmp_path):
        """Test a missing config file is created with defaults"""
        ConfigManager.reset_instance()
        path = tmp_path / "config.json"

        manager = ConfigManager(path)

        assert path.exists()
        assert manager.config == AppConfig()
        ConfigManager.reset_instance()

    def test_is_singleton(self, config_manager):
        """Test every ConfigManager() call returns the same instance"""
        assert ConfigManager() is config_manager

    def test_loads_existing_file(self, tmp_path):
        ConfigManager.reset_instance()
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"sync": {"page_size": 25, "primary_folder": "Sent"}}))

        manager = ConfigManager(path)

        assert manager.sync.page_size == 25
        assert manager.sync.primary_folder == "Sent"
        assert manager.sync.poll_interval_minutes == 10
        ConfigManager.reset_instance()


class TestSyncDefaults:
    """Tests for default sync configuration values"""

    def test_defaults(self):
        config = SyncConfig()

        assert config.primary_folder == "INBOX"
        assert config.page_size == 50
        assert config.poll_interval_minutes == 10
        assert config.other_folders == ["Sent", "Drafts", "Trash", "Spam"]
        assert config.monitored_folders == ["INBOX", "Sent", "Drafts", "Trash", "Spam"]
        assert config.live_monitoring is True
        assert config.idle_timeout_seconds == 29 * 60
        assert config.retry_delay_seconds == 30.0


class TestConfigurationValidation:
    """Tests for configuration validation"""

    def test_rejects_non_positive_values(self):
        with pytest.raises(ValueError):
            SyncConfig(page_size=0)
        with pytest.raises(ValueError):
            SyncConfig(poll_interval_minutes=-1)

    def test_invalid_json_raises(self, tmp_path):
        ConfigManager.reset_instance()
        path = tmp_path / "config.json"
        path.write_text("{not json")

        with pytest.raises(InvalidConfigError):
            ConfigManager(path)
        ConfigManager.reset_instance()

    def test_invalid_schema_raises(self, tmp_path):
        ConfigManager.reset_instance()
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"sync": {"page_size": "lots"}}))

        with pytest.raises(InvalidConfigError):
            ConfigManager(path)
        ConfigManager.reset_instance()


class TestSetConfig:
    """Tests for updating configuration values"""

    def test_set_and_persist(self, config_manager):
        config_manager.set_config("sync.poll_interval_minutes", 5)

        saved = json.loads(config_manager.path.read_text())
        assert config_manager.sync.poll_interval_minutes == 5
        assert saved["sync"]["poll_interval_minutes"] == 5

    def test_set_without_persist(self, config_manager):
        config_manager.set_config("sync.page_size", 10, persist=False)

        saved = json.loads(config_manager.path.read_text())
        assert config_manager.sync.page_size == 10
        assert saved["sync"]["page_size"] == 50

    def test_unknown_key_raises(self, config_manager):
        with pytest.raises(MissingConfigError):
            config_manager.set_config("sync.no_such_key", 1)

    def test_reset_to_defaults(self, config_manager):
        config_manager.set_config("sync.page_size", 10)

        config_manager.reset_to_defaults()

        assert config_manager.sync.page_size == 50
