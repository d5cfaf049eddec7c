"""Tests for YAML runtime configuration loading and reload."""

import pytest

from alertbridge.config import Settings
from alertbridge.config.runtime import DEFAULT_SLA_THRESHOLDS_MINUTES
from alertbridge.core import ConfigurationException
from alertbridge.infrastructure.config_provider import YAMLConfigManager

VALID_YAML = """
cmdb:
  base_url: https://cmdb.example.com
  api_token: file-token
  timeout_ms: 2000
webhook:
  ip_allowlist: ["192.0.2.0/24"]
  sources:
    - name: prometheus
      token: prom-token
      signing_secret: prom-secret
tickets:
  project_key: OPS
  service_assignees: {network: netops}
escalation:
  interval_seconds: 60
  sla_thresholds_minutes: {Critical: 15}
  tiers: [l2, l3, duty-manager]
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "alertbridge.yaml"
    path.write_text(VALID_YAML)
    return path


class TestLoad:
    def test_load_valid_file(self, config_file):
        manager = YAMLConfigManager()
        config = manager.load(config_file)

        assert config.cmdb.base_url == "https://cmdb.example.com"
        assert config.cmdb.api_token.get_secret_value() == "file-token"
        assert config.cmdb.timeout_ms == 2000
        assert config.webhook.get_source("prometheus").signing_secret.get_secret_value() == "prom-secret"
        assert config.tickets.project_key == "OPS"
        assert config.tickets.assignee_for_service("Network") == "netops"
        assert config.escalation.sla_thresholds_minutes["critical"] == 15
        assert config.escalation.sla_thresholds_minutes["low"] == DEFAULT_SLA_THRESHOLDS_MINUTES["low"]
        assert manager.get_config() is config

    def test_missing_file_uses_defaults(self, tmp_path):
        config = YAMLConfigManager().load(tmp_path / "absent.yaml")
        assert not config.cmdb.is_configured
        assert config.webhook.sources == []
        assert config.escalation.interval_seconds == 300

    def test_invalid_file_is_fatal_on_load(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("escalation:\n  interval_seconds: 1\n")
        with pytest.raises(ConfigurationException):
            YAMLConfigManager().load(path)

    def test_environment_overrides_cmdb(self, config_file):
        settings = Settings(cmdb_base_url="https://cmdb2.example.com", cmdb_api_token="env-token")
        config = YAMLConfigManager(settings).load(config_file)
        assert config.cmdb.base_url == "https://cmdb2.example.com"
        assert config.cmdb.api_token.get_secret_value() == "env-token"

    def test_get_config_before_load(self):
        with pytest.raises(RuntimeError):
            YAMLConfigManager().get_config()


class TestReload:
    def test_reload_picks_up_changes(self, config_file):
        manager = YAMLConfigManager()
        manager.load(config_file)

        config_file.write_text(VALID_YAML.replace("project_key: OPS", "project_key: ITSM"))

        assert manager.reload() is True
        assert manager.get_config().tickets.project_key == "ITSM"

    def test_invalid_reload_keeps_previous(self, config_file):
        manager = YAMLConfigManager()
        previous = manager.load(config_file)

        config_file.write_text("webhook: [not, a, mapping")

        assert manager.reload() is False
        assert manager.get_config() is previous

    def test_reload_before_load(self):
        assert YAMLConfigManager().reload() is False

    def test_watching_requires_load(self):
        with pytest.raises(RuntimeError):
            YAMLConfigManager().start_watching()

    def test_start_and_stop_watching(self, config_file):
        manager = YAMLConfigManager()
        manager.load(config_file)
        manager.start_watching()
        manager.stop_watching()
        manager.stop_watching()
