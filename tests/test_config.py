"""
Configuration Tests

Tests for loading EntitlementConfig from file and environment.
"""

import json

import pytest

from fairprice_entitlements.config import DEV_SECRET, load_config
from fairprice_entitlements.errors import ConfigError
from fairprice_entitlements.types import EntitlementConfig


class TestLoadConfig:
    def test_reads_secret_from_environment(self):
        config = load_config(environ={"FAIRPRICE_COOKIE_SECRET": "s3cret"})
        assert config.cookie_secret == "s3cret"
        assert config.cookie_name == "fp_ent"
        assert config.pass_days == 30
        assert config.report_days == 30
        assert config.min_cookie_ttl == 60
        assert config.secure_cookies is False

    def test_missing_secret_is_fatal(self):
        with pytest.raises(ConfigError, match="cookie_secret is required"):
            load_config(environ={})

    def test_missing_secret_is_fatal_in_production(self):
        with pytest.raises(ConfigError):
            load_config(environ={"FAIRPRICE_ENV": "production"})

    def test_test_environment_allows_dev_secret(self):
        config = load_config(environ={"FAIRPRICE_ENV": "test"})
        assert config.cookie_secret == DEV_SECRET

    def test_production_enables_secure_cookies(self):
        config = load_config(environ={
            "FAIRPRICE_COOKIE_SECRET": "s",
            "FAIRPRICE_ENV": "production",
        })
        assert config.secure_cookies is True

    def test_integer_overrides(self):
        config = load_config(environ={
            "FAIRPRICE_COOKIE_SECRET": "s",
            "FAIRPRICE_PASS_DAYS": "7",
            "FAIRPRICE_REPORT_DAYS": "14",
            "FAIRPRICE_MIN_COOKIE_TTL": "120",
        })
        assert (config.pass_days, config.report_days, config.min_cookie_ttl) == (7, 14, 120)

    def test_non_integer_override_is_config_error(self):
        with pytest.raises(ConfigError, match="FAIRPRICE_PASS_DAYS must be an integer"):
            load_config(environ={"FAIRPRICE_COOKIE_SECRET": "s", "FAIRPRICE_PASS_DAYS": "soon"})

    def test_out_of_range_value_is_config_error(self):
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(environ={"FAIRPRICE_COOKIE_SECRET": "s", "FAIRPRICE_MIN_COOKIE_TTL": "0"})

    def test_invalid_cookie_name_is_config_error(self):
        with pytest.raises(ConfigError):
            load_config(environ={"FAIRPRICE_COOKIE_SECRET": "s", "FAIRPRICE_COOKIE_NAME": "a b"})

    def test_file_then_environment_override(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"cookie_secret": "from-file", "pass_days": 10}))
        config = load_config(str(path), environ={"FAIRPRICE_PASS_DAYS": "20"})
        assert config.cookie_secret == "from-file"
        assert config.pass_days == 20

    def test_missing_file_is_config_error(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(str(tmp_path / "missing.json"), environ={})

    def test_invalid_json_file_is_config_error(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{nope")
        with pytest.raises(ConfigError, match="not valid JSON"):
            load_config(str(path), environ={})

    def test_defaults_to_process_environment(self, monkeypatch):
        monkeypatch.setenv("FAIRPRICE_COOKIE_SECRET", "from-env")
        assert load_config().cookie_secret == "from-env"


class TestEntitlementConfig:
    def test_repr_hides_secret(self):
        assert "hidden" not in repr(EntitlementConfig(cookie_secret="hidden"))

    def test_explicit_secure_flag_wins(self):
        config = EntitlementConfig(cookie_secret="s", environment="production", secure_cookies=False)
        assert config.secure_cookies is False
