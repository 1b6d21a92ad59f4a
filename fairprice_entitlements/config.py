"""
FairPrice Entitlements Configuration

Builds EntitlementConfig once at startup from an optional JSON file and
environment overrides. The signing secret is never read at call time.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import ValidationError

from .errors import ConfigError
from .types import EntitlementConfig

logger = logging.getLogger(__name__)

# Only usable with FAIRPRICE_ENV=test; any other environment must set a secret.
DEV_SECRET = "dev_secret_change_me"

_STR_ENV = {
    "FAIRPRICE_COOKIE_SECRET": "cookie_secret",
    "FAIRPRICE_COOKIE_NAME": "cookie_name",
    "FAIRPRICE_ENV": "environment",
}

_INT_ENV = {
    "FAIRPRICE_PASS_DAYS": "pass_days",
    "FAIRPRICE_REPORT_DAYS": "report_days",
    "FAIRPRICE_MIN_COOKIE_TTL": "min_cookie_ttl",
}


def load_config(
    config_path: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> EntitlementConfig:
    """
    Load configuration from file and environment.

    Environment variables override file values.

    Raises:
        ConfigError: If the signing secret is missing or a value is invalid.
    """
    if environ is None:
        environ = os.environ

    config_dict: dict = {}

    # Load from file if provided
    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        try:
            with open(path) as f:
                config_dict = json.load(f)
        except ValueError as e:
            raise ConfigError(f"Config file is not valid JSON: {config_path}") from e
        if not isinstance(config_dict, dict):
            raise ConfigError(f"Config file must hold a JSON object: {config_path}")

    # Override with environment variables
    for env_key, field in _STR_ENV.items():
        if environ.get(env_key):
            config_dict[field] = environ[env_key]

    for env_key, field in _INT_ENV.items():
        if environ.get(env_key):
            try:
                config_dict[field] = int(environ[env_key])
            except ValueError as e:
                raise ConfigError(f"{env_key} must be an integer") from e

    # Validate required fields
    if not config_dict.get("cookie_secret"):
        if config_dict.get("environment") != "test":
            raise ConfigError(
                "cookie_secret is required (set FAIRPRICE_COOKIE_SECRET or provide config file)"
            )
        logger.warning("No cookie secret configured; using the test-only development secret")
        config_dict["cookie_secret"] = DEV_SECRET

    try:
        return EntitlementConfig(**config_dict)
    except (ValidationError, TypeError) as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
