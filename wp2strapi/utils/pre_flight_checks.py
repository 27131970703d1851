from __future__ import annotations

from typing import Any, Dict
from urllib.parse import urlparse

import requests

from .errors import ConfigError

REQUIRED_STRAPI_KEYS = ("base_url", "upload_path", "posts_path")


class PreFlightCheckError(ConfigError):
    """Raised when the destination cannot be reached before the run starts."""
    pass


def is_valid_base_url(value: Any) -> bool:
    if not isinstance(value, str) or not value.strip():
        return False
    parsed = urlparse(value.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def is_valid_path(value: Any) -> bool:
    """An absolute path that can be appended to a base URL as is."""
    if not isinstance(value, str) or not value.startswith("/") or value.startswith("//"):
        return False
    return "://" not in value and not any(ch.isspace() for ch in value)


def validate_config(config: Dict[str, Any], *, require_source: bool = False) -> None:
    """
    Verifies that the configuration holds everything the import needs.

    Args:
        config: The application configuration dictionary.
        require_source: Also require the WordPress section (needed when the
            posts are fetched by the tool itself).

    Raises:
        ConfigError: If a required value is missing or malformed.
    """
    strapi = config.get("strapi") or {}
    missing = [f"strapi.{key}" for key in REQUIRED_STRAPI_KEYS if not strapi.get(key)]
    if require_source:
        wordpress = config.get("wordpress") or {}
        missing.extend(f"wordpress.{key}" for key in ("base_url", "posts_path") if not wordpress.get(key))
    if missing:
        raise ConfigError(f"Missing required configuration: {', '.join(missing)}")

    if not is_valid_base_url(strapi["base_url"]):
        raise ConfigError(f"Invalid strapi.base_url in configuration: {strapi['base_url']!r}")
    if require_source and not is_valid_base_url(config["wordpress"]["base_url"]):
        raise ConfigError(f"Invalid wordpress.base_url in configuration: {config['wordpress']['base_url']!r}")

    paths = [(f"strapi.{key}", strapi[key]) for key in ("upload_path", "posts_path")]
    if require_source:
        paths.append(("wordpress.posts_path", config["wordpress"]["posts_path"]))
    for name, value in paths:
        if not is_valid_path(value):
            raise ConfigError(f"{name} must be an absolute path such as /api/posts, got {value!r}")

    timeout = strapi.get("timeout")
    if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0):
        raise ConfigError(f"strapi.timeout must be a positive number, got {timeout!r}")


def check_destination_reachable(config: Dict[str, Any]) -> None:
    """
    Verifies that the Strapi posts endpoint answers before any work starts.

    Raises:
        PreFlightCheckError: If the endpoint is unreachable or refuses access.
    """
    strapi = config["strapi"]
    url = f"{strapi['base_url'].rstrip('/')}{strapi['posts_path']}"
    headers = {}
    if strapi.get("api_token"):
        headers["Authorization"] = f"Bearer {strapi['api_token']}"

    try:
        response = requests.get(url, headers=headers, timeout=strapi.get("timeout") or 10)
        response.raise_for_status()
    except requests.HTTPError as e:
        if e.response is not None and e.response.status_code in (401, 403):
            raise PreFlightCheckError("The Strapi API token is missing, invalid or lacks permission on the posts endpoint.")
        raise PreFlightCheckError(f"Unexpected error while checking the Strapi posts endpoint: {e}")
    except requests.RequestException as e:
        raise PreFlightCheckError(f"Network error while connecting to Strapi at {url}: {e}")
