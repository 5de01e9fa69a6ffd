"""Constants used in the project."""

import json
import logging
import os
from enum import Enum

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    CACHE_ERROR = 4
    INTERRUPTED = 130


class OutputFormats(Enum):
    """Mapping report formats supported by the exporter.

    Args:
        Enum (string): Output formats.
    """

    TEXT = "text"
    JSON = "json"
    CSV = "csv"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    PROGRAM_NAME = "distromap"
    VERSION = "1.0.0"
    PROJECT_URL = "https://github.com/doublegate/container-pkg-map"
    CONTACT_EMAIL = "parobek@gmail.com"

    # Lookup service (Repology API v1)
    LOOKUP_API_BASE = "https://repology.org/api/v1"
    LOOKUP_SERVICE_ROOT = "https://repology.org"
    LOOKUP_PROJECT_FALLBACK = False

    # HTTP behaviour
    CONNECT_TIMEOUT = 10  # seconds, per attempt
    REQUEST_TIMEOUT = 30  # read timeout in seconds for all HTTP requests
    PREFLIGHT_TIMEOUT = 5
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 2
    RATE_LIMIT_INTERVAL_SEC = 1.0

    # Cache
    CACHE_TTL_SEC = 24 * 60 * 60
    CACHE_DIR = os.path.join(
        os.environ.get("XDG_CACHE_HOME") or os.path.expanduser("~/.cache"),
        "distromap",
    )

    # Target distribution repositories, in precedence order
    TARGET_PRIMARY_REPO = "arch"
    TARGET_COMMUNITY_REPO = "aur"
    SOURCE_DISTRO_LABEL = "Fedora"
    TARGET_DISTRO_LABEL = "Arch Linux"
    FEDORA_FAMILY_IDS = ["fedora", "bazzite", "silverblue", "kinoite"]

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "DISTROMAP_LOG_LEVEL"
    ENV_CONFIG = "DISTROMAP_CONFIG"
    NOT_FOUND_MARKER = "[NOT FOUND]"
    SUPPORTED_FORMATS = [fmt.value for fmt in OutputFormats]


def user_agent() -> str:
    """Identifying client header required by the lookup service's usage policy."""
    return (
        f"{Constants.PROGRAM_NAME}/{Constants.VERSION} "
        f"({Constants.PROJECT_URL}; mailto:{Constants.CONTACT_EMAIL})"
    )


def _default_config_paths():
    """Return candidate config file locations in priority order."""
    paths = []
    env_path = os.environ.get(Constants.ENV_CONFIG)
    if env_path:
        paths.append(env_path)
    paths.append(os.path.join(os.getcwd(), "distromap.yml"))
    paths.append(os.path.join(os.getcwd(), "distromap.yaml"))
    xdg = os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser("~/.config")
    paths.append(os.path.join(xdg, "distromap", "config.yml"))
    return paths


def read_config_file(path):
    """Parse a YAML (or .json) config file and return its mapping.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the content is not a mapping or fails to parse.
    """
    with open(path, "r", encoding="utf-8") as fh:
        if path.lower().endswith(".json"):
            try:
                data = json.load(fh)
            except json.JSONDecodeError as exc:
                raise ValueError(f"invalid JSON config {path}: {exc}") from exc
        else:
            import yaml  # pylint: disable=import-outside-toplevel

            try:
                data = yaml.safe_load(fh)
            except yaml.YAMLError as exc:
                raise ValueError(f"invalid YAML config {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"config {path} must contain a mapping at the top level")
    return data


def _load_yaml_config():
    """Load the first config found in the default locations, or {}."""
    for path in _default_config_paths():
        if not os.path.isfile(path):
            continue
        try:
            cfg = read_config_file(path)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable config %s: %s", path, exc)
            continue
        logger.debug("Loaded config from %s", path)
        return cfg
    return {}


_TRUE_WORDS = {"true", "yes", "on", "1"}
_FALSE_WORDS = {"false", "no", "off", "0"}


def _to_bool(value):
    """Strict boolean conversion for config values; raises ValueError otherwise."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise ValueError(f"expected a boolean, got {value!r}")


# section -> {yaml key: (Constants attribute, converter)}
_CONFIG_SCHEMA = {
    "lookup": {
        "base_url": ("LOOKUP_API_BASE", lambda v: str(v).rstrip("/")),
        "service_root": ("LOOKUP_SERVICE_ROOT", str),
        "project_fallback": ("LOOKUP_PROJECT_FALLBACK", _to_bool),
        "connect_timeout": ("CONNECT_TIMEOUT", float),
        "read_timeout": ("REQUEST_TIMEOUT", float),
        "retries": ("HTTP_RETRY_MAX", int),
        "retry_delay": ("HTTP_RETRY_BASE_DELAY_SEC", float),
        "rate_limit_interval": ("RATE_LIMIT_INTERVAL_SEC", float),
    },
    "cache": {
        "directory": ("CACHE_DIR", lambda v: os.path.expanduser(str(v))),
        "ttl": ("CACHE_TTL_SEC", int),
    },
    "target": {
        "primary_repo": ("TARGET_PRIMARY_REPO", str),
        "community_repo": ("TARGET_COMMUNITY_REPO", str),
        "label": ("TARGET_DISTRO_LABEL", str),
    },
    "source": {
        "label": ("SOURCE_DISTRO_LABEL", str),
        "family_ids": ("FEDORA_FAMILY_IDS", lambda v: [str(x).lower() for x in v]),
    },
}


def apply_config(cfg):
    """Apply a loaded config mapping onto Constants.

    Unknown sections and keys are ignored with a warning; values that fail
    conversion are skipped so one bad entry does not discard the rest.
    """
    if not isinstance(cfg, dict):
        return
    for section, values in cfg.items():
        schema = _CONFIG_SCHEMA.get(section)
        if schema is None:
            logger.warning("Unknown config section '%s' ignored", section)
            continue
        if not isinstance(values, dict):
            logger.warning("Config section '%s' must be a mapping", section)
            continue
        for key, raw in values.items():
            target = schema.get(key)
            if target is None:
                logger.warning("Unknown config key '%s.%s' ignored", section, key)
                continue
            attr, convert = target
            try:
                setattr(Constants, attr, convert(raw))
            except (TypeError, ValueError) as exc:
                logger.warning("Invalid value for '%s.%s': %s", section, key, exc)
