"""Configuration layering for the CLI.

Precedence, lowest to highest: built-in Constants, YAML config (explicit
--config or the default locations), CLI flags.
"""

from __future__ import annotations

import logging
import os

from constants import Constants, _load_yaml_config, apply_config, read_config_file

logger = logging.getLogger(__name__)


def load_config(args) -> None:
    """Load the config file named by --config, else the default locations.

    Raises:
        OSError, ValueError: If an explicitly named config cannot be used.
    """
    path = getattr(args, "CONFIG", None)
    if isinstance(path, str) and path.strip():
        cfg = read_config_file(os.path.expanduser(path))
        logger.debug("Loaded config from %s", path)
    else:
        cfg = _load_yaml_config()
    apply_config(cfg)


def apply_cli_overrides(args) -> None:
    """Apply CLI overrides for lookup, cache and target tunables.

    Never raises; a bad value is logged and the configured default kept.
    """
    overrides = (
        ("CACHE_DIR", "CACHE_DIR", os.path.expanduser),
        ("CACHE_TTL", "CACHE_TTL_SEC", int),
        ("PRIMARY_REPO", "TARGET_PRIMARY_REPO", str),
        ("COMMUNITY_REPO", "TARGET_COMMUNITY_REPO", str),
        ("LOOKUP_URL", "LOOKUP_API_BASE", lambda v: str(v).rstrip("/")),
    )
    for arg_name, attr, convert in overrides:
        value = getattr(args, arg_name, None)
        if value is None:
            continue
        try:
            setattr(Constants, attr, convert(value))
        except (TypeError, ValueError) as exc:
            logger.warning("Ignoring invalid --%s value %r: %s",
                           arg_name.lower().replace("_", "-"), value, exc)
    if getattr(args, "PROJECT_FALLBACK", False):
        Constants.LOOKUP_PROJECT_FALLBACK = True
