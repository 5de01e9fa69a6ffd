"""Source package inventory: package list files and the host RPM database."""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Iterable, List

import distro

from constants import Constants

logger = logging.getLogger(__name__)

RPM_QUERY = ["rpm", "-qa", "--qf", "%{NAME}\n"]


class InventoryError(Exception):
    """The package inventory could not be produced."""


def normalize_package_list(names: Iterable[str]) -> List[str]:
    """Strip, drop blanks and comments, dedupe, and sort package names."""
    cleaned = set()
    for raw in names:
        name = raw.strip()
        if not name or name.startswith("#"):
            continue
        cleaned.add(name)
    return sorted(cleaned)


def load_pkgs_file(file_name: str) -> List[str]:
    """Loads the packages from a file, one name per line.

    Raises:
        InventoryError: If the file cannot be read.
    """
    try:
        with open(file_name, encoding="utf-8") as file:
            return normalize_package_list(file)
    except (OSError, UnicodeDecodeError) as e:
        raise InventoryError(f"cannot read package list {file_name}: {e}") from e


def host_is_fedora_family() -> bool:
    """True when os-release identifies a Fedora-based host."""
    ids = {distro.id().lower()}
    ids.update(part.lower() for part in distro.like().split())
    variant = distro.os_release_attr("variant_id")
    if variant:
        ids.add(variant.lower())
    return bool(ids & set(Constants.FEDORA_FAMILY_IDS))


def query_host_packages(timeout: int = 120) -> List[str]:
    """Return installed package names from the host RPM database.

    Raises:
        InventoryError: If the host is not Fedora-based or rpm fails.
    """
    if not host_is_fedora_family():
        raise InventoryError(
            f"host ({distro.name(pretty=True) or 'unknown'}) is not a known "
            f"{Constants.SOURCE_DISTRO_LABEL}-based system"
        )
    if shutil.which(RPM_QUERY[0]) is None:
        raise InventoryError("rpm command not found")
    try:
        result = subprocess.run(
            RPM_QUERY,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise InventoryError(f"rpm query failed: {exc}") from exc
    if result.returncode != 0:
        raise InventoryError(f"rpm query failed: {result.stderr.strip()}")
    packages = normalize_package_list(result.stdout.splitlines())
    logger.info("Detected %s host, %d installed packages.",
                distro.name(pretty=True) or Constants.SOURCE_DISTRO_LABEL, len(packages))
    return packages
