"""Tests for source package inventory collection."""

import subprocess
from unittest.mock import patch, MagicMock

import pytest

from mapping.inventory import (
    RPM_QUERY,
    InventoryError,
    host_is_fedora_family,
    load_pkgs_file,
    normalize_package_list,
    query_host_packages,
)


def test_normalize_strips_dedupes_and_sorts():
    raw = ["  vim\n", "bash", "", "# comment", "vim", "\tzsh  "]
    assert normalize_package_list(raw) == ["bash", "vim", "zsh"]


def test_load_pkgs_file(tmp_path):
    pkgs = tmp_path / "fedora-packages.txt"
    pkgs.write_text("vim\nbash\n\nvim\n# kept out\n", encoding="utf-8")
    assert load_pkgs_file(str(pkgs)) == ["bash", "vim"]


def test_load_pkgs_file_missing(tmp_path):
    with pytest.raises(InventoryError):
        load_pkgs_file(str(tmp_path / "absent.txt"))


def _fake_distro(mock_distro, dist_id="fedora", like="", variant=None):
    mock_distro.id.return_value = dist_id
    mock_distro.like.return_value = like
    mock_distro.os_release_attr.return_value = variant
    mock_distro.name.return_value = "Fedora Linux 40"


@pytest.mark.parametrize("dist_id,like,variant,expected", [
    ("fedora", "", None, True),
    ("bazzite", "fedora", None, True),
    ("fedora", "", "silverblue", True),
    ("nobara", "fedora", None, True),
    ("arch", "", None, False),
    ("ubuntu", "debian", None, False),
])
@patch("mapping.inventory.distro")
def test_host_is_fedora_family(mock_distro, dist_id, like, variant, expected):
    _fake_distro(mock_distro, dist_id, like, variant)
    assert host_is_fedora_family() is expected


@patch("mapping.inventory.subprocess.run")
@patch("mapping.inventory.shutil.which", return_value="/usr/bin/rpm")
@patch("mapping.inventory.distro")
def test_query_host_packages(mock_distro, _which, mock_run):
    _fake_distro(mock_distro)
    mock_run.return_value = MagicMock(returncode=0, stdout="vim\nbash\nvim\n", stderr="")

    assert query_host_packages() == ["bash", "vim"]
    args, kwargs = mock_run.call_args
    assert args[0] == RPM_QUERY
    assert kwargs["capture_output"] is True


@patch("mapping.inventory.distro")
def test_query_host_packages_rejects_other_distros(mock_distro):
    _fake_distro(mock_distro, "arch")
    mock_distro.name.return_value = "Arch Linux"
    with pytest.raises(InventoryError, match="not a known Fedora-based system"):
        query_host_packages()


@patch("mapping.inventory.shutil.which", return_value=None)
@patch("mapping.inventory.distro")
def test_query_host_packages_without_rpm(mock_distro, _which):
    _fake_distro(mock_distro)
    with pytest.raises(InventoryError, match="rpm command not found"):
        query_host_packages()


@patch("mapping.inventory.subprocess.run")
@patch("mapping.inventory.shutil.which", return_value="/usr/bin/rpm")
@patch("mapping.inventory.distro")
def test_query_host_packages_failures(mock_distro, _which, mock_run):
    _fake_distro(mock_distro)

    mock_run.return_value = MagicMock(returncode=1, stdout="", stderr="db locked")
    with pytest.raises(InventoryError, match="db locked"):
        query_host_packages()

    mock_run.side_effect = subprocess.TimeoutExpired(RPM_QUERY, 120)
    with pytest.raises(InventoryError):
        query_host_packages()
