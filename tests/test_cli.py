"""End-to-end tests for the distromap command line."""

import json
import logging
import os
from unittest.mock import patch, MagicMock

import pytest
import requests

from constants import Constants, ExitCodes
from distromap import main
from conftest import search_body

VIM_BODY = search_body("vim", [{"repo": "arch", "binname": "vim"}])


def _fake_get(url, **kwargs):
    res = MagicMock()
    res.status_code = 200
    res.text = VIM_BODY if "search=vim&" in url else "{}"
    return res


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Isolate cwd, config lookup, log level and rate limiting for main()."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(Constants.ENV_CONFIG, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv(Constants.ENV_LOG_LEVEL, "INFO")
    Constants.RATE_LIMIT_INTERVAL_SEC = 0.0
    root_level = logging.getLogger().level
    yield tmp_path
    logging.getLogger().setLevel(root_level)


def _run(argv):
    with pytest.raises(SystemExit) as exc:
        main(argv)
    return exc.value.code


@patch("common.http_client.requests.get", side_effect=_fake_get)
def test_maps_list_file_to_text_output(mock_get, cli_env):
    pkgs = cli_env / "pkgs.txt"
    pkgs.write_text("vim\nnonexistent-pkg-xyz\n", encoding="utf-8")
    out = cli_env / "map.txt"

    code = _run(["-l", str(pkgs), "-o", str(out), "-q", "--no-preflight",
                 "--cache-dir", str(cli_env / "cache")])

    assert code == ExitCodes.SUCCESS.value
    lines = out.read_text(encoding="utf-8").splitlines()
    assert lines[2] == "# Mapped: 1, Not Found: 1"
    assert lines[3:] == ["nonexistent-pkg-xyz -> [NOT FOUND]", "vim -> vim"]
    assert sorted(os.listdir(cli_env / "cache")) == ["nonexistent-pkg-xyz", "vim"]


@patch("common.http_client.requests.get", side_effect=_fake_get)
def test_second_run_is_served_from_cache(mock_get, cli_env):
    argv = ["-p", "vim", "-q", "--no-preflight", "--cache-dir", str(cli_env / "cache"),
            "-o", str(cli_env / "map.json")]

    assert _run(argv) == ExitCodes.SUCCESS.value
    calls_after_first = mock_get.call_count
    assert _run(argv) == ExitCodes.SUCCESS.value

    assert mock_get.call_count == calls_after_first
    data = json.loads((cli_env / "map.json").read_text(encoding="utf-8"))
    assert data["mappings"][0]["fromCache"] is True


@patch("common.http_client.requests.get", side_effect=_fake_get)
def test_prints_mapping_to_stdout(mock_get, cli_env, capsys):
    code = _run(["-p", "vim", "--no-preflight", "--cache-dir", str(cli_env / "cache")])

    assert code == ExitCodes.SUCCESS.value
    assert "vim -> vim" in capsys.readouterr().out


@patch("common.http_client.requests.get", side_effect=_fake_get)
def test_max_packages_cap(mock_get, cli_env):
    out = cli_env / "map.csv"
    code = _run(["-p", "a", "-p", "b", "-p", "c", "--max-packages", "2", "-q",
                 "--no-preflight", "--cache-dir", str(cli_env / "cache"), "-o", str(out)])

    assert code == ExitCodes.SUCCESS.value
    assert mock_get.call_count == 2
    assert len(out.read_text(encoding="utf-8").splitlines()) == 3


@patch("common.http_client.requests.get", side_effect=requests.ConnectionError("down"))
def test_preflight_failure_exits_with_connection_error(mock_get, cli_env):
    code = _run(["-p", "vim", "-q", "--cache-dir", str(cli_env / "cache")])

    assert code == ExitCodes.CONNECTION_ERROR.value
    mock_get.assert_called_once()


@patch("common.http_client.requests.get", side_effect=_fake_get)
def test_unusable_cache_dir_is_fatal(mock_get, cli_env):
    blocker = cli_env / "blocker"
    blocker.write_text("x")

    code = _run(["-p", "vim", "-q", "--no-preflight", "--cache-dir", str(blocker / "cache")])

    assert code == ExitCodes.CACHE_ERROR.value
    mock_get.assert_not_called()


def test_missing_list_file_exits_with_file_error(cli_env):
    code = _run(["-l", str(cli_env / "absent.txt"), "-q", "--no-preflight"])
    assert code == ExitCodes.FILE_ERROR.value


def test_bad_explicit_config_exits_with_file_error(cli_env):
    bad = cli_env / "bad.yml"
    bad.write_text("- not\n- a mapping\n", encoding="utf-8")

    code = _run(["-p", "vim", "-q", "--no-preflight", "-c", str(bad)])

    assert code == ExitCodes.FILE_ERROR.value


def test_empty_list_is_success(cli_env):
    pkgs = cli_env / "empty.txt"
    pkgs.write_text("\n# nothing here\n", encoding="utf-8")

    assert _run(["-l", str(pkgs), "-q", "--no-preflight"]) == ExitCodes.SUCCESS.value


@patch("common.http_client.requests.get", side_effect=_fake_get)
def test_clear_cache_forces_refresh(mock_get, cli_env):
    cache_dir = cli_env / "cache"
    cache_dir.mkdir()
    (cache_dir / "vim").write_text("stale-name", encoding="utf-8")
    out = cli_env / "map.txt"

    code = _run(["-p", "vim", "-q", "--no-preflight", "--clear-cache",
                 "--cache-dir", str(cache_dir), "-o", str(out)])

    assert code == ExitCodes.SUCCESS.value
    assert "vim -> vim" in out.read_text(encoding="utf-8")
    assert mock_get.call_count == 1


@patch("common.http_client.requests.get", side_effect=_fake_get)
def test_log_level_from_environment(mock_get, cli_env, monkeypatch):
    monkeypatch.setenv(Constants.ENV_LOG_LEVEL, "DEBUG")

    code = _run(["-p", "vim", "-q", "--no-preflight", "--cache-dir", str(cli_env / "cache")])

    assert code == ExitCodes.SUCCESS.value
    assert logging.getLogger().level == logging.DEBUG


@patch("common.http_client.requests.get", side_effect=_fake_get)
def test_loglevel_flag_overrides_environment(mock_get, cli_env, monkeypatch):
    monkeypatch.setenv(Constants.ENV_LOG_LEVEL, "DEBUG")

    _run(["-p", "vim", "-q", "--no-preflight", "--loglevel", "warning",
          "--cache-dir", str(cli_env / "cache")])

    assert logging.getLogger().level == logging.WARNING


@patch("common.http_client.requests.get", side_effect=_fake_get)
def test_successful_output_written(mock_get, cli_env):
    full = cli_env / "map.txt"
    found_only = cli_env / "map_successful.txt"

    code = _run(["-p", "vim", "-p", "nonexistent-pkg-xyz", "-q", "--no-preflight",
                 "--cache-dir", str(cli_env / "cache"),
                 "-o", str(full), "--successful-output", str(found_only)])

    assert code == ExitCodes.SUCCESS.value
    assert found_only.read_text(encoding="utf-8") == "vim -> vim\n"
    assert "[NOT FOUND]" in full.read_text(encoding="utf-8")


@patch("distromap.BatchDriver.run", side_effect=KeyboardInterrupt)
def test_second_interrupt_exits_cleanly(mock_run, cli_env):
    code = _run(["-p", "vim", "-q", "--no-preflight", "--cache-dir", str(cli_env / "cache")])

    assert code == ExitCodes.INTERRUPTED.value
