"""
Pytest tests for settings resolution: defaults, YAML file, environment,
flags, precedence between them, and startup validation.
"""

from __future__ import annotations

import pytest

from node_medic.config.settings import load_settings
from node_medic.core.exceptions import ConfigError


@pytest.fixture(autouse=True)
def in_tmp_dir(tmp_path, monkeypatch):
    """Run each test in an empty directory so no stray config.yaml is picked up."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_defaults():
    s = load_settings(argv=[], environ={})
    assert s.eth_url == "http://localhost:8545"
    assert s.max_seconds_behind == 60
    assert s.min_peers == 3
    assert s.request_timeout_sec == 5.0
    assert s.poll_interval_sec == 0.0
    assert s.polling is False
    assert s.listen_port == 8080
    assert s.config_file is None
    t = s.thresholds()
    assert (t.max_seconds_behind, t.min_peers) == (60, 3)


def test_yaml_file_overrides_defaults(in_tmp_dir):
    (in_tmp_dir / "config.yaml").write_text(
        "eth-url: http://nethermind:8545\nmax-seconds-behind: 30\nmin-peers: 10\n",
        encoding="utf-8",
    )
    s = load_settings(argv=[], environ={})
    assert s.eth_url == "http://nethermind:8545"
    assert s.max_seconds_behind == 30
    assert s.min_peers == 10
    assert s.config_file == "config.yaml"


def test_precedence_flags_over_env_over_file(in_tmp_dir):
    (in_tmp_dir / "config.yaml").write_text(
        "eth-url: http://file:8545\nmax-seconds-behind: 10\nmin-peers: 1\npoll-interval: 7\n",
        encoding="utf-8",
    )
    environ = {"ETH_URL": "http://env:8545", "MAX_SECONDS_BEHIND": "20"}
    s = load_settings(argv=["--eth-url", "http://flag:8545"], environ=environ)
    assert s.eth_url == "http://flag:8545"
    assert s.max_seconds_behind == 20
    assert s.min_peers == 1
    assert s.poll_interval_sec == 7.0
    assert s.polling is True


def test_blank_env_values_are_ignored():
    s = load_settings(argv=[], environ={"ETH_URL": "   ", "MIN_PEERS": ""})
    assert s.eth_url == "http://localhost:8545"
    assert s.min_peers == 3


def test_config_path_from_env_and_flag(in_tmp_dir):
    (in_tmp_dir / "a.yaml").write_text("min-peers: 5\n", encoding="utf-8")
    (in_tmp_dir / "b.yaml").write_text("min-peers: 7\n", encoding="utf-8")
    assert load_settings(argv=[], environ={"MEDIC_CONFIG": "a.yaml"}).min_peers == 5
    s = load_settings(argv=["--config", "b.yaml"], environ={"MEDIC_CONFIG": "a.yaml"})
    assert s.min_peers == 7


def test_explicit_missing_config_is_error():
    with pytest.raises(ConfigError, match="not found"):
        load_settings(argv=["--config", "missing.yaml"], environ={})


@pytest.mark.parametrize("content", ["- just\n- a list\n", "eth-url: [unclosed\n"])
def test_invalid_yaml_is_error(in_tmp_dir, content):
    (in_tmp_dir / "config.yaml").write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_settings(argv=[], environ={})


@pytest.mark.parametrize(
    "argv",
    [
        ["--eth-url", "localhost:8545"],
        ["--eth-url", "ftp://node:21"],
        ["--max-seconds-behind", "soon"],
        ["--max-seconds-behind", "-1"],
        ["--min-peers", "-2"],
        ["--request-timeout", "0"],
        ["--poll-interval", "-5"],
        ["--listen-port", "70000"],
        ["--log-level", "verbose"],
        ["--log-format", "xml"],
    ],
)
def test_invalid_values_are_config_errors(argv):
    with pytest.raises(ConfigError):
        load_settings(argv=argv, environ={})


def test_yaml_bool_is_not_a_number(in_tmp_dir):
    (in_tmp_dir / "config.yaml").write_text("min-peers: true\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_settings(argv=[], environ={})


def test_unknown_log_level_from_env_is_error():
    with pytest.raises(ConfigError, match="log-level"):
        load_settings(argv=[], environ={"LOG_LEVEL": "warn"})


def test_log_level_and_format_are_normalized(in_tmp_dir):
    (in_tmp_dir / "config.yaml").write_text("log-format: Console\n", encoding="utf-8")
    s = load_settings(argv=["--log-level", "debug"], environ={})
    assert s.log_level == "DEBUG"
    assert s.log_format == "console"


def test_main_exits_2_on_invalid_log_level(monkeypatch):
    """A bad log level stops startup as a config error before uvicorn is reached."""
    import main

    monkeypatch.setattr("sys.argv", ["node-medic", "--log-level", "verbose"])
    with pytest.raises(SystemExit) as exc:
        main.main()
    assert exc.value.code == 2
