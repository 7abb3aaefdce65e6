"""Tests for YAML/env configuration loading."""
from mission_control.config import CONFIG_ENV, DATA_ENV, Config


def test_defaults_when_file_missing(tmp_path, monkeypatch):
    monkeypatch.delenv(DATA_ENV, raising=False)
    monkeypatch.delenv(CONFIG_ENV, raising=False)
    cfg = Config.load(str(tmp_path / "absent.yaml"))
    assert cfg.port == 3333
    assert cfg.default_user == "Adam"
    assert cfg.link_title_timeout == 5.0
    assert not cfg.data_file.startswith("~")


def test_yaml_values_and_unknown_keys(tmp_path, monkeypatch):
    monkeypatch.delenv(DATA_ENV, raising=False)
    path = tmp_path / "config.yaml"
    path.write_text("port: 8080\ndefault_user: Atticus\nnot_a_setting: 1\n")
    cfg = Config.load(str(path))
    assert cfg.port == 8080
    assert cfg.default_user == "Atticus"


def test_env_overrides(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text(f"data_file: {tmp_path / 'from-yaml.json'}\n")
    monkeypatch.setenv(CONFIG_ENV, str(path))
    monkeypatch.setenv(DATA_ENV, str(tmp_path / "from-env.json"))
    cfg = Config.load()
    assert cfg.data_file == str(tmp_path / "from-env.json")


def test_broken_yaml_falls_back_to_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv(DATA_ENV, raising=False)
    path = tmp_path / "config.yaml"
    path.write_text("port: [unclosed\n")
    assert Config.load(str(path)).port == 3333
