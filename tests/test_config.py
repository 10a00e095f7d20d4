from __future__ import annotations

from pathlib import Path

import pytest

from ripfind.app import config


def test_missing_config_yields_defaults(tmp_path):
    settings = config.load_settings(tmp_path / "absent.yaml")
    assert settings.tool_path == "rg"
    assert settings.search_dirs == ["."]
    assert settings.debounce_ms == 300
    assert settings.history_path == config.DEFAULT_HISTORY_PATH
    assert settings.history_limit is None
    assert settings.theme == "dark"


def test_empty_config_yields_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    assert config.load_settings(path) == config.SearchSettings()


def test_config_values_are_read(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "ripgrep_path: /usr/local/bin/rg\n"
        "search_dirs:\n"
        "  - ~/code\n"
        "  - /srv/docs\n"
        "debounce_ms: 150\n"
        "history_path: state/history.json\n"
        "history_limit: 25\n"
        "theme: system\n",
        encoding="utf-8",
    )
    settings = config.load_settings(path)
    assert settings.tool_path == "/usr/local/bin/rg"
    assert settings.search_dirs == ["~/code", "/srv/docs"]
    assert settings.debounce_ms == 150
    assert settings.history_path == tmp_path / "state" / "history.json"
    assert settings.history_limit == 25
    assert settings.theme == "system"


def test_single_search_dir_string_is_accepted(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("search_dirs: src\n", encoding="utf-8")
    assert config.load_settings(path).search_dirs == ["src"]


def test_invalid_values_fall_back_to_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "ripgrep_path: ''\n"
        "search_dirs: {a: 1}\n"
        "debounce_ms: soon\n"
        "history_limit: -4\n"
        "theme: neon\n",
        encoding="utf-8",
    )
    settings = config.load_settings(path)
    assert settings.tool_path == "rg"
    assert settings.search_dirs == ["."]
    assert settings.debounce_ms == 300
    assert settings.history_limit is None
    assert settings.theme == "dark"


@pytest.mark.parametrize("value, expected", [(1, 50), (300, 300), (999999, 5000), ("250", 250), (None, 300)])
def test_clamp_debounce_ms(value, expected):
    assert config.clamp_debounce_ms(value) == expected


def test_malformed_yaml_raises_config_error(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("search_dirs: [unclosed\n", encoding="utf-8")
    with pytest.raises(config.ConfigError):
        config.load_settings(path)


def test_non_mapping_document_raises_config_error(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(config.ConfigError):
        config.load_settings(path)


def test_env_var_selects_config_file(tmp_path, monkeypatch):
    path = tmp_path / "custom.yaml"
    path.write_text("ripgrep_path: grep-tool\n", encoding="utf-8")
    monkeypatch.setenv("RIPFIND_CONFIG", str(path))
    assert config.default_config_path() == path
    assert config.load_settings().tool_path == "grep-tool"


def test_resolve_tool_finds_nothing_for_missing_executable(tmp_path):
    assert config.resolve_tool(str(tmp_path / "nope")) is None
