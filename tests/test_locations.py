from __future__ import annotations

from pathlib import Path

import pytest

import jsoncfg.locations as locations


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.delenv("XDG_CONFIG_DIRS", raising=False)


def _no_home():
    raise RuntimeError("Could not determine home directory.")


def test_user_dirs_override(monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", "/custom/cfg")
    monkeypatch.setenv("HOME", "/home/someone")
    assert locations.user_config_dirs() == [Path("/custom/cfg")]


def test_user_dirs_empty_override_uses_home(monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", "")
    monkeypatch.setenv("HOME", "/home/someone")
    assert locations.user_config_dirs() == [Path("/home/someone/.config")]


def test_user_dirs_default(monkeypatch):
    monkeypatch.setenv("HOME", "/home/someone")
    assert locations.user_config_dirs() == [Path("/home/someone/.config")]


def test_user_dirs_unknown_user(monkeypatch):
    monkeypatch.setattr(Path, "home", _no_home)
    assert locations.user_config_dirs() == []


def test_system_dirs_default():
    assert locations.system_config_dirs() == [Path("/usr/local/etc/xdg"), Path("/usr/local/etc")]


def test_system_dirs_empty_override(monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_DIRS", "")
    assert locations.system_config_dirs() == [Path(d) for d in locations.DEFAULT_SYSTEM_DIRS]


def test_system_dirs_override_appends_missing_defaults(monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_DIRS", "/a:/usr/local/etc")
    assert locations.system_config_dirs() == [
        Path("/a"),
        Path("/usr/local/etc"),
        Path("/usr/local/etc/xdg"),
    ]


def test_system_dirs_override_is_cleaned_and_deduplicated(monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_DIRS", "/etc/xdg/:/usr/local/etc/xdg/./:/etc/../etc/xdg::/b")
    assert [str(p) for p in locations.system_config_dirs()] == [
        "/etc/xdg",
        "/usr/local/etc/xdg",
        "/b",
        "/usr/local/etc",
    ]


def test_config_file_candidates(monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", "/home/someone/.config")
    monkeypatch.setenv("XDG_CONFIG_DIRS", "/etc/xdg")
    assert locations.config_file_candidates("myapp") == [
        Path("/home/someone/.config/myapp/config.json"),
        Path("/etc/xdg/myapp/config.json"),
        Path("/usr/local/etc/xdg/myapp/config.json"),
        Path("/usr/local/etc/myapp/config.json"),
    ]


def test_find_config_file(tmp_path, monkeypatch):
    user = tmp_path / "user"
    system = tmp_path / "system"
    (system / "myapp").mkdir(parents=True)
    (system / "myapp" / "settings.json").write_text("{}")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(user))
    monkeypatch.setenv("XDG_CONFIG_DIRS", str(system))

    assert locations.find_config_file("myapp", "settings.json") == system / "myapp" / "settings.json"

    (user / "myapp").mkdir(parents=True)
    (user / "myapp" / "settings.json").write_text("{}")
    assert locations.find_config_file("myapp", "settings.json") == user / "myapp" / "settings.json"

    assert locations.find_config_file("otherapp") is None


def test_system_dirs_leading_double_slash_matches_default(monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_DIRS", "//usr/local/etc:///a//b/")
    assert [str(p) for p in locations.system_config_dirs()] == [
        "/usr/local/etc",
        "/a/b",
        "/usr/local/etc/xdg",
    ]
