from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from vmware_patch.config import ConfigError, MigrationConfig, load_config
from vmware_patch.patching import DEFAULT_BACKUP_DIR


def test_defaults_match_the_migration() -> None:
    config = load_config(environ={})

    assert config.terminal == "ghostty"
    assert config.source_terminal == "alacritty"
    assert config.renderer == "cairo"
    assert config.backup_dir == DEFAULT_BACKUP_DIR
    assert config.install is True


def test_paths_are_derived_from_home(tmp_path: Path) -> None:
    config = MigrationConfig(home=tmp_path)

    assert config.env_file == tmp_path / ".config" / "uwsm" / "env"
    assert config.bindings_file == tmp_path / ".config" / "hypr" / "bindings.conf"
    assert config.menu_file == tmp_path / ".local" / "share" / "omarchy" / "bin" / "omarchy-menu"


def test_yaml_section_is_loaded(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        textwrap.dedent(
            f"""
            migration:
              terminal: kitty
              home: "{tmp_path.as_posix()}"
              install: false
            """
        ),
        encoding="utf-8",
    )

    config = load_config(config_path, environ={})

    assert config.terminal == "kitty"
    assert config.home == tmp_path
    assert config.install is False


def test_precedence_is_override_then_env_then_file(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("terminal: kitty\nrenderer: gl\n", encoding="utf-8")

    from_env = load_config(config_path, environ={"TERMINAL_CMD": "foot"})
    from_cli = load_config(config_path, overrides={"terminal": "wezterm", "renderer": None}, environ={"TERMINAL_CMD": "foot"})

    assert from_env.terminal == "foot"
    assert from_cli.terminal == "wezterm"
    assert from_cli.renderer == "gl"


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "missing.yaml", environ={})


def test_non_mapping_yaml_raises(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="mapping"):
        load_config(config_path, environ={})


def test_unknown_keys_are_rejected(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("terminl: kitty\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid configuration"):
        load_config(config_path, environ={})


def test_terminal_must_be_a_single_word() -> None:
    with pytest.raises(ConfigError):
        load_config(overrides={"terminal": "ghostty; rm -rf ~"}, environ={})


def test_unreadable_config_raises_config_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Unable to read config"):
        load_config(tmp_path, environ={})
