from __future__ import annotations

import sys
import textwrap
from dataclasses import dataclass
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from vmware_patch.config import MigrationConfig  # noqa: E402

ENV_CONTENT = textwrap.dedent(
    """\
    export EDITOR=nvim
    export TERMINAL=alacritty
    """
)

BINDINGS_CONTENT = textwrap.dedent(
    """\
    $terminal = uwsm app -- alacritty
    bindd = SUPER, return, Terminal, exec, $terminal
    """
)

MENU_CONTENT = textwrap.dedent(
    """\
    #!/bin/bash
    show_menu() {
      alacritty --class=Omarchy   -e omarchy-launch-menu
      echo "keep   this"
    }
    """
)


@dataclass(slots=True)
class DesktopHome:
    """Fake home directory populated with the files the migration touches."""

    root: Path
    backup_dir: Path

    @property
    def env_file(self) -> Path:
        return self.root / ".config" / "uwsm" / "env"

    @property
    def bindings_file(self) -> Path:
        return self.root / ".config" / "hypr" / "bindings.conf"

    @property
    def menu_file(self) -> Path:
        return self.root / ".local" / "share" / "omarchy" / "bin" / "omarchy-menu"

    def config(self, **overrides) -> MigrationConfig:
        values = {"home": self.root, "backup_dir": self.backup_dir, "install": False}
        values.update(overrides)
        return MigrationConfig(**values)

    def backups(self) -> list[Path]:
        if not self.backup_dir.exists():
            return []
        return sorted(self.backup_dir.iterdir())


@pytest.fixture()
def desktop_home(tmp_path: Path) -> DesktopHome:
    """Create a home directory with env, bindings and menu files to migrate."""

    home = DesktopHome(root=tmp_path / "home", backup_dir=tmp_path / "backups")
    for path, content in (
        (home.env_file, ENV_CONTENT),
        (home.bindings_file, BINDINGS_CONTENT),
        (home.menu_file, MENU_CONTENT),
    ):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    home.menu_file.chmod(0o755)
    return home


@pytest.fixture(autouse=True)
def _clear_terminal_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TERMINAL_CMD", raising=False)
