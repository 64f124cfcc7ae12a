"""Post-run checks on the final state of the patched files."""

from __future__ import annotations

import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from .config import MigrationConfig
from .transforms import RENDERER_VAR

__all__ = ["EXPECTED_MENU_MODE", "VerificationReport", "verify_changes"]

EXPECTED_MENU_MODE = 0o755


@dataclass(slots=True)
class VerificationReport:
    """Problems found while inspecting the migrated files."""

    problems: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems

    def format_lines(self) -> List[str]:
        if self.ok:
            return ["verify_changes: OK"]
        return [f"verify_changes: {problem}" for problem in self.problems]


def _count_exports(env_file: Path, variable: str) -> int:
    prefix = f"export {variable}="
    with env_file.open("r", encoding="utf-8", errors="replace") as handle:
        return sum(1 for line in handle if line.startswith(prefix))


def verify_changes(config: MigrationConfig, *, variable: str = RENDERER_VAR) -> VerificationReport:
    """Check the renderer export is present once and the menu script is executable."""
    report = VerificationReport()

    env_file = config.env_file
    if env_file.is_file():
        try:
            count = _count_exports(env_file, variable)
        except OSError as error:
            report.problems.append(f"unable to read {env_file}: {error}")
        else:
            if count != 1:
                report.problems.append(
                    f"expected exactly one {variable} line in {env_file}, found: {count}"
                )
    else:
        report.problems.append(f"{env_file} not found")

    menu_file = config.menu_file
    try:
        menu_stat = menu_file.stat()
    except FileNotFoundError:
        report.problems.append(f"{menu_file} not found")
    except OSError as error:
        report.problems.append(f"unable to stat {menu_file}: {error}")
    else:
        mode = stat.S_IMODE(menu_stat.st_mode)
        if not stat.S_ISREG(menu_stat.st_mode):
            report.problems.append(f"{menu_file} not found")
        elif mode != EXPECTED_MENU_MODE:
            report.problems.append(f"expected {menu_file} mode 755, found: {mode:o}")

    return report
