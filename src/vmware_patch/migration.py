"""Ordered migration of terminal references across the desktop config files."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .config import MigrationConfig
from .installer import Installer, NullInstaller, PackageManagerInstaller
from .patching import Failed, PatchApplier, PatchResult, Transform
from .transforms import (
    chain,
    pin_renderer,
    replace_env_terminal,
    replace_terminal_binding,
    rewrite_menu_terminal,
)
from .verify import VerificationReport, verify_changes

__all__ = [
    "MigrationReport",
    "PatchTarget",
    "build_installer",
    "build_targets",
    "run_migration",
]

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class PatchTarget:
    """One file in the migration together with the transform applied to it."""

    name: str
    path: Path
    transform: Transform


@dataclass(slots=True)
class MigrationReport:
    """Outcome of a migration run."""

    dry_run: bool
    results: List[PatchResult] = field(default_factory=list)
    verification: Optional[VerificationReport] = None

    @property
    def ok(self) -> bool:
        return not any(isinstance(result, Failed) for result in self.results)

    @property
    def failures(self) -> List[Failed]:
        return [result for result in self.results if isinstance(result, Failed)]

    def counts(self) -> dict[str, int]:
        return dict(Counter(result.status for result in self.results))


def build_targets(config: MigrationConfig) -> List[PatchTarget]:
    """Return the files to patch, in the order they are applied."""
    source, terminal = config.source_terminal, config.terminal
    return [
        PatchTarget(
            name="env",
            path=config.env_file,
            transform=chain(pin_renderer(config.renderer), replace_env_terminal(source, terminal)),
        ),
        PatchTarget(
            name="bindings",
            path=config.bindings_file,
            transform=replace_terminal_binding(source, terminal),
        ),
        PatchTarget(
            name="menu",
            path=config.menu_file,
            transform=rewrite_menu_terminal(source, terminal),
        ),
    ]


def build_installer(
    config: MigrationConfig,
    *,
    dry_run: bool = False,
    notify: Optional[Callable[[str], None]] = None,
) -> Installer:
    if not config.install:
        return NullInstaller()
    installer = PackageManagerInstaller(package_manager=config.package_manager, dry_run=dry_run)
    if notify is not None:
        installer.notify = notify
    return installer


def run_migration(
    config: MigrationConfig,
    *,
    dry_run: bool = False,
    applier: PatchApplier | None = None,
    installer: Installer | None = None,
    targets: Sequence[PatchTarget] | None = None,
) -> MigrationReport:
    """Install the terminal, patch every target, then verify the result.

    :class:`~vmware_patch.installer.InstallError` propagates and aborts the run
    before any file is touched. Patch failures are recorded per file and do
    not stop the remaining targets.
    """
    applier = applier or PatchApplier(backup_dir=config.backup_dir)
    installer = installer or build_installer(config, dry_run=dry_run)

    installer.ensure_installed(config.terminal)

    report = MigrationReport(dry_run=dry_run)
    for target in targets if targets is not None else build_targets(config):
        LOGGER.debug("Applying %s patch to %s", target.name, target.path)
        result = applier.apply(target.path, target.transform, dry_run=dry_run)
        report.results.append(result)

    if config.verify:
        report.verification = verify_changes(config)

    LOGGER.info("Migration finished: %s", report.counts())
    return report
