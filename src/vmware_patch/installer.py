"""Provisioning of the target terminal through the system package manager."""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol, Sequence

__all__ = [
    "InstallError",
    "Installer",
    "NullInstaller",
    "PackageManagerInstaller",
]

LOGGER = logging.getLogger(__name__)

Runner = Callable[[Sequence[str]], subprocess.CompletedProcess]
Which = Callable[[str], Optional[str]]
Notify = Callable[[str], None]


class InstallError(RuntimeError):
    """Raised when a required program cannot be provisioned."""


class Installer(Protocol):
    """Capability that makes sure an external program is available."""

    def ensure_installed(self, name: str) -> None:
        ...


class NullInstaller:
    """Installer that assumes everything is already present."""

    def ensure_installed(self, name: str) -> None:
        LOGGER.debug("Skipping installation check for %s", name)


def _run(command: Sequence[str]) -> subprocess.CompletedProcess[str]:
    process = subprocess.run(
        list(command),
        capture_output=True,
        text=False,
        check=False,
    )
    stdout = process.stdout.decode("utf-8", errors="replace") if process.stdout else ""
    stderr = process.stderr.decode("utf-8", errors="replace") if process.stderr else ""
    return subprocess.CompletedProcess(process.args, process.returncode, stdout, stderr)


@dataclass(slots=True)
class PackageManagerInstaller:
    """Install missing programs with an AUR-style package manager (``yay`` by default).

    The package manager is invoked non-interactively as
    ``<package_manager> -S --noconfirm <name>``. In dry-run mode the command
    is only reported. Progress messages go to ``notify`` so the caller can
    show them while the package manager runs.
    """

    package_manager: str = "yay"
    dry_run: bool = False
    runner: Runner = field(default=_run)
    which: Which = field(default=shutil.which)
    notify: Notify = field(default=LOGGER.info)

    def command_for(self, name: str) -> tuple[str, ...]:
        return (self.package_manager, "-S", "--noconfirm", name)

    def ensure_installed(self, name: str) -> None:
        if self.which(name):
            LOGGER.debug("%s already available on PATH", name)
            return

        self.notify(f"{name} not found")
        if not self.which(self.package_manager):
            raise InstallError(
                f"Package manager '{self.package_manager}' not found. Please install {name} manually."
            )

        command = self.command_for(name)
        if self.dry_run:
            self.notify(f"Dry run: would run {' '.join(command)}")
            return

        self.notify(f"Installing {name} with {self.package_manager}...")
        try:
            result = self.runner(command)
        except OSError as error:
            raise InstallError(f"Failed to run {self.package_manager}: {error}") from error
        if result.returncode != 0:
            stderr = result.stderr if isinstance(result.stderr, str) else ""
            stdout = result.stdout if isinstance(result.stdout, str) else ""
            message = stderr.strip() or stdout.strip() or f"exit status {result.returncode}"
            raise InstallError(f"Failed to install {name} via {self.package_manager}: {message}")

        if not self.which(name):
            raise InstallError(f"{name} still not available after attempted install")
