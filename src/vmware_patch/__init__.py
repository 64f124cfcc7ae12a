"""Idempotent terminal migration for Hyprland/uwsm desktops."""

from .config import ConfigError, MigrationConfig, load_config
from .installer import InstallError, Installer, NullInstaller, PackageManagerInstaller
from .migration import MigrationReport, PatchTarget, build_targets, run_migration
from .patching import (
    Applied,
    Failed,
    PatchApplier,
    PatchError,
    PatchRequest,
    PatchResult,
    Skipped,
    Unchanged,
    WouldChange,
    apply_patch,
)
from .verify import VerificationReport, verify_changes

__all__ = [
    "Applied",
    "ConfigError",
    "Failed",
    "InstallError",
    "Installer",
    "MigrationConfig",
    "MigrationReport",
    "NullInstaller",
    "PackageManagerInstaller",
    "PatchApplier",
    "PatchError",
    "PatchRequest",
    "PatchResult",
    "PatchTarget",
    "Skipped",
    "Unchanged",
    "VerificationReport",
    "WouldChange",
    "apply_patch",
    "build_targets",
    "load_config",
    "run_migration",
    "verify_changes",
]
