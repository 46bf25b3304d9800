"""System and application metadata collection.

Pure data fetch: OS name and version, Python runtime, free/total disk
space, and the host application's name and version. Consumed by the
session marker, the metadata chapter, and the storage insight.
"""

import logging
import os
import platform
import shutil
import sys
from dataclasses import dataclass, asdict
from importlib import metadata
from pathlib import Path
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"

_BYTE_UNITS = ["bytes", "KB", "MB", "GB", "TB", "PB"]


def format_bytes(num_bytes: int) -> str:
    """Format a byte count with decimal (1000-based) units, e.g. ``800 MB``."""
    value = float(num_bytes)
    unit = _BYTE_UNITS[0]
    for unit in _BYTE_UNITS:
        if abs(value) < 1000 or unit == _BYTE_UNITS[-1]:
            break
        value /= 1000

    if unit == "bytes":
        return f"{int(value)} bytes"
    if value == int(value):
        return f"{int(value)} {unit}"
    return f"{value:.1f} {unit}"


def default_app_name() -> str:
    name = Path(sys.argv[0]).stem if sys.argv and sys.argv[0] else ""
    return name or UNKNOWN


def _distribution_version(distribution: Optional[str]) -> str:
    if not distribution:
        return UNKNOWN
    try:
        return metadata.version(distribution)
    except metadata.PackageNotFoundError:
        logger.debug(f"Distribution not installed: {distribution}")
        return UNKNOWN


@dataclass(frozen=True)
class SystemInfo:
    """Snapshot of device and application metadata."""

    app_name: str = UNKNOWN
    app_version: str = UNKNOWN
    distribution: Optional[str] = None
    system_name: str = UNKNOWN
    system_version: str = UNKNOWN
    machine: str = UNKNOWN
    python_version: str = UNKNOWN
    free_disk_bytes: int = 0
    total_disk_bytes: int = 0

    @property
    def free_disk_space(self) -> str:
        return format_bytes(self.free_disk_bytes)

    @property
    def total_disk_space(self) -> str:
        return format_bytes(self.total_disk_bytes)

    @classmethod
    def collect(
        cls,
        app_name: Optional[str] = None,
        distribution: Optional[str] = None,
        app_version: Optional[str] = None,
        disk_path: Optional[Path] = None,
    ) -> "SystemInfo":
        """Collect metadata for the running process.

        Args:
            app_name: Display name of the host application
            distribution: Installed distribution name used for version lookups
            app_version: Explicit version, overrides the distribution lookup
            disk_path: Path whose volume is measured (default: home directory)
        """
        free_bytes, total_bytes = 0, 0
        try:
            usage = shutil.disk_usage(str(disk_path or Path.home()))
            free_bytes, total_bytes = usage.free, usage.total
        except OSError as e:
            logger.debug(f"Failed to read disk usage: {e}")

        return cls(
            app_name=app_name or distribution or default_app_name(),
            app_version=app_version or _distribution_version(distribution),
            distribution=distribution,
            system_name=platform.system() or os.name or UNKNOWN,
            system_version=platform.release() or UNKNOWN,
            machine=platform.machine() or UNKNOWN,
            python_version=platform.python_version(),
            free_disk_bytes=free_bytes,
            total_disk_bytes=total_bytes,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    def metadata(self) -> Dict[str, str]:
        """Human readable key/value pairs for reports and session markers."""
        return {
            "App name": self.app_name,
            "App version": self.app_version,
            "System": f"{self.system_name} {self.system_version}",
            "Machine": self.machine,
            "Python": self.python_version,
            "Free space": f"{self.free_disk_space} of {self.total_disk_space}",
        }
