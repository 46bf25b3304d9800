"""Tests for system metadata collection."""

import platform

import pytest

from app_diagnostics.system import SystemInfo, format_bytes


class TestFormatBytes:
    """Tests for format_bytes."""

    @pytest.mark.parametrize(
        "num_bytes,expected",
        [
            (999, "999 bytes"),
            (800_000_000, "800 MB"),
            (8_000_000_000, "8 GB"),
            (1_500_000_000, "1.5 GB"),
            (2_000_000_000_000, "2 TB"),
        ],
    )
    def test_decimal_units(self, num_bytes, expected):
        assert format_bytes(num_bytes) == expected


class TestSystemInfo:
    """Tests for SystemInfo."""

    def test_collect_with_explicit_app(self, tmp_path):
        """Should use the given app name and version."""
        info = SystemInfo.collect(app_name="Demo", app_version="1.0", disk_path=tmp_path)

        assert info.app_name == "Demo"
        assert info.app_version == "1.0"
        assert info.python_version == platform.python_version()
        assert info.total_disk_bytes >= info.free_disk_bytes >= 0

    def test_collect_unknown_distribution(self):
        """An uninstalled distribution has an unknown version."""
        info = SystemInfo.collect(distribution="surely-not-an-installed-distribution")

        assert info.app_name == "surely-not-an-installed-distribution"
        assert info.app_version == "Unknown"

    def test_metadata(self, system_info):
        """Should expose readable key/value pairs."""
        metadata = system_info.metadata()

        assert metadata["App name"] == "Demo"
        assert metadata["App version"] == "1.2.3"
        assert metadata["System"] == "Linux 6.1"
        assert metadata["Free space"] == "8 GB of 64 GB"

    def test_to_dict(self, system_info):
        data = system_info.to_dict()
        assert data["free_disk_bytes"] == 8_000_000_000
        assert data["machine"] == "x86_64"
