"""Shared fixtures for app diagnostics tests."""

import pytest

from app_diagnostics.config import DiagnosticsConfig
from app_diagnostics.logs import DiagnosticsLogger
from app_diagnostics.system import SystemInfo


@pytest.fixture
def log_path(tmp_path):
    """Log file location inside a not yet existing directory."""
    return tmp_path / "logs" / "diagnostics_log.html"


@pytest.fixture
def config(log_path):
    """Config with every process hook disabled."""
    return DiagnosticsConfig(
        log_path=log_path,
        maximum_log_size=64 * 1024,
        capture_output=False,
        monitor_crashes=False,
        testing=True,
    )


@pytest.fixture
def system_info():
    """Fixed metadata so tests never depend on the host."""
    return SystemInfo(
        app_name="Demo",
        app_version="1.2.3",
        distribution=None,
        system_name="Linux",
        system_version="6.1",
        machine="x86_64",
        python_version="3.12.1",
        free_disk_bytes=8_000_000_000,
        total_disk_bytes=64_000_000_000,
    )


@pytest.fixture
def diagnostics_logger(config, system_info):
    """A set up logger, shut down after the test."""
    diagnostics = DiagnosticsLogger(config, system_info=system_info)
    diagnostics.setup()
    yield diagnostics
    diagnostics.shutdown()
