"""Configuration for the diagnostics logger and report compilation."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

# Default storage location
DEFAULT_LOG_DIR = Path.home() / ".app-diagnostics"
DEFAULT_LOG_FILENAME = "diagnostics_log.html"

DEFAULT_MAXIMUM_LOG_SIZE = 2 * 1024 * 1024  # 2 MB
# Smallest bound that still fits a compact fragment
MINIMUM_LOG_SIZE = 128
DEFAULT_TRIM_BATCH_SIZE = 10
DEFAULT_INSIGHT_TIMEOUT = 10.0  # seconds

# Environment variables
ENV_LOG_PATH = "APP_DIAGNOSTICS_LOG_PATH"
ENV_MAXIMUM_LOG_SIZE = "APP_DIAGNOSTICS_MAX_LOG_SIZE"
ENV_CAPTURE_OUTPUT = "APP_DIAGNOSTICS_CAPTURE_OUTPUT"
ENV_TESTING = "APP_DIAGNOSTICS_TESTING"
ENV_PYTEST = "PYTEST_CURRENT_TEST"

_TRUTHY = {"1", "true", "yes", "on"}


def is_running_tests(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Whether the process runs under a test harness."""
    env = os.environ if environ is None else environ
    if env.get(ENV_TESTING, "").strip().lower() in _TRUTHY:
        return True
    return ENV_PYTEST in env


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUTHY


@dataclass
class DiagnosticsConfig:
    """Settings for one process-wide diagnostics logger."""

    log_path: Path = field(default_factory=lambda: DEFAULT_LOG_DIR / DEFAULT_LOG_FILENAME)
    maximum_log_size: int = DEFAULT_MAXIMUM_LOG_SIZE
    trim_batch_size: int = DEFAULT_TRIM_BATCH_SIZE

    # Process hooks installed by setup()
    capture_output: bool = True
    monitor_crashes: bool = True

    # Disables stream capture and lets setup() run again
    testing: bool = field(default_factory=is_running_tests)

    insight_timeout: float = DEFAULT_INSIGHT_TIMEOUT

    def __post_init__(self):
        self.log_path = Path(self.log_path).expanduser()
        if self.maximum_log_size < MINIMUM_LOG_SIZE:
            raise ValueError(
                f"maximum_log_size must be at least {MINIMUM_LOG_SIZE} bytes, "
                f"got {self.maximum_log_size}"
            )
        if self.trim_batch_size <= 0:
            raise ValueError("trim_batch_size must be positive")

    @property
    def intercepts_output(self) -> bool:
        """Whether stdout/stderr should be captured into the log."""
        return self.capture_output and not self.testing

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        **overrides,
    ) -> "DiagnosticsConfig":
        """Build a config from environment variables.

        Explicit keyword overrides win over the environment.
        """
        env = os.environ if environ is None else environ
        values = {"testing": is_running_tests(env)}

        if env.get(ENV_LOG_PATH):
            values["log_path"] = Path(env[ENV_LOG_PATH])
        if env.get(ENV_MAXIMUM_LOG_SIZE):
            try:
                values["maximum_log_size"] = int(env[ENV_MAXIMUM_LOG_SIZE])
            except ValueError:
                raise ValueError(
                    f"{ENV_MAXIMUM_LOG_SIZE} must be an integer byte count, "
                    f"got {env[ENV_MAXIMUM_LOG_SIZE]!r}"
                ) from None
        if env.get(ENV_CAPTURE_OUTPUT):
            values["capture_output"] = _parse_bool(env[ENV_CAPTURE_OUTPUT])

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
