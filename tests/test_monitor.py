"""Tests for crash monitoring."""

import sys
import threading

import pytest

from app_diagnostics.logs.monitor import UNCAUGHT_EXCEPTION, CrashMonitor, exception_entry


def raised(exc):
    try:
        raise exc
    except BaseException as e:
        return type(e), e, e.__traceback__


@pytest.fixture
def previous_hooks(monkeypatch):
    """Stand-ins for the interpreter's own hooks."""
    calls = {"sys": [], "thread": []}
    monkeypatch.setattr(sys, "excepthook", lambda *args: calls["sys"].append(args))
    monkeypatch.setattr(threading, "excepthook", lambda args: calls["thread"].append(args))
    return calls


class TestExceptionEntry:
    """Tests for exception_entry."""

    def test_builds_error_with_traceback(self):
        entry = exception_entry(*raised(RuntimeError("disk on fire")))

        assert entry.error_type == "RuntimeError"
        assert UNCAUGHT_EXCEPTION in entry.description
        assert "disk on fire" in entry.description
        assert "Traceback" in entry.details
        assert entry.origin.function == "raised"


class TestCrashMonitor:
    """Tests for CrashMonitor."""

    def test_start_and_stop_restore_hooks(self, previous_hooks):
        original = sys.excepthook
        monitor = CrashMonitor(on_crash=lambda entry: None)

        monitor.start()
        assert monitor.is_running
        assert sys.excepthook is not original

        monitor.stop()
        assert not monitor.is_running
        assert sys.excepthook is original

    def test_records_and_chains(self, previous_hooks):
        """Uncaught exceptions are recorded and passed on."""
        entries = []
        monitor = CrashMonitor(on_crash=entries.append)
        monitor.start()
        try:
            sys.excepthook(*raised(ValueError("bad input")))
        finally:
            monitor.stop()

        assert len(entries) == 1
        assert entries[0].error_type == "ValueError"
        assert len(previous_hooks["sys"]) == 1

    def test_ignores_keyboard_interrupt(self, previous_hooks):
        entries = []
        monitor = CrashMonitor(on_crash=entries.append)
        monitor.start()
        try:
            sys.excepthook(*raised(KeyboardInterrupt()))
        finally:
            monitor.stop()

        assert entries == []
        assert len(previous_hooks["sys"]) == 1

    def test_thread_exceptions(self, previous_hooks):
        """Exceptions escaping a thread are recorded with its name."""
        entries = []
        monitor = CrashMonitor(on_crash=entries.append)

        def work():
            raise RuntimeError("worker failed")

        monitor.start()
        try:
            thread = threading.Thread(target=work, name="upload-worker")
            thread.start()
            thread.join()
        finally:
            monitor.stop()

        assert len(entries) == 1
        assert "in thread upload-worker" in entries[0].description
        assert len(previous_hooks["thread"]) == 1

    def test_recording_failure_is_swallowed(self, previous_hooks):
        def broken(entry):
            raise OSError("log unavailable")

        monitor = CrashMonitor(on_crash=broken)
        monitor.start()
        try:
            sys.excepthook(*raised(ValueError("bad")))
        finally:
            monitor.stop()

        assert len(previous_hooks["sys"]) == 1
