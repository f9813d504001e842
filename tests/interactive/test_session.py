from __future__ import annotations

import os
import signal
import tempfile
from pathlib import Path

import pytest

from fontpreview.interactive.session import (
    PREVIEW_FILENAME,
    WORK_DIR_PREFIX,
    PreviewSession,
    SessionInterrupted,
    interrupt_signals,
)


class _FakeViewer:
    def __init__(self, error: Exception | None = None) -> None:
        self.terminated = 0
        self._error = error

    def terminate(self) -> None:
        self.terminated += 1
        if self._error is not None:
            raise self._error


@pytest.fixture(autouse=True)
def _isolate_tempdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))


def test_session_creates_unique_work_dirs(tmp_path: Path):
    first = PreviewSession()
    second = PreviewSession()
    try:
        assert first.work_dir != second.work_dir
        assert first.work_dir.parent == tmp_path
        assert first.work_dir.name.startswith(WORK_DIR_PREFIX)
        assert first.preview_path == first.work_dir / PREVIEW_FILENAME
    finally:
        first.shutdown()
        second.shutdown()


def test_shutdown_removes_work_dir_and_stops_viewer():
    session = PreviewSession()
    session.preview_path.write_bytes(b"png")
    viewer = _FakeViewer()
    session.viewer = viewer  # type: ignore[assignment]

    session.shutdown()

    assert not session.work_dir.exists()
    assert viewer.terminated == 1
    assert session.viewer is None
    assert session.closed


def test_shutdown_is_idempotent():
    session = PreviewSession()
    viewer = _FakeViewer()
    session.viewer = viewer  # type: ignore[assignment]

    session.shutdown()
    session.shutdown()

    assert viewer.terminated == 1


def test_shutdown_swallows_cleanup_failures():
    session = PreviewSession()
    session.viewer = _FakeViewer(error=RuntimeError("already gone"))  # type: ignore[assignment]

    session.shutdown()

    assert not session.work_dir.exists()


def test_shutdown_tolerates_removed_work_dir():
    session = PreviewSession()
    session.work_dir.rmdir()

    session.shutdown()


def test_context_manager_cleans_up_on_error():
    with pytest.raises(ValueError):
        with PreviewSession() as session:
            work_dir = session.work_dir
            raise ValueError("boom")
    assert not work_dir.exists()


def test_interrupt_signals_converts_sigterm_and_restores_handler():
    before = signal.getsignal(signal.SIGTERM)

    with pytest.raises(SessionInterrupted) as excinfo:
        with interrupt_signals():
            os.kill(os.getpid(), signal.SIGTERM)

    assert excinfo.value.signum == signal.SIGTERM
    assert excinfo.value.exit_code == 128 + int(signal.SIGTERM)
    assert signal.getsignal(signal.SIGTERM) == before


def test_session_is_removed_when_signal_arrives():
    with pytest.raises(SessionInterrupted):
        with interrupt_signals(), PreviewSession() as session:
            work_dir = session.work_dir
            os.kill(os.getpid(), signal.SIGTERM)
    assert not work_dir.exists()


def test_signal_inside_deferred_block_is_raised_after_it():
    events: list[str] = []

    with pytest.raises(SessionInterrupted) as excinfo:
        with interrupt_signals() as guard:
            with guard.deferred():
                os.kill(os.getpid(), signal.SIGTERM)
                events.append("deferred")
            assert guard.pending == signal.SIGTERM
            events.append("after")
            guard.raise_pending()
            events.append("unreachable")

    assert events == ["deferred", "after"]
    assert excinfo.value.signum == signal.SIGTERM


def test_deferred_signal_is_raised_when_leaving_interrupt_signals():
    with pytest.raises(SessionInterrupted):
        with interrupt_signals() as guard:
            with guard.deferred():
                os.kill(os.getpid(), signal.SIGTERM)


def test_only_first_signal_is_raised():
    with pytest.raises(SessionInterrupted) as excinfo:
        with interrupt_signals() as guard:
            with guard.deferred():
                os.kill(os.getpid(), signal.SIGTERM)
                os.kill(os.getpid(), signal.SIGHUP)

    assert excinfo.value.signum == signal.SIGTERM
