# どこで: `src/fontpreview/interactive/session.py`。
# 何を: 1 回の対話セッションの資源（作業ディレクトリ / ビューアプロセス / 端末ウィンドウ ID）を保持し、終了時に片付ける。
# なぜ: 正常終了・例外・シグナルのどの経路でも、一時ファイルとビューアを残さないため。

from __future__ import annotations

import contextlib
import logging
import shutil
import signal
import tempfile
from collections.abc import Iterator
from pathlib import Path
from types import FrameType

from fontpreview.interactive.viewer import ViewerProcess

_logger = logging.getLogger(__name__)

WORK_DIR_PREFIX = "fontpreview-"
PREVIEW_FILENAME = "preview.png"


class SessionInterrupted(Exception):
    """終了シグナルを受け取ったことを表す。"""

    def __init__(self, signum: int) -> None:
        self.signum = int(signum)
        super().__init__(f"signal {self.signum} を受信しました")

    @property
    def exit_code(self) -> int:
        return 128 + self.signum


def _handled_signals() -> tuple[int, ...]:
    names = ("SIGINT", "SIGTERM", "SIGHUP")
    return tuple(int(getattr(signal, n)) for n in names if hasattr(signal, n))


class InterruptGuard:
    """`interrupt_signals()` が返すハンドル。

    `deferred()` の内側で受け取ったシグナルは例外にせず記録だけし、
    `raise_pending()` の時点で SessionInterrupted として送出する。
    """

    def __init__(self) -> None:
        self._pending: int | None = None
        self._delivered = False
        self._defer_depth = 0

    @property
    def pending(self) -> int | None:
        """保留中（未送出）のシグナル番号。"""

        return None if self._delivered else self._pending

    def _handle(self, signum: int, frame: FrameType | None) -> None:
        # 例外にするのは最初の 1 回だけ。
        if self._delivered or self._pending is not None:
            return
        self._pending = int(signum)
        if self._defer_depth:
            _logger.debug("signal %d deferred until cleanup finishes", signum)
            return
        self._delivered = True
        raise SessionInterrupted(signum)

    @contextlib.contextmanager
    def deferred(self) -> Iterator[None]:
        """ブロック内ではシグナルを例外にしない（作業ディレクトリの作成・後片付け用）。"""

        self._defer_depth += 1
        try:
            yield
        finally:
            self._defer_depth -= 1

    def raise_pending(self) -> None:
        """保留中のシグナルがあれば SessionInterrupted を送出する。"""

        if self._defer_depth or self._delivered or self._pending is None:
            return
        self._delivered = True
        raise SessionInterrupted(self._pending)


@contextlib.contextmanager
def interrupt_signals() -> Iterator[InterruptGuard]:
    """SIGINT / SIGTERM / SIGHUP を SessionInterrupted 例外へ変換する。

    Notes
    -----
    例外は最初のシグナルでのみ送出する（2 回目以降は無視する）。
    `InterruptGuard.deferred()` の内側で届いたシグナルは、ブロックを抜けた後の
    `raise_pending()` か、このコンテキストを正常に抜けるときに送出する。
    抜けるときに元のハンドラへ戻す。
    """

    guard = InterruptGuard()
    previous: dict[int, object] = {}
    try:
        with guard.deferred():
            for signum in _handled_signals():
                previous[signum] = signal.signal(signum, guard._handle)
        yield guard
    finally:
        with guard.deferred():
            for signum, handler in previous.items():
                signal.signal(signum, handler)  # type: ignore[arg-type]
    guard.raise_pending()


class PreviewSession:
    """対話セッション 1 回分の状態。"""

    def __init__(self) -> None:
        """一意な作業ディレクトリを作成する。"""

        self.work_dir = Path(tempfile.mkdtemp(prefix=WORK_DIR_PREFIX))
        self.preview_path = self.work_dir / PREVIEW_FILENAME
        self.viewer: ViewerProcess | None = None
        self.terminal_window_id: str | None = None
        self._closed = False
        _logger.debug("session work dir: %s", self.work_dir)

    @property
    def closed(self) -> bool:
        return self._closed

    def shutdown(self) -> None:
        """ビューアを終了し、作業ディレクトリを削除する（冪等）。"""

        if self._closed:
            return
        self._closed = True

        viewer = self.viewer
        self.viewer = None
        if viewer is not None:
            try:
                viewer.terminate()
            except Exception:
                _logger.exception("Failed to stop viewer")

        try:
            shutil.rmtree(self.work_dir)
        except FileNotFoundError:
            pass
        except OSError as exc:
            _logger.debug("failed to remove %s: %s", self.work_dir, exc)

    def __enter__(self) -> PreviewSession:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()


__all__ = [
    "PREVIEW_FILENAME",
    "InterruptGuard",
    "PreviewSession",
    "SessionInterrupted",
    "WORK_DIR_PREFIX",
    "interrupt_signals",
]
