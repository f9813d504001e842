# どこで: `src/fontpreview/interactive/viewer.py`。
# 何を: プレビュー画像を表示する外部ビューア（sxiv）をバックグラウンドで起動・終了する。
# なぜ: セッション中ビューアは 1 度だけ起動し、同じパスへの上書きで表示を更新させるため。

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

_logger = logging.getLogger(__name__)

_TERMINATE_GRACE_SEC = 2.0


def _viewer_command(
    *,
    viewer: str,
    image_path: Path,
    geometry: str,
    title: str,
) -> list[str]:
    return [
        viewer,
        "-g",
        geometry,
        "-N",
        title,
        "-b",
        str(image_path),
    ]


class ViewerError(RuntimeError):
    """ビューアを起動できなかったことを表す。"""


class ViewerProcess:
    """バックグラウンドで動く画像ビューア。"""

    def __init__(
        self,
        *,
        viewer: str,
        image_path: Path,
        geometry: str,
        title: str,
    ) -> None:
        """ビューアを起動する。"""

        self.image_path = Path(image_path)
        self._proc: subprocess.Popen[bytes] | None = None

        cmd = _viewer_command(
            viewer=viewer,
            image_path=self.image_path,
            geometry=geometry,
            title=title,
        )
        try:
            self._proc = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except FileNotFoundError as e:
            raise ViewerError(f"{viewer} が見つかりません（PATH を確認してください）") from e
        except OSError as e:
            raise ViewerError(f"{viewer} を起動できません: {e}") from e
        _logger.debug("viewer started: pid=%s cmd=%s", self._proc.pid, cmd)

    @property
    def pid(self) -> int | None:
        proc = self._proc
        return None if proc is None else proc.pid

    @property
    def is_running(self) -> bool:
        proc = self._proc
        return proc is not None and proc.poll() is None

    def terminate(self) -> None:
        """ビューアを終了させる。既に終了していても何もしない（エラーは握りつぶす）。"""

        proc = self._proc
        if proc is None:
            return
        self._proc = None

        try:
            if proc.poll() is not None:
                return
            proc.terminate()
            try:
                proc.wait(timeout=_TERMINATE_GRACE_SEC)
            except subprocess.TimeoutExpired:
                proc.kill()
                proc.wait()
        except OSError as exc:
            _logger.debug("failed to stop viewer pid=%s: %s", proc.pid, exc)


__all__ = ["ViewerError", "ViewerProcess"]
