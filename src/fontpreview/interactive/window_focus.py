# どこで: `src/fontpreview/interactive/window_focus.py`。
# 何を: xdotool で現在のアクティブウィンドウ ID を取得し、後でそのウィンドウへフォーカスを戻す。
# なぜ: ビューア起動でフォーカスが奪われても、端末で検索を続けられるようにするため。

from __future__ import annotations

import logging
import subprocess

_logger = logging.getLogger(__name__)

WINDOW_WAIT_SEC = 2.0


def active_window_id(window_focus: str) -> str | None:
    """アクティブウィンドウの ID を返す。取得できなければ None を返す。"""

    cmd = [window_focus, "getactivewindow"]
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except OSError as exc:
        _logger.debug("failed to run %s: %s", window_focus, exc)
        return None

    if proc.returncode != 0:
        _logger.debug("%s getactivewindow failed (code=%s): %s", window_focus, proc.returncode, proc.stderr)
        return None
    window_id = (proc.stdout or "").strip()
    return window_id or None


def wait_for_window(window_focus: str, pid: int, *, timeout: float = WINDOW_WAIT_SEC) -> bool:
    """`pid` のプロセスが可視ウィンドウを出すまで待つ。`timeout` 秒で諦めて False を返す。"""

    cmd = [window_focus, "search", "--sync", "--onlyvisible", "--pid", str(int(pid))]
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, check=False, timeout=timeout)
    except subprocess.TimeoutExpired:
        _logger.debug("no window for pid=%s after %.1fs", pid, timeout)
        return False
    except OSError as exc:
        _logger.debug("failed to run %s: %s", window_focus, exc)
        return False
    return proc.returncode == 0


def activate_window(window_focus: str, window_id: str) -> bool:
    """`window_id` のウィンドウをアクティブにする。成功したら True を返す。"""

    cmd = [window_focus, "windowactivate", str(window_id)]
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except OSError as exc:
        _logger.debug("failed to run %s: %s", window_focus, exc)
        return False

    if proc.returncode != 0:
        _logger.warning("Failed to restore focus to window %s: %s", window_id, (proc.stderr or "").strip())
        return False
    return True


__all__ = ["WINDOW_WAIT_SEC", "activate_window", "active_window_id", "wait_for_window"]
