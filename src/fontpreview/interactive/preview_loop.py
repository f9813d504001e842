"""
どこで: `src/fontpreview/interactive/preview_loop.py`。
何を: フォント選択 → プレビュー描画 → ビューア表示 を繰り返す対話ループを提供する。
なぜ: 外部コマンドの組み立ては各モジュールへ任せ、ここでは状態遷移だけを持つため。

状態遷移::

    Init → WaitForSelection → Render → (DisplayFirstTime | AssumeDisplayed) → WaitForSelection ...
                 │
                 └─ 空選択 / シグナル → ShuttingDown
"""

from __future__ import annotations

import logging

from fontpreview.core.dependencies import ToolSet
from fontpreview.core.font_list import font_candidates
from fontpreview.core.runtime_config import PreviewConfig
from fontpreview.export.image import RenderError, render_preview
from fontpreview.interactive.selector import select_font
from fontpreview.interactive.session import PreviewSession, interrupt_signals
from fontpreview.interactive.viewer import ViewerProcess
from fontpreview.interactive.window_focus import activate_window, active_window_id, wait_for_window

_logger = logging.getLogger(__name__)


class PreviewLoop:
    """対話プレビューのループ本体。"""

    def __init__(self, cfg: PreviewConfig, tools: ToolSet, session: PreviewSession) -> None:
        self._cfg = cfg
        self._tools = tools
        self._session = session

    def run(self) -> int:
        """ユーザーが選択をキャンセルするまでループし、終了コード 0 を返す。"""

        candidates = font_candidates(self._tools.rasterizer, self._cfg.font_dirs)
        if not candidates:
            _logger.warning("No fonts found by %s", self._tools.rasterizer)
            return 0
        _logger.debug("%d font candidates", len(candidates))

        while True:
            font = select_font(
                candidates,
                fuzzy_finder=self._tools.fuzzy_finder,
                prompt=self._cfg.search_prompt,
            )
            if font is None:
                return 0

            try:
                render_preview(
                    font,
                    self._session.preview_path,
                    self._cfg,
                    rasterizer=self._tools.rasterizer,
                )
            except RenderError as exc:
                # 描画失敗ではセッションを終了しない。
                _logger.warning("Failed to render preview for %r: %s", font, exc)
                continue

            self.ensure_viewer_running()

    def ensure_viewer_running(self) -> None:
        """初回のみビューアを起動し、その窓の表示を待ってから端末ウィンドウへフォーカスを戻す。"""

        session = self._session
        if session.viewer is not None:
            return

        session.viewer = ViewerProcess(
            viewer=self._tools.viewer,
            image_path=session.preview_path,
            geometry=self._cfg.geometry,
            title=self._cfg.viewer_title,
        )
        if session.terminal_window_id is None:
            return
        # 窓のマップ前に戻すとフォーカスはビューアに移る。
        pid = session.viewer.pid
        if pid is not None and not wait_for_window(self._tools.window_focus, pid):
            _logger.debug("viewer window did not appear; restoring focus anyway")
        activate_window(self._tools.window_focus, session.terminal_window_id)


def run_interactive(cfg: PreviewConfig, tools: ToolSet) -> int:
    """セッションを作成して対話ループを実行し、終了時に必ず後片付けする。

    Raises
    ------
    SessionInterrupted
        終了シグナルを受け取った場合（後片付け済み）。
    """

    with interrupt_signals() as guard:
        session: PreviewSession | None = None
        try:
            # 作成と後片付けの途中ではシグナルを保留し、作業ディレクトリを取りこぼさない。
            with guard.deferred():
                session = PreviewSession()
            guard.raise_pending()
            session.terminal_window_id = active_window_id(tools.window_focus)
            return PreviewLoop(cfg, tools, session).run()
        finally:
            if session is not None:
                with guard.deferred():
                    session.shutdown()


__all__ = ["PreviewLoop", "run_interactive"]
