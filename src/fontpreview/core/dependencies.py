# どこで: `src/fontpreview/core/dependencies.py`。
# 何を: 外部コマンド（ラスタライザ / fuzzy finder / ビューア / フォーカス操作）の存在確認と名前解決を行う。
# なぜ: 依存の欠落を起動時に 1 度だけ検出し、ループ途中ではなく明確なエラーで終了させるため。

from __future__ import annotations

import shutil
from dataclasses import dataclass

from fontpreview.core.runtime_config import PreviewConfig

RASTERIZER_AUTO = "auto"
_RASTERIZER_CANDIDATES = ("magick", "convert")


class MissingDependencyError(RuntimeError):
    """必須の外部コマンドが PATH 上に見つからないことを表す。"""

    def __init__(self, tool: str, role: str) -> None:
        self.tool = str(tool)
        self.role = str(role)
        super().__init__(
            f"{self.tool} が見つかりません（{self.role}。インストールして PATH を通してください）"
        )


@dataclass(frozen=True, slots=True)
class ToolSet:
    """解決済みの外部コマンド名。"""

    rasterizer: str
    fuzzy_finder: str
    viewer: str
    window_focus: str


def resolve_rasterizer(name: str) -> str | None:
    """ラスタライザ名を解決して返す。見つからなければ None を返す。

    Notes
    -----
    `auto` は ImageMagick 7 の `magick` を優先し、無ければ 6 系の `convert` を使う。
    """

    if name != RASTERIZER_AUTO:
        return name if shutil.which(name) else None
    for candidate in _RASTERIZER_CANDIDATES:
        if shutil.which(candidate):
            return candidate
    return None


def require_tools(cfg: PreviewConfig, *, interactive: bool) -> ToolSet:
    """モードに必要な外部コマンドを確認して ToolSet を返す。

    Parameters
    ----------
    cfg : PreviewConfig
        コマンド名を含む設定。
    interactive : bool
        True なら 4 つ全て、False（単発モード）ならラスタライザのみを確認する。

    Raises
    ------
    MissingDependencyError
        最初に見つからなかったコマンド。
    """

    rasterizer = resolve_rasterizer(cfg.rasterizer)
    if rasterizer is None:
        tool = "magick / convert" if cfg.rasterizer == RASTERIZER_AUTO else cfg.rasterizer
        raise MissingDependencyError(tool, "ImageMagick: フォント列挙とプレビュー画像の生成")

    if interactive:
        checks = (
            (cfg.fuzzy_finder, "fuzzy finder: フォント名の対話検索"),
            (cfg.viewer, "画像ビューア: プレビュー表示"),
            (cfg.window_focus, "ウィンドウ操作: 端末へのフォーカス復帰"),
        )
        for tool, role in checks:
            if shutil.which(tool) is None:
                raise MissingDependencyError(tool, role)

    return ToolSet(
        rasterizer=rasterizer,
        fuzzy_finder=cfg.fuzzy_finder,
        viewer=cfg.viewer,
        window_focus=cfg.window_focus,
    )


__all__ = ["MissingDependencyError", "ToolSet", "require_tools", "resolve_rasterizer"]
