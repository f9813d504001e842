"""
どこで: `src/fontpreview/export/image.py`。
何を: 外部ラスタライザ（ImageMagick）でサンプル文字列のプレビュー PNG を生成する関数を提供する。
なぜ: 対話ループと単発モード（--input）で同一の描画経路を使うため。
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from fontpreview.core.runtime_config import PreviewConfig

PREVIEW_SUFFIX = ".png"


class RenderError(RuntimeError):
    """プレビュー画像の生成に失敗したことを表す。"""


def default_output_path(input_font: str | Path) -> Path:
    """単発モードで `--output` 省略時の保存先（`<input>.png`）を返す。"""

    return Path(f"{input_font}{PREVIEW_SUFFIX}")


def escape_annotate_text(text: str) -> str:
    """`-annotate` が解釈する `\\` / `%` / 先頭 `@` をエスケープして返す。"""

    escaped = str(text).replace("\\", "\\\\").replace("%", "\\%")
    if escaped.startswith("@"):
        escaped = "\\" + escaped
    return escaped


def _render_command(
    *,
    rasterizer: str,
    font: str,
    output_path: Path,
    size: tuple[int, int],
    font_size: int,
    bg_color: str,
    fg_color: str,
    text: str,
) -> list[str]:
    width, height = size
    if int(width) <= 0 or int(height) <= 0:
        raise ValueError("size は正の (width, height) である必要がある")
    return [
        rasterizer,
        "-size",
        f"{int(width)}x{int(height)}",
        f"xc:{bg_color}",
        "-gravity",
        "center",
        "-pointsize",
        str(int(font_size)),
        "-font",
        str(font),
        "-fill",
        fg_color,
        "-annotate",
        "+0+0",
        escape_annotate_text(text),
        "-flatten",
        # 生成日時の chunk を書かないことで、同一入力から同一バイト列を得る。
        "-define",
        "png:exclude-chunks=date,time",
        str(output_path),
    ]


def render_preview(
    font: str,
    output_path: str | Path,
    cfg: PreviewConfig,
    *,
    rasterizer: str,
) -> Path:
    """`font` でサンプル文字列を描いたプレビュー画像を保存する。

    Parameters
    ----------
    font : str
        ラスタライザが解釈できるフォント名、またはフォントファイルのパス。
    output_path : str or Path
        出力画像パス。既存ファイルは上書きする。
    cfg : PreviewConfig
        キャンバスサイズ・色・ポイントサイズ・サンプル文字列。
    rasterizer : str
        解決済みのラスタライザ実行ファイル名（`magick` / `convert`）。

    Returns
    -------
    Path
        出力画像パス。

    Raises
    ------
    RenderError
        出力先を作れない、ラスタライザが見つからない・失敗した、または出力が作られなかった場合。
    """

    _output_path = Path(output_path)
    try:
        _output_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise RenderError(f"出力先ディレクトリを作成できません: {_output_path.parent} ({e})") from e

    cmd = _render_command(
        rasterizer=rasterizer,
        font=font,
        output_path=_output_path,
        size=cfg.size,
        font_size=cfg.font_size,
        bg_color=cfg.bg_color,
        fg_color=cfg.fg_color,
        text=cfg.preview_text,
    )
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except FileNotFoundError as e:
        raise RenderError(
            f"{rasterizer} が見つかりません（ImageMagick をインストールして PATH を通してください）"
        ) from e

    if proc.returncode != 0:
        details = (proc.stderr or proc.stdout or "").strip()
        raise RenderError(
            f"{rasterizer} が失敗しました (font={font!r}, code={proc.returncode}). {details}".strip()
        )
    if not _output_path.is_file():
        raise RenderError(f"プレビュー画像が生成されませんでした: {_output_path}")

    return _output_path


__all__ = ["PREVIEW_SUFFIX", "RenderError", "default_output_path", "escape_annotate_text", "render_preview"]
