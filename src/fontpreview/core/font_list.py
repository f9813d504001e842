# どこで: `src/fontpreview/core/font_list.py`。
# 何を: ラスタライザ（ImageMagick）が認識するフォント名と、設定 `font_dirs` 配下のフォントファイルを列挙する。
# なぜ: fuzzy finder へ渡す候補列を 1 か所で組み立てるため。

from __future__ import annotations

import subprocess
from collections.abc import Iterable, Sequence
from pathlib import Path

_FONT_EXTENSIONS = (".ttf", ".otf", ".ttc")
_FONT_LINE_KEY = "Font:"


class FontListError(RuntimeError):
    """フォント一覧の取得に失敗したことを表す。"""


def _font_list_command(rasterizer: str) -> list[str]:
    return [rasterizer, "-list", "font"]


def parse_font_list(text: str) -> list[str]:
    """`-list font` の出力から `Font:` 行の値を順に取り出して返す。

    Notes
    -----
    出力は次のようなブロックの繰り返し::

          Font: DejaVu-Sans
            family: DejaVu Sans
            glyphs: /usr/share/fonts/TTF/DejaVuSans.ttf

    重複は最初の出現だけを残す。
    """

    names: list[str] = []
    seen: set[str] = set()
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped.startswith(_FONT_LINE_KEY):
            continue
        name = stripped[len(_FONT_LINE_KEY) :].strip()
        if not name or name in seen:
            continue
        seen.add(name)
        names.append(name)
    return names


def list_font_names(rasterizer: str) -> list[str]:
    """ラスタライザが認識するフォント名を返す。

    Raises
    ------
    FontListError
        コマンドが見つからない、または非 0 で終了した場合。
    """

    cmd = _font_list_command(rasterizer)
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except FileNotFoundError as e:
        raise FontListError(f"{rasterizer} が見つかりません（PATH を確認してください）") from e

    if proc.returncode != 0:
        details = (proc.stderr or proc.stdout or "").strip()
        raise FontListError(
            f"{rasterizer} -list font が失敗しました (code={proc.returncode}). {details}".strip()
        )
    return parse_font_list(proc.stdout or "")


def list_font_files(dirs: Iterable[Path]) -> list[Path]:
    """`dirs` 配下（再帰）のフォントファイルを安定順で返す。存在しないディレクトリは無視する。"""

    seen: list[Path] = []
    for root in dirs:
        root = Path(root).expanduser()
        if not root.is_dir():
            continue
        for ext in _FONT_EXTENSIONS:
            for fp in root.glob(f"**/*{ext}"):
                try:
                    resolved = fp.resolve()
                except OSError:
                    continue
                if resolved.is_file():
                    seen.append(resolved)
    return sorted(set(seen))


def font_candidates(rasterizer: str, font_dirs: Sequence[Path] = ()) -> list[str]:
    """fuzzy finder に渡す候補（フォント名 → 追加フォントファイルのパス）を返す。"""

    names = list_font_names(rasterizer)
    known = set(names)
    for fp in list_font_files(font_dirs):
        value = str(fp)
        if value not in known:
            known.add(value)
            names.append(value)
    return names


__all__ = [
    "FontListError",
    "font_candidates",
    "list_font_files",
    "list_font_names",
    "parse_font_list",
]
