# どこで: `src/fontpreview/core/font_info.py`。
# 何を: 単発モードの入力フォントファイルから family 名とグリフ欠落を調べる。
# なぜ: ラスタライザは欠落グリフを黙って豆腐にするため、描画前に気付けるようにする。

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

_logger = logging.getLogger(__name__)

# name table: 16 = Typographic Family, 1 = Font Family
_FAMILY_NAME_IDS = (16, 1)


@dataclass(frozen=True, slots=True)
class FontFileInfo:
    """フォントファイルの概要。"""

    path: Path
    family: str | None
    missing_chars: tuple[str, ...]


def _open_font(path: Path) -> Any:
    from fontTools.ttLib import TTFont  # type: ignore[import-untyped]

    if path.suffix.lower() == ".ttc":
        return TTFont(path, fontNumber=0, lazy=True)
    return TTFont(path, lazy=True)


def _family_name(font: Any) -> str | None:
    if "name" not in font:
        return None
    name_table = font["name"]
    for name_id in _FAMILY_NAME_IDS:
        value = name_table.getDebugName(name_id)
        if value:
            return str(value)
    return None


def missing_characters(cmap: dict[int, str] | None, text: str) -> tuple[str, ...]:
    """`text` のうち cmap に無い文字を出現順（重複なし）で返す。空白と改行は対象外。"""

    table = cmap or {}
    out: list[str] = []
    for ch in text:
        if ch.isspace() or ch in out:
            continue
        if ord(ch) not in table:
            out.append(ch)
    return tuple(out)


def inspect_font_file(path: str | Path, text: str) -> FontFileInfo | None:
    """フォントファイルを読み、family 名と `text` の欠落文字を返す。

    fontTools で読めないファイル（ImageMagick 固有の形式など）は None を返す。
    """

    _path = Path(path)
    try:
        font = _open_font(_path)
    except Exception as exc:
        _logger.debug("fontTools could not read %s: %s", _path, exc)
        return None

    try:
        family = _family_name(font)
        missing = missing_characters(font.getBestCmap(), text)
    except Exception as exc:
        _logger.debug("failed to inspect %s: %s", _path, exc)
        return None
    finally:
        font.close()

    return FontFileInfo(path=_path, family=family, missing_chars=missing)


__all__ = ["FontFileInfo", "inspect_font_file", "missing_characters"]
