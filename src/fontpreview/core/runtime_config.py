# どこで: `src/fontpreview/core/runtime_config.py`。
# 何を: 同梱 default_config.yaml / ユーザー config.yaml / 環境変数 / CLI 引数を合成し、不変の設定値を返す。
# なぜ: シェル版のグローバル変数を廃し、起動時に 1 度だけ確定した設定をループへ明示的に渡すため。

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any

ENV_PREFIX = "FONTPREVIEW_"


class ConfigError(RuntimeError):
    """設定値の読み込み・検証に失敗したことを表す。"""


@dataclass(frozen=True, slots=True)
class PreviewConfig:
    """fontpreview の実行時設定。"""

    config_path: Path | None
    size: tuple[int, int]
    position: tuple[int, int]
    search_prompt: str
    font_size: int
    bg_color: str
    fg_color: str
    preview_text: str
    font_dirs: tuple[Path, ...]
    rasterizer: str
    fuzzy_finder: str
    viewer: str
    window_focus: str
    viewer_title: str

    @property
    def size_text(self) -> str:
        """ImageMagick / X11 形式のサイズ文字列（例: `532x365`）を返す。"""

        w, h = self.size
        return f"{w}x{h}"

    @property
    def geometry(self) -> str:
        """ビューアへ渡す X11 geometry 文字列（例: `532x365+0+0`）を返す。"""

        x, y = self.position
        return f"{self.size_text}{x:+d}{y:+d}"


# (フィールド名, YAML セクション, YAML キー)。環境変数名は `FONTPREVIEW_{フィールド名大文字}`。
_LAYERED_FIELDS: tuple[tuple[str, str, str], ...] = (
    ("size", "preview", "size"),
    ("position", "preview", "position"),
    ("search_prompt", "search", "prompt"),
    ("font_size", "preview", "font_size"),
    ("bg_color", "preview", "bg_color"),
    ("fg_color", "preview", "fg_color"),
    ("preview_text", "preview", "preview_text"),
)

_SIZE_RE = re.compile(r"^\s*(\d+)\s*[xX]\s*(\d+)\s*$")
_POSITION_RE = re.compile(r"^\s*([+-]\s*\d+)\s*([+-]\s*\d+)\s*$")


def env_var_name(field: str) -> str:
    """設定フィールドに対応する環境変数名を返す。"""

    return f"{ENV_PREFIX}{field.upper()}"


def _default_config_candidates() -> tuple[Path, ...]:
    cwd = Path.cwd()
    home = Path.home()
    return (
        cwd / ".fontpreview" / "config.yaml",
        home / ".config" / "fontpreview" / "config.yaml",
    )


def _expand_path_text(text: str) -> str:
    return os.path.expandvars(os.path.expanduser(str(text)))


def _as_optional_path(value: Any) -> Path | None:
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    return Path(_expand_path_text(s))


def _as_path_list(value: Any) -> list[Path]:
    if value is None:
        return []
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return []
        parts = [p for p in s.split(os.pathsep) if p]
        return [Path(_expand_path_text(p)) for p in parts]

    try:
        seq = list(value)
    except Exception:
        return []

    out: list[Path] = []
    for item in seq:
        p = _as_optional_path(item)
        if p is not None:
            out.append(p)
    return out


def _as_mapping(value: Any, *, key: str) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, dict):
        return dict(value)
    raise ConfigError(f"{key} は mapping である必要があります: got={value!r}")


def unescape_text(text: str) -> str:
    """環境変数/引数由来の文字列中の `\\n` を改行へ置き換えて返す。"""

    return str(text).replace("\\n", "\n")


def parse_size(value: Any, *, key: str) -> tuple[int, int]:
    """`WxH` 文字列（または [w, h]）を正の (width, height) として返す。"""

    if isinstance(value, str):
        m = _SIZE_RE.match(value)
        if m is None:
            raise ConfigError(f"{key} は `WxH` 形式である必要があります: got={value!r}")
        w, h = int(m.group(1)), int(m.group(2))
    else:
        try:
            seq = list(value)
            if len(seq) != 2:
                raise ValueError(seq)
            w, h = int(seq[0]), int(seq[1])
        except Exception as exc:
            raise ConfigError(f"{key} は `WxH` 形式である必要があります: got={value!r}") from exc
    if w <= 0 or h <= 0:
        raise ConfigError(f"{key} は正のサイズである必要があります: got={value!r}")
    return (w, h)


def parse_position(value: Any, *, key: str) -> tuple[int, int]:
    """`+X+Y` 文字列（または [x, y]）を (x, y) として返す。"""

    if isinstance(value, str):
        m = _POSITION_RE.match(value)
        if m is None:
            raise ConfigError(f"{key} は `+X+Y` 形式である必要があります: got={value!r}")
        x = int(m.group(1).replace(" ", ""))
        y = int(m.group(2).replace(" ", ""))
        return (x, y)
    try:
        seq = list(value)
        if len(seq) != 2:
            raise ValueError(seq)
        return (int(seq[0]), int(seq[1]))
    except Exception as exc:
        raise ConfigError(f"{key} は `+X+Y` 形式である必要があります: got={value!r}") from exc


def parse_font_size(value: Any, *, key: str) -> int:
    """正の整数ポイントサイズを返す。"""

    if isinstance(value, bool):
        raise ConfigError(f"{key} は正の整数である必要があります: got={value!r}")
    try:
        size = int(str(value).strip())
    except Exception as exc:
        raise ConfigError(f"{key} は正の整数である必要があります: got={value!r}") from exc
    if size <= 0:
        raise ConfigError(f"{key} は正の整数である必要があります: got={value!r}")
    return size


def _parse_non_empty_text(value: Any, *, key: str) -> str:
    if value is None:
        raise ConfigError(f"{key} が未設定です")
    s = str(value)
    if not s.strip():
        raise ConfigError(f"{key} は空にできません")
    return s


def _parse_text(value: Any, *, key: str) -> str:
    if value is None:
        return ""
    return str(value)


_PARSERS = {
    "size": parse_size,
    "position": parse_position,
    "search_prompt": _parse_text,
    "font_size": parse_font_size,
    "bg_color": _parse_non_empty_text,
    "fg_color": _parse_non_empty_text,
    "preview_text": _parse_non_empty_text,
}


def _load_yaml_text(text: str, *, source: str) -> dict[str, Any]:
    import yaml

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"config.yaml の読み込みに失敗しました: source={source}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"config.yaml は mapping である必要があります: source={source}")

    return dict(data)


def _load_yaml_config(path: Path) -> dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    return _load_yaml_text(text, source=str(path))


def _load_packaged_default_config() -> dict[str, Any]:
    """同梱デフォルト config をロードして dict を返す。"""

    try:
        blob = (
            resources.files("fontpreview")
            .joinpath("resource", "default_config.yaml")
            .read_text(encoding="utf-8")
        )
    except Exception as exc:  # pragma: no cover
        raise ConfigError(
            "同梱 default_config.yaml の読み込みに失敗しました"
            "（パッケージ配布物の package-data を確認してください）"
        ) from exc

    return _load_yaml_text(blob, source="fontpreview/resource/default_config.yaml")


def _merge_sections(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """1 階層目のセクション単位でキーを上書きマージして返す。"""

    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            section = dict(current)
            section.update(value)
            merged[key] = section
        else:
            merged[key] = value
    return merged


def _tool_name(tools: Mapping[str, Any], key: str) -> str:
    value = tools.get(key)
    s = "" if value is None else str(value).strip()
    if not s:
        raise ConfigError(f"tools.{key} が未設定です（同梱 default_config.yaml を確認してください）")
    return s


def load_config(
    *,
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> PreviewConfig:
    """設定を合成して返す。

    上書き順（後勝ち）:
    1) 同梱 default_config.yaml
    2) `./.fontpreview/config.yaml` / `~/.config/fontpreview/config.yaml`
    3) `config_path`（明示指定）
    4) 環境変数 `FONTPREVIEW_*`（空文字は未設定扱い）
    5) `overrides`（CLI 引数。None の値は未指定扱い）
    """

    env = os.environ if environ is None else environ
    flags = dict(overrides or {})

    explicit_path = Path(str(config_path)).expanduser() if config_path is not None else None
    if explicit_path is not None and not explicit_path.is_file():
        raise ConfigError(f"config.yaml が見つかりません: {explicit_path}")

    discovered_path: Path | None = None
    for p in _default_config_candidates():
        if p.is_file():
            discovered_path = p
            break

    payload = _load_packaged_default_config()
    if discovered_path is not None:
        payload = _merge_sections(payload, _load_yaml_config(discovered_path))
    if explicit_path is not None:
        payload = _merge_sections(payload, _load_yaml_config(explicit_path))

    version = payload.get("version")
    try:
        version_i = int(version)  # type: ignore[arg-type]
    except Exception as exc:
        raise ConfigError(f"config.yaml の version は整数である必要があります: got={version!r}") from exc
    if version_i != 1:
        raise ConfigError(f"未対応の config.yaml version です: got={version_i}")

    values: dict[str, Any] = {}
    for field, section_name, yaml_key in _LAYERED_FIELDS:
        section = _as_mapping(payload.get(section_name), key=section_name)
        raw: Any = section.get(yaml_key)
        source = f"{section_name}.{yaml_key}"

        env_name = env_var_name(field)
        env_value = env.get(env_name)
        if env_value:
            raw = unescape_text(env_value) if field == "preview_text" else env_value
            source = env_name

        flag_value = flags.get(field)
        if flag_value is not None:
            raw = unescape_text(flag_value) if field == "preview_text" else flag_value
            source = "--" + field.replace("_", "-")

        values[field] = _PARSERS[field](raw, key=source)

    paths = _as_mapping(payload.get("paths"), key="paths")
    tools = _as_mapping(payload.get("tools"), key="tools")

    return PreviewConfig(
        config_path=explicit_path or discovered_path,
        font_dirs=tuple(_as_path_list(paths.get("font_dirs"))),
        rasterizer=_tool_name(tools, "rasterizer"),
        fuzzy_finder=_tool_name(tools, "fuzzy_finder"),
        viewer=_tool_name(tools, "viewer"),
        window_focus=_tool_name(tools, "window_focus"),
        viewer_title=_tool_name(tools, "viewer_title"),
        **values,
    )


__all__ = [
    "ConfigError",
    "ENV_PREFIX",
    "PreviewConfig",
    "env_var_name",
    "load_config",
    "parse_font_size",
    "parse_position",
    "parse_size",
    "unescape_text",
]
