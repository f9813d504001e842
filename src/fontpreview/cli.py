# どこで: `src/fontpreview/cli.py`。
# 何を: `fontpreview` コマンドの引数解析と、単発モード / 対話モードへの振り分けを行う。
# なぜ: 設定の確定・依存確認・終了コードの決定を 1 か所に集めるため。

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from fontpreview import __version__
from fontpreview.core.dependencies import MissingDependencyError, ToolSet, require_tools
from fontpreview.core.font_info import inspect_font_file
from fontpreview.core.font_list import FontListError
from fontpreview.core.runtime_config import ConfigError, PreviewConfig, env_var_name, load_config
from fontpreview.export.image import RenderError, default_output_path, render_preview
from fontpreview.interactive.preview_loop import run_interactive
from fontpreview.interactive.selector import SelectorError
from fontpreview.interactive.session import SessionInterrupted
from fontpreview.interactive.viewer import ViewerError

_logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

# CLI 引数名 → PreviewConfig フィールド名
_LAYERED_OPTIONS: tuple[tuple[str, str, str], ...] = (
    ("--size", "size", "プレビュー画像（ビューア窓）のサイズ。例: 532x365"),
    ("--position", "position", "ビューア窓の位置。例: +0+0"),
    ("--search-prompt", "search_prompt", "fuzzy finder のプロンプト文字列"),
    ("--font-size", "font_size", "サンプル文字列のポイントサイズ"),
    ("--bg-color", "bg_color", "背景色。例: '#ffffff'"),
    ("--fg-color", "fg_color", "文字色。例: '#000000'"),
    ("--preview-text", "preview_text", r"サンプル文字列（\n で改行）"),
)


def _build_argparser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fontpreview",
        description=(
            "フォント名を fuzzy 検索しながらサンプル画像をプレビューします。"
            " --input を指定するとフォントファイルから画像を 1 枚だけ生成して終了します。"
        ),
    )
    parser.add_argument(
        "-i",
        "--input",
        type=Path,
        default=None,
        help="プレビューするフォントファイル（単発モード）。",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="単発モードの出力画像パス（省略時は <input>.png）。",
    )
    for flag, field, text in _LAYERED_OPTIONS:
        parser.add_argument(
            flag,
            dest=field,
            default=None,
            help=f"{text}（環境変数 {env_var_name(field)} より優先）",
        )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="設定ファイル（config.yaml）のパス。探索より優先する。",
    )
    parser.add_argument("--verbose", action="store_true", help="デバッグログを表示する。")
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _overrides_from_args(args: argparse.Namespace) -> dict[str, Any]:
    return {field: getattr(args, field) for _flag, field, _text in _LAYERED_OPTIONS}


def _error(message: object) -> None:
    print(f"Error: {message}", file=sys.stderr)


def _run_single_shot(
    cfg: PreviewConfig,
    tools: ToolSet,
    *,
    input_font: Path,
    output: Path | None,
) -> int:
    """フォントファイルを 1 回だけ描画して終了する。"""

    if not input_font.is_file():
        _error(f"入力フォントが見つかりません: {input_font}")
        return EXIT_FAILURE

    info = inspect_font_file(input_font, cfg.preview_text)
    if info is not None:
        _logger.info("input font family: %s", info.family)
        if info.missing_chars:
            _logger.warning(
                "%s has no glyph for: %s",
                input_font,
                " ".join(info.missing_chars),
            )

    out_path = output if output is not None else default_output_path(input_font)
    try:
        saved = render_preview(str(input_font), out_path, cfg, rasterizer=tools.rasterizer)
    except RenderError as exc:
        _error(exc)
        return EXIT_FAILURE

    _logger.info("Saved preview: %s", saved)
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = _build_argparser().parse_args(argv)
    _configure_logging(verbose=bool(args.verbose))

    try:
        cfg = load_config(config_path=args.config, overrides=_overrides_from_args(args))
    except ConfigError as exc:
        _error(exc)
        return EXIT_USAGE

    interactive = args.input is None
    try:
        tools = require_tools(cfg, interactive=interactive)
    except MissingDependencyError as exc:
        _error(exc)
        return EXIT_FAILURE

    if not interactive:
        return _run_single_shot(cfg, tools, input_font=args.input, output=args.output)

    if args.output is not None:
        _logger.warning("--output is ignored without --input")

    try:
        return run_interactive(cfg, tools)
    except SessionInterrupted as exc:
        return exc.exit_code
    except (FontListError, SelectorError, ViewerError) as exc:
        _error(exc)
        return EXIT_FAILURE


if __name__ == "__main__":
    raise SystemExit(main())
