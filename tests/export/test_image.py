from __future__ import annotations

import dataclasses
import shutil
import subprocess
from pathlib import Path

import pytest

from fontpreview.core.font_list import list_font_names
from fontpreview.core.runtime_config import PreviewConfig
from fontpreview.export import image


# `fontpreview.export.image`（ImageMagick によるプレビュー画像生成）をテストする。


def _config(**changes: object) -> PreviewConfig:
    base = PreviewConfig(
        config_path=None,
        size=(532, 365),
        position=(0, 0),
        search_prompt="> ",
        font_size=38,
        bg_color="#ffffff",
        fg_color="#000000",
        preview_text="ABC\nabc\n100%",
        font_dirs=(),
        rasterizer="auto",
        fuzzy_finder="fzf",
        viewer="sxiv",
        window_focus="xdotool",
        viewer_title="fontpreview",
    )
    return dataclasses.replace(base, **changes)


def test_default_output_path_appends_png_to_input_name():
    assert image.default_output_path("font.ttf") == Path("font.ttf.png")
    assert image.default_output_path(Path("dir/Some Font.otf")) == Path("dir/Some Font.otf.png")


def test_escape_annotate_text_keeps_percent_and_backslash_literal():
    assert image.escape_annotate_text("100%") == "100\\%"
    assert image.escape_annotate_text("a\\b") == "a\\\\b"
    assert image.escape_annotate_text("@file") == "\\@file"
    assert image.escape_annotate_text("a@b\nc") == "a@b\nc"


def test_render_preview_invokes_rasterizer_with_canvas_and_text(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    out_png = tmp_path / "preview.png"

    def fake_run(cmd, *, capture_output: bool, text: bool, check: bool):
        assert capture_output is True
        assert text is True
        assert check is False
        assert cmd[0] == "magick"

        assert cmd[cmd.index("-size") + 1] == "640x200"
        assert "xc:#101010" in cmd
        assert cmd[cmd.index("-gravity") + 1] == "center"
        assert cmd[cmd.index("-pointsize") + 1] == "24"
        assert cmd[cmd.index("-font") + 1] == "DejaVu-Sans"
        assert cmd[cmd.index("-fill") + 1] == "#fafafa"
        annotate = cmd.index("-annotate")
        assert cmd[annotate + 1] == "+0+0"
        assert cmd[annotate + 2] == "ABC\nabc\n100\\%"
        assert "png:exclude-chunks=date,time" in cmd
        assert Path(cmd[-1]) == out_png

        Path(cmd[-1]).write_bytes(b"png")
        return subprocess.CompletedProcess(args=cmd, returncode=0, stdout="", stderr="")

    monkeypatch.setattr(image.subprocess, "run", fake_run)

    cfg = _config(size=(640, 200), font_size=24, bg_color="#101010", fg_color="#fafafa")
    path = image.render_preview("DejaVu-Sans", out_png, cfg, rasterizer="magick")
    assert path == out_png


def test_render_preview_creates_parent_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    out_png = tmp_path / "nested" / "dir" / "out.png"

    def fake_run(cmd, **kwargs):
        Path(cmd[-1]).write_bytes(b"png")
        return subprocess.CompletedProcess(args=cmd, returncode=0, stdout="", stderr="")

    monkeypatch.setattr(image.subprocess, "run", fake_run)

    assert image.render_preview("X", out_png, _config(), rasterizer="convert") == out_png
    assert out_png.is_file()


def test_render_preview_raises_on_rasterizer_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    def fake_run(cmd, **kwargs):
        return subprocess.CompletedProcess(
            args=cmd, returncode=1, stdout="", stderr="unable to read font `Nope'"
        )

    monkeypatch.setattr(image.subprocess, "run", fake_run)

    with pytest.raises(image.RenderError, match="unable to read font"):
        image.render_preview("Nope", tmp_path / "out.png", _config(), rasterizer="convert")


def test_render_preview_raises_when_output_is_not_written(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    def fake_run(cmd, **kwargs):
        return subprocess.CompletedProcess(args=cmd, returncode=0, stdout="", stderr="")

    monkeypatch.setattr(image.subprocess, "run", fake_run)

    with pytest.raises(image.RenderError, match="生成されませんでした"):
        image.render_preview("X", tmp_path / "out.png", _config(), rasterizer="convert")


def test_render_preview_raises_when_rasterizer_is_missing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    def missing(*args, **kwargs):
        raise FileNotFoundError

    monkeypatch.setattr(image.subprocess, "run", missing)

    with pytest.raises(image.RenderError, match="magick が見つかりません"):
        image.render_preview("X", tmp_path / "out.png", _config(), rasterizer="magick")


def test_render_preview_reports_unwritable_output_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    calls: list[list[str]] = []
    monkeypatch.setattr(image.subprocess, "run", lambda cmd, **kwargs: calls.append(cmd))
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(image.RenderError, match="出力先ディレクトリを作成できません"):
        image.render_preview("X", blocker / "out.png", _config(), rasterizer="magick")
    assert calls == []


def _installed_rasterizer() -> str | None:
    for name in ("magick", "convert"):
        if shutil.which(name):
            return name
    return None


@pytest.mark.skipif(_installed_rasterizer() is None, reason="ImageMagick が無い環境")
def test_render_preview_is_deterministic_with_real_rasterizer(tmp_path: Path):
    rasterizer = _installed_rasterizer()
    assert rasterizer is not None
    names = list_font_names(rasterizer)
    if not names:
        pytest.skip("ImageMagick がフォントを認識していない")

    cfg = _config(size=(200, 120), font_size=18)
    first = image.render_preview(names[0], tmp_path / "a.png", cfg, rasterizer=rasterizer)
    second = image.render_preview(names[0], tmp_path / "b.png", cfg, rasterizer=rasterizer)

    assert first.read_bytes() == second.read_bytes()
