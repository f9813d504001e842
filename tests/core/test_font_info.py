from __future__ import annotations

from pathlib import Path

from fontpreview.core.font_info import inspect_font_file, missing_characters


def _build_font(path: Path, *, family: str, chars: str) -> None:
    """`chars` の各文字に四角形グリフを持つ最小 TTF を書き出す。"""

    from fontTools.fontBuilder import FontBuilder
    from fontTools.pens.ttGlyphPen import TTGlyphPen

    glyph_names = [f"g{ord(ch):04X}" for ch in chars]
    fb = FontBuilder(unitsPerEm=1000, isTTF=True)
    fb.setupGlyphOrder([".notdef", *glyph_names])
    fb.setupCharacterMap({ord(ch): name for ch, name in zip(chars, glyph_names)})

    glyphs = {".notdef": TTGlyphPen(None).glyph()}
    for name in glyph_names:
        pen = TTGlyphPen(None)
        pen.moveTo((100, 0))
        pen.lineTo((100, 700))
        pen.lineTo((500, 700))
        pen.lineTo((500, 0))
        pen.closePath()
        glyphs[name] = pen.glyph()
    fb.setupGlyf(glyphs)
    fb.setupHorizontalMetrics({name: (600, 0) for name in glyphs})
    fb.setupHorizontalHeader(ascent=800, descent=-200)
    fb.setupNameTable({"familyName": family, "styleName": "Regular"})
    fb.setupOS2()
    fb.setupPost()
    fb.save(str(path))


def test_missing_characters_skips_whitespace_and_duplicates():
    cmap = {ord("A"): "A", ord("b"): "b"}
    assert missing_characters(cmap, "Ab\nAxx y%") == ("x", "y", "%")


def test_missing_characters_without_cmap_reports_everything():
    assert missing_characters(None, "ab a") == ("a", "b")


def test_inspect_font_file_reads_family_and_missing_glyphs(tmp_path: Path):
    font_path = tmp_path / "Sample.ttf"
    _build_font(font_path, family="Sample Sans", chars="ABC")

    info = inspect_font_file(font_path, "ABC\nabc")
    assert info is not None
    assert info.path == font_path
    assert info.family == "Sample Sans"
    assert info.missing_chars == ("a", "b", "c")


def test_inspect_font_file_returns_none_for_unreadable_file(tmp_path: Path):
    bogus = tmp_path / "not-a-font.ttf"
    bogus.write_bytes(b"definitely not sfnt")
    assert inspect_font_file(bogus, "Abc") is None


def test_inspect_font_file_returns_none_for_missing_file(tmp_path: Path):
    assert inspect_font_file(tmp_path / "missing.otf", "Abc") is None
