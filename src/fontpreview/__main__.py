# どこで: `src/fontpreview/__main__.py`。
# 何を: `python -m fontpreview` の起点。

from __future__ import annotations

from fontpreview.cli import main

raise SystemExit(main())
