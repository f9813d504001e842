# どこで: `src/fontpreview/__init__.py`。
# 何を: ルート `fontpreview` パッケージを定義する。
# なぜ: import 起点を `fontpreview` に統一するため。

from __future__ import annotations

__version__ = "1.0.6"

__all__ = ["__version__"]
