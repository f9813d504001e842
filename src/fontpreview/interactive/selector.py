# どこで: `src/fontpreview/interactive/selector.py`。
# 何を: fuzzy finder（fzf）に候補列を標準入力で渡し、ユーザーが選んだ 1 行を返す。
# なぜ: 対話ループから「選択 or キャンセル」だけを受け取れるようにするため。

from __future__ import annotations

import subprocess
from collections.abc import Sequence

# fzf: 1 = 一致なし, 130 = ESC / Ctrl-C によるキャンセル
_NO_SELECTION_CODES = (1, 130)


class SelectorError(RuntimeError):
    """fuzzy finder の実行に失敗したことを表す。"""


def _selector_command(*, fuzzy_finder: str, prompt: str) -> list[str]:
    return [fuzzy_finder, "--prompt", prompt]


def select_font(names: Sequence[str], *, fuzzy_finder: str, prompt: str) -> str | None:
    """候補 `names` から 1 つを対話選択させて返す。

    Returns
    -------
    str | None
        選ばれた行。キャンセル・一致なし・空出力のときは None。

    Raises
    ------
    SelectorError
        fuzzy finder が見つからない、またはキャンセル以外の理由で異常終了した場合。
    """

    if not names:
        return None

    cmd = _selector_command(fuzzy_finder=fuzzy_finder, prompt=prompt)
    stdin_text = "\n".join(names) + "\n"
    try:
        # 描画は fzf 自身が /dev/tty に行うため、stderr は端末へそのまま流す。
        proc = subprocess.run(
            cmd,
            input=stdin_text,
            stdout=subprocess.PIPE,
            text=True,
            check=False,
        )
    except FileNotFoundError as e:
        raise SelectorError(f"{fuzzy_finder} が見つかりません（PATH を確認してください）") from e

    if proc.returncode != 0 and proc.returncode not in _NO_SELECTION_CODES:
        raise SelectorError(f"{fuzzy_finder} が失敗しました (code={proc.returncode})")

    selected = (proc.stdout or "").strip("\r\n")
    if not selected:
        return None
    return selected.splitlines()[0]


__all__ = ["SelectorError", "select_font"]
