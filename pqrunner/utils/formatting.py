from __future__ import annotations

from typing import Any, List, Optional, Sequence, Tuple

# Double outer border, single inner separators.
_TOP = ("╔", "═", "╤", "╗")
_MID = ("╟", "─", "┼", "╢")
_BOTTOM = ("╚", "═", "╧", "╝")
_SIDE = "║"
_INNER = "│"


def cell_text(x: Any) -> str:
    """Render one table cell; missing values become an empty string."""
    s = "" if x is None else str(x)
    return s.replace("\r", " ").replace("\n", " ")


def table_cells(rows: Any) -> Optional[Tuple[List[str], List[List[str]]]]:
    """
    Turn a list of row mappings into (headers, body) string cells.

    Headers come from the first record's keys; later records missing a key get
    an empty cell. Returns None when there is nothing renderable.
    """
    if not isinstance(rows, list) or not rows or not isinstance(rows[0], dict) or not rows[0]:
        return None

    cols = [str(c) for c in rows[0].keys()]
    keys = list(rows[0].keys())
    body: List[List[str]] = []
    for r in rows:
        if not isinstance(r, dict):
            r = {}
        body.append([cell_text(r.get(k)) for k in keys])
    return cols, body


def _rule(parts: Tuple[str, str, str, str], widths: Sequence[int]) -> str:
    left, fill, cross, right = parts
    return left + cross.join(fill * (w + 2) for w in widths) + right


def _line(cells: Sequence[str], widths: Sequence[int]) -> str:
    padded = [f" {c.ljust(w)} " for c, w in zip(cells, widths)]
    return _SIDE + _INNER.join(padded) + _SIDE


def render_grid(rows: Any, max_rows: Optional[int] = None) -> Optional[str]:
    """Render rows as a bordered grid, or None for empty/invalid data."""
    cells = table_cells(rows)
    if cells is None:
        return None
    headers, body = cells

    shown = body if max_rows is None else body[:max_rows]
    widths = [len(h) for h in headers]
    for r in shown:
        widths = [max(w, len(c)) for w, c in zip(widths, r)]

    lines = [_rule(_TOP, widths), _line(headers, widths)]
    for r in shown:
        lines.append(_rule(_MID, widths))
        lines.append(_line(r, widths))
    lines.append(_rule(_BOTTOM, widths))

    if len(body) > len(shown):
        lines.append(f"Showing first {len(shown)} of {len(body)} rows.")
    return "\n".join(lines)


def framed(text: str, width: int = 50, char: str = "-") -> str:
    """Put text between two delimiter lines."""
    rule = char * width
    return f"{rule}\n{text}\n{rule}"


def md_escape(s: Any) -> str:
    # Markdown table-safe rendering
    return str(s).replace("\\", "\\\\").replace("|", "\\|").replace("\n", "<br>")

