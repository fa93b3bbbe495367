"""Table delimiter row classifier and row splitting (GFM tables)."""

from __future__ import annotations

from huellas.nodes import Alignment


def split_table_row(line: str) -> list[str]:
    """Split a table row into raw cell strings.

    One leading and one trailing unescaped pipe are optional. Cells are
    split at unescaped pipes; an escaped pipe ``\\|`` becomes a literal
    pipe in the cell text, even inside code spans (GFM 4.10).
    Cell contents are stripped of surrounding spaces and tabs.
    """
    text = line.strip(" \t")
    if text.startswith("|"):
        text = text[1:]
    if text.endswith("|") and not _is_escaped(text, len(text) - 1):
        text = text[:-1]

    cells: list[str] = []
    current: list[str] = []
    i = 0
    length = len(text)
    while i < length:
        char = text[i]
        if char == "\\" and i + 1 < length:
            current.append("|" if text[i + 1] == "|" else text[i : i + 2])
            i += 2
            continue
        if char == "|":
            cells.append("".join(current).strip(" \t"))
            current = []
        else:
            current.append(char)
        i += 1
    cells.append("".join(current).strip(" \t"))
    return cells


def _is_escaped(text: str, pos: int) -> bool:
    backslashes = 0
    pos -= 1
    while pos >= 0 and text[pos] == "\\":
        backslashes += 1
        pos -= 1
    return backslashes % 2 == 1


def classify_table_delimiter(line: str) -> tuple[Alignment, ...] | None:
    """Parse a delimiter row into column alignments.

    Each cell is ``-+`` with optional leading and/or trailing ``:``. The
    row must contain at least one pipe.

    Returns:
        One alignment per column, or None if the line is not a delimiter row.
    """
    if "-" not in line:
        return None
    stripped = line.strip(" \t")
    cells = split_table_row(stripped)
    if len(cells) == 1 and "|" not in stripped:
        return None

    alignments: list[Alignment] = []
    for cell in cells:
        if not cell:
            return None
        left = cell.startswith(":")
        right = cell.endswith(":")
        dashes = cell[1 if left else 0 : len(cell) - 1 if right else len(cell)]
        if not dashes or dashes.strip("-"):
            return None
        if left and right:
            alignments.append("center")
        elif left:
            alignments.append("left")
        elif right:
            alignments.append("right")
        else:
            alignments.append(None)
    return tuple(alignments)
