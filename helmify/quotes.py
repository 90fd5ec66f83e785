"""Repair of template lines split inside a double-quoted string."""

from __future__ import annotations


def fix_unterminated_quotes(text: str) -> str:
    """Join a line with an odd number of double quotes to the line that follows it."""
    lines = text.split("\n")
    last = len(lines) - 1
    parts: list[str] = []
    unterminated = False
    for position, line in enumerate(lines):
        if unterminated:
            line = " " + line.strip()
            unterminated = False
        else:
            unterminated = line.count('"') % 2 != 0
        parts.append(line)
        if not unterminated and position != last:
            parts.append("\n")
    return "".join(parts)