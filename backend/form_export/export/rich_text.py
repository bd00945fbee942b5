from __future__ import annotations

import re

# Applied in order. Underline has no Markdown equivalent and is left as HTML.
_SUBSTITUTIONS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"<b>(.*?)</b>"), r"**\1**"),
    (re.compile(r"<i>(.*?)</i>"), r"*\1*"),
    (re.compile(r'<a href="(.*?)">(.*?)</a>'), r"[\2](\1)"),
    (re.compile(r"<br>"), "\n"),
    (re.compile(r"<br/>"), "\n"),
    (re.compile(r"<br />"), "\n"),
)


def to_markdown(text: str | None) -> str:
    if not text:
        return ""
    converted = str(text)
    for pattern, replacement in _SUBSTITUTIONS:
        converted = pattern.sub(replacement, converted)
    return converted
