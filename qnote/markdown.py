"""
Markdown to styled preview lines.

Each output line is a list of prompt_toolkit ``(style, text)`` fragments.
Styles are ``class:md.*`` names; colours come from the theme through the
application style sheet.
"""

import re
from typing import List, Tuple

Fragment = Tuple[str, str]
Line = List[Fragment]

RULE_WIDTH = 40

_HEADING = re.compile(r"^(#{1,6})\s+(.*)$")
_FENCE = re.compile(r"^\s*(```|~~~)")
_QUOTE = re.compile(r"^\s*>\s?(.*)$")
_TASK = re.compile(r"^(\s*)[-*+]\s+\[([ xX])\]\s+(.*)$")
_BULLET = re.compile(r"^(\s*)[-*+]\s+(.*)$")
_ORDERED = re.compile(r"^(\s*)(\d+)[.)]\s+(.*)$")
_RULE = re.compile(r"^\s*([-*_])(\s*\1){2,}\s*$")
_INLINE = re.compile(
    r"(?P<code>`[^`]+`)"
    r"|(?P<strong>\*\*[^*]+\*\*|__[^_]+__)"
    r"|(?P<strike>~~[^~]+~~)"
    r"|(?P<link>\[[^\]]+\]\([^)]*\))"
    r"|(?P<em>\*[^*\s][^*]*\*|\b_[^_\s][^_]*_\b)"
)


def _join(*styles: str) -> str:
    return " ".join(s for s in styles if s)


def render_inline(text: str, base: str = "") -> Line:
    """Split one line of text into fragments for inline markup."""
    fragments: Line = []
    pos = 0
    for m in _INLINE.finditer(text):
        if m.start() > pos:
            fragments.append((base, text[pos:m.start()]))
        token = m.group(0)
        kind = m.lastgroup
        if kind == "code":
            fragments.append((_join(base, "class:md.code"), token))
        elif kind == "strong":
            fragments.append((_join(base, "class:md.strong"), token[2:-2]))
        elif kind == "strike":
            fragments.append((_join(base, "class:md.strike"), token[2:-2]))
        elif kind == "link":
            label = token[1:token.index("]")]
            fragments.append((_join(base, "class:md.link"), f"[{label}]"))
        else:
            fragments.append((_join(base, "class:md.emphasis"), token[1:-1]))
        pos = m.end()
    if pos < len(text):
        fragments.append((base, text[pos:]))
    return fragments


def markdown_to_lines(markdown: str) -> List[Line]:
    """
    Render markdown into styled lines.

    Handles ATX headings, fenced code, block quotes, bullet, ordered and
    task lists, horizontal rules and inline code/strong/emphasis/strike/
    links. Anything else is shown as plain text.
    """
    if not markdown:
        return []

    lines: List[Line] = []
    in_code = False
    for raw in markdown.splitlines():
        if _FENCE.match(raw):
            in_code = not in_code
            continue
        if in_code:
            lines.append([("class:md.code-block", f"  {raw}")])
            continue

        if not raw.strip():
            lines.append([])
            continue

        heading = _HEADING.match(raw)
        if heading:
            level = len(heading.group(1))
            style = f"class:md.h{min(level, 4)}"
            lines.append(render_inline(heading.group(2).strip(), style))
            continue

        if _RULE.match(raw):
            lines.append([("class:md.rule", "─" * RULE_WIDTH)])
            continue

        quote = _QUOTE.match(raw)
        if quote:
            lines.append(render_inline(f"│ {quote.group(1)}", "class:md.blockquote"))
            continue

        task = _TASK.match(raw)
        if task:
            indent = "  " * (len(task.group(1)) // 2)
            marker = "[ ] " if task.group(2) == " " else "[✓] "
            lines.append([("", indent + marker)] + render_inline(task.group(3)))
            continue

        bullet = _BULLET.match(raw)
        if bullet:
            indent = "  " * (len(bullet.group(1)) // 2)
            lines.append([("", f"{indent}• ")] + render_inline(bullet.group(2)))
            continue

        ordered = _ORDERED.match(raw)
        if ordered:
            indent = "  " * (len(ordered.group(1)) // 2)
            lines.append([("", f"{indent}{ordered.group(2)}. ")] + render_inline(ordered.group(3)))
            continue

        lines.append(render_inline(raw))
    return lines
