"""
Markdown subset used by every advisory form.

Model replies are split into typed blocks once and rendered by one renderer,
instead of each form carrying its own converter. Supported syntax: ``## `` and
``### `` headings, ``* `` list items and ``**bold**`` inline spans; every other
non-blank line is a paragraph.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Literal, Tuple


_BOLD_RE = re.compile(r"\*\*(.*?)\*\*")

BlockKind = Literal["heading", "paragraph", "list_item"]


@dataclass(frozen=True)
class Span:
    text: str
    strong: bool = False


@dataclass(frozen=True)
class Block:
    kind: BlockKind
    spans: Tuple[Span, ...] = field(default_factory=tuple)
    level: int = 0

    @property
    def text(self) -> str:
        return "".join(span.text for span in self.spans)


def parse_inline(text: str) -> Tuple[Span, ...]:
    spans: List[Span] = []
    cursor = 0
    for match in _BOLD_RE.finditer(text):
        if match.start() > cursor:
            spans.append(Span(text[cursor:match.start()]))
        spans.append(Span(match.group(1), strong=True))
        cursor = match.end()
    if cursor < len(text):
        spans.append(Span(text[cursor:]))
    return tuple(spans)


def parse_blocks(text: str) -> List[Block]:
    if not text:
        return []
    blocks: List[Block] = []
    for line in text.split("\n"):
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith("* "):
            blocks.append(Block("list_item", parse_inline(stripped[2:])))
        elif stripped.startswith("### "):
            blocks.append(Block("heading", parse_inline(stripped[4:]), level=3))
        elif stripped.startswith("## "):
            blocks.append(Block("heading", parse_inline(stripped[3:]), level=2))
        else:
            blocks.append(Block("paragraph", parse_inline(stripped)))
    return blocks


def _inline_html(spans: Iterable[Span]) -> str:
    parts = []
    for span in spans:
        escaped = html.escape(span.text, quote=False)
        parts.append(f"<strong>{escaped}</strong>" if span.strong else escaped)
    return "".join(parts)


def render_html(blocks: Iterable[Block]) -> str:
    out: List[str] = []
    in_list = False
    for block in blocks:
        if block.kind == "list_item":
            if not in_list:
                out.append("<ul>")
                in_list = True
            out.append(f"<li>{_inline_html(block.spans)}</li>")
            continue
        if in_list:
            out.append("</ul>")
            in_list = False
        if block.kind == "heading":
            out.append(f"<h{block.level}>{_inline_html(block.spans)}</h{block.level}>")
        else:
            out.append(f"<p>{_inline_html(block.spans)}</p>")
    if in_list:
        out.append("</ul>")
    return "".join(out)


def _inline_markdown(spans: Iterable[Span]) -> str:
    parts = []
    for span in spans:
        escaped = html.escape(span.text, quote=False)
        parts.append(f"**{escaped}**" if span.strong else escaped)
    return "".join(parts)


def render_markdown(blocks: Iterable[Block]) -> str:
    """Normalized markdown for chat front ends that render markdown themselves."""
    lines: List[str] = []
    previous: str = ""
    for block in blocks:
        if block.kind == "list_item":
            if previous and previous != "list_item":
                lines.append("")
            lines.append(f"- {_inline_markdown(block.spans)}")
        else:
            if previous:
                lines.append("")
            prefix = "#" * block.level + " " if block.kind == "heading" else ""
            lines.append(prefix + _inline_markdown(block.spans))
        previous = block.kind
    return "\n".join(lines)


def to_html(text: str) -> str:
    return render_html(parse_blocks(text))


def to_markdown(text: str) -> str:
    return render_markdown(parse_blocks(text))
