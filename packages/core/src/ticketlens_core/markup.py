"""Markdown <-> tracker-native markup conversion.

Jira stores descriptions and comments as wiki markup; GitHub stores markdown.
Tickets are always edited as markdown, so every tracker supplies a converter
pair. The Jira converter covers the constructs tickets actually use: headings,
emphasis, inline code, code blocks, links and lists. Color macros are dropped
on the way to markdown.
"""

from __future__ import annotations

import re
from typing import Callable, NamedTuple

_PLACEHOLDER = "\x00"

# Jira -> markdown
_JIRA_HEADING = re.compile(r"^h([1-6])\.\s+(.*)$")
_JIRA_BULLET = re.compile(r"^(\*+|-)\s+(.*)$")
_JIRA_NUMBERED = re.compile(r"^(#+)\s+(.*)$")
_JIRA_CODE_OPEN = re.compile(r"^\{(code|noformat)(?::([^}|]*))?[^}]*\}\s*$")
_JIRA_CODE_CLOSE = re.compile(r"^\{(code|noformat)\}\s*$")
_JIRA_BOLD = re.compile(r"(?<![\w*])\*(?![\s*])([^*\n]+?)(?<!\s)\*(?![\w*])")
_JIRA_ITALIC = re.compile(r"(?<![\w_])_(?![\s_])([^_\n]+?)(?<!\s)_(?![\w_])")
_JIRA_MONO = re.compile(r"\{\{(.+?)\}\}")
_JIRA_LINK = re.compile(r"\[([^\[\]|]+)\|([^\[\]]+)\]")
_JIRA_BARE_LINK = re.compile(r"\[((?:https?|mailto):[^\[\]|]+)\]")
_JIRA_COLOR = re.compile(r"\{color(?::[^}]*)?\}")

# markdown -> Jira
_MD_HEADING = re.compile(r"^(#{1,6})\s+(.*)$")
_MD_BULLET = re.compile(r"^(\s*)[-*+]\s+(.*)$")
_MD_NUMBERED = re.compile(r"^(\s*)\d+[.)]\s+(.*)$")
_MD_FENCE = re.compile(r"^```\s*([\w+-]*)\s*$")
_MD_BOLD = re.compile(r"(\*\*|__)(?!\s)(.+?)(?<!\s)\1")
_MD_ITALIC = re.compile(r"(?<![\w*])\*(?![\s*])([^*\n]+?)(?<!\s)\*(?![\w*])")
_MD_CODE = re.compile(r"`([^`\n]+)`")
_MD_LINK = re.compile(r"\[([^\[\]]+)\]\(([^()\s]+)\)")
_MD_AUTOLINK = re.compile(r"<((?:https?|mailto):[^<>\s]+)>")


class Converter(NamedTuple):
    """A pair of functions converting native markup to markdown and back."""

    name: str
    to_markdown: Callable[[str], str]
    from_markdown: Callable[[str], str]


def _split_code_spans(line: str, pattern: re.Pattern) -> list[tuple[bool, str]]:
    """Split a line into (is_code, text) segments so inline code is left untouched."""
    segments: list[tuple[bool, str]] = []
    pos = 0
    for match in pattern.finditer(line):
        if match.start() > pos:
            segments.append((False, line[pos : match.start()]))
        segments.append((True, match.group(1)))
        pos = match.end()
    if pos < len(line):
        segments.append((False, line[pos:]))
    return segments


def _jira_inline(text: str) -> str:
    parts = []
    for is_code, segment in _split_code_spans(text, _JIRA_MONO):
        if is_code:
            parts.append(f"`{segment}`")
            continue
        segment = _JIRA_COLOR.sub("", segment)
        segment = _JIRA_LINK.sub(r"[\1](\2)", segment)
        segment = _JIRA_BARE_LINK.sub(r"<\1>", segment)
        segment = _JIRA_BOLD.sub(_PLACEHOLDER + r"\1" + _PLACEHOLDER, segment)
        segment = _JIRA_ITALIC.sub(r"*\1*", segment)
        parts.append(segment.replace(_PLACEHOLDER, "**"))
    return "".join(parts)


def _markdown_inline(text: str) -> str:
    parts = []
    for is_code, segment in _split_code_spans(text, _MD_CODE):
        if is_code:
            parts.append("{{" + segment + "}}")
            continue
        segment = _MD_LINK.sub(r"[\1|\2]", segment)
        segment = _MD_AUTOLINK.sub(r"[\1]", segment)
        segment = _MD_BOLD.sub(_PLACEHOLDER + r"\2" + _PLACEHOLDER, segment)
        segment = _MD_ITALIC.sub(r"_\1_", segment)
        parts.append(segment.replace(_PLACEHOLDER, "*"))
    return "".join(parts)


def jira_to_markdown(text: str) -> str:
    """Convert Jira wiki markup to markdown."""
    out: list[str] = []
    in_code = False
    for line in (text or "").replace("\r\n", "\n").split("\n"):
        if in_code:
            if _JIRA_CODE_CLOSE.match(line):
                out.append("```")
                in_code = False
            else:
                out.append(line)
            continue
        code_open = _JIRA_CODE_OPEN.match(line)
        if code_open:
            lang = (code_open.group(2) or "").strip()
            out.append("```" + ("" if "=" in lang else lang))
            in_code = True
            continue
        heading = _JIRA_HEADING.match(line)
        if heading:
            out.append("#" * int(heading.group(1)) + " " + _jira_inline(heading.group(2)))
            continue
        bullet = _JIRA_BULLET.match(line)
        if bullet:
            depth = len(bullet.group(1)) if bullet.group(1) != "-" else 1
            out.append("  " * (depth - 1) + "- " + _jira_inline(bullet.group(2)))
            continue
        numbered = _JIRA_NUMBERED.match(line)
        if numbered:
            depth = len(numbered.group(1))
            out.append("   " * (depth - 1) + "1. " + _jira_inline(numbered.group(2)))
            continue
        out.append(_jira_inline(line))
    return "\n".join(out)


def markdown_to_jira(text: str) -> str:
    """Convert markdown to Jira wiki markup."""
    out: list[str] = []
    in_code = False
    for line in (text or "").replace("\r\n", "\n").split("\n"):
        fence = _MD_FENCE.match(line)
        if in_code:
            if fence and not fence.group(1):
                out.append("{code}")
                in_code = False
            else:
                out.append(line)
            continue
        if fence:
            lang = fence.group(1)
            out.append("{code:" + lang + "}" if lang else "{code}")
            in_code = True
            continue
        heading = _MD_HEADING.match(line)
        if heading:
            out.append(f"h{len(heading.group(1))}. " + _markdown_inline(heading.group(2)))
            continue
        bullet = _MD_BULLET.match(line)
        if bullet:
            depth = len(bullet.group(1).expandtabs(2)) // 2 + 1
            out.append("*" * depth + " " + _markdown_inline(bullet.group(2)))
            continue
        numbered = _MD_NUMBERED.match(line)
        if numbered:
            depth = len(numbered.group(1).expandtabs(3)) // 3 + 1
            out.append("#" * depth + " " + _markdown_inline(numbered.group(2)))
            continue
        out.append(_markdown_inline(line))
    return "\n".join(out)


def _identity(text: str) -> str:
    return text or ""


_CONVERTERS = {
    "jira": Converter("jira", jira_to_markdown, markdown_to_jira),
    "markdown": Converter("markdown", _identity, _identity),
}


def get_converter(name: str) -> Converter:
    try:
        return _CONVERTERS[name]
    except KeyError:
        raise ValueError(f"Unknown markup: {name!r}. Choose one of {sorted(_CONVERTERS)}.")
