"""Structural HTML → Markdown conversion.

The converter walks the parsed DOM with an explicit stack and renders every
element through a tag-name → rule mapping, so arbitrarily deep or unclosed
markup never hits the interpreter's recursion limit.  It knows nothing about
what a page is *about*; it only keeps the visual hierarchy (headings, lists,
emphasis, links, images and code) readable as Markdown.

Block rules surround their output with blank lines and the final pass
collapses the resulting runs, so nested block elements never stack up more
than one blank line.  Fenced code is held back as a placeholder until after
that pass, so whitespace inside ``pre`` survives verbatim.
"""

import re
from typing import Callable, Dict, List, Tuple

from bs4 import BeautifulSoup
from bs4.element import (
    CData,
    Comment,
    Declaration,
    Doctype,
    NavigableString,
    PageElement,
    ProcessingInstruction,
    Tag,
)

# Subtrees dropped before rendering: scripting, styling and page chrome
_REMOVE_TAGS = {"script", "style", "header", "footer", "nav"}

# String node types that are markup, not text
_SKIP_STRINGS = (Comment, CData, Declaration, Doctype, ProcessingInstruction)

_TRAILING_SPACE_RE = re.compile(r"[ \t\r\f\v]+\n")
_BLANK_RUN_RE = re.compile(r"\n{3,}")
_FENCE_RE = re.compile(r"^(?P<prefix>.*?)\x00(?P<index>\d+)\x00", re.MULTILINE)
_NOT_QUOTE_RE = re.compile(r"[^>]")

# (child, rendered child) pairs in document order
Rendered = List[Tuple[PageElement, str]]
Rule = Callable[[Tag, Rendered], str]
LeafRule = Callable[[Tag], str]


def _joined(rendered: Rendered) -> str:
    return "".join(text for _, text in rendered)


def _block(text: str) -> str:
    return f"\n\n{text}\n\n" if text else ""


def _nested(text: str) -> str:
    """Normalise the body of a container whose lines get prefixed afterwards."""
    return _BLANK_RUN_RE.sub("\n\n", text).strip()


def _heading(level: int) -> Rule:
    prefix = "#" * level

    def rule(tag: Tag, rendered: Rendered) -> str:
        text = _joined(rendered).strip()
        return _block(f"{prefix} {text}") if text else ""

    return rule


def _paragraph(tag: Tag, rendered: Rendered) -> str:
    return _block(_joined(rendered).strip())


def _anchor(tag: Tag, rendered: Rendered) -> str:
    text = _joined(rendered).strip()
    href = (tag.get("href") or "").strip()
    return f"[{text}]({href})"


def _image(tag: Tag) -> str:
    alt = (tag.get("alt") or "").strip()
    src = (tag.get("src") or "").strip()
    return f"![{alt}]({src})"


def _list_start(tag: Tag) -> int:
    try:
        return int(tag.get("start", 1))
    except (TypeError, ValueError):
        return 1


def _list_item(marker: str, text: str) -> str:
    """Render one ``li``; continuation lines are indented under the marker."""
    lines = _nested(text).split("\n")
    indent = " " * len(marker)
    rest = [f"{indent}{line}" if line.strip() else "" for line in lines[1:]]
    return "\n".join([f"{marker}{lines[0]}", *rest])


def _list(ordered: bool) -> Rule:
    def rule(tag: Tag, rendered: Rendered) -> str:
        start = _list_start(tag) if ordered else 1
        # only direct li children get a marker
        texts = [text for child, text in rendered if isinstance(child, Tag) and child.name == "li"]
        items = []
        for index, text in enumerate(texts):
            marker = f"{start + index}. " if ordered else "- "
            items.append(_list_item(marker, text))
        return _block("\n".join(items))

    return rule


def _wrap(marker: str) -> Rule:
    """Inline emphasis; surrounding whitespace stays outside the markers."""

    def rule(tag: Tag, rendered: Rendered) -> str:
        text = _joined(rendered)
        stripped = text.strip()
        if not stripped:
            return text
        leading = text[: len(text) - len(text.lstrip())]
        trailing = text[len(text.rstrip()):]
        return f"{leading}{marker}{stripped}{marker}{trailing}"

    return rule


def _inline_code(tag: Tag) -> str:
    text = tag.get_text()
    return f"`{text}`" if text else ""


def _language(tag: Tag) -> str:
    for cls in tag.get("class", []):
        if cls.startswith("language-"):
            return cls[len("language-"):]
    return ""


def _line_break(tag: Tag) -> str:
    return "\n"


def _rule_line(tag: Tag) -> str:
    return _block("---")


def _blockquote(tag: Tag, rendered: Rendered) -> str:
    text = _nested(_joined(rendered))
    if not text:
        return ""
    return _block("\n".join(f"> {line}" if line else ">" for line in text.split("\n")))


_RULES: Dict[str, Rule] = {
    **{f"h{level}": _heading(level) for level in range(1, 7)},
    "p": _paragraph,
    "a": _anchor,
    "ul": _list(ordered=False),
    "ol": _list(ordered=True),
    "strong": _wrap("**"),
    "b": _wrap("**"),
    "em": _wrap("*"),
    "i": _wrap("*"),
    "blockquote": _blockquote,
}

# Elements rendered from their own text; their subtree is never walked
_LEAF_RULES: Dict[str, LeafRule] = {
    "img": _image,
    "code": _inline_code,
    "br": _line_break,
    "hr": _rule_line,
}


class _Renderer:
    """One conversion: a post-order walk plus the fenced blocks it set aside."""

    def __init__(self):
        self.fences: List[str] = []

    def render(self, root: Tag) -> str:
        stack = [(root, iter(root.children), [])]
        while True:
            node, children, rendered = stack[-1]
            child = next(children, None)
            if child is not None:
                if self._descends(child):
                    stack.append((child, iter(child.children), []))
                else:
                    rendered.append((child, self._leaf(child)))
                continue

            stack.pop()
            rule = _RULES.get(node.name)
            text = rule(node, rendered) if rule else _joined(rendered)
            if not stack:
                return text
            stack[-1][2].append((node, text))

    def restore(self, markdown: str) -> str:
        """Swap fence placeholders back in, carrying any list or quote prefix."""

        def substitute(match: re.Match) -> str:
            prefix = match["prefix"]
            continuation = _NOT_QUOTE_RE.sub(" ", prefix)
            first, *rest = self.fences[int(match["index"])].split("\n")
            lines = [f"{prefix}{first}"]
            lines.extend(f"{continuation}{line}" if line else continuation.rstrip() for line in rest)
            return "\n".join(lines)

        return _FENCE_RE.sub(substitute, markdown)

    @staticmethod
    def _descends(node) -> bool:
        return isinstance(node, Tag) and node.name != "pre" and node.name not in _LEAF_RULES

    def _leaf(self, node) -> str:
        if isinstance(node, _SKIP_STRINGS):
            return ""
        if isinstance(node, NavigableString):
            return str(node)
        if not isinstance(node, Tag):
            return ""
        if node.name == "pre":
            return self._fence(node)
        return _LEAF_RULES[node.name](node)

    def _fence(self, tag: Tag) -> str:
        code = tag.find("code")
        language = _language(tag) or (_language(code) if code else "")
        text = tag.get_text().strip("\n")
        self.fences.append(f"```{language}\n{text}\n```")
        return _block(f"\x00{len(self.fences) - 1}\x00")


def html_to_markdown(html: str) -> str:
    """Convert *html* to Markdown.

    Malformed markup never raises; the parser repairs what it can and the
    rest degrades to plain text.
    """
    soup = BeautifulSoup(html, "lxml")

    for tag in soup.find_all(_REMOVE_TAGS):
        tag.decompose()

    root = soup.find("body") or soup
    renderer = _Renderer()
    markdown = renderer.render(root)

    markdown = _TRAILING_SPACE_RE.sub("\n", markdown)
    markdown = _BLANK_RUN_RE.sub("\n\n", markdown)
    return renderer.restore(markdown).strip()
