"""
Flatten note HTML into text blocks and image references.

Block-level tags start a new block, <br> starts a new line inside the current
block, list items carry a bullet ("•" or "1."), entities are unescaped and
<script>/<style> content is dropped. Inline formatting is discarded.
"""
import re
from dataclasses import dataclass
from typing import List, Optional, Union

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

_BLOCK_TAGS = {
    "p", "div", "section", "article", "header", "footer", "blockquote", "figure", "figcaption",
    "tr", "table", "hr",
}
_HEADINGS = {"h1", "h2", "h3", "h4", "h5", "h6"}
_SKIP_TAGS = ["script", "style", "head", "title"]
_ATTACHMENT_SRC = re.compile(r"/api/attachments/(\d+)/download")
_WS = re.compile(r"[ \t\r\n\f\v]+")


@dataclass
class TextBlock:
    kind: str  # paragraph | heading | list_item | preformatted
    text: str
    level: int = 0  # heading level, or list nesting depth
    bullet: str = ""


@dataclass
class ImageRef:
    src: str
    alt: str = ""


Block = Union[TextBlock, ImageRef]


class _BlockWriter:
    """Walks a parsed note and collects blocks in document order."""

    def __init__(self):
        self.blocks: List[Block] = []
        self._buf: List[str] = []
        self._kind = "paragraph"
        self._level = 0
        self._bullet = ""
        self._lists: List[list] = []  # [ordered, counter]
        self._pre = 0

    def _start(self, kind: str, level: int = 0, bullet: str = "") -> None:
        self._kind, self._level, self._bullet = kind, level, bullet

    def _flush(self) -> None:
        raw = "".join(self._buf)
        self._buf = []
        if self._pre:
            text = raw.strip("\n")
        else:
            lines = [_WS.sub(" ", line).strip() for line in raw.split("\n")]
            text = "\n".join(line for line in lines if line)
        if text:
            self.blocks.append(TextBlock(kind=self._kind, text=text, level=self._level, bullet=self._bullet))
        self._start("paragraph")

    def walk(self, node: Tag) -> None:
        for child in node.children:
            if isinstance(child, NavigableString):
                if not isinstance(child, PreformattedString):
                    # Source newlines are plain whitespace; only <br> breaks a line
                    self._buf.append(str(child) if self._pre else _WS.sub(" ", child))
                continue
            if isinstance(child, Tag):
                self._element(child)

    def _element(self, tag: Tag) -> None:
        name = tag.name
        if name == "br":
            self._buf.append("\n")
        elif name == "img":
            self._flush()
            src = (tag.get("src") or "").strip()
            if src:
                self.blocks.append(ImageRef(src=src, alt=tag.get("alt") or ""))
        elif name in ("ul", "ol"):
            self._flush()
            self._lists.append([name == "ol", 0])
            self.walk(tag)
            self._flush()
            self._lists.pop()
        elif name == "li":
            self._flush()
            depth = max(len(self._lists), 1)
            bullet = "•"
            if self._lists and self._lists[-1][0]:
                self._lists[-1][1] += 1
                bullet = f"{self._lists[-1][1]}."
            self._start("list_item", depth, bullet)
            self.walk(tag)
            if self._kind != "list_item":
                # Text after a nested list inside the same item
                self._start("list_item", depth)
            self._flush()
        elif name == "pre":
            self._flush()
            self._start("preformatted")
            self._pre += 1
            self.walk(tag)
            self._kind = "preformatted"
            self._flush()
            self._pre -= 1
        elif name in _HEADINGS or name in _BLOCK_TAGS:
            # <li><p>text</p></li> keeps the item's bullet
            keep_item = self._kind == "list_item" and not "".join(self._buf).strip()
            if not keep_item:
                self._flush()
                if name in _HEADINGS:
                    self._start("heading", int(name[1]))
            self.walk(tag)
            self._flush()
        else:
            self.walk(tag)

    def close(self) -> List[Block]:
        self._flush()
        return self.blocks


def html_to_blocks(html: Optional[str]) -> List[Block]:
    """Parse note HTML into an ordered list of TextBlock and ImageRef."""
    soup = BeautifulSoup(html or "", "html.parser")
    for element in soup(_SKIP_TAGS):
        element.decompose()

    writer = _BlockWriter()
    writer.walk(soup)
    return writer.close()


def html_to_text(html: Optional[str]) -> str:
    """Plain text rendition; image references are left out."""
    lines = []
    for block in html_to_blocks(html):
        if isinstance(block, TextBlock):
            prefix = f"{block.bullet} " if block.bullet else ""
            lines.append(prefix + block.text)
    return "\n".join(lines)


def attachment_id_from_src(src: str) -> Optional[int]:
    """Attachment id of an <img> pointing at the attachment download route."""
    match = _ATTACHMENT_SRC.search(src or "")
    return int(match.group(1)) if match else None
