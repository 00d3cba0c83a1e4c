"""Minimal HTML document model collected with the standard library parser."""

from __future__ import annotations

from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import Dict, List, Optional, Tuple

Attributes = Dict[str, str]


@dataclass
class Script:
    attrs: Attributes
    text: str = ""

    @property
    def src(self) -> Optional[str]:
        return self.attrs.get("src")

    @property
    def type(self) -> str:
        return self.attrs.get("type", "").lower()


@dataclass
class HTMLDocument:
    """The tags the SEO and asset validators care about, in document order."""

    title: Optional[str] = None
    metas: List[Attributes] = field(default_factory=list)
    links: List[Attributes] = field(default_factory=list)
    scripts: List[Script] = field(default_factory=list)
    styles: List[str] = field(default_factory=list)
    images: List[Attributes] = field(default_factory=list)
    headings: List[Tuple[int, str]] = field(default_factory=list)

    def meta(self, *, name: str | None = None, prop: str | None = None) -> Optional[Attributes]:
        for attrs in self.metas:
            if name is not None and attrs.get("name", "").lower() == name:
                return attrs
            if prop is not None and attrs.get("property", "").lower() == prop:
                return attrs
        return None

    def meta_content(self, *, name: str | None = None, prop: str | None = None) -> Optional[str]:
        attrs = self.meta(name=name, prop=prop)
        return attrs.get("content") if attrs else None

    def link(self, rel: str) -> Optional[Attributes]:
        for attrs in self.links:
            if rel in attrs.get("rel", "").lower().split():
                return attrs
        return None

    @property
    def json_ld(self) -> List[str]:
        return [script.text for script in self.scripts if script.type == "application/ld+json"]

    @property
    def inline_scripts(self) -> List[Script]:
        return [
            script
            for script in self.scripts
            if script.src is None and script.type != "application/ld+json" and script.text.strip()
        ]

    @property
    def external_scripts(self) -> List[Script]:
        return [script for script in self.scripts if script.src]


class _DocumentCollector(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.document = HTMLDocument()
        self._capture: Optional[str] = None
        self._buffer: List[str] = []
        self._pending_script: Optional[Script] = None
        self._heading: Optional[int] = None

    def handle_starttag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        values = {key.lower(): (value or "") for key, value in attrs}
        if tag == "meta":
            self.document.metas.append(values)
        elif tag == "link":
            self.document.links.append(values)
        elif tag == "img":
            self.document.images.append(values)
        elif tag == "script":
            self._pending_script = Script(values)
            self._start_capture(tag)
        elif tag in ("title", "style"):
            self._start_capture(tag)
        elif len(tag) == 2 and tag[0] == "h" and tag[1] in "123456":
            self._heading = int(tag[1])
            self._start_capture(tag)

    def handle_startendtag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        self.handle_starttag(tag, attrs)
        if tag == "script":
            self.handle_endtag(tag)

    def handle_endtag(self, tag: str) -> None:
        if tag != self._capture:
            return
        text = "".join(self._buffer)
        if tag == "title" and self.document.title is None:
            self.document.title = text.strip()
        elif tag == "style":
            self.document.styles.append(text)
        elif tag == "script" and self._pending_script is not None:
            self._pending_script.text = text
            self.document.scripts.append(self._pending_script)
            self._pending_script = None
        elif self._heading is not None:
            self.document.headings.append((self._heading, " ".join(text.split())))
            self._heading = None
        self._capture = None
        self._buffer = []

    def handle_data(self, data: str) -> None:
        if self._capture is not None:
            self._buffer.append(data)

    def _start_capture(self, tag: str) -> None:
        self._capture = tag
        self._buffer = []


def parse_document(html: str) -> HTMLDocument:
    collector = _DocumentCollector()
    collector.feed(html)
    collector.close()
    return collector.document


__all__ = ["HTMLDocument", "Script", "parse_document"]
